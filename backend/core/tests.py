"""
Test suite for authentication, users and the error envelope
"""
from io import StringIO

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, override_settings
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken
from backend.core.cache_utils import get_prefix_version, invalidate_prefix, make_cache_key
from backend.core.models import User
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.catalog.models import Category
from backend.notifications.models import Notification


class UserModelTests(TestCase):

    def test_create_user_hashes_password(self):
        user = User.objects.create_user(email='jan@test.com', password='geheim123')
        self.assertNotEqual(user.password, 'geheim123')
        self.assertTrue(user.check_password('geheim123'))
        self.assertEqual(user.role, User.ROLE_USER)

    def test_name_defaults_to_email_local_part(self):
        user = User.objects.create_user(email='piet@test.com', password='geheim123')
        self.assertEqual(user.name, 'piet')
        self.assertEqual(user.display_name, 'piet')

    def test_superuser_is_admin(self):
        admin = User.objects.create_superuser(email='boss@test.com', password='geheim123')
        self.assertTrue(admin.is_admin)
        self.assertEqual(admin.role, User.ROLE_ADMIN)


class AuthAPITests(TestCase):
    """Login, register, refresh and current user"""

    def setUp(self):
        self.client = APIClient()
        self.user = TestDataFactory.create_user(email='jan@test.com', password='geheim123', name='Jan')

    def test_login_returns_user_and_token(self):
        response = self.client.post('/api/auth/login/', {'email': 'jan@test.com', 'password': 'geheim123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['email'], 'jan@test.com')
        self.assertNotIn('password', response.data['user'])

        token = AccessToken(response.data['token'])
        self.assertEqual(token['user_id'], self.user.id)
        self.assertEqual(token['email'], 'jan@test.com')
        self.assertEqual(token['role'], 'user')

    def test_login_wrong_password(self):
        response = self.client.post('/api/auth/login/', {'email': 'jan@test.com', 'password': 'fout'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'Invalid credentials')

    def test_login_unknown_email(self):
        response = self.client.post('/api/auth/login/', {'email': 'nobody@test.com', 'password': 'geheim123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_register_creates_plain_user(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'new@test.com',
            'password': 'geheim123',
            'name': 'Nieuw',
            'role': 'admin',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('token', response.data)
        user = User.objects.get(email='new@test.com')
        self.assertEqual(user.role, User.ROLE_USER)
        self.assertTrue(user.check_password('geheim123'))

    def test_register_duplicate_email(self):
        response = self.client.post('/api/auth/register/', {'email': 'JAN@test.com', 'password': 'geheim123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)
        self.assertIn('email', response.data['details'])

    def test_email_is_case_insensitive(self):
        response = self.client.post('/api/auth/register/', {'email': 'Kees@Btd.nl', 'password': 'geheim123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(User.objects.filter(email='kees@btd.nl').exists())

        response = self.client.post('/api/auth/register/', {'email': 'kees@btd.nl', 'password': 'geheim123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        for email in ('kees@btd.nl', 'KEES@btd.nl'):
            response = self.client.post('/api/auth/login/', {'email': email, 'password': 'geheim123'}, format='json')
            self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_register_short_password(self):
        response = self.client.post('/api/auth/register/', {'email': 'kort@test.com', 'password': 'abc'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data['details'])

    def test_refresh_token(self):
        login = self.client.post('/api/auth/login/', {'email': 'jan@test.com', 'password': 'geheim123'}, format='json')
        response = self.client.post('/api/auth/refresh/', {'refresh': login.data['refresh']}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)

    def test_me_requires_token(self):
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertIn('error', response.data)

    def test_me_with_invalid_token(self):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer not-a-token')
        response = self.client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_returns_current_user(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['id'], self.user.id)
        self.assertEqual(response.data['name'], 'Jan')


class UserAdminAPITests(TestCase):
    """User management endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user(name='Kees')
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_user_list_for_admin_has_full_records(self):
        response = self.client.get('/api/auth/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 2)
        self.assertIn('role', response.data[0])

    def test_user_list_for_user_is_summary(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/auth/users/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(set(response.data[0].keys()), {'id', 'name', 'email'})

    def test_user_detail_forbidden_for_user(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get(f'/api/auth/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['error'], 'Admin role required.')

    def test_update_user_role_and_password(self):
        response = self.client.patch(f'/api/auth/users/{self.user.id}/', {
            'role': 'admin',
            'password': 'nieuwwachtwoord',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.role, User.ROLE_ADMIN)
        self.assertTrue(self.user.check_password('nieuwwachtwoord'))

    def test_missing_user_returns_404(self):
        response = self.client.get('/api/auth/users/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertIn('error', response.data)

    def test_admin_cannot_delete_self(self):
        response = self.client.delete(f'/api/auth/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(User.objects.filter(pk=self.admin.pk).exists())

    def test_delete_user_turns_owned_tasks_into_general_tasks(self):
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        Notification.objects.create(user=self.user, task=task, message='test')

        response = self.client.delete(f'/api/auth/users/{self.user.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        task.refresh_from_db()
        self.assertIsNone(task.user)
        self.assertFalse(Notification.objects.filter(task=task).exists())


class ManagementCommandTests(TestCase):

    @override_settings(DEFAULT_ADMIN_EMAIL='beheer@test.com', DEFAULT_ADMIN_PASSWORD='beheer123')
    def test_ensure_admin_creates_then_resets(self):
        call_command('ensure_admin', stdout=StringIO())
        admin = User.objects.get(email='beheer@test.com')
        self.assertTrue(admin.is_admin)
        self.assertTrue(admin.check_password('beheer123'))

        admin.role = User.ROLE_USER
        admin.save()
        call_command('ensure_admin', '--password', 'anders123', stdout=StringIO())
        admin.refresh_from_db()
        self.assertTrue(admin.is_admin)
        self.assertTrue(admin.check_password('anders123'))
        self.assertEqual(User.objects.filter(email='beheer@test.com').count(), 1)

    def test_seed_categories_is_idempotent(self):
        call_command('seed_categories', stdout=StringIO())
        call_command('seed_categories', stdout=StringIO())
        self.assertEqual(Category.objects.count(), 5)
        self.assertTrue(Category.objects.filter(name='Cilinders').exists())


class CacheVersionTests(TestCase):

    def setUp(self):
        cache.clear()

    def test_invalidate_changes_key(self):
        key = make_cache_key('test_prefix', 1)
        invalidate_prefix('test_prefix')
        self.assertNotEqual(make_cache_key('test_prefix', 1), key)

    def test_evicted_version_never_reuses_old_generation(self):
        cache.set('test_prefix:version', 1, None)
        old_key = make_cache_key('test_prefix')
        cache.set(old_key, ['stale'], 600)

        cache.delete('test_prefix:version')
        invalidate_prefix('test_prefix')
        self.assertGreater(get_prefix_version('test_prefix'), 1)
        self.assertIsNone(cache.get(make_cache_key('test_prefix')))

        cache.delete('test_prefix:version')
        self.assertGreater(get_prefix_version('test_prefix'), 1)
        self.assertIsNone(cache.get(make_cache_key('test_prefix')))
