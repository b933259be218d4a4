"""
Test suite for the task lifecycle
Tests: visibility, assignment, completion with notification, deletion
"""
from django.test import TestCase, override_settings
from rest_framework import status
from backend.core.exceptions import DomainValidationError, Forbidden
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.notifications.models import Notification
from backend.tasks.models import Task
from backend.tasks import services


class TaskServiceTests(TestCase):
    """State machine rules, independent of HTTP"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin(name='Beheer')
        self.user = TestDataFactory.create_user(name='Jan')
        self.other = TestDataFactory.create_user(name='Piet')

    def test_complete_requires_feedback(self):
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        with self.assertRaises(DomainValidationError):
            services.complete_task(task, '   ', self.user)
        task.refresh_from_db()
        self.assertEqual(task.status, Task.STATUS_OPEN)
        self.assertIsNone(task.completed_at)

    def test_user_completion_notifies_admin_once(self):
        task = TestDataFactory.create_task(title='Slot vervangen', user=self.user, created_by=self.admin)
        services.complete_task(task, 'done', self.user)

        task.refresh_from_db()
        self.assertEqual(task.status, Task.STATUS_COMPLETED)
        self.assertEqual(task.feedback, 'done')
        self.assertIsNotNone(task.completed_at)

        notifications = Notification.objects.filter(task=task)
        self.assertEqual(notifications.count(), 1)
        notification = notifications.get()
        self.assertEqual(notification.user, self.admin)
        self.assertEqual(notification.message, 'Taak "Slot vervangen" is afgerond door Jan')
        self.assertFalse(notification.read)

    def test_admin_completion_creates_no_notification(self):
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        services.complete_task(task, 'gecontroleerd', self.admin)
        self.assertEqual(Notification.objects.count(), 0)

    def test_completed_task_cannot_be_completed_or_assigned(self):
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        services.complete_task(task, 'done', self.user)
        with self.assertRaises(DomainValidationError):
            services.complete_task(task, 'again', self.user)
        with self.assertRaises(DomainValidationError):
            services.assign_task(task, self.other, self.admin)
        self.assertEqual(Notification.objects.count(), 1)

    def test_other_user_cannot_touch_owned_task(self):
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        with self.assertRaises(Forbidden):
            services.complete_task(task, 'done', self.other)
        with self.assertRaises(Forbidden):
            services.assign_task(task, self.other, self.other)

    def test_anyone_can_forward_a_general_task(self):
        task = TestDataFactory.create_task(user=None, created_by=self.admin)
        services.assign_task(task, self.user, self.other)
        task.refresh_from_db()
        self.assertEqual(task.user, self.user)
        self.assertEqual(task.status, Task.STATUS_OPEN)

    def test_owner_can_release_task_to_general(self):
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        services.assign_task(task, None, self.user)
        task.refresh_from_db()
        self.assertIsNone(task.user)

    def test_cannot_assign_to_inactive_user(self):
        inactive = TestDataFactory.create_user(is_active=False)
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        with self.assertRaises(DomainValidationError):
            services.assign_task(task, inactive, self.admin)

    def test_active_tasks_include_general_and_exclude_completed(self):
        own = TestDataFactory.create_task(user=self.user)
        general = TestDataFactory.create_task(user=None)
        TestDataFactory.create_task(user=self.other)
        TestDataFactory.create_task(user=self.user, status=Task.STATUS_COMPLETED)
        TestDataFactory.create_task(user=None, status=Task.STATUS_COMPLETED)

        ids = set(services.active_tasks_for(self.user).values_list('id', flat=True))
        self.assertEqual(ids, {own.id, general.id})

    def test_delete_task_removes_its_notifications(self):
        task = TestDataFactory.create_task(user=self.user, created_by=self.admin)
        services.complete_task(task, 'done', self.user)
        task_id = task.id

        services.delete_task(task)
        self.assertFalse(Task.objects.filter(pk=task_id).exists())
        self.assertFalse(Notification.objects.filter(task_id=task_id).exists())

    def test_admin_recipient_falls_back_to_lowest_id(self):
        TestDataFactory.create_admin()
        self.assertEqual(services.get_admin_recipient(), self.admin)

    def test_admin_recipient_from_setting(self):
        second = TestDataFactory.create_admin(email='meldingen@test.com')
        with override_settings(NOTIFICATION_ADMIN_EMAIL='meldingen@test.com'):
            self.assertEqual(services.get_admin_recipient(), second)
        with override_settings(NOTIFICATION_ADMIN_EMAIL='onbekend@test.com'):
            self.assertEqual(services.get_admin_recipient(), self.admin)

    def test_completion_without_admin_logs_and_succeeds(self):
        self.admin.delete()
        task = TestDataFactory.create_task(user=self.user)
        with self.assertLogs('backend.tasks.services', level='WARNING'):
            services.complete_task(task, 'done', self.user)
        self.assertEqual(Notification.objects.count(), 0)
        task.refresh_from_db()
        self.assertEqual(task.status, Task.STATUS_COMPLETED)


class TaskAPITests(TestCase):
    """Task endpoints"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user(name='Jan')
        self.other = TestDataFactory.create_user(name='Piet')
        self.admin_client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_user_creates_task_for_colleague(self):
        response = self.client.post('/api/tasks/', {
            'title': 'Sleutels bijmaken',
            'description': 'Drie stuks',
            'user': self.other.id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user'], self.other.id)
        self.assertEqual(response.data['status'], 'open')
        self.assertEqual(response.data['created_by']['id'], self.user.id)

    def test_create_general_task(self):
        response = self.client.post('/api/tasks/', {'title': 'Winkel opruimen', 'user': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIsNone(response.data['user'])
        self.assertTrue(response.data['is_general'])

    def test_create_task_requires_title(self):
        response = self.client.post('/api/tasks/', {'description': 'zonder titel'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('title', response.data['details'])

    def test_create_task_for_unknown_user(self):
        response = self.client.post('/api/tasks/', {'title': 'x', 'user': 99999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_task_list_is_admin_only(self):
        response = self.client.get('/api/tasks/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_admin_task_list_filters(self):
        TestDataFactory.create_task(user=self.user)
        general = TestDataFactory.create_task(user=None)
        done = TestDataFactory.create_task(user=self.other, status=Task.STATUS_COMPLETED)

        response = self.admin_client.get('/api/tasks/')
        self.assertEqual(len(response.data), 3)

        response = self.admin_client.get('/api/tasks/', {'general': 'true'})
        self.assertEqual([t['id'] for t in response.data], [general.id])

        response = self.admin_client.get('/api/tasks/', {'status': 'afgerond'})
        self.assertEqual([t['id'] for t in response.data], [done.id])

        response = self.admin_client.get('/api/tasks/', {'status': 'weg'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_my_tasks_shows_own_and_general(self):
        own = TestDataFactory.create_task(user=self.user)
        general = TestDataFactory.create_task(user=None)
        TestDataFactory.create_task(user=self.other)

        response = self.client.get('/api/tasks/my-tasks/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual({t['id'] for t in response.data}, {own.id, general.id})

        other_client = AuthenticatedAPIClient().authenticate_user(self.other)
        response = other_client.get('/api/tasks/my-tasks/')
        self.assertIn(general.id, [t['id'] for t in response.data])

    def test_completed_list(self):
        own_done = TestDataFactory.create_task(user=self.user, status=Task.STATUS_COMPLETED)
        other_done = TestDataFactory.create_task(user=self.other, status=Task.STATUS_COMPLETED)

        response = self.client.get('/api/tasks/completed/')
        self.assertEqual([t['id'] for t in response.data], [own_done.id])

        response = self.admin_client.get('/api/tasks/completed/')
        self.assertEqual({t['id'] for t in response.data}, {own_done.id, other_done.id})

    def test_tasks_by_user(self):
        task = TestDataFactory.create_task(user=self.other)
        response = self.admin_client.get(f'/api/tasks/user/{self.other.id}/')
        self.assertEqual([t['id'] for t in response.data], [task.id])

        response = self.client.get(f'/api/tasks/user/{self.other.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_task_detail_visibility(self):
        own = TestDataFactory.create_task(user=self.user)
        general = TestDataFactory.create_task(user=None)
        hidden = TestDataFactory.create_task(user=self.other)

        self.assertEqual(self.client.get(f'/api/tasks/{own.id}/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(f'/api/tasks/{general.id}/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(f'/api/tasks/{hidden.id}/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get('/api/tasks/99999/').status_code, status.HTTP_404_NOT_FOUND)

    def test_complete_endpoint_without_feedback(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.post(f'/api/tasks/{task.id}/complete/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Feedback is required')

    def test_complete_endpoint_with_feedback(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.post(f'/api/tasks/{task.id}/complete/', {'feedback': 'done'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'afgerond')
        self.assertIsNotNone(response.data['completed_at'])
        self.assertEqual(Notification.objects.filter(user=self.admin, task=task).count(), 1)

        response = self.client.post(f'/api/tasks/{task.id}/complete/', {'feedback': 'nog eens'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Notification.objects.count(), 1)

    def test_assign_endpoint(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.post(f'/api/tasks/{task.id}/assign/', {'user': self.other.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user'], self.other.id)

        # The previous owner no longer sees it
        response = self.client.post(f'/api/tasks/{task.id}/assign/', {'user': self.user.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_assign_zero_makes_task_general(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.post(f'/api/tasks/{task.id}/assign/', {'user': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(response.data['user'])

    def test_put_routes_status_through_completion(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.put(f'/api/tasks/{task.id}/', {'status': 'afgerond'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put(f'/api/tasks/{task.id}/', {'status': 'afgerond', 'feedback': 'klaar'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['feedback'], 'klaar')
        self.assertEqual(Notification.objects.count(), 1)

        response = self.client.patch(f'/api/tasks/{task.id}/', {'status': 'open'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_feedback_cannot_be_edited_after_completion(self):
        task = TestDataFactory.create_task(user=self.user)
        self.client.post(f'/api/tasks/{task.id}/complete/', {'feedback': 'done'}, format='json')

        response = self.client.patch(f'/api/tasks/{task.id}/', {'feedback': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('feedback', response.data['details'])

        response = self.admin_client.patch(f'/api/tasks/{task.id}/', {'feedback': 'anders'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        task.refresh_from_db()
        self.assertEqual(task.feedback, 'done')
        self.assertEqual(task.status, Task.STATUS_COMPLETED)

    def test_feedback_without_completion_is_rejected(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.patch(f'/api/tasks/{task.id}/', {'feedback': 'tussenstand'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        task.refresh_from_db()
        self.assertEqual(task.feedback, '')
        self.assertEqual(task.status, Task.STATUS_OPEN)

    def test_patch_forwards_task(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.patch(f'/api/tasks/{task.id}/', {'user': self.other.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        task.refresh_from_db()
        self.assertEqual(task.user, self.other)

    def test_patch_plain_fields(self):
        task = TestDataFactory.create_task(user=self.user)
        response = self.client.patch(f'/api/tasks/{task.id}/', {
            'title': 'Nieuwe titel',
            'pdf_name': 'offerte.pdf',
            'pdf_url': 'https://example.com/offerte.pdf',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['title'], 'Nieuwe titel')
        self.assertEqual(response.data['pdf_name'], 'offerte.pdf')

    def test_general_task_fields_not_editable_by_user(self):
        task = TestDataFactory.create_task(user=None)
        response = self.client.patch(f'/api/tasks/{task.id}/', {'title': 'Gekaapt'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_delete_task(self):
        task = TestDataFactory.create_task(user=self.user)
        Notification.objects.create(user=self.admin, task=task, message='test')

        response = self.client.delete(f'/api/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.admin_client.delete(f'/api/tasks/{task.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Task.objects.filter(pk=task.id).exists())
        self.assertEqual(Notification.objects.count(), 0)
