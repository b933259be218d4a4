"""
Test suite for notifications
"""
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.notifications.models import Notification
from backend.notifications.services import create_notification


class NotificationAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user(name='Jan')
        self.task = TestDataFactory.create_task(title='Slot vervangen', user=self.user)
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

        self.first = create_notification(user=self.admin, task=self.task, message='Eerste')
        self.second = create_notification(user=self.admin, task=self.task, message='Tweede')
        self.foreign = create_notification(user=self.user, task=self.task, message='Van Jan')

    def test_list_own_notifications_newest_first(self):
        response = self.client.get('/api/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([n['id'] for n in response.data], [self.second.id, self.first.id])
        self.assertEqual(response.data[0]['task_title'], 'Slot vervangen')

    def test_unread_filter_and_count(self):
        self.first.read = True
        self.first.save()

        response = self.client.get('/api/notifications/', {'unread': 'true'})
        self.assertEqual([n['id'] for n in response.data], [self.second.id])

        response = self.client.get('/api/notifications/unread-count/')
        self.assertEqual(response.data, {'count': 1})

    def test_mark_read(self):
        response = self.client.put(f'/api/notifications/{self.first.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['read'])
        self.first.refresh_from_db()
        self.assertTrue(self.first.read)

    def test_update_only_marks_read(self):
        response = self.client.patch(f'/api/notifications/{self.first.id}/', {
            'read': True,
            'message': 'Aangepast',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertTrue(self.first.read)
        self.assertEqual(self.first.message, 'Eerste')

    def test_cannot_mark_unread(self):
        response = self.client.put(f'/api/notifications/{self.first.id}/', {'read': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_rejects_malformed_body(self):
        response = self.client.put(f'/api/notifications/{self.first.id}/', [{'read': True}], format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('error', response.data)

        response = self.client.patch(f'/api/notifications/{self.first.id}/', {'read': 'misschien'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('read', response.data['details'])

        self.first.refresh_from_db()
        self.assertFalse(self.first.read)

    def test_other_users_notification_is_forbidden(self):
        response = self.client.put(f'/api/notifications/{self.foreign.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.read)

        response = self.client.delete(f'/api/notifications/{self.foreign.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_missing_notification(self):
        response = self.client.get('/api/notifications/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        response = self.client.post('/api/notifications/mark-all-read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {'updated': 2})
        self.assertFalse(Notification.objects.filter(user=self.admin, read=False).exists())
        self.foreign.refresh_from_db()
        self.assertFalse(self.foreign.read)

    def test_delete_notification(self):
        response = self.client.delete(f'/api/notifications/{self.first.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Notification.objects.filter(pk=self.first.id).exists())

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/notifications/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
