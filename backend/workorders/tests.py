"""
Test suite for work orders
Tests: server-side totals, the generated task, access rules and status updates
"""
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.tasks.models import Task
from backend.tasks.services import render_work_order_description
from backend.workorders.models import WorkOrder, WorkOrderItem, calculate_totals


class WorkOrderTotalsTests(TestCase):

    def test_calculate_totals(self):
        totals = calculate_totals([
            {'quantity': 2, 'price': Decimal('15.00'), 'vat_percentage': Decimal('21')},
        ])
        self.assertEqual(totals['subtotal'], Decimal('30.00'))
        self.assertEqual(totals['vat_amount'], Decimal('6.30'))
        self.assertEqual(totals['total'], Decimal('36.30'))

    def test_totals_mix_vat_rates(self):
        totals = calculate_totals([
            {'quantity': 1, 'price': Decimal('100.00'), 'vat_percentage': Decimal('21')},
            {'quantity': 3, 'price': Decimal('9.99'), 'vat_percentage': Decimal('9')},
            {'quantity': 1, 'price': Decimal('50.00'), 'vat_percentage': Decimal('0')},
        ])
        self.assertEqual(totals['subtotal'], Decimal('179.97'))
        self.assertEqual(totals['vat_amount'], Decimal('23.70'))
        self.assertEqual(totals['total'], totals['subtotal'] + totals['vat_amount'])

    def test_empty_order(self):
        totals = calculate_totals([])
        self.assertEqual(totals['total'], Decimal('0.00'))

    def test_recalculate_from_saved_items(self):
        user = TestDataFactory.create_user()
        work_order = TestDataFactory.create_work_order(created_by=user, items=[
            {'name': 'Cylinder', 'quantity': 2, 'price': Decimal('15.00'), 'vat_percentage': Decimal('21.00')},
        ])
        work_order.refresh_from_db()
        self.assertEqual(work_order.total, Decimal('36.30'))
        self.assertEqual(work_order.items.get().get_line_total(), Decimal('30.00'))

    def test_task_description_rendering(self):
        user = TestDataFactory.create_user()
        work_order = TestDataFactory.create_work_order(
            created_by=user,
            customer_name='Jan Jansen',
            phone='0612345678',
            email='jan@example.com',
            address='Dorpsstraat 1',
            postal_code='1234 AB',
            city='Utrecht',
            description='Cilinder vervangen',
            notes='Achterdeur',
            items=[{'name': 'Cylinder', 'quantity': 2, 'price': Decimal('15.00'), 'vat_percentage': Decimal('21.00')}],
        )
        self.assertEqual(render_work_order_description(work_order), '\n'.join([
            'Klant: Jan Jansen',
            'Telefoon: 0612345678',
            'E-mail: jan@example.com',
            'Adres: Dorpsstraat 1, 1234 AB Utrecht',
            '',
            'Werk: Cilinder vervangen',
            '',
            'Artikelen:',
            '- Cylinder: 2x €15.00 (21% BTW)',
            '',
            'Totaal: €36.30',
            '',
            'Opmerkingen: Achterdeur',
        ]))


class WorkOrderAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user(name='Jan')
        self.other = TestDataFactory.create_user(name='Piet')
        self.client = AuthenticatedAPIClient().authenticate_user(self.user)
        self.admin_client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def payload(self, **overrides):
        data = {
            'customer_name': 'Jan Jansen',
            'phone': '0612345678',
            'description': 'Cilinder vervangen',
            'items': [{'name': 'Cylinder', 'quantity': 2, 'price': '15.00', 'vat_percentage': '21'}],
        }
        data.update(overrides)
        return data

    def test_create_work_order_with_task(self):
        response = self.client.post('/api/workorders/', self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        work_order = response.data['work_order']
        self.assertEqual(Decimal(str(work_order['subtotal'])), Decimal('30.00'))
        self.assertEqual(Decimal(str(work_order['vat_amount'])), Decimal('6.30'))
        self.assertEqual(Decimal(str(work_order['total'])), Decimal('36.30'))
        self.assertEqual(len(work_order['items']), 1)
        self.assertEqual(work_order['created_by']['id'], self.user.id)

        task = Task.objects.get(work_order_id=work_order['id'])
        self.assertEqual(response.data['task']['id'], task.id)
        self.assertEqual(work_order['task'], task.id)
        self.assertEqual(task.user, self.user)
        self.assertEqual(task.title, 'Werkorder: Jan Jansen')
        self.assertEqual(task.status, Task.STATUS_OPEN)
        self.assertIn('Totaal: €36.30', task.description)
        self.assertIn('message', response.data)

    def test_client_totals_are_ignored(self):
        response = self.client.post('/api/workorders/', self.payload(
            subtotal='1.00', vat_amount='1.00', total='2.00',
            totals={'subtotal': 1, 'vatAmount': 1, 'total': 2},
        ), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(WorkOrder.objects.get().total, Decimal('36.30'))

    def test_required_fields(self):
        response = self.client.post('/api/workorders/', {'customer_name': 'Jan'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('phone', response.data['details'])
        self.assertIn('description', response.data['details'])
        self.assertEqual(WorkOrder.objects.count(), 0)
        self.assertEqual(Task.objects.count(), 0)

    def test_invalid_item_creates_nothing(self):
        response = self.client.post('/api/workorders/', self.payload(items=[
            {'name': 'Cylinder', 'quantity': 0, 'price': '15.00', 'vat_percentage': '21'},
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(WorkOrder.objects.count(), 0)
        self.assertEqual(WorkOrderItem.objects.count(), 0)

    def test_negative_price_rejected(self):
        response = self.client.post('/api/workorders/', self.payload(items=[
            {'name': 'Cylinder', 'quantity': 1, 'price': '-1.00', 'vat_percentage': '21'},
        ]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_snapshot_filled_from_customer(self):
        customer = TestDataFactory.create_customer(
            name='Bakkerij de Vries', phone='030-1234567', email='info@devries.nl', city='Zeist'
        )
        response = self.client.post('/api/workorders/', {
            'customer': customer.id,
            'description': 'Nieuw slot voordeur',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        work_order = WorkOrder.objects.get()
        self.assertEqual(work_order.customer_name, 'Bakkerij de Vries')
        self.assertEqual(work_order.phone, '030-1234567')
        self.assertEqual(work_order.city, 'Zeist')

        # Later customer edits leave the snapshot alone
        customer.name = 'De Vries BV'
        customer.save()
        work_order.refresh_from_db()
        self.assertEqual(work_order.customer_name, 'Bakkerij de Vries')

    def test_list_is_admin_only(self):
        self.client.post('/api/workorders/', self.payload(), format='json')
        self.assertEqual(self.client.get('/api/workorders/').status_code, status.HTTP_403_FORBIDDEN)

        response = self.admin_client.get('/api/workorders/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

    def test_detail_for_creator_and_admin_only(self):
        created = self.client.post('/api/workorders/', self.payload(), format='json')
        work_order_id = created.data['work_order']['id']

        self.assertEqual(self.client.get(f'/api/workorders/{work_order_id}/').status_code, status.HTTP_200_OK)
        self.assertEqual(self.admin_client.get(f'/api/workorders/{work_order_id}/').status_code, status.HTTP_200_OK)

        other_client = AuthenticatedAPIClient().authenticate_user(self.other)
        self.assertEqual(other_client.get(f'/api/workorders/{work_order_id}/').status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.admin_client.get('/api/workorders/99999/').status_code, status.HTTP_404_NOT_FOUND)

    def test_update_status(self):
        work_order = TestDataFactory.create_work_order(created_by=self.user)

        response = self.client.patch(f'/api/workorders/{work_order.id}/status/', {'status': 'completed'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        response = self.admin_client.patch(f'/api/workorders/{work_order.id}/status/', {'status': 'in_progress'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'in_progress')

        response = self.admin_client.patch(f'/api/workorders/{work_order.id}/status/', {'status': 'klaar'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
