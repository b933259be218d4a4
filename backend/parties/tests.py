"""
Test suite for customers and their product links
"""
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.parties.models import Customer, CustomerProduct


class CustomerAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.category = TestDataFactory.create_category()
        self.lock = TestDataFactory.create_product(name='Lock', category=self.category)
        self.key = TestDataFactory.create_product(name='Key', category=self.category)

    def test_create_customer_with_products(self):
        response = self.client.post('/api/customers/', {
            'name': 'Bakkerij de Vries',
            'phone': '030-1234567',
            'city': 'Utrecht',
            'product_ids': [self.lock.id, self.key.id, self.lock.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        customer = Customer.objects.get(name='Bakkerij de Vries')
        self.assertEqual(customer.customer_products.count(), 2)
        self.assertEqual(len(response.data['customer_products']), 2)

    def test_user_can_list_but_not_create(self):
        TestDataFactory.create_customer(name='Klant A')
        client = AuthenticatedAPIClient().authenticate_user(self.user)

        response = client.get('/api/customers/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data), 1)

        response = client.post('/api/customers/', {'name': 'Klant B'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_update_replaces_product_set(self):
        customer = TestDataFactory.create_customer()
        CustomerProduct.objects.create(customer=customer, product=self.lock)

        response = self.client.put(f'/api/customers/{customer.id}/', {
            'name': customer.name,
            'product_ids': [self.key.id],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(list(customer.customer_products.values_list('product_id', flat=True)), [self.key.id])

    def test_update_without_product_ids_keeps_links(self):
        customer = TestDataFactory.create_customer()
        CustomerProduct.objects.create(customer=customer, product=self.lock)

        response = self.client.patch(f'/api/customers/{customer.id}/', {'city': 'Amersfoort'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['city'], 'Amersfoort')
        self.assertEqual(customer.customer_products.count(), 1)

    def test_delete_customer_removes_links(self):
        customer = TestDataFactory.create_customer()
        CustomerProduct.objects.create(customer=customer, product=self.lock)

        response = self.client.delete(f'/api/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(CustomerProduct.objects.filter(customer_id=customer.id).exists())

    def test_customer_detail_is_admin_only(self):
        customer = TestDataFactory.create_customer()
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get(f'/api/customers/{customer.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_search_is_case_insensitive(self):
        TestDataFactory.create_customer(name='Zonneveld BV', city='Zeist')
        TestDataFactory.create_customer(name='Autobedrijf Jansen', city='Utrecht')
        TestDataFactory.create_customer(name='Albert Jansen', city='Houten')

        response = self.client.get('/api/customers/search/jansen/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data], ['Albert Jansen', 'Autobedrijf Jansen'])

        response = self.client.get('/api/customers/search/ZEIST/')
        self.assertEqual([c['name'] for c in response.data], ['Zonneveld BV'])

    def test_add_and_remove_product(self):
        customer = TestDataFactory.create_customer()

        response = self.client.post(f'/api/customers/{customer.id}/products/', {'product_id': self.lock.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['product_name'], 'Lock')

        response = self.client.post(f'/api/customers/{customer.id}/products/', {'product_id': self.lock.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.delete(f'/api/customers/{customer.id}/products/{self.lock.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)

        response = self.client.delete(f'/api/customers/{customer.id}/products/{self.lock.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_add_unknown_product(self):
        customer = TestDataFactory.create_customer()
        response = self.client.post(f'/api/customers/{customer.id}/products/', {'product_id': 99999}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
