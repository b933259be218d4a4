"""
Test suite for the catalog module
Tests: derived product fields, product and category endpoints, stock updates and bulk import
"""
from decimal import Decimal
from io import StringIO
import os
import tempfile

from django.core.cache import cache
from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.catalog.models import Product, price_including_btw


class ProductModelTests(TestCase):
    """Derived fields are recomputed on every save"""

    def setUp(self):
        self.category = TestDataFactory.create_category(name='Sloten')

    def test_price_including_btw(self):
        self.assertEqual(price_including_btw(Decimal('20.00'), 21), Decimal('24.20'))
        self.assertEqual(price_including_btw(Decimal('9.99'), 9), Decimal('10.89'))
        self.assertEqual(price_including_btw(Decimal('10.00'), 0), Decimal('10.00'))

    def test_low_stock_flag_follows_stock(self):
        product = TestDataFactory.create_product(category=self.category, stock=10, min_stock=5)
        self.assertFalse(product.is_low_stock)

        product.stock = 5
        product.save(update_fields=['stock'])
        product.refresh_from_db()
        self.assertTrue(product.is_low_stock)

        product.stock = 6
        product.save()
        product.refresh_from_db()
        self.assertFalse(product.is_low_stock)

    def test_price_incl_btw_updates_with_selling_price(self):
        product = TestDataFactory.create_product(category=self.category, selling_price=Decimal('20.00'))
        product.selling_price = Decimal('30.00')
        product.save(update_fields=['selling_price'])
        product.refresh_from_db()
        self.assertEqual(product.price_incl_btw, Decimal('36.30'))


class CategoryAPITests(TestCase):

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_any_user_can_list_categories(self):
        TestDataFactory.create_category(name='Sleutels')
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.get('/api/products/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([c['name'] for c in response.data], ['Sleutels'])

    def test_user_cannot_create_category(self):
        client = AuthenticatedAPIClient().authenticate_user(self.user)
        response = client.post('/api/products/categories/', {'name': 'Cilinders'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_created_category_shows_up_in_cached_list(self):
        self.client.get('/api/products/categories/')
        response = self.client.post('/api/products/categories/', {'name': 'Cilinders'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get('/api/products/categories/')
        self.assertIn('Cilinders', [c['name'] for c in response.data])

    def test_duplicate_category_name(self):
        TestDataFactory.create_category(name='Cilinders')
        response = self.client.post('/api/products/categories/', {'name': 'Cilinders'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('name', response.data['details'])


class ProductAPITests(TestCase):
    """Product CRUD, filtering, stock and low stock"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.category = TestDataFactory.create_category(name='Sloten')

    def test_create_product_computes_derived_fields(self):
        response = self.client.post('/api/products/', {
            'name': 'Lock',
            'article_number': 'L1',
            'category': self.category.id,
            'purchase_price': '10',
            'selling_price': '20',
            'btw_percentage': 21,
            'stock': 2,
            'min_stock': 5,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['is_low_stock'])
        self.assertEqual(Decimal(str(response.data['price_incl_btw'])), Decimal('24.20'))
        self.assertEqual(response.data['category_name'], 'Sloten')

    def test_client_cannot_set_derived_fields(self):
        response = self.client.post('/api/products/', {
            'name': 'Lock',
            'article_number': 'L2',
            'category': self.category.id,
            'purchase_price': '10',
            'selling_price': '20',
            'stock': 50,
            'min_stock': 5,
            'is_low_stock': True,
            'price_incl_btw': '1.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = Product.objects.get(article_number='L2')
        self.assertFalse(product.is_low_stock)
        self.assertEqual(product.price_incl_btw, Decimal('24.20'))

    def test_duplicate_article_number(self):
        TestDataFactory.create_product(article_number='L1', category=self.category)
        response = self.client.post('/api/products/', {
            'name': 'Lock',
            'article_number': 'L1',
            'category': self.category.id,
            'purchase_price': '10',
            'selling_price': '20',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('article_number', response.data['details'])

    def test_unknown_category(self):
        response = self.client.post('/api/products/', {
            'name': 'Lock',
            'article_number': 'L3',
            'category': 99999,
            'purchase_price': '10',
            'selling_price': '20',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['details']['category'][0], 'Selected category does not exist')

    def test_products_are_admin_only(self):
        client = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_user())
        response = client.get('/api/products/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_search_matches_all_words(self):
        TestDataFactory.create_product(name='Veiligheidscilinder SKG3', article_number='CYL-1', category=self.category)
        TestDataFactory.create_product(name='Hangslot', article_number='HS-1', category=self.category)

        response = self.client.get('/api/products/', {'search': 'skg3 cyl'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['article_number'] for p in response.data], ['CYL-1'])

    def test_filter_by_category(self):
        other = TestDataFactory.create_category(name='Sleutels')
        TestDataFactory.create_product(article_number='A', category=self.category)
        TestDataFactory.create_product(article_number='B', category=other)

        response = self.client.get('/api/products/', {'category': other.id})
        self.assertEqual([p['article_number'] for p in response.data], ['B'])

    def test_update_product(self):
        product = TestDataFactory.create_product(category=self.category, selling_price=Decimal('20.00'))
        response = self.client.patch(f'/api/products/{product.id}/', {'selling_price': '100.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(str(response.data['price_incl_btw'])), Decimal('121.00'))

    def test_delete_product(self):
        product = TestDataFactory.create_product(category=self.category)
        response = self.client.delete(f'/api/products/{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Product.objects.filter(pk=product.pk).exists())

    def test_update_stock_recomputes_low_stock(self):
        product = TestDataFactory.create_product(category=self.category, stock=10, min_stock=5)
        response = self.client.put(f'/api/products/{product.id}/stock/', {'stock': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['stock'], 3)
        self.assertTrue(response.data['is_low_stock'])

    def test_negative_stock_rejected(self):
        product = TestDataFactory.create_product(category=self.category)
        response = self.client.put(f'/api/products/{product.id}/stock/', {'stock': -1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock_list_follows_stock_changes(self):
        product = TestDataFactory.create_product(category=self.category, stock=10, min_stock=5)
        response = self.client.get('/api/products/low-stock/')
        self.assertEqual(response.data, [])

        self.client.put(f'/api/products/{product.id}/stock/', {'stock': 1}, format='json')
        response = self.client.get('/api/products/low-stock/')
        self.assertEqual([p['id'] for p in response.data], [product.id])


class ProductBulkUploadTests(TestCase):
    """Bulk import keeps valid rows and reports the rest"""

    def setUp(self):
        cache.clear()
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.category = TestDataFactory.create_category(name='Cilinders')

    def test_json_upload_skips_invalid_rows(self):
        TestDataFactory.create_product(article_number='DUP', category=self.category)
        response = self.client.post('/api/products/bulk-upload/', {'products': [
            {'name': 'Cilinder 30/30', 'articleNumber': 'C-3030', 'categoryId': self.category.id,
             'purchasePrice': 12, 'sellingPrice': 25},
            {'name': 'Dubbel', 'article_number': 'DUP', 'category': self.category.id,
             'purchase_price': 1, 'selling_price': 2},
            {'name': 'Zonder prijs', 'article_number': 'C-0', 'category': self.category.id},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['created'], 1)
        self.assertEqual(response.data['failed'], 2)
        self.assertEqual([e['row'] for e in response.data['errors']], [2, 3])
        self.assertTrue(Product.objects.filter(article_number='C-3030').exists())

    def test_upload_with_only_invalid_rows(self):
        response = self.client.post('/api/products/bulk-upload/', {'products': [
            {'name': 'Zonder artikelnummer', 'category': self.category.id},
        ]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['created'], 0)

    def test_missing_products_list(self):
        response = self.client.post('/api/products/bulk-upload/', {'products': 'nope'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid products data')

    def test_csv_upload_with_category_names(self):
        content = (
            'artikelnummer;naam;categorie;inkoopprijs;verkoopprijs;voorraad\n'
            'K-1;Sleutel blank;Cilinders;0.50;2.50;100\n'
        ).encode('utf-8')
        upload = SimpleUploadedFile('producten.csv', content, content_type='text/csv')
        response = self.client.post('/api/products/bulk-upload/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        product = Product.objects.get(article_number='K-1')
        self.assertEqual(product.category, self.category)
        self.assertEqual(product.stock, 100)

    def test_import_products_command(self):
        content = (
            'article_number,name,category,purchase_price,selling_price\n'
            'IMP-1,Deurbeslag,Cilinders,5.00,12.00\n'
            'IMP-2,Kapot,Onbekend,5.00,12.00\n'
        )
        with tempfile.NamedTemporaryFile('w', suffix='.csv', delete=False, encoding='utf-8') as f:
            f.write(content)
            path = f.name
        try:
            out = StringIO()
            call_command('import_products', path, stdout=out)
        finally:
            os.remove(path)
        self.assertTrue(Product.objects.filter(article_number='IMP-1').exists())
        self.assertFalse(Product.objects.filter(article_number='IMP-2').exists())
        self.assertIn('Products Created: 1', out.getvalue())

    def test_csv_upload_with_invalid_encoding(self):
        upload = SimpleUploadedFile('producten.csv', b'name,article_number\n\xff\xfeLock,L1\n', content_type='text/csv')
        response = self.client.post('/api/products/bulk-upload/', {'file': upload}, format='multipart')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'Invalid CSV file')
        self.assertIn('file', response.data['details'])
        self.assertEqual(Product.objects.count(), 0)

    def test_import_products_command_rejects_invalid_encoding(self):
        with tempfile.NamedTemporaryFile('wb', suffix='.csv', delete=False) as f:
            f.write(b'article_number,name\n\xff\xfeL1,Lock\n')
            path = f.name
        try:
            with self.assertRaises(CommandError):
                call_command('import_products', path, stdout=StringIO())
        finally:
            os.remove(path)
        self.assertEqual(Product.objects.count(), 0)
