"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backend.catalog.models import Category, Product
from backend.parties.models import Customer
from backend.tasks.models import Task
from backend.workorders.models import WorkOrder, WorkOrderItem
from decimal import Decimal
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, password='testpass123', name=None, role='user', is_active=True):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_user(
            email=email,
            password=password,
            name=name if name is not None else email.split('@')[0],
            role=role,
            is_active=is_active,
        )

    @staticmethod
    def create_admin(email=None, password='testpass123', name='Admin'):
        """Create a test user with the admin role"""
        if not email:
            email = f'admin_{TestDataFactory.random_string(6).lower()}@test.com'
        return User.objects.create_superuser(email=email, password=password, name=name)

    @staticmethod
    def create_category(name=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name)

    @staticmethod
    def create_product(name=None, article_number=None, category=None, purchase_price=Decimal('10.00'),
                       selling_price=Decimal('20.00'), btw_percentage=21, stock=10, min_stock=5):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not article_number:
            article_number = f'ART-{TestDataFactory.random_string(8).upper()}'
        if not category:
            category = TestDataFactory.create_category()
        return Product.objects.create(
            name=name,
            article_number=article_number,
            category=category,
            purchase_price=purchase_price,
            selling_price=selling_price,
            btw_percentage=btw_percentage,
            stock=stock,
            min_stock=min_stock,
        )

    @staticmethod
    def create_customer(name=None, phone='0612345678', email='', city='Utrecht', **kwargs):
        """Create a test customer"""
        if not name:
            name = f'Customer_{TestDataFactory.random_string(6)}'
        return Customer.objects.create(name=name, phone=phone, email=email, city=city, **kwargs)

    @staticmethod
    def create_task(title=None, user=None, created_by=None, status=Task.STATUS_OPEN, **kwargs):
        """Create a test task; user=None gives a general task"""
        if not title:
            title = f'Task_{TestDataFactory.random_string(6)}'
        return Task.objects.create(title=title, user=user, created_by=created_by, status=status, **kwargs)

    @staticmethod
    def create_work_order(created_by, customer_name='Jan Jansen', phone='0612345678',
                          description='Cilinder vervangen', items=None, **kwargs):
        """Create a test work order with items and recomputed totals, without a task"""
        work_order = WorkOrder.objects.create(
            created_by=created_by,
            customer_name=customer_name,
            phone=phone,
            description=description,
            **kwargs
        )
        for item in items or []:
            WorkOrderItem.objects.create(work_order=work_order, **item)
        work_order.recalculate_totals()
        work_order.save()
        return work_order


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()

