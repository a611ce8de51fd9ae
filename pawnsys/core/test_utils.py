"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from pawnsys.customers.models import Customer
from pawnsys.pledges.models import Category
from pawnsys.pledges import services as pledge_services
from pawnsys.pricing.models import Purity
from pawnsys.storage.models import Vault
from pawnsys.storage import services as storage_services
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
    def random_ic():
        """A valid MyKad number: 1985-06-15, Selangor"""
        return f"850615{random.choice(['10', '41', '43'])}{random.randint(1000, 9999)}"

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False):
        """Create a test user"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser
        )

    @staticmethod
    def create_customer(name=None, ic_number=None, phone=None, is_blacklisted=False):
        """Create a test customer"""
        if not name:
            name = f'Customer {TestDataFactory.random_string(6)}'
        if not ic_number:
            ic_number = TestDataFactory.random_ic()
            while Customer.objects.filter(ic_number=ic_number).exists():
                ic_number = TestDataFactory.random_ic()
        if not phone:
            phone = f'01{random.randint(10000000, 99999999)}'
        return Customer.objects.create(
            customer_no=f'CUS-TEST-{TestDataFactory.random_string(8).upper()}',
            name=name,
            ic_number=ic_number,
            phone=phone,
            is_blacklisted=is_blacklisted,
            blacklist_reason='Test' if is_blacklisted else '',
        )

    @staticmethod
    def create_vault(code=None, boxes=1, slots_per_box=5):
        """Create a vault with boxes and slots"""
        if not code:
            code = f'V{TestDataFactory.random_string(4).upper()}'
        vault = Vault.objects.create(code=code, name=f'Vault {code}')
        if boxes:
            storage_services.create_boxes(vault, boxes, slots_per_box=slots_per_box)
        return vault

    @staticmethod
    def create_purity(code='916', percentage=None):
        """Fetch a seeded purity or create it"""
        purity, _ = Purity.objects.get_or_create(
            code=code,
            defaults={
                'name': f'Gold {code}',
                'percentage': percentage or Decimal(code) / Decimal('10'),
            }
        )
        return purity

    @staticmethod
    def create_category(name=None):
        """Create a test category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        category, _ = Category.objects.get_or_create(name=name)
        return category

    @staticmethod
    def item_data(gross_weight='10.000', purity_code='916', price_per_gram='300.00', category=None, slot=None, **extra):
        """Item dict as accepted by pledge_services.create_pledge"""
        data = {
            'purity_code': purity_code,
            'gross_weight': Decimal(gross_weight),
            'price_per_gram': Decimal(price_per_gram),
            'category': category,
            'description': 'Gold ring',
            'slot': slot,
        }
        data.update(extra)
        return data

    @staticmethod
    def create_pledge(customer=None, user=None, items=None, loan_percentage=80, pledge_date=None, **kwargs):
        """
        Create a pledge through the pledge service

        Items default to one 10 g 916 item at 300.00/g, which gives a net
        value of 3000.00 and a loan of 2400.00 at 80%.
        """
        TestDataFactory.create_purity('916')
        if customer is None:
            customer = TestDataFactory.create_customer()
        if items is None:
            items = [TestDataFactory.item_data()]
        return pledge_services.create_pledge(
            customer=customer,
            items_data=items,
            loan_percentage=loan_percentage,
            user=user,
            pledge_date=pledge_date,
            **kwargs
        )


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
