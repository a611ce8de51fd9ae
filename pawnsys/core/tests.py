"""
Tests for core: authentication, settings, audit log, document numbering, caching
"""
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase, override_settings
from rest_framework import status

from pawnsys.core.cache_utils import cached_query, invalidate_cache_pattern
from pawnsys.core.models import AuditLog, Setting
from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.core.utils import (
    create_audit_log, generate_sequence_number, get_decimal_setting, money, pawn_config, set_setting,
)
from pawnsys.customers.models import Customer


class AuthAPITests(TestCase):
    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_returns_tokens(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'counter1',
            'email': 'counter1@test.com',
            'password': 'Str0ng-pass-123',
            'password_confirm': 'Str0ng-pass-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['username'], 'counter1')

    def test_register_password_mismatch(self):
        response = self.client.post('/api/v1/auth/register/', {
            'username': 'counter2',
            'password': 'Str0ng-pass-123',
            'password_confirm': 'different-123',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_returns_user(self):
        TestDataFactory.create_user(username='clerk', password='testpass123')
        response = self.client.post('/api/v1/auth/login/', {'username': 'clerk', 'password': 'testpass123'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('refresh', response.data)
        self.assertEqual(response.data['user']['username'], 'clerk')

    def test_unauthenticated_request_rejected(self):
        response = self.client.get('/api/v1/customers/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class SettingAPITests(TestCase):
    def setUp(self):
        self.staff = TestDataFactory.create_user(is_staff=True)
        self.clerk = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()

    def test_staff_can_create_setting(self):
        self.client.authenticate_user(self.staff)
        response = self.client.post('/api/v1/settings/', {'key': 'handling_charge_value', 'value': '1.00'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Setting.objects.get(key='handling_charge_value').value, '1.00')

    def test_clerk_cannot_change_setting(self):
        Setting.objects.create(key='reprint_note', value='x')
        self.client.authenticate_user(self.clerk)
        response = self.client.patch('/api/v1/settings/reprint_note/', {'value': 'y'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_get_setting_by_key(self):
        Setting.objects.create(key='gold_price_source', value='manual')
        self.client.authenticate_user(self.clerk)
        response = self.client.get('/api/v1/settings/gold_price_source/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['value'], 'manual')

    def test_known_setting_values_are_validated(self):
        self.client.authenticate_user(self.staff)
        response = self.client.post('/api/v1/settings/', {'key': 'handling_charge_type', 'value': 'flat'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('value', response.data)

        Setting.objects.create(key='handling_charge_value', value='0.50')
        response = self.client.patch('/api/v1/settings/handling_charge_value/', {'value': '-1'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_setting_change_is_audited(self):
        Setting.objects.create(key='gold_price_source', value='api')
        self.client.authenticate_user(self.staff)
        response = self.client.patch('/api/v1/settings/gold_price_source/', {'value': ' manual '}, format='json')
        self.assertEqual(response.data['value'], 'manual')
        log = AuditLog.objects.get(model_name='Setting')
        self.assertEqual(log.changes['value'], {'from': 'api', 'to': 'manual'})


class UserAndAuditAPITests(TestCase):
    def setUp(self):
        self.admin = TestDataFactory.create_user(username='manager', is_staff=True)
        self.clerk = TestDataFactory.create_user(username='clerk')
        self.client = AuthenticatedAPIClient()

    def test_user_with_history_is_deactivated(self):
        create_audit_log(user=self.clerk, action='pledge_create', model_name='Pledge', object_id=1)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.clerk.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.clerk.refresh_from_db()
        self.assertFalse(self.clerk.is_active)

    def test_cannot_remove_self(self):
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/users/{self.admin.id}/')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_audit_log_filters_and_visibility(self):
        create_audit_log(user=self.clerk, action='renewal', model_name='Renewal', object_id=1,
                         object_reference='PLG-2025-0001')
        create_audit_log(user=self.admin, action='redemption', model_name='Redemption', object_id=2,
                         object_reference='PLG-2025-0002')

        self.client.authenticate_user(self.admin)
        response = self.client.get('/api/v1/audit-logs/', {'reference': '0002'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['username'], 'manager')

        self.client.authenticate_user(self.clerk)
        response = self.client.get('/api/v1/audit-logs/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['action'], 'renewal')


class UtilsTests(TestCase):
    def test_money_rounds_half_up(self):
        self.assertEqual(money('2.345'), Decimal('2.35'))
        self.assertEqual(money('2.344'), Decimal('2.34'))

    def test_decimal_setting_falls_back_on_garbage(self):
        set_setting('handling_charge_value', 'abc')
        self.assertEqual(get_decimal_setting('handling_charge_value', '0.50'), Decimal('0.50'))
        set_setting('handling_charge_value', '1.25')
        self.assertEqual(get_decimal_setting('handling_charge_value', '0.50'), Decimal('1.25'))

    @override_settings(PAWNSYS={'interest': {'standard': Decimal('0.7')}})
    def test_pawn_config_path(self):
        self.assertEqual(pawn_config('interest', 'standard'), Decimal('0.7'))
        self.assertIsNone(pawn_config('interest', 'missing'))
        self.assertEqual(pawn_config('nothing', default=3), 3)

    def test_sequence_number_continues_from_highest(self):
        TestDataFactory.create_customer()
        Customer.objects.create(customer_no='CUS-2025-00007', name='Ahmad', ic_number='850615105555', phone='0123')
        self.assertEqual(generate_sequence_number(Customer, 'customer_no', 'CUS-2025', width=5), 'CUS-2025-00008')
        self.assertEqual(generate_sequence_number(Customer, 'customer_no', 'CUS-2026', width=5), 'CUS-2026-00001')

    def test_audit_log_requires_fields(self):
        self.assertIsNone(create_audit_log(action='create', model_name='Pledge'))
        user = TestDataFactory.create_user()
        log = create_audit_log(user=user, action='create', model_name='Pledge', object_id=5, object_reference='PLG-2025-0001')
        self.assertEqual(log.object_id, '5')
        self.assertEqual(AuditLog.objects.count(), 1)


class CacheUtilsTests(TestCase):
    def setUp(self):
        cache.clear()

    def test_cached_query_and_invalidation(self):
        calls = []

        @cached_query(cache_ttl=60, key_prefix='dashboard_summary')
        def build(day):
            calls.append(day)
            return {'day': day}

        self.assertEqual(build('2025-01-01'), {'day': '2025-01-01'})
        build('2025-01-01')
        self.assertEqual(len(calls), 1)

        invalidate_cache_pattern('dashboard_summary')
        build('2025-01-01')
        self.assertEqual(len(calls), 2)
