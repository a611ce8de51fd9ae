"""
Tests for dashboard and day-end reports
"""
from datetime import timedelta
from decimal import Decimal

from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.pledges.models import Pledge
from pawnsys.storage.models import Slot
from pawnsys.transactions import services as transaction_services


class ReportsAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.today = timezone.localdate()

        self.renewed = TestDataFactory.create_pledge(user=self.user)
        transaction_services.create_renewal(self.renewed, 1, cash_amount=Decimal('12.50'), user=self.user)
        self.redeemed = TestDataFactory.create_pledge(user=self.user)
        transaction_services.create_redemption(
            self.redeemed, payment_method='transfer', transfer_amount=Decimal('2412.50'),
            reference_no='FT0001', user=self.user,
        )

    def test_dashboard_summary(self):
        response = self.client.get('/api/v1/reports/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['active_pledges'], 1)
        self.assertEqual(response.data['overdue_pledges'], 0)
        self.assertEqual(response.data['outstanding_principal'], Decimal('2400.00'))
        today = response.data['today']
        self.assertEqual(today['new_pledges'], 2)
        self.assertEqual(today['loans_disbursed'], Decimal('4800.00'))
        self.assertEqual(today['renewal_collected'], Decimal('12.50'))
        self.assertEqual(today['redemption_collected'], Decimal('2412.50'))

    def test_payment_split(self):
        response = self.client.get('/api/v1/reports/payment-split/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['totals']['cash'], Decimal('12.50'))
        self.assertEqual(response.data['totals']['transfer'], Decimal('2412.50'))
        self.assertEqual(response.data['totals']['collected'], Decimal('2425.00'))
        self.assertEqual(response.data['pledges']['count'], 2)

    def test_payment_split_rejects_bad_date(self):
        response = self.client.get('/api/v1/reports/payment-split/', {'date': '19-10-2026'})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_payment_split_other_day_is_empty(self):
        day = (self.today - timedelta(days=30)).isoformat()
        response = self.client.get('/api/v1/reports/payment-split/', {'date': day})
        self.assertEqual(response.data['totals']['collected'], Decimal('0.00'))

    def test_day_end_summary(self):
        reprint = transaction_services.create_reprint(self.renewed)
        self.assertTrue(reprint.is_free)

        response = self.client.get('/api/v1/reports/day-end/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pledges']['count'], 2)
        self.assertEqual(response.data['items'], {'received': 2, 'released': 1})
        self.assertEqual(response.data['reprints']['count'], 1)
        cash_flow = response.data['cash_flow']
        self.assertEqual(cash_flow['cash_in'], Decimal('12.50'))
        self.assertEqual(cash_flow['loans_out'], Decimal('4800.00'))
        self.assertEqual(cash_flow['net_cash'], Decimal('-4787.50'))

    def test_due_reminders(self):
        Pledge.objects.filter(pk=self.renewed.pk).update(due_date=self.today + timedelta(days=3))
        response = self.client.get('/api/v1/reports/due-reminders/', {'days': 5})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['pledges'][0]['pledge_no'], self.renewed.pledge_no)

        response = self.client.get('/api/v1/reports/due-reminders/', {'days': 2})
        self.assertEqual(response.data['count'], 0)

    def test_overdue_split_by_grace(self):
        late = TestDataFactory.create_pledge(pledge_date=self.today - timedelta(days=200))
        response = self.client.get('/api/v1/reports/overdue/')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['outstanding_principal'], late.loan_amount)

        response = self.client.get('/api/v1/reports/overdue/', {'in_grace': 'true'})
        self.assertEqual(response.data['count'], 0)
        response = self.client.get('/api/v1/reports/overdue/', {'in_grace': 'false'})
        self.assertEqual(response.data['count'], 1)


class StorageCapacityTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_capacity_and_unassigned(self):
        vault = TestDataFactory.create_vault(code='VC', boxes=1, slots_per_box=4)
        slot = Slot.objects.filter(box__vault=vault).first()
        TestDataFactory.create_pledge(items=[TestDataFactory.item_data(slot=slot)])
        TestDataFactory.create_pledge()

        response = self.client.get('/api/v1/reports/storage-capacity/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['vaults'][0]['vault'], 'VC')
        self.assertEqual(response.data['vaults'][0]['utilisation'], 25.0)
        self.assertEqual(response.data['available_slots'], 3)
        self.assertEqual(response.data['unassigned_items'], 1)
