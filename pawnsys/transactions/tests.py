"""
Tests for renewals, redemptions and receipt reprints
"""
from datetime import timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.core.cache import cache
from django.test import TestCase
from django.utils import timezone
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.pledges.services import PledgeError
from pawnsys.storage.models import Slot
from pawnsys.transactions import services
from pawnsys.transactions.models import Renewal, Redemption


class RenewalServiceTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.pledge = TestDataFactory.create_pledge(user=self.user)

    def test_quote_one_month(self):
        quote = services.calculate_renewal(self.pledge, 1)
        self.assertEqual(quote['current_month'], 1)
        self.assertEqual(quote['interest_breakdown'][0]['month'], 2)
        self.assertEqual(quote['interest_amount'], Decimal('12.00'))
        self.assertEqual(quote['handling_fee'], Decimal('0.50'))
        self.assertEqual(quote['total_payable'], Decimal('12.50'))
        self.assertEqual(quote['new_due_date'], self.pledge.due_date + relativedelta(months=1))

    def test_months_out_of_range(self):
        with self.assertRaises(PledgeError):
            services.calculate_renewal(self.pledge, 0)
        with self.assertRaises(PledgeError):
            services.calculate_renewal(self.pledge, 7)

    def test_create_renewal_extends_due_date(self):
        old_due = self.pledge.due_date
        renewal = services.create_renewal(self.pledge, 1, cash_amount=Decimal('12.50'), user=self.user)
        self.pledge.refresh_from_db()
        self.assertEqual(renewal.renewal_no, f'RNW-{timezone.localdate().year}-0001')
        self.assertEqual(renewal.previous_due_date, old_due)
        self.assertEqual(self.pledge.due_date, old_due + relativedelta(months=1))
        self.assertEqual(self.pledge.grace_end_date, self.pledge.due_date + timedelta(days=7))
        self.assertEqual(self.pledge.renewal_count, 1)
        self.assertEqual(renewal.interest_breakdown.count(), 1)

    def test_insufficient_payment(self):
        with self.assertRaises(PledgeError):
            services.create_renewal(self.pledge, 1, cash_amount=Decimal('12.00'))
        self.assertFalse(Renewal.objects.exists())

    def test_renewal_reactivates_overdue_pledge(self):
        today = timezone.localdate()
        pledge = TestDataFactory.create_pledge(pledge_date=today - timedelta(days=200))
        pledge.status = 'overdue'
        pledge.save(update_fields=['status'])
        quote = services.calculate_renewal(pledge, 1)
        services.create_renewal(pledge, 1, cash_amount=quote['total_payable'])
        pledge.refresh_from_db()
        self.assertEqual(pledge.status, 'active')

    def test_closed_pledge_cannot_be_renewed(self):
        self.pledge.status = 'redeemed'
        self.pledge.save(update_fields=['status'])
        with self.assertRaises(PledgeError):
            services.calculate_renewal(self.pledge, 1)


class RedemptionServiceTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.vault = TestDataFactory.create_vault(code='VR', boxes=1, slots_per_box=3)
        self.slots = list(Slot.objects.filter(box__vault=self.vault).order_by('slot_number'))

    def test_full_redemption(self):
        pledge = TestDataFactory.create_pledge(items=[TestDataFactory.item_data(slot=self.slots[0])])
        quote = services.calculate_redemption(pledge)
        self.assertFalse(quote['is_partial'])
        self.assertEqual(quote['regular_interest'], Decimal('12.00'))
        self.assertEqual(quote['total_payable'], Decimal('2412.50'))

        redemption = services.create_redemption(pledge, cash_amount=Decimal('2412.50'), user=self.user)
        pledge.refresh_from_db()
        self.slots[0].refresh_from_db()
        self.assertEqual(pledge.status, 'redeemed')
        self.assertFalse(self.slots[0].is_occupied)
        self.assertEqual(pledge.items.get().status, 'redeemed')
        self.assertEqual(redemption.items.count(), 1)

    def test_partial_redemption_is_pro_rata(self):
        pledge = TestDataFactory.create_pledge(items=[
            TestDataFactory.item_data(gross_weight='10.000', slot=self.slots[0]),
            TestDataFactory.item_data(gross_weight='5.000', slot=self.slots[1]),
        ])
        self.assertEqual(pledge.loan_amount, Decimal('3600.00'))
        small = pledge.items.get(gross_weight=Decimal('5.000'))

        quote = services.calculate_redemption(pledge, [small.id])
        self.assertTrue(quote['is_partial'])
        self.assertEqual(quote['principal'], Decimal('1200.00'))
        self.assertEqual(quote['regular_interest'], Decimal('6.00'))
        self.assertEqual(quote['total_payable'], Decimal('1206.50'))

        services.create_redemption(pledge, [small.id], cash_amount=Decimal('1206.50'))
        pledge.refresh_from_db()
        self.assertEqual(pledge.status, 'active')
        self.assertEqual(pledge.loan_amount, Decimal('2400.00'))
        self.assertEqual(pledge.net_value, Decimal('3000.00'))
        self.assertEqual(pledge.items.filter(status='stored').count(), 1)

    def test_foreign_item_rejected(self):
        pledge = TestDataFactory.create_pledge()
        other = TestDataFactory.create_pledge()
        with self.assertRaises(PledgeError):
            services.calculate_redemption(pledge, [other.items.get().id])

    def test_insufficient_payment(self):
        pledge = TestDataFactory.create_pledge()
        with self.assertRaises(PledgeError):
            services.create_redemption(pledge, cash_amount=Decimal('2400.00'))
        self.assertFalse(Redemption.objects.exists())


class ReprintServiceTests(TestCase):
    def test_first_print_free_then_charged(self):
        pledge = TestDataFactory.create_pledge()
        first = services.create_reprint(pledge)
        second = services.create_reprint(pledge, reason='Lost receipt')
        self.assertTrue(first.is_free)
        self.assertEqual(first.charge, Decimal('0.00'))
        self.assertFalse(second.is_free)
        self.assertEqual(second.charge, Decimal('2.00'))
        self.assertEqual(second.print_number, 2)


class TransactionAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.pledge = TestDataFactory.create_pledge(user=self.user)

    def test_renewal_calculate(self):
        response = self.client.post('/api/v1/renewals/calculate/', {
            'pledge_id': self.pledge.id, 'renewal_months': 1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_payable'], Decimal('12.50'))

    def test_renewal_calculate_rejects_long_renewal(self):
        response = self.client.post('/api/v1/renewals/calculate/', {
            'pledge_id': self.pledge.id, 'renewal_months': 12,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_renewal(self):
        response = self.client.post('/api/v1/renewals/', {
            'pledge_id': self.pledge.id, 'renewal_months': 1,
            'payment_method': 'cash', 'cash_amount': '12.50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['total_payable'], '12.50')
        self.assertEqual(len(response.data['interest_breakdown']), 1)

    def test_create_renewal_underpaid(self):
        response = self.client.post('/api/v1/renewals/', {
            'pledge_id': self.pledge.id, 'renewal_months': 1, 'cash_amount': '5.00',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn('Insufficient payment', response.data['error'])

    def test_cash_payment_cannot_carry_transfer(self):
        response = self.client.post('/api/v1/renewals/', {
            'pledge_id': self.pledge.id, 'renewal_months': 1,
            'payment_method': 'cash', 'cash_amount': '10.00', 'transfer_amount': '2.50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('transfer_amount', response.data)

    def test_transfer_needs_reference(self):
        response = self.client.post('/api/v1/redemptions/', {
            'pledge_id': self.pledge.id, 'payment_method': 'transfer', 'transfer_amount': '2412.50',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('reference_no', response.data)

    def test_create_redemption_by_transfer(self):
        response = self.client.post('/api/v1/redemptions/', {
            'pledge_id': self.pledge.id, 'payment_method': 'transfer',
            'transfer_amount': '2412.50', 'reference_no': 'FT12345',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertFalse(response.data['is_partial'])
        self.assertEqual(response.data['barcodes'], [self.pledge.items.get().barcode])

    def test_redeemed_pledge_is_not_found(self):
        services.create_redemption(self.pledge, cash_amount=Decimal('2412.50'))
        response = self.client.post('/api/v1/redemptions/calculate/', {'pledge_id': self.pledge.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_reprint_quote_and_create(self):
        response = self.client.get(f'/api/v1/reprints/quote/{self.pledge.id}/')
        self.assertTrue(response.data['is_free'])

        response = self.client.post('/api/v1/reprints/', {'pledge_id': self.pledge.id}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        response = self.client.get(f'/api/v1/reprints/quote/{self.pledge.id}/')
        self.assertFalse(response.data['is_free'])
        self.assertEqual(response.data['charge'], Decimal('2.00'))
