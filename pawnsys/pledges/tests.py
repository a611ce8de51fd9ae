"""
Tests for pledges: interest, valuation, numbering, creation, storage assignment and cancellation
"""
from datetime import date, timedelta
from decimal import Decimal

from django.core.cache import cache
from django.core.management import call_command
from django.test import TestCase, SimpleTestCase
from django.utils import timezone
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.inventory.models import ItemLocationHistory
from pawnsys.pledges import services
from pawnsys.pledges.interest import InterestCalculator
from pawnsys.pledges.label_generator import generate_item_label
from pawnsys.pledges.models import Pledge
from pawnsys.pledges.utils import expand_compact_barcode, expand_compact_pledge_no, find_pledge, item_barcode
from pawnsys.pledges.valuation import value_item, summarize
from pawnsys.storage.models import Slot


class InterestCalculatorTests(TestCase):
    def setUp(self):
        self.calculator = InterestCalculator(
            standard_rate='0.5', extended_rate='1.5', overdue_rate='2.0', standard_months=6
        )

    def test_rate_switches_after_six_months(self):
        self.assertEqual(self.calculator.rate_for_month(6), Decimal('0.5'))
        self.assertEqual(self.calculator.rate_for_month(7), Decimal('1.5'))

    def test_interest_for_months(self):
        self.assertEqual(self.calculator.interest_for_months(1000, 3), Decimal('15.00'))
        self.assertEqual(self.calculator.interest_for_months(1000, 8), Decimal('60.00'))

    def test_monthly_breakdown_running_totals(self):
        breakdown = self.calculator.monthly_breakdown(Decimal('2400.00'), 2)
        self.assertEqual(breakdown[0]['interest'], Decimal('12.00'))
        self.assertEqual(breakdown[1]['cumulative'], Decimal('24.00'))
        self.assertEqual(breakdown[1]['total_payable'], Decimal('2424.00'))

    def test_renewal_starts_after_current_month(self):
        result = self.calculator.renewal_interest(1000, current_month=5, renewal_months=3)
        self.assertEqual([row['month'] for row in result['breakdown']], [6, 7, 8])
        self.assertEqual(result['total_interest'], Decimal('35.00'))

    def test_overdue_interest_is_daily(self):
        self.assertEqual(self.calculator.overdue_interest(1000, 15), Decimal('10.00'))
        self.assertEqual(self.calculator.overdue_interest(1000, 0), Decimal('0.00'))

    def test_redemption_totals(self):
        result = self.calculator.redemption(1000, 3, 0)
        self.assertEqual(result['regular_interest'], Decimal('15.00'))
        self.assertEqual(result['handling_fee'], Decimal('0.50'))
        self.assertEqual(result['total_payable'], Decimal('1015.50'))


class ValuationTests(SimpleTestCase):
    def test_no_deduction(self):
        values = value_item('10', '300')
        self.assertEqual(values['net_weight'], Decimal('10.000'))
        self.assertEqual(values['net_value'], Decimal('3000.00'))

    def test_percentage_deduction(self):
        values = value_item('10', '300', 'percentage', '10')
        self.assertEqual(values['net_weight'], Decimal('9.000'))
        self.assertEqual(values['net_value'], Decimal('2700.00'))
        self.assertEqual(values['deduction_amount'], Decimal('300.00'))

    def test_gram_deduction(self):
        values = value_item('10', '300', 'grams', '2.5')
        self.assertEqual(values['net_weight'], Decimal('7.500'))
        self.assertEqual(values['net_value'], Decimal('2250.00'))

    def test_amount_deduction_keeps_weight(self):
        values = value_item('10', '300', 'amount', '50')
        self.assertEqual(values['net_weight'], Decimal('10.000'))
        self.assertEqual(values['net_value'], Decimal('2950.00'))

    def test_summary_loan_amount(self):
        items = [value_item('10', '300'), value_item('5', '300')]
        totals = summarize(items, 80)
        self.assertEqual(totals['net_value'], Decimal('4500.00'))
        self.assertEqual(totals['loan_amount'], Decimal('3600.00'))


class BarcodeTests(SimpleTestCase):
    def test_item_barcode(self):
        self.assertEqual(item_barcode('PLG-2025-0001', 3), 'PLG-2025-0001-03')

    def test_expand_compact(self):
        self.assertEqual(expand_compact_barcode('plg2025000101'), 'PLG-2025-0001-01')
        self.assertEqual(expand_compact_barcode('PLG-2025-0001-01'), 'PLG-2025-0001-01')
        self.assertEqual(expand_compact_pledge_no('PLG20250001'), 'PLG-2025-0001')

    def test_label_is_png_data_url(self):
        label = generate_item_label('PLG-2025-0001-01', 'PLG-2025-0001', subtitle='Ring | 916', footer='VA-B1-S1')
        self.assertTrue(label.startswith('data:image/png;base64,'))


class PledgeServiceTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.vault = TestDataFactory.create_vault(code='VA', boxes=1, slots_per_box=3)

    def test_create_pledge_values_and_dates(self):
        pledge = TestDataFactory.create_pledge(user=self.user, pledge_date=date(2025, 1, 15))
        self.assertEqual(pledge.pledge_no, 'PLG-2025-0001')
        self.assertEqual(pledge.receipt_no, 'RCP-2025-0001')
        self.assertEqual(pledge.net_value, Decimal('3000.00'))
        self.assertEqual(pledge.loan_amount, Decimal('2400.00'))
        self.assertEqual(pledge.due_date, date(2025, 7, 15))
        self.assertEqual(pledge.grace_end_date, date(2025, 7, 22))
        self.assertEqual(pledge.items.get().barcode, 'PLG-2025-0001-01')
        pledge.customer.refresh_from_db()
        self.assertEqual(pledge.customer.active_pledges, 1)

    def test_numbers_increment(self):
        TestDataFactory.create_pledge(pledge_date=date(2025, 1, 15))
        second = TestDataFactory.create_pledge(pledge_date=date(2025, 2, 1))
        self.assertEqual(second.pledge_no, 'PLG-2025-0002')

    def test_blacklisted_customer_rejected(self):
        customer = TestDataFactory.create_customer(is_blacklisted=True)
        with self.assertRaises(services.PledgeError):
            TestDataFactory.create_pledge(customer=customer)

    def test_loan_cannot_exceed_net_value(self):
        with self.assertRaises(services.PledgeError):
            TestDataFactory.create_pledge(loan_amount=Decimal('3000.01'))

    def test_create_with_slot_records_history(self):
        slot = Slot.objects.filter(box__vault=self.vault).order_by('box__box_number', 'slot_number').first()
        pledge = TestDataFactory.create_pledge(user=self.user, items=[TestDataFactory.item_data(slot=slot)])
        item = pledge.items.get()
        slot.refresh_from_db()
        self.assertTrue(slot.is_occupied)
        self.assertEqual(item.location_string, slot.location_string)
        self.assertEqual(ItemLocationHistory.objects.filter(item=item, to_slot=slot).count(), 1)

    def test_assign_storage_rejects_shared_slot(self):
        pledge = TestDataFactory.create_pledge(items=[TestDataFactory.item_data(), TestDataFactory.item_data()])
        slot = Slot.objects.filter(box__vault=self.vault).first()
        assignments = [{'item_id': item.id, 'slot_id': slot.id} for item in pledge.items.all()]
        with self.assertRaises(services.PledgeError):
            services.assign_storage(pledge, assignments)

    def test_cancel_releases_slots(self):
        slot = Slot.objects.filter(box__vault=self.vault).first()
        pledge = TestDataFactory.create_pledge(items=[TestDataFactory.item_data(slot=slot)])
        services.cancel_pledge(pledge, user=self.user, reason='Customer changed mind')
        pledge.refresh_from_db()
        slot.refresh_from_db()
        self.assertEqual(pledge.status, 'cancelled')
        self.assertFalse(slot.is_occupied)
        self.assertEqual(pledge.items.get().status, 'released')

    def test_renewed_pledge_cannot_be_cancelled(self):
        pledge = TestDataFactory.create_pledge()
        Pledge.objects.filter(pk=pledge.pk).update(renewal_count=1)
        with self.assertRaises(services.PledgeError):
            services.cancel_pledge(pledge)

    def test_overdue_flags(self):
        today = timezone.localdate()
        pledge = TestDataFactory.create_pledge(pledge_date=today - timedelta(days=200))
        self.assertTrue(pledge.is_overdue())
        self.assertEqual(pledge.days_overdue(), (today - pledge.due_date).days)
        self.assertEqual(pledge.effective_status, 'overdue')

        pledge.status = 'redeemed'
        self.assertFalse(pledge.is_overdue())

    def test_mark_overdue_command(self):
        today = timezone.localdate()
        old = TestDataFactory.create_pledge(pledge_date=today - timedelta(days=200))
        fresh = TestDataFactory.create_pledge(pledge_date=today)
        call_command('mark_overdue_pledges', verbosity=0)
        old.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(old.status, 'overdue')
        self.assertEqual(fresh.status, 'active')

    def test_find_pledge_by_any_reference(self):
        pledge = TestDataFactory.create_pledge(pledge_date=date(2025, 3, 1))
        self.assertEqual(find_pledge('PLG-2025-0001'), pledge)
        self.assertEqual(find_pledge('rcp-2025-0001'), pledge)
        self.assertEqual(find_pledge('PLG2025000101'), pledge)
        self.assertIsNone(find_pledge('PLG-2025-9999'))


class PledgeAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.customer = TestDataFactory.create_customer()
        TestDataFactory.create_purity('916')

    def test_calculate_preview(self):
        response = self.client.post('/api/v1/pledges/calculate/', {
            'items': [{'purity_code': '916', 'gross_weight': '10.000', 'price_per_gram': '300.00'}],
            'loan_percentage': '80',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['summary']['loan_amount'], Decimal('2400.00'))
        self.assertEqual(len(response.data['redemption_estimates']), 3)
        self.assertEqual(response.data['price_source'], 'custom')

    def test_create_pledge(self):
        response = self.client.post('/api/v1/pledges/', {
            'customer': self.customer.id,
            'items': [{'purity_code': '916', 'gross_weight': '10.000', 'price_per_gram': '300.00'}],
            'loan_percentage': '80',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(response.data['items']), 1)
        self.assertTrue(response.data['pledge_no'].startswith('PLG-'))

    def test_create_pledge_needs_purity(self):
        response = self.client.post('/api/v1/pledges/', {
            'customer': self.customer.id,
            'items': [{'gross_weight': '10.000'}],
            'loan_percentage': '80',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_pledge_for_blacklisted_customer(self):
        customer = TestDataFactory.create_customer(is_blacklisted=True)
        response = self.client.post('/api/v1/pledges/', {
            'customer': customer.id,
            'items': [{'purity_code': '916', 'gross_weight': '10.000', 'price_per_gram': '300.00'}],
            'loan_percentage': '80',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_list_filters_by_status(self):
        TestDataFactory.create_pledge(customer=self.customer)
        cancelled = TestDataFactory.create_pledge(customer=self.customer)
        services.cancel_pledge(cancelled, reason='test')
        response = self.client.get('/api/v1/pledges/', {'status': 'active,overdue'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)

    def test_cancel_requires_reason(self):
        pledge = TestDataFactory.create_pledge(customer=self.customer)
        response = self.client.post(f'/api/v1/pledges/{pledge.id}/cancel/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(f'/api/v1/pledges/{pledge.id}/cancel/', {'reason': 'Wrong item'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.post(f'/api/v1/pledges/{pledge.id}/cancel/', {'reason': 'Again'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_assign_storage_endpoint(self):
        vault = TestDataFactory.create_vault(boxes=1, slots_per_box=2)
        slot = Slot.objects.filter(box__vault=vault).first()
        pledge = TestDataFactory.create_pledge(customer=self.customer)
        item = pledge.items.get()
        response = self.client.post(f'/api/v1/pledges/{pledge.id}/assign-storage/', {
            'assignments': [{'item_id': item.id, 'slot_id': slot.id}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        other = TestDataFactory.create_pledge(customer=self.customer)
        response = self.client.post(f'/api/v1/pledges/{other.id}/assign-storage/', {
            'assignments': [{'item_id': other.items.get().id, 'slot_id': slot.id}],
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_item_lookup_compact_barcode(self):
        pledge = TestDataFactory.create_pledge(customer=self.customer)
        compact = pledge.items.get().barcode.replace('-', '')
        response = self.client.get('/api/v1/pledges/items/lookup/', {'barcode': compact})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pledge'], pledge.id)

    def test_interest_schedule(self):
        pledge = TestDataFactory.create_pledge(customer=self.customer)
        response = self.client.get(f'/api/v1/pledges/{pledge.id}/interest/', {'months': 8})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['breakdown']), 8)
        self.assertEqual(response.data['breakdown'][6]['rate'], Decimal('1.5'))
