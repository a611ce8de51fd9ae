"""
Tests for stock reconciliation: matching rules, offline sessions, server sessions and the API
"""
from datetime import datetime, timedelta, timezone as dt_timezone
from io import StringIO

from django.core.management import call_command
from django.test import TestCase, SimpleTestCase
from django.utils import timezone
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.reconciliation import services
from pawnsys.reconciliation.matching import (
    ExpectedItem, ScanEvent, DuplicateScan, LocalReconciliationSession,
    calculate_progress, match_scans, MATCHED, UNEXPECTED,
)
from pawnsys.reconciliation.models import Reconciliation
from pawnsys.transactions import services as transaction_services


def _event(barcode):
    return ScanEvent(barcode=barcode, scanned_at=datetime(2025, 1, 1, tzinfo=dt_timezone.utc), status='')


class MatchingTests(SimpleTestCase):
    def setUp(self):
        self.expected = [ExpectedItem(barcode=code) for code in ('A1', 'A2', 'A3')]

    def test_repeated_scan_counts_once(self):
        result = match_scans(self.expected, [_event('A1'), _event('A1'), _event('B9')])
        self.assertEqual([e.barcode for e in result.matched], ['A1'])
        self.assertEqual([e.barcode for e in result.unexpected], ['B9'])
        self.assertEqual([i.barcode for i in result.missing], ['A2', 'A3'])
        self.assertEqual(result.progress, 33)
        self.assertEqual(result.outcome, 'discrepancy')

    def test_everything_matched(self):
        result = match_scans(self.expected, [_event('a1 '), _event('A2'), _event('A3')])
        self.assertEqual(result.progress, 100)
        self.assertEqual(result.outcome, 'complete')
        self.assertFalse(result.has_discrepancies)

    def test_progress_rounds_half_up(self):
        self.assertEqual(calculate_progress(1, 8), 13)
        self.assertEqual(calculate_progress(2, 3), 67)
        self.assertEqual(calculate_progress(0, 0), 0)

    def test_empty_expected_with_scans(self):
        result = match_scans([], [_event('B9')])
        self.assertEqual(result.progress, 0)
        self.assertEqual(result.outcome, 'discrepancy')

    def test_expected_item_from_dict(self):
        item = ExpectedItem.from_dict({'id': 4, 'barcode': ' plg-2025-0001-01', 'pledge_no': 'PLG-2025-0001'})
        self.assertEqual(item.barcode, 'PLG-2025-0001-01')
        self.assertEqual(item.item_id, 4)


class LocalSessionTests(SimpleTestCase):
    def setUp(self):
        self.session = LocalReconciliationSession([{'barcode': 'A1'}, {'barcode': 'A2'}, {'barcode': 'A3'}])

    def test_scan_classification(self):
        self.assertEqual(self.session.scan('a1').status, MATCHED)
        unexpected = self.session.scan('B9')
        self.assertEqual(unexpected.status, UNEXPECTED)
        self.assertTrue(unexpected.accepted)
        self.assertIsNotNone(unexpected.warning)

    def test_duplicate_scan_rejected(self):
        self.session.scan('A1')
        duplicate = self.session.scan(' A1 ')
        self.assertIsInstance(duplicate, DuplicateScan)
        self.assertFalse(duplicate.accepted)
        self.assertEqual(len(self.session.scans), 1)

    def test_empty_scan_ignored(self):
        self.assertFalse(self.session.scan('  ').accepted)
        self.assertEqual(self.session.scans, [])

    def test_complete_is_offline(self):
        self.session.scan('A1')
        result = self.session.complete()
        self.assertTrue(result.offline)
        self.assertEqual(result.as_dict()['missing'], ['A2', 'A3'])
        self.assertEqual(self.session.status, 'completed')
        with self.assertRaises(RuntimeError):
            self.session.scan('A2')

    def test_cancel(self):
        self.session.cancel()
        self.assertEqual(self.session.status, 'cancelled')


class ReconciliationServiceTests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.pledge = TestDataFactory.create_pledge(items=[TestDataFactory.item_data(), TestDataFactory.item_data()])
        self.barcodes = sorted(self.pledge.items.values_list('barcode', flat=True))

    def test_start_counts_expected(self):
        reconciliation = services.start_reconciliation(user=self.user)
        self.assertEqual(reconciliation.expected_items, 2)
        self.assertTrue(reconciliation.reconciliation_no.startswith('RCN-'))
        self.assertEqual(reconciliation.expires_at - reconciliation.started_at, timedelta(hours=4))

    def test_only_one_session_at_a_time(self):
        first = services.start_reconciliation()
        with self.assertRaises(services.ReconciliationError):
            services.start_reconciliation()
        second = services.start_reconciliation(force_start=True)
        first.refresh_from_db()
        self.assertEqual(first.status, 'cancelled')
        self.assertEqual(second.status, 'in_progress')

    def test_expired_session_is_cancelled_on_start(self):
        stale = services.start_reconciliation()
        Reconciliation.objects.filter(pk=stale.pk).update(expires_at=timezone.now() - timedelta(minutes=1))
        services.start_reconciliation()
        stale.refresh_from_db()
        self.assertEqual(stale.status, 'cancelled')

    def test_scan_on_expired_session_cancels_it(self):
        reconciliation = services.start_reconciliation()
        Reconciliation.objects.filter(pk=reconciliation.pk).update(expires_at=timezone.now() - timedelta(minutes=1))
        with self.assertRaises(services.ReconciliationError):
            services.record_scan(reconciliation, self.barcodes[0])
        reconciliation.refresh_from_db()
        self.assertEqual(reconciliation.status, 'cancelled')
        self.assertIn('session expired', reconciliation.notes)
        self.assertFalse(reconciliation.items.exists())

    def test_completion_notes_are_appended(self):
        reconciliation = services.start_reconciliation(notes='Morning count')
        reconciliation, _ = services.complete_reconciliation(reconciliation, notes='')
        self.assertEqual(reconciliation.notes, 'Morning count')

        reconciliation = services.start_reconciliation(notes='Evening count')
        reconciliation, _ = services.complete_reconciliation(reconciliation, notes='Box 3 recounted')
        self.assertEqual(reconciliation.notes, 'Evening count | Box 3 recounted')

    def test_scan_and_complete_with_discrepancies(self):
        reconciliation = services.start_reconciliation(user=self.user)
        row, message = services.record_scan(reconciliation, self.barcodes[0].lower(), user=self.user)
        self.assertEqual(row.status, MATCHED)
        self.assertEqual(message, 'Item verified')
        row, message = services.record_scan(reconciliation, 'PLG-1999-0001-01')
        self.assertEqual(row.status, UNEXPECTED)
        self.assertEqual(message, 'Unknown barcode')
        with self.assertRaises(services.ReconciliationError):
            services.record_scan(reconciliation, self.barcodes[0])

        reconciliation, result = services.complete_reconciliation(reconciliation, user=self.user)
        self.assertEqual(reconciliation.status, 'completed')
        self.assertEqual(reconciliation.outcome, 'discrepancy')
        self.assertEqual(reconciliation.matched_items, 1)
        self.assertEqual(reconciliation.missing_items, 1)
        self.assertEqual(reconciliation.unexpected_items, 1)
        self.assertEqual(result.progress, 50)
        self.assertEqual(reconciliation.items.get(status='missing').barcode, self.barcodes[1])

    def test_compact_scanner_barcode(self):
        reconciliation = services.start_reconciliation()
        row, _ = services.record_scan(reconciliation, self.barcodes[0].replace('-', ''))
        self.assertEqual(row.barcode, self.barcodes[0])
        self.assertEqual(row.status, MATCHED)

    def test_redeemed_item_becomes_unexpected(self):
        reconciliation = services.start_reconciliation()
        services.record_scan(reconciliation, self.barcodes[0])
        services.record_scan(reconciliation, self.barcodes[1])
        quote = transaction_services.calculate_redemption(self.pledge)
        transaction_services.create_redemption(self.pledge, cash_amount=quote['total_payable'])

        reconciliation, result = services.complete_reconciliation(reconciliation)
        self.assertEqual(result.expected_count, 0)
        self.assertEqual(reconciliation.unexpected_items, 2)
        self.assertEqual(reconciliation.items.filter(status=UNEXPECTED).count(), 2)

    def test_cancel_only_in_progress(self):
        reconciliation = services.start_reconciliation()
        services.cancel_reconciliation(reconciliation, 'Shift ended')
        reconciliation.refresh_from_db()
        self.assertEqual(reconciliation.status, 'cancelled')
        self.assertIn('Shift ended', reconciliation.notes)
        with self.assertRaises(services.ReconciliationError):
            services.cancel_reconciliation(reconciliation)

    def test_cleanup_command(self):
        stale = services.start_reconciliation()
        Reconciliation.objects.filter(pk=stale.pk).update(expires_at=timezone.now() - timedelta(minutes=1))
        out = StringIO()
        call_command('cleanup_stuck_reconciliations', stdout=out)
        stale.refresh_from_db()
        self.assertEqual(stale.status, 'cancelled')
        self.assertIn('Cancelled 1', out.getvalue())


class ReconciliationAPITests(TestCase):
    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.pledge = TestDataFactory.create_pledge()
        self.barcode = self.pledge.items.get().barcode

    def _start(self, **data):
        return self.client.post('/api/v1/reconciliations/start/', data, format='json')

    def test_full_flow(self):
        response = self._start(reconciliation_type='daily')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        pk = response.data['id']

        response = self.client.post(f'/api/v1/reconciliations/{pk}/scan/', {'barcode': self.barcode}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'matched')
        self.assertEqual(response.data['summary']['progress'], 100)

        response = self.client.post(f'/api/v1/reconciliations/{pk}/scan/', {'barcode': self.barcode}, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

        response = self.client.post(f'/api/v1/reconciliations/{pk}/complete/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['result']['outcome'], 'complete')
        self.assertFalse(response.data['result']['offline'])

        response = self.client.get(f'/api/v1/reconciliations/{pk}/report/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['items']['matched']), 1)
        self.assertEqual(response.data['summary']['accuracy_rate'], 100)

    def test_second_start_conflicts(self):
        self._start()
        response = self._start()
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIsNotNone(response.data['reconciliation'])

    def test_in_progress(self):
        response = self.client.get('/api/v1/reconciliations/in-progress/')
        self.assertFalse(response.data['in_progress'])
        self._start()
        response = self.client.get('/api/v1/reconciliations/in-progress/')
        self.assertTrue(response.data['in_progress'])

    def test_report_requires_completion(self):
        pk = self._start().data['id']
        response = self.client.get(f'/api/v1/reconciliations/{pk}/report/')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_force_cancel(self):
        response = self.client.post('/api/v1/reconciliations/force-cancel/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self._start()
        response = self.client.post('/api/v1/reconciliations/force-cancel/')
        self.assertEqual(response.data['status'], 'cancelled')

    def test_expected_items(self):
        response = self.client.get('/api/v1/reconciliations/expected-items/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data[0]['barcode'], self.barcode)
        self.assertEqual(response.data[0]['pledge_no'], self.pledge.pledge_no)
