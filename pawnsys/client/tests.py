"""
Tests for the API client, the reconciliation runner and the station CLI
"""
import io
import json
import os
import shutil
import tempfile
from unittest import mock

import requests
from django.test import SimpleTestCase

from pawnsys.client import station
from pawnsys.client.api import (
    PawnsysClient, ApiError, NotFoundError, BusinessRuleError,
    AuthenticationError, ServiceUnavailableError,
)
from pawnsys.client.reconciliation import ReconciliationRunner
from pawnsys.client.services import GoldPriceService, InventoryService
from pawnsys.reconciliation.matching import calculate_progress


def _response(status_code=200, payload=None, content=None, reason=''):
    response = mock.Mock()
    response.status_code = status_code
    response.reason = reason
    if payload is not None:
        response.content = json.dumps(payload).encode()
        response.json.return_value = payload
    else:
        response.content = content or b''
        response.json.side_effect = ValueError('No JSON')
    response.text = response.content.decode()
    return response


def _client(*responses):
    session = mock.Mock()
    session.headers = {}
    session.request.side_effect = list(responses)
    return PawnsysClient(base_url='http://pawn.test/api/v1/', token='abc', session=session), session


class PawnsysClientTests(SimpleTestCase):
    def test_bearer_token_and_url(self):
        client, session = _client(_response(payload={'results': []}))
        self.assertEqual(session.headers['Authorization'], 'Bearer abc')
        client.get('customers/', params={'search': 'ali'})
        session.request.assert_called_once_with(
            'GET', 'http://pawn.test/api/v1/customers/', params={'search': 'ali'}, timeout=10
        )

    def test_login_sets_access_token(self):
        client, session = _client(_response(payload={'access': 'new-token', 'refresh': 'r'}))
        client.login('clerk', 'secret')
        self.assertEqual(session.headers['Authorization'], 'Bearer new-token')

    def test_empty_response(self):
        client, _ = _client(_response(status_code=204))
        self.assertIsNone(client.delete('customers/1/'))

    def test_error_mapping(self):
        cases = [
            (401, {'detail': 'Token expired'}, AuthenticationError, 'Token expired'),
            (404, {'detail': 'Not found.'}, NotFoundError, 'Not found.'),
            (422, {'error': 'Slot is occupied'}, BusinessRuleError, 'Slot is occupied'),
            (400, {'ic_number': ['Invalid IC']}, ApiError, 'ic_number: Invalid IC'),
            (503, None, ServiceUnavailableError, 'Service Unavailable'),
        ]
        for status_code, payload, error_class, message in cases:
            with self.subTest(status_code=status_code):
                client, _ = _client(_response(status_code, payload, reason='Service Unavailable'))
                with self.assertRaises(error_class) as ctx:
                    client.get('anything/')
                self.assertEqual(ctx.exception.message, message)
                self.assertEqual(ctx.exception.status_code, status_code)

    def test_connection_error_is_unavailable(self):
        client, _ = _client(requests.ConnectionError('refused'))
        with self.assertRaises(ServiceUnavailableError):
            client.get('customers/')


class ClientServiceTests(SimpleTestCase):
    def test_gold_price_falls_back_to_last_seen(self):
        prices = {'source': 'api', 'price_999': '400.00', 'purity_codes': {'916': '366.40'}}
        client, _ = _client(_response(payload=prices), requests.Timeout('slow'))
        service = GoldPriceService(client)
        self.assertFalse(service.current()['stale'])
        stale = service.current()
        self.assertTrue(stale['stale'])
        self.assertEqual(stale['purity_codes']['916'], '366.40')

    def test_gold_price_without_history_raises(self):
        client, _ = _client(requests.ConnectionError('down'))
        with self.assertRaises(ServiceUnavailableError):
            GoldPriceService(client).current()

    def test_export_csv_to_file(self):
        client, session = _client(_response(content=b'Barcode,Pledge No\r\n'))
        tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, tmpdir)
        path = InventoryService(client).export_csv(os.path.join(tmpdir, 'stock.csv'), vault=1)
        with open(path, encoding='utf-8') as fh:
            self.assertTrue(fh.read().startswith('Barcode'))
        self.assertEqual(session.request.call_args.kwargs['headers'], {'Accept': '*/*'})


class FakeServer:
    """Stands in for PawnsysClient; `down` makes every call fail as unreachable"""

    def __init__(self, expected, aliases=None):
        self.expected = expected
        self.aliases = aliases or {}
        self.down = False
        self.scanned = []

    def _check(self):
        if self.down:
            raise ServiceUnavailableError('Cannot reach server')

    def get(self, path, **kwargs):
        self._check()
        if path == 'reconciliations/expected-items/':
            return [{'barcode': code} for code in self.expected]
        raise NotFoundError('Not found', 404)

    def post(self, path, json=None, **kwargs):
        self._check()
        if path == 'reconciliations/start/':
            return {'id': 7, 'reconciliation_no': 'RCN-20260101-0001', 'expected_items': len(self.expected)}
        if path.endswith('/scan/'):
            value = json['barcode']
            barcode = self.aliases.get(value, value)
            if barcode in self.scanned:
                raise BusinessRuleError(f'{barcode} has already been scanned', 422)
            self.scanned.append(barcode)
            status = 'matched' if barcode in self.expected else 'unexpected'
            return {
                'status': status,
                'message': 'ok',
                'scan': {'barcode': barcode, 'scanned_value': value, 'status': status},
            }
        if path.endswith('/complete/'):
            matched = [code for code in self.scanned if code in self.expected]
            unexpected = [code for code in self.scanned if code not in self.expected]
            missing = [code for code in self.expected if code not in self.scanned]
            return {
                'reconciliation': {'id': 7, 'status': 'completed'},
                'result': {
                    'expected_count': len(self.expected),
                    'matched': matched,
                    'unexpected': unexpected,
                    'missing': missing,
                    'progress': calculate_progress(len(matched), len(self.expected)),
                    'outcome': 'discrepancy' if missing or unexpected else 'complete',
                },
            }
        raise NotFoundError('Not found', 404)


class ReconciliationRunnerTests(SimpleTestCase):
    def setUp(self):
        self.server = FakeServer(['A1', 'A2', 'A3'])
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir)
        self.cache_path = os.path.join(self.tmpdir, 'expected.json')

    def test_online_session(self):
        runner = ReconciliationRunner(self.server, cache_path=self.cache_path)
        session = runner.start()
        self.assertFalse(session['offline'])
        self.assertTrue(runner.scan('a1')['accepted'])
        duplicate = runner.scan('A1')
        self.assertFalse(duplicate['accepted'])
        self.assertIn('already been scanned', duplicate['message'])
        runner.scan('A2')
        runner.scan('A3')
        result = runner.complete()
        self.assertEqual(result['outcome'], 'complete')
        self.assertFalse(result['offline'])
        with open(self.cache_path, encoding='utf-8') as fh:
            self.assertEqual(len(json.load(fh)), 3)

    def test_falls_back_mid_session(self):
        runner = ReconciliationRunner(self.server, cache_path=self.cache_path)
        runner.start()
        runner.scan('A1')
        self.server.down = True

        scan = runner.scan('B9')
        self.assertTrue(scan['offline'])
        self.assertEqual(scan['status'], 'unexpected')
        self.assertFalse(runner.scan('A1')['accepted'])

        result = runner.complete()
        self.assertTrue(result['offline'])
        self.assertEqual(result['matched'], ['A1'])
        self.assertEqual(result['unexpected'], ['B9'])
        self.assertEqual(result['missing'], ['A2', 'A3'])
        self.assertEqual(result['progress'], 33)

    def test_offline_from_the_start_uses_cache(self):
        with open(self.cache_path, 'w', encoding='utf-8') as fh:
            json.dump([{'barcode': 'A1'}, {'barcode': 'A2'}], fh)
        self.server.down = True
        runner = ReconciliationRunner(self.server, cache_path=self.cache_path)
        session = runner.start()
        self.assertTrue(session['offline'])
        self.assertEqual(session['expected_items'], 2)
        runner.scan('A1')
        runner.scan('A2')
        self.assertEqual(runner.complete()['outcome'], 'complete')

    def test_fallback_replays_resolved_barcodes(self):
        server = FakeServer(
            ['PLG-2025-0001-01', 'PLG-2025-0002-01'],
            aliases={'PLG2025000101': 'PLG-2025-0001-01'},
        )
        runner = ReconciliationRunner(server, cache_path=self.cache_path)
        runner.start()
        scan = runner.scan('plg2025000101')
        self.assertEqual(scan['barcode'], 'PLG-2025-0001-01')
        server.down = True

        rescan = runner.scan('PLG-2025-0001-01')
        self.assertTrue(rescan['offline'])
        self.assertFalse(rescan['accepted'])

        result = runner.complete()
        self.assertEqual(result['matched'], ['PLG-2025-0001-01'])
        self.assertEqual(result['unexpected'], [])
        self.assertEqual(result['missing'], ['PLG-2025-0002-01'])
        self.assertEqual(result['progress'], 50)

    def test_scan_after_offline_completion_is_rejected(self):
        self.server.down = True
        with open(self.cache_path, 'w', encoding='utf-8') as fh:
            json.dump([{'barcode': 'A1'}], fh)
        runner = ReconciliationRunner(self.server, cache_path=self.cache_path)
        runner.start()
        runner.complete()
        scan = runner.scan('A1')
        self.assertFalse(scan['accepted'])
        self.assertTrue(scan['offline'])
        self.assertEqual(scan['message'], 'Reconciliation is completed')


class StationTests(SimpleTestCase):
    def setUp(self):
        self.server = FakeServer(['A1', 'A2', 'A3'])
        self.tmpdir = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.tmpdir)
        self.cache_path = os.path.join(self.tmpdir, 'expected.json')
        with open(self.cache_path, 'w', encoding='utf-8') as fh:
            json.dump([{'barcode': code} for code in self.server.expected], fh)

    def _run(self, lines):
        args = station.parse_args(['--url', 'http://pawn.test/api/v1', '--cache', self.cache_path])
        out = io.StringIO()
        with mock.patch.object(station, 'PawnsysClient', return_value=self.server):
            code = station.run(args, io.StringIO(lines), out)
        return code, out.getvalue()

    def test_online_discrepancy(self):
        code, output = self._run('A1\nB9\n\nA2\n')
        self.assertEqual(code, 1)
        self.assertIn('Started RCN-20260101-0001', output)
        self.assertNotIn(station.OFFLINE_LABEL, output)

    def test_offline_output_is_labelled(self):
        self.server.down = True
        code, output = self._run('A1\nA1\nB9\n')
        self.assertEqual(code, 1)
        self.assertIn('OFFLINE (not synced): server unreachable', output)
        self.assertIn('A1: rejected (A1 has already been scanned)', output)
        self.assertIn('Outcome: DISCREPANCY [OFFLINE (not synced)]', output)
        self.assertIn('Missing (2): A2, A3', output)

    def test_main_reports_api_errors(self):
        with mock.patch.object(station, 'run', side_effect=AuthenticationError('Token expired', 401)):
            with mock.patch('sys.stderr', new_callable=io.StringIO) as err:
                self.assertEqual(station.main(['--cache', self.cache_path]), 2)
        self.assertIn('Token expired', err.getvalue())
