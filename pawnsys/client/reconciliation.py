"""
Reconciliation driver for scanning stations

Runs against the server while it is reachable. If the server drops out
the runner carries on with a LocalReconciliationSession seeded from the
last expected item list it fetched, replaying the scans already accepted.
Results produced that way are marked offline and are not synced.
"""
import json
import logging

from pawnsys.reconciliation.matching import (
    LocalReconciliationSession, ExpectedItem, normalize_barcode,
)
from .api import ServiceUnavailableError, BusinessRuleError
from .services import ReconciliationService

logger = logging.getLogger('pawnsys.client')


def _scan_result_dict(result):
    return {
        'barcode': result.barcode,
        'status': result.status,
        'accepted': result.accepted,
        'message': result.warning,
        'offline': True,
    }


class ReconciliationRunner:
    def __init__(self, client, reconciliation_type='adhoc', cache_path=None, expected_items=None):
        self.service = ReconciliationService(client)
        self.reconciliation_type = reconciliation_type
        self.cache_path = cache_path
        self.expected_items = list(expected_items or [])
        self.reconciliation = None
        self.local_session = None
        self.accepted = []

    @property
    def offline(self):
        return self.local_session is not None

    def refresh_expected_items(self):
        """Fetch the expected item list and keep a copy for offline use"""
        items = self.service.expected_items()
        self.expected_items = [ExpectedItem.from_dict(item) for item in items]
        if self.cache_path:
            with open(self.cache_path, 'w', encoding='utf-8') as fh:
                json.dump(items, fh)
        return self.expected_items

    def _load_cached_items(self):
        if self.expected_items or not self.cache_path:
            return
        try:
            with open(self.cache_path, encoding='utf-8') as fh:
                self.expected_items = [ExpectedItem.from_dict(item) for item in json.load(fh)]
        except FileNotFoundError:
            logger.warning(f"No cached expected items at {self.cache_path}")
        except (ValueError, KeyError) as e:
            logger.warning(f"Cached expected items unreadable: {str(e)}")

    def _go_offline(self, reason):
        self._load_cached_items()
        logger.warning(f"Server unavailable ({reason}); continuing offline with {len(self.expected_items)} expected items")
        self.local_session = LocalReconciliationSession(self.expected_items, self.reconciliation_type)
        for barcode in self.accepted:
            self.local_session.scan(barcode)

    def start(self, notes='', force_start=False):
        """
        Open a session. Returns the server reconciliation dict, or a dict
        with offline=True when the server cannot be reached.
        """
        try:
            self.refresh_expected_items()
            self.reconciliation = self.service.start(self.reconciliation_type, notes=notes, force_start=force_start)
        except ServiceUnavailableError as e:
            self._go_offline(str(e))
            return {
                'reconciliation_type': self.reconciliation_type,
                'expected_items': len(self.local_session.expected_items),
                'status': self.local_session.status,
                'offline': True,
            }
        return dict(self.reconciliation, offline=False)

    def scan(self, barcode):
        barcode = normalize_barcode(barcode)
        if not self.offline:
            try:
                response = self.service.scan(self.reconciliation['id'], barcode)
            except BusinessRuleError as e:
                return {'barcode': barcode, 'status': None, 'accepted': False, 'message': e.message, 'offline': False}
            except ServiceUnavailableError as e:
                self._go_offline(str(e))
            else:
                # The server expands scanner and pledge-number forms; replay what it stored
                resolved = normalize_barcode((response.get('scan') or {}).get('barcode')) or barcode
                self.accepted.append(resolved)
                return {
                    'barcode': resolved,
                    'status': response['status'],
                    'accepted': True,
                    'message': response.get('message'),
                    'offline': False,
                }

        if self.local_session.status != 'in_progress':
            return {
                'barcode': barcode, 'status': None, 'accepted': False,
                'message': f"Reconciliation is {self.local_session.status}", 'offline': True,
            }
        result = self.local_session.scan(barcode)
        if result.accepted:
            self.accepted.append(barcode)
        return _scan_result_dict(result)

    def complete(self, notes=None):
        """Finish the session and return the match result dict"""
        if not self.offline:
            try:
                response = self.service.complete(self.reconciliation['id'], notes=notes)
            except ServiceUnavailableError as e:
                self._go_offline(str(e))
            else:
                self.reconciliation = response['reconciliation']
                return dict(response['result'], offline=False)
        return self.local_session.complete().as_dict()

    def cancel(self, reason=''):
        if self.offline:
            self.local_session.cancel()
            return {'status': 'cancelled', 'offline': True}
        self.reconciliation = self.service.cancel(self.reconciliation['id'], reason=reason)
        return dict(self.reconciliation, offline=False)
