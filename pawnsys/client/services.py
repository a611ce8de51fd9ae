"""Per-resource wrappers around PawnsysClient"""
import logging

from .api import ServiceUnavailableError

logger = logging.getLogger('pawnsys.client')


class CustomerService:
    def __init__(self, client):
        self.client = client

    def list(self, search=None, page=1, limit=50):
        params = {'page': page, 'limit': limit}
        if search:
            params['search'] = search
        return self.client.get('customers/', params=params)

    def get(self, customer_id):
        return self.client.get(f'customers/{customer_id}/')

    def search_by_ic(self, ic_number):
        return self.client.get('customers/search-ic/', params={'ic': ic_number})

    def create(self, data):
        return self.client.post('customers/', json=data)

    def update(self, customer_id, data):
        return self.client.patch(f'customers/{customer_id}/', json=data)

    def delete(self, customer_id):
        return self.client.delete(f'customers/{customer_id}/')

    def pledges(self, customer_id, active_only=False):
        suffix = 'active-pledges' if active_only else 'pledges'
        return self.client.get(f'customers/{customer_id}/{suffix}/')


class StorageService:
    def __init__(self, client):
        self.client = client

    def vaults(self):
        return self.client.get('storage/vaults/')

    def create_vault(self, data):
        return self.client.post('storage/vaults/', json=data)

    def box_slots(self, box_id):
        return self.client.get(f'storage/boxes/{box_id}/slots/')

    def available_slots(self, vault_id=None, box_id=None):
        params = {key: value for key, value in (('vault_id', vault_id), ('box_id', box_id)) if value}
        return self.client.get('storage/slots/available/', params=params)

    def next_available_slot(self, vault_id=None):
        params = {'vault_id': vault_id} if vault_id else None
        return self.client.get('storage/slots/next-available/', params=params)

    def summary(self):
        return self.client.get('storage/summary/')


class PledgeService:
    def __init__(self, client):
        self.client = client

    def list(self, **params):
        return self.client.get('pledges/', params=params)

    def get(self, pledge_id):
        return self.client.get(f'pledges/{pledge_id}/')

    def lookup(self, query):
        """Find a pledge by pledge number, receipt number or item barcode"""
        return self.client.get('pledges/lookup/', params={'q': query})

    def calculate(self, data):
        return self.client.post('pledges/calculate/', json=data)

    def create(self, data):
        return self.client.post('pledges/', json=data)

    def assign_storage(self, pledge_id, assignments):
        return self.client.post(f'pledges/{pledge_id}/assign-storage/', json={'assignments': assignments})

    def cancel(self, pledge_id, reason):
        return self.client.post(f'pledges/{pledge_id}/cancel/', json={'reason': reason})


class RenewalService:
    def __init__(self, client):
        self.client = client

    def calculate(self, pledge_id, renewal_months=1):
        return self.client.post('renewals/calculate/', json={'pledge_id': pledge_id, 'renewal_months': renewal_months})

    def create(self, data):
        return self.client.post('renewals/', json=data)

    def get(self, renewal_id):
        return self.client.get(f'renewals/{renewal_id}/')


class RedemptionService:
    def __init__(self, client):
        self.client = client

    def calculate(self, pledge_id, item_ids=None):
        data = {'pledge_id': pledge_id}
        if item_ids:
            data['item_ids'] = list(item_ids)
        return self.client.post('redemptions/calculate/', json=data)

    def create(self, data):
        return self.client.post('redemptions/', json=data)

    def get(self, redemption_id):
        return self.client.get(f'redemptions/{redemption_id}/')


class GoldPriceService:
    """
    Current gold prices with a local fallback

    The last successful response is kept on the instance. When the server
    cannot be reached that copy is returned with 'stale': True; without one
    the error propagates.
    """

    def __init__(self, client):
        self.client = client
        self.last_prices = None

    def current(self, refresh=False):
        params = {'refresh': 'true'} if refresh else None
        try:
            prices = self.client.get('gold-price/current/', params=params)
        except ServiceUnavailableError:
            if self.last_prices is None:
                raise
            logger.warning("Gold price unavailable, using last seen prices")
            return dict(self.last_prices, stale=True)
        self.last_prices = prices
        return dict(prices, stale=False)

    def price_per_gram(self, purity_code):
        prices = self.current()
        return prices['purity_codes'].get(str(purity_code))

    def calculate(self, weight, purity_code, custom_price=None):
        data = {'weight': str(weight), 'purity_code': str(purity_code)}
        if custom_price is not None:
            data['custom_price'] = str(custom_price)
        return self.client.post('gold-price/calculate/', json=data)


class InventoryService:
    def __init__(self, client):
        self.client = client

    def list(self, **filters):
        return self.client.get('inventory/', params=filters)

    def summary(self):
        return self.client.get('inventory/summary/')

    def update_location(self, item_id, slot_id, reason=''):
        return self.client.post(f'inventory/{item_id}/location/', json={'slot_id': slot_id, 'reason': reason})

    def export_csv(self, path=None, **filters):
        """
        Download the filtered inventory as CSV.

        Returns the CSV text, or writes it to `path` and returns the path.
        """
        response = self.client.get('inventory/export/', params=filters, raw=True, headers={'Accept': '*/*'})
        if path is None:
            return response.text
        with open(path, 'wb') as fh:
            fh.write(response.content)
        return path


class ReconciliationService:
    def __init__(self, client):
        self.client = client

    def in_progress(self):
        return self.client.get('reconciliations/in-progress/')

    def expected_items(self):
        return self.client.get('reconciliations/expected-items/')

    def start(self, reconciliation_type='daily', notes='', force_start=False):
        return self.client.post('reconciliations/start/', json={
            'reconciliation_type': reconciliation_type,
            'notes': notes,
            'force_start': force_start,
        })

    def scan(self, reconciliation_id, barcode, notes=''):
        return self.client.post(f'reconciliations/{reconciliation_id}/scan/', json={'barcode': barcode, 'notes': notes})

    def complete(self, reconciliation_id, notes=None):
        return self.client.post(f'reconciliations/{reconciliation_id}/complete/', json={'notes': notes})

    def cancel(self, reconciliation_id, reason=''):
        return self.client.post(f'reconciliations/{reconciliation_id}/cancel/', json={'reason': reason})

    def report(self, reconciliation_id):
        return self.client.get(f'reconciliations/{reconciliation_id}/report/')
