"""
Tests for the inventory list, item moves and CSV export
"""
import csv
import io

from django.core.cache import cache
from django.test import TestCase
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.inventory.models import ItemLocationHistory
from pawnsys.storage.models import Slot


class InventoryAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)
        self.vault = TestDataFactory.create_vault(code='VI', boxes=1, slots_per_box=3)
        self.slots = list(Slot.objects.filter(box__vault=self.vault).order_by('slot_number'))
        self.customer = TestDataFactory.create_customer(name='Siti Aminah')
        self.pledge = TestDataFactory.create_pledge(
            customer=self.customer, items=[TestDataFactory.item_data(slot=self.slots[0])]
        )
        self.other = TestDataFactory.create_pledge(items=[TestDataFactory.item_data(gross_weight='5.000')])
        self.item = self.pledge.items.get()

    def test_list_and_search(self):
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)

        response = self.client.get('/api/v1/inventory/', {'search': 'siti'})
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['customer_name'], 'Siti Aminah')

        response = self.client.get('/api/v1/inventory/', {'search': self.item.barcode.replace('-', '')})
        self.assertEqual(response.data['results'][0]['barcode'], self.item.barcode)

    def test_unassigned_filter(self):
        response = self.client.get('/api/v1/inventory/', {'unassigned': 'true'})
        self.assertEqual(response.data['count'], 1)
        self.assertIsNone(response.data['results'][0]['location_code'])

    def test_update_location(self):
        response = self.client.post(f'/api/v1/inventory/{self.item.id}/location/', {
            'slot_id': self.slots[1].id, 'reason': 'Box reorganised',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['location_code'], 'VI-B1-S2')
        self.slots[0].refresh_from_db()
        self.assertFalse(self.slots[0].is_occupied)

        move = ItemLocationHistory.objects.filter(item=self.item).first()
        self.assertEqual(move.from_location, 'VI-B1-S1')
        self.assertEqual(move.to_location, 'VI-B1-S2')

        response = self.client.get(f'/api/v1/inventory/{self.item.id}/history/')
        self.assertEqual(len(response.data), 2)

    def test_update_location_to_occupied_slot(self):
        other_item = self.other.items.get()
        response = self.client.post(f'/api/v1/inventory/{other_item.id}/location/', {
            'slot_id': self.slots[0].id,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_items_by_location(self):
        response = self.client.get('/api/v1/inventory/by-location/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.get('/api/v1/inventory/by-location/', {'vault_id': self.vault.id})
        self.assertEqual([row['barcode'] for row in response.data], [self.item.barcode])

    def test_summary(self):
        response = self.client.get('/api/v1/inventory/summary/')
        self.assertEqual(response.data['total_items'], 2)
        self.assertEqual(response.data['unassigned_items'], 1)
        self.assertEqual(response.data['by_purity'][0]['purity'], '916')

    def test_export_csv(self):
        response = self.client.get('/api/v1/inventory/export/', {'vault': self.vault.id}, HTTP_ACCEPT='*/*')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response['Content-Type'], 'text/csv')
        self.assertIn('attachment; filename="inventory_', response['Content-Disposition'])

        rows = list(csv.reader(io.StringIO(response.content.decode())))
        self.assertEqual(rows[0][0], 'Barcode')
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[1][0], self.item.barcode)
        self.assertEqual(rows[1][8], 'VI-B1-S1')

    def test_requires_authentication(self):
        self.client.logout()
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
