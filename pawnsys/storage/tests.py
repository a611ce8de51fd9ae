"""
Tests for storage: vault/box/slot creation, resizing and slot occupancy
"""
from django.core.cache import cache
from django.db import transaction
from django.test import TestCase
from rest_framework import status

from pawnsys.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from pawnsys.storage import services
from pawnsys.storage.models import Box, Slot


class SlotOccupancyTests(TestCase):
    def setUp(self):
        self.vault = TestDataFactory.create_vault(code='VA', boxes=1, slots_per_box=3)
        self.box = self.vault.boxes.get()
        self.pledge = TestDataFactory.create_pledge(items=[
            TestDataFactory.item_data(), TestDataFactory.item_data(gross_weight='5.000'),
        ])
        self.first, self.second = self.pledge.items.order_by('item_no')

    def test_location_code(self):
        slot = self.box.slots.get(slot_number=2)
        self.assertEqual(slot.location_code, 'VA-B1-S2')

    def test_occupy_and_release(self):
        slot = self.box.slots.get(slot_number=1)
        with transaction.atomic():
            services.occupy_slot(self.first, slot)
        slot.refresh_from_db()
        self.assertTrue(slot.is_occupied)
        self.assertEqual(slot.current_item, self.first)

        with transaction.atomic():
            services.release_slot(self.first)
        slot.refresh_from_db()
        self.assertFalse(slot.is_occupied)
        self.assertIsNone(self.first.slot)

    def test_occupied_slot_rejected(self):
        slot = self.box.slots.get(slot_number=1)
        with transaction.atomic():
            services.occupy_slot(self.first, slot)
        with self.assertRaises(services.SlotOccupiedError):
            with transaction.atomic():
                services.occupy_slot(self.second, slot)

    def test_moving_frees_previous_slot(self):
        slot1, slot2 = self.box.slots.order_by('slot_number')[:2]
        with transaction.atomic():
            services.occupy_slot(self.first, slot1)
            services.occupy_slot(self.first, slot2)
        self.assertFalse(Slot.objects.get(pk=slot1.pk).is_occupied)
        self.assertTrue(Slot.objects.get(pk=slot2.pk).is_occupied)

    def test_next_available_skips_occupied(self):
        slot1 = self.box.slots.get(slot_number=1)
        with transaction.atomic():
            services.occupy_slot(self.first, slot1)
        self.assertEqual(services.next_available_slot(vault_id=self.vault.id).slot_number, 2)

    def test_shrink_box_refuses_occupied_slots(self):
        slot3 = self.box.slots.get(slot_number=3)
        with transaction.atomic():
            services.occupy_slot(self.first, slot3)
        with self.assertRaises(services.StorageError):
            services.resize_box(self.box, 2)

    def test_grow_and_shrink_box(self):
        services.resize_box(self.box, 5)
        self.assertEqual(self.box.slots.count(), 5)
        services.resize_box(self.box, 2)
        self.assertEqual(list(self.box.slots.values_list('slot_number', flat=True).order_by('slot_number')), [1, 2])


class StorageAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.user = TestDataFactory.create_user()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_create_vault_with_boxes(self):
        response = self.client.post('/api/v1/storage/vaults/', {
            'code': 'v1', 'name': 'Main safe', 'number_of_boxes': 2, 'slots_per_box': 4,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['code'], 'V1')
        self.assertEqual(response.data['total_boxes'], 2)
        self.assertEqual(response.data['total_slots'], 8)

    def test_add_box_numbers_sequentially(self):
        vault = TestDataFactory.create_vault(boxes=1, slots_per_box=2)
        response = self.client.post('/api/v1/storage/boxes/', {'vault': vault.id, 'total_slots': 3}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['box_number'], 2)
        self.assertEqual(Box.objects.get(pk=response.data['id']).slots.count(), 3)

    def test_cannot_delete_vault_with_items(self):
        vault = TestDataFactory.create_vault(boxes=1, slots_per_box=2)
        slot = Slot.objects.filter(box__vault=vault).first()
        TestDataFactory.create_pledge(items=[TestDataFactory.item_data(slot=slot)])
        response = self.client.delete(f'/api/v1/storage/vaults/{vault.id}/')
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_summary_counts_occupancy(self):
        vault = TestDataFactory.create_vault(boxes=1, slots_per_box=4)
        slot = Slot.objects.filter(box__vault=vault).first()
        TestDataFactory.create_pledge(items=[TestDataFactory.item_data(slot=slot)])
        response = self.client.get('/api/v1/storage/summary/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_slots'], 4)
        self.assertEqual(response.data['occupied_slots'], 1)
        self.assertEqual(response.data['utilisation'], 25.0)

    def test_next_available_when_full(self):
        vault = TestDataFactory.create_vault(boxes=1, slots_per_box=1)
        slot = Slot.objects.get(box__vault=vault)
        TestDataFactory.create_pledge(items=[TestDataFactory.item_data(slot=slot)])
        response = self.client.get('/api/v1/storage/slots/next-available/', {'vault_id': vault.id})
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
