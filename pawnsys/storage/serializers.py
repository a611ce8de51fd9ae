from django.core.exceptions import ObjectDoesNotExist
from rest_framework import serializers

from .models import Vault, Box, Slot


class SlotSerializer(serializers.ModelSerializer):
    location_code = serializers.CharField(read_only=True)
    location_string = serializers.CharField(read_only=True)
    box_number = serializers.IntegerField(source='box.box_number', read_only=True)
    vault_id = serializers.IntegerField(source='box.vault_id', read_only=True)
    vault_code = serializers.CharField(source='box.vault.code', read_only=True)
    current_item = serializers.SerializerMethodField()

    class Meta:
        model = Slot
        fields = [
            'id', 'box', 'box_number', 'vault_id', 'vault_code', 'slot_number',
            'is_occupied', 'occupied_at', 'location_code', 'location_string', 'current_item'
        ]

    def get_current_item(self, obj):
        try:
            item = obj.current_item
        except ObjectDoesNotExist:
            return None
        return {
            'id': item.id,
            'barcode': item.barcode,
            'pledge_no': item.pledge.pledge_no,
            'category': item.category.name if item.category_id else None,
            'purity': item.purity.code if item.purity_id else None,
            'net_weight': str(item.net_weight),
        }


class BoxSerializer(serializers.ModelSerializer):
    vault_code = serializers.CharField(source='vault.code', read_only=True)
    vault_name = serializers.CharField(source='vault.name', read_only=True)
    box_number = serializers.IntegerField(required=False, min_value=1)
    total_slots = serializers.IntegerField(required=False, min_value=1, max_value=500)
    occupied_slots = serializers.SerializerMethodField()
    available_slots = serializers.SerializerMethodField()

    class Meta:
        model = Box
        fields = [
            'id', 'vault', 'vault_code', 'vault_name', 'box_number', 'name', 'total_slots',
            'occupied_slots', 'available_slots', 'is_active', 'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']
        validators = []

    def get_occupied_slots(self, obj):
        if hasattr(obj, 'occupied_count'):
            return obj.occupied_count
        return obj.slots.filter(is_occupied=True).count()

    def get_available_slots(self, obj):
        if hasattr(obj, 'available_count'):
            return obj.available_count
        return obj.slots.filter(is_occupied=False).count()


class VaultSerializer(serializers.ModelSerializer):
    number_of_boxes = serializers.IntegerField(write_only=True, required=False, min_value=0, max_value=100, default=0)
    slots_per_box = serializers.IntegerField(write_only=True, required=False, min_value=1, max_value=500)
    total_boxes = serializers.SerializerMethodField()
    total_slots = serializers.SerializerMethodField()
    occupied_slots = serializers.SerializerMethodField()

    class Meta:
        model = Vault
        fields = [
            'id', 'code', 'name', 'description', 'is_active',
            'number_of_boxes', 'slots_per_box',
            'total_boxes', 'total_slots', 'occupied_slots',
            'created_at', 'updated_at'
        ]
        read_only_fields = ['created_at', 'updated_at']

    def validate_code(self, value):
        return value.strip().upper()

    def get_total_boxes(self, obj):
        return obj.boxes.count()

    def get_total_slots(self, obj):
        return Slot.objects.filter(box__vault=obj).count()

    def get_occupied_slots(self, obj):
        return Slot.objects.filter(box__vault=obj, is_occupied=True).count()
