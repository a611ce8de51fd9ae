from rest_framework import serializers

from pawnsys.pledges.serializers import PledgeItemSerializer
from .models import ItemLocationHistory


class InventoryItemSerializer(PledgeItemSerializer):
    """Pledge item with the pledge and customer columns the inventory screen shows"""
    customer_name = serializers.CharField(source='pledge.customer.name', read_only=True)
    pledge_status = serializers.CharField(source='pledge.status', read_only=True)
    due_date = serializers.DateField(source='pledge.due_date', read_only=True)

    class Meta(PledgeItemSerializer.Meta):
        fields = PledgeItemSerializer.Meta.fields + ['customer_name', 'pledge_status', 'due_date']
        read_only_fields = fields


class ItemLocationHistorySerializer(serializers.ModelSerializer):
    barcode = serializers.CharField(source='item.barcode', read_only=True)
    moved_by_username = serializers.CharField(source='moved_by.username', read_only=True, default=None)

    class Meta:
        model = ItemLocationHistory
        fields = [
            'id', 'item', 'barcode', 'from_slot', 'to_slot', 'from_location', 'to_location',
            'reason', 'moved_by', 'moved_by_username', 'moved_at'
        ]
        read_only_fields = fields


class UpdateLocationSerializer(serializers.Serializer):
    slot_id = serializers.IntegerField()
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
