from rest_framework import serializers

from .models import Reconciliation, ReconciliationItem


class ReconciliationItemSerializer(serializers.ModelSerializer):
    pledge_no = serializers.CharField(source='pledge_item.pledge.pledge_no', read_only=True, default=None)
    customer_name = serializers.CharField(source='pledge_item.pledge.customer.name', read_only=True, default=None)
    category_name = serializers.CharField(source='pledge_item.category.name', read_only=True, default=None)
    location_code = serializers.CharField(source='pledge_item.slot.location_code', read_only=True, default=None)
    scanned_by_username = serializers.CharField(source='scanned_by.username', read_only=True, default=None)

    class Meta:
        model = ReconciliationItem
        fields = [
            'id', 'barcode', 'scanned_value', 'status', 'pledge_item', 'pledge_no', 'customer_name',
            'category_name', 'location_code', 'scanned_at', 'scanned_by', 'scanned_by_username', 'notes'
        ]
        read_only_fields = fields


class ReconciliationSerializer(serializers.ModelSerializer):
    progress = serializers.IntegerField(read_only=True)
    is_expired = serializers.BooleanField(read_only=True)
    started_by_username = serializers.CharField(source='started_by.username', read_only=True, default=None)
    completed_by_username = serializers.CharField(source='completed_by.username', read_only=True, default=None)

    class Meta:
        model = Reconciliation
        fields = [
            'id', 'reconciliation_no', 'reconciliation_type', 'expected_items', 'scanned_items',
            'matched_items', 'missing_items', 'unexpected_items', 'progress', 'status', 'outcome',
            'started_at', 'expires_at', 'is_expired', 'completed_at',
            'started_by', 'started_by_username', 'completed_by', 'completed_by_username', 'notes'
        ]
        read_only_fields = fields


class ReconciliationDetailSerializer(ReconciliationSerializer):
    items = ReconciliationItemSerializer(many=True, read_only=True)

    class Meta(ReconciliationSerializer.Meta):
        fields = ReconciliationSerializer.Meta.fields + ['items']
        read_only_fields = fields


class StartReconciliationSerializer(serializers.Serializer):
    reconciliation_type = serializers.ChoiceField(choices=Reconciliation.TYPE_CHOICES, default='daily')
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    force_start = serializers.BooleanField(required=False, default=False)


class ScanSerializer(serializers.Serializer):
    barcode = serializers.CharField(max_length=100)
    notes = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')


class CompleteReconciliationSerializer(serializers.Serializer):
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class CancelReconciliationSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')
