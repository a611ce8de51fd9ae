from decimal import Decimal

from rest_framework import serializers

from .models import PAYMENT_METHOD_CHOICES, Renewal, RenewalInterestBreakdown, Redemption, Reprint


class RenewalInterestBreakdownSerializer(serializers.ModelSerializer):
    class Meta:
        model = RenewalInterestBreakdown
        fields = ['month_number', 'interest_rate', 'interest_amount']


class RenewalSerializer(serializers.ModelSerializer):
    pledge_no = serializers.CharField(source='pledge.pledge_no', read_only=True)
    customer_name = serializers.CharField(source='pledge.customer.name', read_only=True)
    interest_breakdown = RenewalInterestBreakdownSerializer(many=True, read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Renewal
        fields = [
            'id', 'renewal_no', 'pledge', 'pledge_no', 'customer_name', 'renewal_months',
            'previous_due_date', 'new_due_date', 'new_grace_end_date', 'principal',
            'interest_amount', 'handling_fee', 'total_payable', 'payment_method',
            'cash_amount', 'transfer_amount', 'reference_no', 'notes', 'interest_breakdown',
            'created_by', 'created_by_username', 'created_at'
        ]
        read_only_fields = fields


class RedemptionSerializer(serializers.ModelSerializer):
    pledge_no = serializers.CharField(source='pledge.pledge_no', read_only=True)
    customer_name = serializers.CharField(source='pledge.customer.name', read_only=True)
    barcodes = serializers.SerializerMethodField()
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Redemption
        fields = [
            'id', 'redemption_no', 'pledge', 'pledge_no', 'customer_name', 'is_partial', 'items',
            'barcodes', 'principal', 'months_elapsed', 'days_overdue', 'regular_interest',
            'overdue_interest', 'total_interest', 'handling_fee', 'total_payable',
            'payment_method', 'cash_amount', 'transfer_amount', 'amount_paid', 'reference_no',
            'notes', 'created_by', 'created_by_username', 'created_at'
        ]
        read_only_fields = fields

    def get_barcodes(self, obj):
        return [item.barcode for item in obj.items.all()]


class ReprintSerializer(serializers.ModelSerializer):
    pledge_no = serializers.CharField(source='pledge.pledge_no', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)

    class Meta:
        model = Reprint
        fields = ['id', 'pledge', 'pledge_no', 'print_number', 'is_free', 'charge', 'reason',
                  'created_by', 'created_by_username', 'created_at']
        read_only_fields = fields


class PaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_CHOICES, default='cash')
    cash_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
    transfer_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'), default=Decimal('0'))
    reference_no = serializers.CharField(required=False, allow_blank=True, max_length=50, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        method = attrs['payment_method']
        if method == 'cash' and attrs['transfer_amount'] > 0:
            raise serializers.ValidationError({'transfer_amount': 'Cash payments cannot include a transfer amount'})
        if method == 'transfer' and attrs['cash_amount'] > 0:
            raise serializers.ValidationError({'cash_amount': 'Transfer payments cannot include a cash amount'})
        if method in ('transfer', 'partial') and attrs['transfer_amount'] > 0 and not attrs.get('reference_no'):
            raise serializers.ValidationError({'reference_no': 'Transfer reference is required'})
        return attrs


class RenewalCalculateSerializer(serializers.Serializer):
    pledge_id = serializers.IntegerField()
    renewal_months = serializers.IntegerField(min_value=1, max_value=6)


class RenewalCreateSerializer(PaymentSerializer, RenewalCalculateSerializer):
    pass


class RedemptionCalculateSerializer(serializers.Serializer):
    pledge_id = serializers.IntegerField()
    item_ids = serializers.ListField(child=serializers.IntegerField(), required=False, allow_empty=True)


class RedemptionCreateSerializer(PaymentSerializer, RedemptionCalculateSerializer):
    pass


class ReprintCreateSerializer(serializers.Serializer):
    pledge_id = serializers.IntegerField()
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
