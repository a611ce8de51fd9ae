from decimal import Decimal

from rest_framework import serializers

from pawnsys.customers.models import Customer
from pawnsys.storage.models import Slot
from .models import Category, Pledge, PledgeItem


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ['id', 'name', 'code', 'description', 'is_active', 'sort_order', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class PledgeItemSerializer(serializers.ModelSerializer):
    pledge_no = serializers.CharField(source='pledge.pledge_no', read_only=True)
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)
    purity_code = serializers.CharField(source='purity.code', read_only=True)
    purity_name = serializers.CharField(source='purity.name', read_only=True)
    location_code = serializers.CharField(source='slot.location_code', read_only=True, default=None)
    location_string = serializers.CharField(read_only=True)

    class Meta:
        model = PledgeItem
        fields = [
            'id', 'pledge', 'pledge_no', 'item_no', 'barcode', 'category', 'category_name',
            'purity', 'purity_code', 'purity_name', 'gross_weight', 'stone_deduction_type',
            'stone_deduction_value', 'net_weight', 'price_per_gram', 'gross_value',
            'deduction_amount', 'net_value', 'description', 'remarks',
            'slot', 'location_code', 'location_string', 'location_assigned_at',
            'status', 'released_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PledgeListSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    customer_ic = serializers.CharField(source='customer.formatted_ic', read_only=True)
    customer_phone = serializers.CharField(source='customer.phone', read_only=True)
    item_count = serializers.SerializerMethodField()
    effective_status = serializers.CharField(read_only=True)
    days_overdue = serializers.SerializerMethodField()

    class Meta:
        model = Pledge
        fields = [
            'id', 'pledge_no', 'receipt_no', 'customer', 'customer_name', 'customer_ic',
            'customer_phone', 'item_count', 'total_net_weight', 'net_value', 'loan_amount',
            'pledge_date', 'due_date', 'grace_end_date', 'status', 'effective_status',
            'days_overdue', 'renewal_count', 'created_at'
        ]

    def get_item_count(self, obj):
        # Prefer the annotation when the view provides one
        count = getattr(obj, 'item_count', None)
        if count is not None:
            return count
        return obj.items.count()

    def get_days_overdue(self, obj):
        return obj.days_overdue()


class PledgeSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.name', read_only=True)
    customer_no = serializers.CharField(source='customer.customer_no', read_only=True)
    customer_ic = serializers.CharField(source='customer.formatted_ic', read_only=True)
    customer_phone = serializers.CharField(source='customer.phone', read_only=True)
    items = PledgeItemSerializer(many=True, read_only=True)
    effective_status = serializers.CharField(read_only=True)
    months_elapsed = serializers.SerializerMethodField()
    days_overdue = serializers.SerializerMethodField()
    in_grace_period = serializers.SerializerMethodField()
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)
    cancelled_by_username = serializers.CharField(source='cancelled_by.username', read_only=True, default=None)

    class Meta:
        model = Pledge
        fields = [
            'id', 'pledge_no', 'receipt_no', 'customer', 'customer_no', 'customer_name',
            'customer_ic', 'customer_phone', 'items',
            'total_gross_weight', 'total_net_weight', 'gross_value', 'total_deduction', 'net_value',
            'loan_percentage', 'loan_amount', 'interest_rate', 'interest_rate_extended',
            'interest_rate_overdue', 'pledge_date', 'due_date', 'grace_end_date',
            'gold_price_999', 'gold_price_916', 'gold_price_source',
            'status', 'effective_status', 'months_elapsed', 'days_overdue', 'in_grace_period',
            'renewal_count', 'receipt_print_count',
            'cancelled_at', 'cancelled_by', 'cancelled_by_username', 'cancellation_reason',
            'notes', 'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_months_elapsed(self, obj):
        return obj.months_elapsed()

    def get_days_overdue(self, obj):
        return obj.days_overdue()

    def get_in_grace_period(self, obj):
        return obj.is_in_grace_period()


class PledgeItemInputSerializer(serializers.Serializer):
    """One item as entered at the counter"""
    category = serializers.PrimaryKeyRelatedField(queryset=Category.objects.filter(is_active=True), required=False, allow_null=True)
    purity_id = serializers.IntegerField(required=False)
    purity_code = serializers.CharField(required=False, max_length=10)
    gross_weight = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0.001'))
    stone_deduction_type = serializers.ChoiceField(choices=PledgeItem.DEDUCTION_TYPE_CHOICES, default='none')
    stone_deduction_value = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0'), default=Decimal('0'))
    price_per_gram = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'), required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
    remarks = serializers.CharField(required=False, allow_blank=True, default='')
    slot = serializers.PrimaryKeyRelatedField(queryset=Slot.objects.all(), required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('purity_id') and not attrs.get('purity_code'):
            raise serializers.ValidationError({'purity_code': 'Purity is required'})
        if attrs['stone_deduction_type'] == 'percentage' and attrs['stone_deduction_value'] >= 100:
            raise serializers.ValidationError({'stone_deduction_value': 'Percentage deduction must be below 100'})
        if attrs['stone_deduction_type'] == 'grams' and attrs['stone_deduction_value'] >= attrs['gross_weight']:
            raise serializers.ValidationError({'stone_deduction_value': 'Deduction must be less than the gross weight'})
        return attrs


class ValuationSerializer(serializers.Serializer):
    items = PledgeItemInputSerializer(many=True, allow_empty=False)
    loan_percentage = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('1'), max_value=Decimal('100'))
    loan_amount = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)


class PledgeCreateSerializer(ValuationSerializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    pledge_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    def validate_items(self, value):
        slots = [item['slot'].pk for item in value if item.get('slot') is not None]
        if len(slots) != len(set(slots)):
            raise serializers.ValidationError('Two items cannot share one slot')
        return value


class StorageAssignmentSerializer(serializers.Serializer):
    item_id = serializers.IntegerField()
    slot_id = serializers.IntegerField()


class AssignStorageSerializer(serializers.Serializer):
    assignments = StorageAssignmentSerializer(many=True, allow_empty=False)


class CancelPledgeSerializer(serializers.Serializer):
    reason = serializers.CharField(required=True, allow_blank=False, max_length=500)
