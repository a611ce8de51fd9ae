from decimal import Decimal
from rest_framework import serializers
from .models import Purity, GoldPrice, GoldPriceLog, MarginPreset


class PuritySerializer(serializers.ModelSerializer):
    class Meta:
        model = Purity
        fields = ['id', 'code', 'name', 'karat', 'percentage', 'is_active', 'sort_order']


class GoldPriceSerializer(serializers.ModelSerializer):
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = GoldPrice
        fields = [
            'id', 'price_date', 'price_999', 'price_916', 'price_875', 'price_750', 'price_585', 'price_375',
            'source', 'notes', 'created_by', 'created_by_username', 'created_at'
        ]
        read_only_fields = ['source', 'created_by', 'created_at']

    def validate_price_999(self, value):
        if value <= Decimal('0'):
            raise serializers.ValidationError('Price must be greater than zero')
        return value


class GoldPriceLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = GoldPriceLog
        fields = ['id', 'price_999', 'purity_prices', 'currency', 'source', 'fetched_at']


class MarginPresetSerializer(serializers.ModelSerializer):
    value = serializers.IntegerField(min_value=1, max_value=100)

    class Meta:
        model = MarginPreset
        fields = ['id', 'value', 'label', 'is_default', 'is_active', 'sort_order', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']


class ItemValueSerializer(serializers.Serializer):
    weight = serializers.DecimalField(max_digits=10, decimal_places=3, min_value=Decimal('0.001'))
    purity_code = serializers.CharField(max_length=10)
    custom_price = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True, min_value=Decimal('0.01'))


class PriceSourceSerializer(serializers.Serializer):
    source = serializers.ChoiceField(choices=['api', 'manual'])
