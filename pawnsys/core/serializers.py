from decimal import Decimal, InvalidOperation

from django.contrib.auth.password_validation import validate_password
from rest_framework import serializers

from .models import User, Setting, AuditLog


def _choice(*allowed):
    def check(value):
        if value not in allowed:
            raise serializers.ValidationError(f"Must be one of: {', '.join(allowed)}")
        return value
    return check


def _non_negative_amount(value):
    try:
        amount = Decimal(value)
    except (InvalidOperation, ValueError):
        raise serializers.ValidationError('Must be a number')
    if amount < 0:
        raise serializers.ValidationError('Must not be negative')
    return value


# Settings that pricing and fee calculations read at runtime
SETTING_VALIDATORS = {
    'handling_charge_type': _choice('fixed', 'percentage'),
    'handling_charge_value': _non_negative_amount,
    'handling_charge_min': _non_negative_amount,
    'gold_price_source': _choice('api', 'manual'),
}


class UserSerializer(serializers.ModelSerializer):
    groups = serializers.SlugRelatedField(many=True, read_only=True, slug_field='name')
    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = [
            'id', 'username', 'full_name', 'first_name', 'last_name', 'email', 'phone',
            'groups', 'is_active', 'is_staff', 'created_at',
        ]
        read_only_fields = ['is_staff', 'created_at']

    def get_full_name(self, obj):
        return obj.get_full_name() or obj.username


class UserCreateSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, validators=[validate_password])
    password_confirm = serializers.CharField(write_only=True)

    class Meta:
        model = User
        fields = ['username', 'first_name', 'last_name', 'email', 'phone', 'password', 'password_confirm']

    def validate(self, attrs):
        if attrs['password'] != attrs.pop('password_confirm'):
            raise serializers.ValidationError({'password_confirm': 'Passwords do not match'})
        return attrs

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class SettingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Setting
        fields = ['id', 'key', 'value', 'description', 'updated_at']

    def validate(self, attrs):
        key = attrs.get('key') or getattr(self.instance, 'key', None)
        if 'value' in attrs:
            attrs['value'] = attrs['value'].strip()
            validator = SETTING_VALIDATORS.get(key)
            if validator:
                try:
                    validator(attrs['value'])
                except serializers.ValidationError as exc:
                    raise serializers.ValidationError({'value': exc.detail})
        return attrs


class AuditLogSerializer(serializers.ModelSerializer):
    username = serializers.CharField(source='user.username', default=None, read_only=True)
    action_display = serializers.CharField(source='get_action_display', read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            'id', 'created_at', 'username', 'action', 'action_display', 'model_name', 'object_id',
            'object_name', 'object_reference', 'barcode', 'changes', 'ip_address',
        ]
