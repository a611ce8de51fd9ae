from rest_framework import serializers

from .models import HardwareDevice


class HardwareDeviceSerializer(serializers.ModelSerializer):
    type_label = serializers.CharField(source='get_type_display', read_only=True)
    connection_label = serializers.CharField(source='get_connection_display', read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True, default=None)
    updated_by_username = serializers.CharField(source='updated_by.username', read_only=True, default=None)
    port = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=65535)

    class Meta:
        model = HardwareDevice
        fields = [
            'id', 'name', 'type', 'type_label', 'brand', 'model', 'connection', 'connection_label',
            'paper_size', 'description', 'ip_address', 'port', 'settings', 'is_default', 'is_active',
            'status', 'last_tested_at', 'created_by', 'created_by_username', 'updated_by',
            'updated_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = ['status', 'last_tested_at', 'created_by', 'updated_by', 'created_at', 'updated_at']

    def validate_settings(self, value):
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise serializers.ValidationError("Settings must be an object")
        return value

    def validate(self, data):
        connection = data.get('connection', getattr(self.instance, 'connection', 'usb'))
        ip_address = data.get('ip_address', getattr(self.instance, 'ip_address', None))
        if connection in HardwareDevice.NETWORK_CONNECTIONS and not ip_address:
            raise serializers.ValidationError({'ip_address': 'Network devices need an IP address'})
        return data


class DeviceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=HardwareDevice.STATUS_CHOICES)
