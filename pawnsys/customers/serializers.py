from django.utils import timezone
from rest_framework import serializers

from pawnsys.core.utils import generate_sequence_number, pawn_config
from .ic import clean_ic, is_valid_mykad, parse_mykad
from .models import Customer


class CustomerListSerializer(serializers.ModelSerializer):
    formatted_ic = serializers.CharField(read_only=True)
    is_active = serializers.BooleanField(read_only=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'customer_no', 'name', 'ic_number', 'formatted_ic', 'ic_type', 'phone',
            'active_pledges', 'total_loan_amount', 'is_blacklisted', 'is_active', 'created_at'
        ]


class CustomerSerializer(serializers.ModelSerializer):
    formatted_ic = serializers.CharField(read_only=True)
    age = serializers.IntegerField(read_only=True)
    is_active = serializers.BooleanField(read_only=True)
    created_by_username = serializers.CharField(source='created_by.username', read_only=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'customer_no', 'name', 'ic_number', 'formatted_ic', 'ic_type', 'gender',
            'date_of_birth', 'age', 'nationality', 'occupation',
            'phone', 'country_code', 'whatsapp', 'phone_alt', 'email',
            'address_line1', 'address_line2', 'city', 'state', 'postcode',
            'ic_front_photo', 'ic_back_photo', 'selfie_photo',
            'total_pledges', 'active_pledges', 'total_loan_amount',
            'is_blacklisted', 'blacklist_reason', 'is_active', 'notes',
            'created_by', 'created_by_username', 'created_at', 'updated_at'
        ]
        read_only_fields = [
            'customer_no', 'total_pledges', 'active_pledges', 'total_loan_amount',
            'is_blacklisted', 'blacklist_reason', 'created_by', 'created_at', 'updated_at'
        ]

    def validate_name(self, value):
        value = value.strip()
        if len(value) < 3:
            raise serializers.ValidationError('Name must be at least 3 characters')
        return value

    def validate(self, attrs):
        ic_type = attrs.get('ic_type', getattr(self.instance, 'ic_type', 'mykad'))
        if 'ic_number' in attrs:
            attrs['ic_number'] = clean_ic(attrs['ic_number']).upper()
            if ic_type == 'mykad' and not is_valid_mykad(attrs['ic_number']):
                raise serializers.ValidationError({'ic_number': 'Invalid IC format (12 digits required)'})
            duplicate = Customer.objects.filter(ic_number=attrs['ic_number'])
            if self.instance is not None:
                duplicate = duplicate.exclude(pk=self.instance.pk)
            if duplicate.exists():
                raise serializers.ValidationError({'ic_number': 'Customer with this IC already exists'})

            if ic_type == 'mykad':
                # Fill anything the clerk left blank from the MyKad number
                parsed = parse_mykad(attrs['ic_number'])
                for field in ('date_of_birth', 'gender', 'state', 'city', 'postcode'):
                    if not attrs.get(field) and parsed[field]:
                        attrs[field] = parsed[field]
        return attrs

    def create(self, validated_data):
        prefix = f"{pawn_config('customer_no_prefix', default='CUS')}-{timezone.now().year}"
        validated_data['customer_no'] = generate_sequence_number(Customer, 'customer_no', prefix, width=5)
        return super().create(validated_data)


class BlacklistSerializer(serializers.Serializer):
    is_blacklisted = serializers.BooleanField()
    reason = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        if attrs['is_blacklisted'] and not attrs.get('reason', '').strip():
            raise serializers.ValidationError({'reason': 'A reason is required to blacklist a customer'})
        return attrs
