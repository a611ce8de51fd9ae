import logging

from django.contrib.auth import get_user_model
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated, IsAdminUser, AllowAny
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import AuthenticationFailed, InvalidToken, TokenError
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer, TokenRefreshSerializer
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .models import Setting, AuditLog
from .serializers import UserSerializer, UserCreateSerializer, SettingSerializer, AuditLogSerializer
from .utils import create_audit_log, paginate

User = get_user_model()
logger = logging.getLogger('pawnsys.core')

STAFF_ONLY = {'error': 'Only administrators can change settings'}


def _tokens_for(user):
    refresh = PawnsysTokenObtainPairSerializer.get_token(user)
    return {'access': str(refresh.access_token), 'refresh': str(refresh)}


class PawnsysTokenObtainPairSerializer(TokenObtainPairSerializer):
    """Login that returns the counter user alongside the token pair"""

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token['username'] = user.username
        token['is_staff'] = user.is_staff
        token['groups'] = list(user.groups.values_list('name', flat=True))
        return token

    def validate(self, attrs):
        data = super().validate(attrs)
        if not self.user.is_active:
            raise AuthenticationFailed('User account is disabled.')
        logger.info(f"User {self.user.username} logged in")
        data['user'] = UserSerializer(self.user).data
        return data


class PawnsysTokenObtainPairView(TokenObtainPairView):
    serializer_class = PawnsysTokenObtainPairSerializer


class PawnsysTokenRefreshSerializer(TokenRefreshSerializer):
    def validate(self, attrs):
        try:
            return super().validate(attrs)
        except User.DoesNotExist:
            raise InvalidToken('Token is invalid. User no longer exists.')
        except TokenError as e:
            raise InvalidToken(str(e))


class PawnsysTokenRefreshView(TokenRefreshView):
    serializer_class = PawnsysTokenRefreshSerializer


@api_view(['POST'])
@permission_classes([AllowAny])
def register(request):
    """Self-service account creation for counter staff"""
    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    user = serializer.save()
    logger.info(f"Registered user {user.username}")
    return Response({'user': UserSerializer(user).data, **_tokens_for(user)}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_me(request):
    data = UserSerializer(request.user).data
    data['is_admin'] = request.user.is_superuser or request.user.is_staff or 'Admin' in data['groups']
    return Response(data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_list_create(request):
    if request.method == 'GET':
        users = User.objects.prefetch_related('groups').order_by('username')
        if request.query_params.get('active') in ('true', 'false'):
            users = users.filter(is_active=request.query_params['active'] == 'true')
        return Response(UserSerializer(users, many=True).data)

    serializer = UserCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    user = serializer.save()
    create_audit_log(request=request, action='create', model_name='User', object_id=user.id, object_name=user.username)
    return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminUser])
def user_detail(request, pk):
    """
    Read, edit or remove a staff account

    Accounts that appear in the audit log are deactivated rather than
    deleted, so pledge and payment history keeps its author.
    """
    user = get_object_or_404(User, pk=pk)

    if request.method == 'GET':
        return Response(UserSerializer(user).data)

    if request.method == 'PATCH':
        serializer = UserSerializer(user, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data)

    if user.pk == request.user.pk:
        return Response({'error': 'You cannot remove your own account'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    if user.audit_logs.exists():
        user.is_active = False
        user.save(update_fields=['is_active', 'updated_at'])
        create_audit_log(request=request, action='update', model_name='User', object_id=user.id,
                         object_name=user.username, changes={'is_active': False})
        logger.info(f"Deactivated user {user.username} (has audit history)")
        return Response(UserSerializer(user).data)

    logger.info(f"Deleted user {user.username}")
    user.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def setting_list_create(request):
    if request.method == 'GET':
        return Response(SettingSerializer(Setting.objects.order_by('key'), many=True).data)

    if not request.user.is_staff:
        return Response(STAFF_ONLY, status=status.HTTP_403_FORBIDDEN)
    serializer = SettingSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    setting = serializer.save()
    create_audit_log(request=request, action='create', model_name='Setting', object_id=setting.id,
                     object_name=setting.key, changes={'value': setting.value})
    return Response(serializer.data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def setting_by_key(request, key):
    setting = get_object_or_404(Setting, key=key)

    if request.method == 'GET':
        return Response(SettingSerializer(setting).data)

    if not request.user.is_staff:
        return Response(STAFF_ONLY, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        create_audit_log(request=request, action='delete', model_name='Setting', object_id=setting.id,
                         object_name=key, changes={'value': setting.value})
        setting.delete()
        return Response(status=status.HTTP_204_NO_CONTENT)

    previous = setting.value
    serializer = SettingSerializer(setting, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    serializer.save()
    if previous != setting.value:
        logger.info(f"Setting {key} changed by {request.user.username}: {previous!r} -> {setting.value!r}")
        create_audit_log(request=request, action='update', model_name='Setting', object_id=setting.id,
                         object_name=key, changes={'value': {'from': previous, 'to': setting.value}})
    return Response(serializer.data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_list(request):
    """
    Paged audit trail, newest first

    Filters: action, model, reference (pledge/renewal number), barcode,
    user (username), date_from, date_to. Non-staff users only see their
    own entries.
    """
    params = request.query_params
    logs = AuditLog.objects.select_related('user')
    if not request.user.is_staff:
        logs = logs.filter(user=request.user)
    elif params.get('user'):
        logs = logs.filter(user__username=params['user'])

    if params.get('action'):
        logs = logs.filter(action=params['action'])
    if params.get('model'):
        logs = logs.filter(model_name=params['model'])
    if params.get('reference'):
        logs = logs.filter(object_reference__icontains=params['reference'])
    if params.get('barcode'):
        logs = logs.filter(barcode__icontains=params['barcode'].strip().upper())
    if params.get('date_from'):
        logs = logs.filter(created_at__date__gte=params['date_from'])
    if params.get('date_to'):
        logs = logs.filter(created_at__date__lte=params['date_to'])

    return Response(paginate(request, logs.order_by('-created_at'), AuditLogSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def audit_log_detail(request, pk):
    entry = get_object_or_404(AuditLog.objects.select_related('user'), pk=pk)
    if not request.user.is_staff and entry.user_id != request.user.id:
        return Response({'error': 'Permission denied'}, status=status.HTTP_403_FORBIDDEN)
    return Response(AuditLogSerializer(entry).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def global_search(request):
    """Search customers, pledges and pledge items"""
    query = request.query_params.get('q', '').strip()

    if not query:
        return Response({'customers': [], 'pledges': [], 'items': []})

    from pawnsys.customers.models import Customer
    from pawnsys.customers.serializers import CustomerListSerializer
    from pawnsys.pledges.models import Pledge, PledgeItem
    from pawnsys.pledges.serializers import PledgeListSerializer, PledgeItemSerializer

    digits = ''.join(ch for ch in query if ch.isdigit())
    customer_q = Q(name__icontains=query) | Q(phone__icontains=query) | Q(customer_no__icontains=query)
    if digits:
        customer_q |= Q(ic_number__icontains=digits)
    customers = Customer.objects.filter(customer_q)[:20]

    pledges = Pledge.objects.select_related('customer').filter(
        Q(pledge_no__icontains=query) | Q(receipt_no__icontains=query)
    )[:20]

    items = PledgeItem.objects.select_related('pledge', 'category', 'purity', 'slot__box__vault').filter(
        barcode__icontains=query
    )[:20]

    return Response({
        'customers': CustomerListSerializer(customers, many=True).data,
        'pledges': PledgeListSerializer(pledges, many=True).data,
        'items': PledgeItemSerializer(items, many=True).data,
    })
