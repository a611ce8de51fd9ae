import logging

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.cache_utils import invalidate_pawn_caches
from pawnsys.core.utils import create_audit_log, paginate
from pawnsys.pledges.models import Pledge
from pawnsys.pledges.services import PledgeError
from . import services
from .models import Renewal, Redemption, Reprint
from .serializers import (
    RenewalSerializer, RedemptionSerializer, ReprintSerializer,
    RenewalCalculateSerializer, RenewalCreateSerializer,
    RedemptionCalculateSerializer, RedemptionCreateSerializer, ReprintCreateSerializer,
)

logger = logging.getLogger('pawnsys.transactions')


def _outstanding_pledge(pledge_id):
    return get_object_or_404(
        Pledge.objects.select_related('customer'), pk=pledge_id, status__in=Pledge.OUTSTANDING_STATUSES
    )


def _filter_by_date(queryset, request):
    date_from = request.query_params.get('date_from')
    if date_from:
        queryset = queryset.filter(created_at__date__gte=date_from)
    date_to = request.query_params.get('date_to')
    if date_to:
        queryset = queryset.filter(created_at__date__lte=date_to)
    pledge_id = request.query_params.get('pledge_id')
    if pledge_id:
        queryset = queryset.filter(pledge_id=pledge_id)
    return queryset


# Renewal views
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def renewal_calculate(request):
    """Quote for renewing an active or overdue pledge by 1-6 months"""
    serializer = RenewalCalculateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    pledge = _outstanding_pledge(serializer.validated_data['pledge_id'])
    try:
        quote = services.calculate_renewal(pledge, serializer.validated_data['renewal_months'])
    except PledgeError as e:
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    return Response(quote)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def renewal_list_create(request):
    if request.method == 'GET':
        renewals = _filter_by_date(
            Renewal.objects.select_related('pledge__customer', 'created_by').prefetch_related('interest_breakdown'),
            request,
        )
        return Response(paginate(request, renewals, RenewalSerializer))

    serializer = RenewalCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    pledge = _outstanding_pledge(data['pledge_id'])
    try:
        renewal = services.create_renewal(
            pledge, data['renewal_months'],
            payment_method=data['payment_method'],
            cash_amount=data['cash_amount'],
            transfer_amount=data['transfer_amount'],
            reference_no=data.get('reference_no', ''),
            notes=data.get('notes', ''),
            user=request.user,
        )
    except PledgeError as e:
        logger.warning(f"Renewal of {pledge.pledge_no} refused: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    invalidate_pawn_caches()
    create_audit_log(
        request=request, action='renewal', model_name='Renewal', object_id=renewal.id,
        object_name=pledge.customer.name, object_reference=renewal.renewal_no,
        changes={
            'pledge_no': pledge.pledge_no,
            'months': renewal.renewal_months,
            'previous_due_date': str(renewal.previous_due_date),
            'new_due_date': str(renewal.new_due_date),
            'total_payable': str(renewal.total_payable),
        },
    )
    logger.info(f"User {request.user.username} renewed {pledge.pledge_no} ({renewal.renewal_no})")
    return Response(RenewalSerializer(renewal).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def renewal_detail(request, pk):
    renewal = get_object_or_404(Renewal.objects.select_related('pledge__customer', 'created_by'), pk=pk)
    return Response(RenewalSerializer(renewal).data)


# Redemption views
@api_view(['POST'])
@permission_classes([IsAuthenticated])
def redemption_calculate(request):
    """Amount to redeem a pledge, or some of its items"""
    serializer = RedemptionCalculateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    pledge = _outstanding_pledge(serializer.validated_data['pledge_id'])
    try:
        quote = services.calculate_redemption(pledge, serializer.validated_data.get('item_ids'))
    except PledgeError as e:
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    return Response(quote)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def redemption_list_create(request):
    if request.method == 'GET':
        redemptions = _filter_by_date(
            Redemption.objects.select_related('pledge__customer', 'created_by').prefetch_related('items'),
            request,
        )
        return Response(paginate(request, redemptions, RedemptionSerializer))

    serializer = RedemptionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    pledge = _outstanding_pledge(data['pledge_id'])
    try:
        redemption = services.create_redemption(
            pledge, data.get('item_ids'),
            payment_method=data['payment_method'],
            cash_amount=data['cash_amount'],
            transfer_amount=data['transfer_amount'],
            reference_no=data.get('reference_no', ''),
            notes=data.get('notes', ''),
            user=request.user,
        )
    except PledgeError as e:
        logger.warning(f"Redemption of {pledge.pledge_no} refused: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    invalidate_pawn_caches()
    barcodes = [item.barcode for item in redemption.items.all()]
    create_audit_log(
        request=request, action='redemption', model_name='Redemption', object_id=redemption.id,
        object_name=pledge.customer.name, object_reference=redemption.redemption_no,
        barcode=', '.join(barcodes),
        changes={
            'pledge_no': pledge.pledge_no,
            'is_partial': redemption.is_partial,
            'total_payable': str(redemption.total_payable),
        },
    )
    logger.info(f"User {request.user.username} redeemed {len(barcodes)} items of {pledge.pledge_no}")
    return Response(RedemptionSerializer(redemption).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def redemption_detail(request, pk):
    redemption = get_object_or_404(Redemption.objects.select_related('pledge__customer', 'created_by'), pk=pk)
    return Response(RedemptionSerializer(redemption).data)


# Reprint views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def reprint_list_create(request):
    """Receipt prints; POST records a print and returns its charge"""
    if request.method == 'GET':
        reprints = _filter_by_date(Reprint.objects.select_related('pledge', 'created_by'), request)
        return Response(paginate(request, reprints, ReprintSerializer))

    serializer = ReprintCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    pledge = get_object_or_404(Pledge, pk=serializer.validated_data['pledge_id'])
    reprint = services.create_reprint(pledge, serializer.validated_data.get('reason', ''), user=request.user)
    create_audit_log(
        request=request, action='reprint', model_name='Reprint', object_id=reprint.id,
        object_reference=pledge.pledge_no,
        changes={'print_number': reprint.print_number, 'charge': str(reprint.charge)},
    )
    return Response(ReprintSerializer(reprint).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def reprint_quote(request, pledge_id):
    pledge = get_object_or_404(Pledge, pk=pledge_id)
    charge = services.reprint_charge(pledge)
    return Response({
        'pledge_no': pledge.pledge_no,
        'print_count': pledge.receipt_print_count,
        'is_free': charge == 0,
        'charge': charge,
    })
