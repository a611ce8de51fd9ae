import logging

from django.db.models import Q, Count
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.cache_utils import invalidate_cache_pattern, invalidate_pawn_caches, STORAGE_SUMMARY
from pawnsys.core.utils import create_audit_log, paginate
from .interest import InterestCalculator
from .label_generator import label_for_item
from .models import Category, Pledge, PledgeItem
from .serializers import (
    CategorySerializer, PledgeSerializer, PledgeListSerializer, PledgeItemSerializer,
    PledgeCreateSerializer, ValuationSerializer, AssignStorageSerializer, CancelPledgeSerializer,
)
from .services import PledgeError, create_pledge, value_items, assign_storage, cancel_pledge
from .utils import find_pledge, find_item_by_barcode
from .valuation import preview

logger = logging.getLogger('pawnsys.pledges')


# Category views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def category_list_create(request):
    if request.method == 'GET':
        categories = Category.objects.all()
        if request.query_params.get('active') == 'true':
            categories = categories.filter(is_active=True)
        return Response(CategorySerializer(categories, many=True).data)
    serializer = CategorySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def category_detail(request, pk):
    category = get_object_or_404(Category, pk=pk)
    if request.method == 'GET':
        return Response(CategorySerializer(category).data)
    if request.method in ('PUT', 'PATCH'):
        serializer = CategorySerializer(category, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if category.items.exists():
        return Response({'error': 'Category is used by pledge items; deactivate it instead'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    category.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Pledge views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def pledge_list_create(request):
    """
    List pledges or create a pledge with its items

    GET filters: status (comma separated, e.g. active,overdue), customer_id,
    search (pledge no, receipt no, customer name or IC), date_from, date_to
    """
    if request.method == 'GET':
        queryset = Pledge.objects.select_related('customer').annotate(item_count=Count('items'))

        status_param = request.query_params.get('status', '').strip()
        if status_param:
            statuses = [s.strip() for s in status_param.split(',') if s.strip()]
            queryset = queryset.filter(status__in=statuses)
        customer_id = request.query_params.get('customer_id')
        if customer_id:
            queryset = queryset.filter(customer_id=customer_id)
        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(pledge_no__icontains=search) | Q(receipt_no__icontains=search) |
                Q(customer__name__icontains=search) | Q(customer__ic_number__icontains=search.replace('-', ''))
            )
        date_from = request.query_params.get('date_from')
        if date_from:
            queryset = queryset.filter(pledge_date__gte=date_from)
        date_to = request.query_params.get('date_to')
        if date_to:
            queryset = queryset.filter(pledge_date__lte=date_to)

        return Response(paginate(request, queryset.order_by('-pledge_date', '-id'), PledgeListSerializer))

    serializer = PledgeCreateSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Pledge creation validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    data = serializer.validated_data
    try:
        pledge = create_pledge(
            customer=data['customer'],
            items_data=data['items'],
            loan_percentage=data['loan_percentage'],
            loan_amount=data.get('loan_amount'),
            user=request.user,
            pledge_date=data.get('pledge_date'),
            notes=data.get('notes', ''),
        )
    except PledgeError as e:
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    invalidate_pawn_caches()
    barcodes = list(pledge.items.values_list('barcode', flat=True))
    create_audit_log(
        request=request, action='pledge_create', model_name='Pledge', object_id=pledge.id,
        object_name=pledge.customer.name, object_reference=pledge.pledge_no,
        barcode=', '.join(barcodes),
        changes={'loan_amount': str(pledge.loan_amount), 'items': len(barcodes)},
    )
    logger.info(f"User {request.user.username} created pledge {pledge.pledge_no}")
    return Response(PledgeSerializer(pledge).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pledge_detail(request, pk):
    pledge = get_object_or_404(
        Pledge.objects.select_related('customer', 'created_by', 'cancelled_by'), pk=pk
    )
    return Response(PledgeSerializer(pledge).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pledge_lookup(request):
    """Find a pledge by pledge number, receipt number or item barcode (?q=)"""
    term = request.query_params.get('q', '').strip()
    if not term:
        return Response({'error': 'q parameter is required'}, status=status.HTTP_400_BAD_REQUEST)
    pledge = find_pledge(term)
    if pledge is None:
        return Response({'error': f'No pledge found for {term}'}, status=status.HTTP_404_NOT_FOUND)
    return Response(PledgeSerializer(pledge).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_lookup(request):
    """Find a pledge item by scanned barcode (?barcode=)"""
    item = find_item_by_barcode(request.query_params.get('barcode', ''))
    if item is None:
        return Response({'error': 'Item not found'}, status=status.HTTP_404_NOT_FOUND)
    return Response(PledgeItemSerializer(item).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pledge_calculate(request):
    """Valuation preview for items before the pledge is saved"""
    serializer = ValuationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    try:
        valued, source = value_items(data['items'])
    except PledgeError as e:
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    result = preview(valued, data['loan_percentage'], data.get('loan_amount'))
    result['items'] = [
        {key: value for key, value in item.items() if key not in ('purity', 'category', 'slot')}
        for item in valued
    ]
    result['price_source'] = source
    if result['summary']['loan_amount'] > result['summary']['net_value']:
        result['warning'] = 'Loan amount exceeds net value'
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pledge_interest(request, pk):
    """Monthly interest schedule and today's redemption amount for a pledge"""
    pledge = get_object_or_404(Pledge, pk=pk)
    try:
        months = max(1, min(int(request.query_params.get('months', 6)), 24))
    except ValueError:
        months = 6
    calculator = InterestCalculator.for_pledge(pledge)
    return Response({
        'pledge_no': pledge.pledge_no,
        'principal': pledge.loan_amount,
        'rates': {
            'standard': calculator.standard_rate,
            'extended': calculator.extended_rate,
            'overdue': calculator.overdue_rate,
        },
        'breakdown': calculator.monthly_breakdown(pledge.loan_amount, months),
        'current': calculator.redemption(
            pledge.loan_amount, max(1, pledge.months_elapsed()), pledge.days_overdue()
        ),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pledge_assign_storage(request, pk):
    pledge = get_object_or_404(Pledge, pk=pk)
    serializer = AssignStorageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        items = assign_storage(pledge, serializer.validated_data['assignments'], user=request.user)
    except PledgeError as e:
        logger.warning(f"Storage assignment for {pledge.pledge_no} refused: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    invalidate_cache_pattern(STORAGE_SUMMARY)
    create_audit_log(
        request=request, action='storage_assign', model_name='Pledge', object_id=pledge.id,
        object_reference=pledge.pledge_no, barcode=', '.join(item.barcode for item in items),
        changes={item.barcode: item.slot.location_code for item in items},
    )
    return Response(PledgeItemSerializer(items, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def pledge_cancel(request, pk):
    pledge = get_object_or_404(Pledge, pk=pk)
    serializer = CancelPledgeSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    try:
        pledge = cancel_pledge(pledge, user=request.user, reason=serializer.validated_data['reason'])
    except PledgeError as e:
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    invalidate_pawn_caches()
    create_audit_log(
        request=request, action='pledge_cancel', model_name='Pledge', object_id=pledge.id,
        object_reference=pledge.pledge_no, changes={'reason': pledge.cancellation_reason},
    )
    logger.info(f"User {request.user.username} cancelled pledge {pledge.pledge_no}")
    return Response(PledgeSerializer(pledge).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pledge_labels(request, pk):
    """Barcode labels for every stored item of a pledge"""
    pledge = get_object_or_404(Pledge, pk=pk)
    items = pledge.items.select_related('category', 'purity', 'slot__box__vault').order_by('item_no')
    return Response({
        'pledge_no': pledge.pledge_no,
        'labels': [{'barcode': item.barcode, 'image': label_for_item(item)} for item in items],
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_label(request, pk):
    item = get_object_or_404(
        PledgeItem.objects.select_related('pledge', 'category', 'purity', 'slot__box__vault'), pk=pk
    )
    return Response({'barcode': item.barcode, 'image': label_for_item(item)})
