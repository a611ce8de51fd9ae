import csv
import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, Sum
from django.http import HttpResponse
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.cache_utils import invalidate_cache_pattern, STORAGE_SUMMARY
from pawnsys.core.utils import create_audit_log, paginate
from pawnsys.pledges.models import PledgeItem
from pawnsys.pledges.services import PledgeError, place_item
from pawnsys.storage.models import Slot
from .filters import PledgeItemFilter
from .models import ItemLocationHistory
from .serializers import InventoryItemSerializer, ItemLocationHistorySerializer, UpdateLocationSerializer

logger = logging.getLogger('pawnsys.inventory')

CSV_COLUMNS = [
    'Barcode', 'Pledge No', 'Customer', 'Category', 'Purity', 'Gross Weight (g)', 'Net Weight (g)',
    'Net Value', 'Location', 'Item Status', 'Pledge Status', 'Pledge Date', 'Due Date',
]


def _filtered_items(request):
    queryset = PledgeItem.objects.select_related(
        'pledge__customer', 'category', 'purity', 'slot__box__vault'
    )
    return PledgeItemFilter(request.query_params, queryset=queryset).qs.order_by('-pledge__pledge_date', 'barcode')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_list(request):
    """
    Pledge items in the vault, filtered

    Query params: search, status (comma list), pledge_status, category,
    purity (code), vault, box, unassigned, date_from, date_to, page, limit
    """
    return Response(paginate(request, _filtered_items(request), InventoryItemSerializer))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_item_detail(request, pk):
    item = get_object_or_404(
        PledgeItem.objects.select_related('pledge__customer', 'category', 'purity', 'slot__box__vault'), pk=pk
    )
    data = InventoryItemSerializer(item).data
    data['location_history'] = ItemLocationHistorySerializer(item.location_history.select_related('moved_by')[:20], many=True).data
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def items_by_location(request):
    """Items currently stored in a vault, box or slot (vault_id, box_id or slot_id)"""
    vault_id = request.query_params.get('vault_id')
    box_id = request.query_params.get('box_id')
    slot_id = request.query_params.get('slot_id')
    if not (vault_id or box_id or slot_id):
        return Response({'error': 'vault_id, box_id or slot_id is required'}, status=status.HTTP_400_BAD_REQUEST)

    items = PledgeItem.objects.select_related('pledge__customer', 'category', 'purity', 'slot__box__vault').filter(slot__isnull=False)
    if slot_id:
        items = items.filter(slot_id=slot_id)
    elif box_id:
        items = items.filter(slot__box_id=box_id)
    else:
        items = items.filter(slot__box__vault_id=vault_id)
    items = items.order_by('slot__box__box_number', 'slot__slot_number')
    return Response(InventoryItemSerializer(items, many=True).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def update_item_location(request, pk):
    """Move a stored item to another slot"""
    item = get_object_or_404(PledgeItem.objects.select_related('pledge', 'slot__box__vault'), pk=pk)
    serializer = UpdateLocationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    slot = get_object_or_404(Slot.objects.select_related('box__vault'), pk=serializer.validated_data['slot_id'])
    previous = item.slot.location_code if item.slot_id else None
    try:
        with transaction.atomic():
            place_item(item, slot, user=request.user, reason=serializer.validated_data['reason'] or 'Location updated')
    except PledgeError as e:
        logger.warning(f"Move of {item.barcode} to {slot.location_code} refused: {str(e)}")
        return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    invalidate_cache_pattern(STORAGE_SUMMARY)
    create_audit_log(
        request=request, action='location_change', model_name='PledgeItem', object_id=item.id,
        object_reference=item.pledge.pledge_no, barcode=item.barcode,
        changes={'from': previous, 'to': slot.location_code},
    )
    logger.info(f"User {request.user.username} moved {item.barcode} {previous or '-'} -> {slot.location_code}")
    return Response(InventoryItemSerializer(item).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def item_location_history(request, pk):
    item = get_object_or_404(PledgeItem, pk=pk)
    history = item.location_history.select_related('moved_by')
    return Response(ItemLocationHistorySerializer(history, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_summary(request):
    """Item counts, weights and values for stored items, by category and purity"""
    stored = PledgeItem.objects.filter(status='stored')
    totals = stored.aggregate(count=Count('id'), weight=Sum('net_weight'), value=Sum('net_value'))

    def grouped(field, label):
        rows = stored.order_by().values(field).annotate(
            count=Count('id'), weight=Sum('net_weight'), value=Sum('net_value')
        ).order_by(field)
        return [
            {label: row[field], 'count': row['count'], 'total_weight': row['weight'], 'total_value': row['value']}
            for row in rows
        ]

    return Response({
        'total_items': totals['count'] or 0,
        'total_weight': totals['weight'] or Decimal('0.000'),
        'total_value': totals['value'] or Decimal('0.00'),
        'unassigned_items': stored.filter(slot__isnull=True).count(),
        'by_category': grouped('category__name', 'category'),
        'by_purity': grouped('purity__code', 'purity'),
        'by_status': list(
            PledgeItem.objects.order_by().values('status').annotate(count=Count('id')).order_by('status')
        ),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def inventory_export_csv(request):
    """CSV of the inventory list under the same filters"""
    filename = f"inventory_{timezone.localdate():%Y%m%d}.csv"
    response = HttpResponse(content_type='text/csv')
    response['Content-Disposition'] = f'attachment; filename="{filename}"'

    writer = csv.writer(response)
    writer.writerow(CSV_COLUMNS)
    count = 0
    for item in _filtered_items(request).iterator():
        writer.writerow([
            item.barcode,
            item.pledge.pledge_no,
            item.pledge.customer.name,
            item.category.name if item.category_id else '',
            item.purity.code,
            item.gross_weight,
            item.net_weight,
            item.net_value,
            item.slot.location_code if item.slot_id else '',
            item.status,
            item.pledge.status,
            item.pledge.pledge_date,
            item.pledge.due_date,
        ])
        count += 1
    logger.info(f"User {request.user.username} exported {count} inventory rows")
    return response
