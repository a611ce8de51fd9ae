import logging
from decimal import Decimal

from django.core.cache import cache
from django.db import transaction, IntegrityError
from django.db.models import Sum, Count, Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.cache_utils import (
    make_cache_key, remember_cache_key, invalidate_cache_pattern, STORAGE_SUMMARY, STORAGE_SUMMARY_CACHE_TTL
)
from .models import Vault, Box, Slot
from .serializers import VaultSerializer, BoxSerializer, SlotSerializer
from . import services

logger = logging.getLogger('pawnsys.storage')


# Vault views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def vault_list_create(request):
    """List vaults or create a vault together with its boxes and slots"""
    if request.method == 'GET':
        vaults = Vault.objects.all().order_by('code')
        if request.query_params.get('active') == 'true':
            vaults = vaults.filter(is_active=True)
        return Response(VaultSerializer(vaults, many=True).data)

    serializer = VaultSerializer(data=request.data)
    if not serializer.is_valid():
        logger.warning(f"Vault creation validation failed: {serializer.errors}")
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    number_of_boxes = serializer.validated_data.pop('number_of_boxes', 0)
    slots_per_box = serializer.validated_data.pop('slots_per_box', None)
    try:
        with transaction.atomic():
            vault = serializer.save()
            if number_of_boxes:
                services.create_boxes(vault, number_of_boxes, slots_per_box=slots_per_box)
    except IntegrityError as e:
        logger.error(f"IntegrityError creating vault: {str(e)}", exc_info=True)
        return Response({'error': 'Vault code already exists'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    invalidate_cache_pattern(STORAGE_SUMMARY)
    logger.info(f"User {request.user.username} created vault {vault.code} with {number_of_boxes} boxes")
    return Response(VaultSerializer(vault).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vault_detail(request, pk):
    """Retrieve, update or delete a vault"""
    vault = get_object_or_404(Vault, pk=pk)

    if request.method == 'GET':
        data = VaultSerializer(vault).data
        boxes = services.box_occupancy(vault.boxes.all()).order_by('box_number')
        data['boxes'] = BoxSerializer(boxes, many=True).data
        return Response(data)

    if request.method in ('PUT', 'PATCH'):
        serializer = VaultSerializer(vault, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.validated_data.pop('number_of_boxes', None)
            serializer.validated_data.pop('slots_per_box', None)
            try:
                serializer.save()
            except IntegrityError:
                return Response({'error': 'Vault code already exists'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    # DELETE
    if Slot.objects.filter(box__vault=vault, is_occupied=True).exists():
        return Response({'error': 'Cannot delete vault with stored items'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    code = vault.code
    vault.delete()
    invalidate_cache_pattern(STORAGE_SUMMARY)
    logger.info(f"User {request.user.username} deleted vault {code}")
    return Response(status=status.HTTP_204_NO_CONTENT)


# Box views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def box_list_create(request):
    """List boxes (optionally for one vault) or add a box to a vault"""
    if request.method == 'GET':
        boxes = Box.objects.select_related('vault')
        vault_id = request.query_params.get('vault_id')
        if vault_id:
            boxes = boxes.filter(vault_id=vault_id)
        boxes = services.box_occupancy(boxes).order_by('vault__code', 'box_number')
        return Response(BoxSerializer(boxes, many=True).data)

    serializer = BoxSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    vault = serializer.validated_data['vault']
    box_number = serializer.validated_data.get('box_number')
    if box_number is None:
        box_number = (vault.boxes.order_by('-box_number').values_list('box_number', flat=True).first() or 0) + 1
    elif vault.boxes.filter(box_number=box_number).exists():
        return Response({'error': 'Box number already exists in this vault'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)

    with transaction.atomic():
        box = serializer.save(
            box_number=box_number,
            name=serializer.validated_data.get('name') or f"Box {box_number}",
            total_slots=serializer.validated_data.get('total_slots') or services.default_slots_per_box(),
        )
        services.create_slots(box)

    invalidate_cache_pattern(STORAGE_SUMMARY)
    logger.info(f"User {request.user.username} created box {box}")
    return Response(BoxSerializer(box).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def box_detail(request, pk):
    """Retrieve, update (including slot count) or delete a box"""
    box = get_object_or_404(Box.objects.select_related('vault'), pk=pk)

    if request.method == 'GET':
        return Response(BoxSerializer(box).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = BoxSerializer(box, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        new_total = serializer.validated_data.pop('total_slots', None)
        new_number = serializer.validated_data.get('box_number')
        if new_number is not None and box.vault.boxes.exclude(pk=box.pk).filter(box_number=new_number).exists():
            return Response({'error': 'Box number already exists in this vault'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
        try:
            with transaction.atomic():
                box = serializer.save()
                if new_total is not None:
                    services.resize_box(box, new_total)
        except services.StorageError as e:
            return Response({'error': str(e)}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
        invalidate_cache_pattern(STORAGE_SUMMARY)
        return Response(BoxSerializer(box).data)

    # DELETE
    if box.slots.filter(is_occupied=True).exists():
        return Response({'error': 'Cannot delete box with stored items'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    box.delete()
    invalidate_cache_pattern(STORAGE_SUMMARY)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def box_slots(request, pk):
    """All slots of a box with their current items"""
    box = get_object_or_404(Box, pk=pk)
    slots = box.slots.select_related(
        'box__vault', 'current_item__pledge', 'current_item__category', 'current_item__purity'
    ).order_by('slot_number')
    return Response(SlotSerializer(slots, many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def available_slots(request):
    """Free slots, optionally limited to a vault or box"""
    slots = services.available_slots(
        vault_id=request.query_params.get('vault_id'),
        box_id=request.query_params.get('box_id'),
    )
    try:
        limit = int(request.query_params.get('limit', 100))
    except ValueError:
        limit = 100
    return Response(SlotSerializer(slots[:limit], many=True).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def next_available_slot(request):
    """First free slot in vault/box/slot order"""
    slot = services.next_available_slot(
        vault_id=request.query_params.get('vault_id'),
        box_id=request.query_params.get('box_id'),
    )
    if slot is None:
        return Response({'error': 'No available slots'}, status=status.HTTP_404_NOT_FOUND)
    data = SlotSerializer(slot).data
    data['location_string'] = slot.location_string
    return Response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def box_summary(request, pk):
    """Item count, weight and value held in a box"""
    from pawnsys.pledges.models import PledgeItem

    box = get_object_or_404(Box.objects.select_related('vault'), pk=pk)
    items = PledgeItem.objects.filter(slot__box=box)
    totals = items.aggregate(weight=Sum('net_weight'), value=Sum('net_value'))
    occupied = box.slots.filter(is_occupied=True).count()

    return Response({
        'box_id': box.id,
        'box_number': box.box_number,
        'vault_code': box.vault.code,
        'total_slots': box.total_slots,
        'occupied_slots': occupied,
        'available_slots': box.slots.count() - occupied,
        'total_items': items.count(),
        'total_weight': totals['weight'] or Decimal('0.000'),
        'total_value': totals['value'] or Decimal('0.00'),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def storage_summary(request):
    """Capacity and utilisation across every vault"""
    cache_key = make_cache_key(STORAGE_SUMMARY)
    cached_data = cache.get(cache_key)
    if cached_data is not None:
        return Response(cached_data)

    vaults = []
    for vault in Vault.objects.filter(is_active=True).order_by('code'):
        counts = Slot.objects.filter(box__vault=vault).aggregate(
            total=Count('id'),
            occupied=Count('id', filter=Q(is_occupied=True)),
        )
        total = counts['total'] or 0
        occupied = counts['occupied'] or 0
        vaults.append({
            'id': vault.id,
            'code': vault.code,
            'name': vault.name,
            'total_boxes': vault.boxes.count(),
            'total_slots': total,
            'occupied_slots': occupied,
            'available_slots': total - occupied,
            'utilisation': round(occupied / total * 100, 1) if total else 0,
        })

    total_slots = sum(v['total_slots'] for v in vaults)
    occupied_slots = sum(v['occupied_slots'] for v in vaults)
    data = {
        'vaults': vaults,
        'total_slots': total_slots,
        'occupied_slots': occupied_slots,
        'available_slots': total_slots - occupied_slots,
        'utilisation': round(occupied_slots / total_slots * 100, 1) if total_slots else 0,
    }
    cache.set(cache_key, data, STORAGE_SUMMARY_CACHE_TTL)
    remember_cache_key(STORAGE_SUMMARY, cache_key, STORAGE_SUMMARY_CACHE_TTL)
    return Response(data)
