import logging
from datetime import timedelta

from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.utils import create_audit_log, set_setting
from .gold_price import GoldPriceService, get_price_source, SOURCE_SETTING_KEY
from .models import Purity, GoldPrice, GoldPriceLog, MarginPreset
from .serializers import (
    PuritySerializer, GoldPriceSerializer, GoldPriceLogSerializer,
    MarginPresetSerializer, ItemValueSerializer, PriceSourceSerializer,
)

logger = logging.getLogger('pawnsys.pricing')


# Gold price views
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gold_price_current(request):
    """Current per-gram prices for every purity, with the source they came from"""
    force_refresh = request.query_params.get('refresh') == 'true'
    prices = GoldPriceService().get_current_prices(force_refresh=force_refresh)
    return Response(prices)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gold_price_purities(request):
    """Per-gram price for each active purity, in display order"""
    prices = GoldPriceService().get_current_prices()
    rows = []
    for purity in Purity.objects.filter(is_active=True).order_by('sort_order'):
        rows.append({
            'code': purity.code,
            'name': purity.name,
            'karat': purity.karat,
            'percentage': purity.percentage,
            'price_per_gram': prices['purity_codes'].get(purity.code),
        })
    return Response({'source': prices['source'], 'currency': prices['currency'], 'purities': rows})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gold_price_dashboard(request):
    """Price card: today's 999/916 prices and the change since the previous manual entry"""
    prices = GoldPriceService().get_current_prices()
    recent = list(GoldPrice.objects.order_by('-price_date', '-created_at')[:2])
    change = None
    if len(recent) == 2 and recent[1].price_999:
        diff = recent[0].price_999 - recent[1].price_999
        change = {
            'amount': diff,
            'percentage': round(diff / recent[1].price_999 * 100, 2),
        }
    return Response({
        'source': prices['source'],
        'price_source_setting': get_price_source(),
        'currency': prices['currency'],
        'price_999': prices['price_999'],
        'price_916': prices['purity_codes'].get('916'),
        'updated_at': prices.get('updated_at'),
        'change': change,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def gold_price_calculate(request):
    """Market value and suggested loan amounts for an item"""
    serializer = ItemValueSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data
    result = GoldPriceService().calculate_item_value(
        data['weight'], data['purity_code'], data.get('custom_price')
    )
    return Response(result)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def gold_price_history(request):
    """Manual price entries and feed logs for the last N days (default 30)"""
    try:
        days = max(1, min(int(request.query_params.get('days', 30)), 365))
    except ValueError:
        days = 30
    since = timezone.now() - timedelta(days=days)
    prices = GoldPrice.objects.filter(price_date__gte=since.date()).select_related('created_by')
    logs = GoldPriceLog.objects.filter(fetched_at__gte=since)[:200]
    return Response({
        'days': days,
        'prices': GoldPriceSerializer(prices, many=True).data,
        'logs': GoldPriceLogSerializer(logs, many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def gold_price_refresh(request):
    """Drop cached prices and fetch again"""
    service = GoldPriceService()
    service.clear_cache()
    prices = service.get_current_prices(force_refresh=True)
    logger.info(f"User {request.user.username} refreshed gold prices (source={prices['source']})")
    return Response(prices)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def gold_price_manual(request):
    """Record today's price entered by staff"""
    data = request.data.copy()
    data.setdefault('price_date', timezone.localdate().isoformat())
    serializer = GoldPriceSerializer(data=data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    gold_price = serializer.save(source='manual', created_by=request.user)
    GoldPriceService().clear_cache()
    create_audit_log(
        request=request, action='price_change', model_name='GoldPrice', object_id=gold_price.id,
        object_reference=str(gold_price.price_date),
        changes={'price_999': str(gold_price.price_999), 'price_916': str(gold_price.price_916)},
    )
    logger.info(f"User {request.user.username} set manual gold price {gold_price.price_999}/g")
    return Response(GoldPriceSerializer(gold_price).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def gold_price_source(request):
    """Read or switch between live feed ('api') and staff-entered ('manual') prices"""
    if request.method == 'GET':
        return Response({'source': get_price_source()})

    serializer = PriceSourceSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    source = serializer.validated_data['source']
    previous = get_price_source()
    set_setting(SOURCE_SETTING_KEY, source, 'Gold price source: api or manual')
    GoldPriceService().clear_cache()
    create_audit_log(
        request=request, action='update', model_name='Setting', object_id=SOURCE_SETTING_KEY,
        changes={'from': previous, 'to': source},
    )
    logger.info(f"User {request.user.username} switched gold price source {previous} -> {source}")
    return Response({'source': source})


# Purity views
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def purity_list_create(request):
    if request.method == 'GET':
        purities = Purity.objects.all().order_by('sort_order')
        return Response(PuritySerializer(purities, many=True).data)
    serializer = PuritySerializer(data=request.data)
    if serializer.is_valid():
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)
    return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def purity_detail(request, pk):
    purity = get_object_or_404(Purity, pk=pk)
    if request.method == 'GET':
        return Response(PuritySerializer(purity).data)
    if request.method in ('PUT', 'PATCH'):
        serializer = PuritySerializer(purity, data=request.data, partial=request.method == 'PATCH')
        if serializer.is_valid():
            serializer.save()
            return Response(serializer.data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    if purity.items.exists():
        return Response({'error': 'Purity is used by pledge items; deactivate it instead'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    purity.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


# Margin preset views
def _make_default(preset):
    """Exactly one preset is the default"""
    MarginPreset.objects.exclude(pk=preset.pk).filter(is_default=True).update(is_default=False)
    if not preset.is_default:
        preset.is_default = True
        preset.save(update_fields=['is_default', 'updated_at'])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def margin_preset_list_create(request):
    """List loan margin presets or add one"""
    if request.method == 'GET':
        presets = MarginPreset.objects.all()
        if request.query_params.get('active') == 'true':
            presets = presets.filter(is_active=True)
        return Response(MarginPresetSerializer(presets.order_by('sort_order', '-value'), many=True).data)

    serializer = MarginPresetSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        preset = serializer.save()
        if preset.is_default or not MarginPreset.objects.filter(is_default=True).exists():
            _make_default(preset)
    return Response(MarginPresetSerializer(preset).data, status=status.HTTP_201_CREATED)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def margin_preset_detail(request, pk):
    preset = get_object_or_404(MarginPreset, pk=pk)
    if request.method == 'GET':
        return Response(MarginPresetSerializer(preset).data)

    if request.method in ('PUT', 'PATCH'):
        serializer = MarginPresetSerializer(preset, data=request.data, partial=request.method == 'PATCH')
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        if preset.is_default and serializer.validated_data.get('is_default') is False:
            return Response(
                {'error': 'Set another preset as default instead of clearing the default'},
                status=status.HTTP_422_UNPROCESSABLE_ENTITY
            )
        with transaction.atomic():
            preset = serializer.save()
            if preset.is_default:
                _make_default(preset)
        return Response(MarginPresetSerializer(preset).data)

    if preset.is_default:
        return Response({'error': 'The default preset cannot be deleted'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    preset.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def margin_preset_set_default(request, pk):
    preset = get_object_or_404(MarginPreset, pk=pk)
    if not preset.is_active:
        return Response({'error': 'An inactive preset cannot be the default'}, status=status.HTTP_422_UNPROCESSABLE_ENTITY)
    with transaction.atomic():
        _make_default(preset)
    logger.info(f"User {request.user.username} set default margin preset to {preset.value}%")
    return Response(MarginPresetSerializer(preset).data)
