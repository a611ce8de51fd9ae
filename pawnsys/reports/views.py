import logging
from datetime import datetime, timedelta
from decimal import Decimal

from django.db.models import Sum, Count, Q
from django.utils import timezone
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from pawnsys.core.cache_utils import cached_query, DASHBOARD_CACHE_TTL, DASHBOARD_SUMMARY
from pawnsys.pledges.models import Pledge, PledgeItem
from pawnsys.pledges.serializers import PledgeListSerializer
from pawnsys.reconciliation.models import Reconciliation
from pawnsys.storage.models import Vault, Slot
from pawnsys.transactions.models import Renewal, Redemption, Reprint

logger = logging.getLogger('pawnsys.reports')

ZERO = Decimal('0.00')


def _parse_date(value, default):
    if not value:
        return default
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        return None


def _payments(queryset):
    totals = queryset.aggregate(
        count=Count('id'),
        cash=Sum('cash_amount'),
        transfer=Sum('transfer_amount'),
        total=Sum('total_payable'),
    )
    return {
        'count': totals['count'] or 0,
        'cash': totals['cash'] or ZERO,
        'transfer': totals['transfer'] or ZERO,
        'total': totals['total'] or ZERO,
    }


@cached_query(cache_ttl=DASHBOARD_CACHE_TTL, key_prefix=DASHBOARD_SUMMARY)
def build_dashboard_summary(today):
    outstanding = Pledge.objects.filter(status__in=Pledge.OUTSTANDING_STATUSES)
    overdue = outstanding.filter(due_date__lt=today)
    totals = outstanding.aggregate(principal=Sum('loan_amount'), weight=Sum('total_net_weight'))

    new_pledges = Pledge.objects.filter(pledge_date=today).exclude(status='cancelled')
    renewals = Renewal.objects.filter(created_at__date=today)
    redemptions = Redemption.objects.filter(created_at__date=today)

    return {
        'date': today.isoformat(),
        'active_pledges': outstanding.filter(due_date__gte=today).count(),
        'overdue_pledges': overdue.count(),
        'outstanding_principal': totals['principal'] or ZERO,
        'gold_weight_held': totals['weight'] or Decimal('0.000'),
        'due_this_week': outstanding.filter(due_date__gte=today, due_date__lte=today + timedelta(days=7)).count(),
        'today': {
            'new_pledges': new_pledges.count(),
            'loans_disbursed': new_pledges.aggregate(total=Sum('loan_amount'))['total'] or ZERO,
            'renewals': renewals.count(),
            'renewal_collected': renewals.aggregate(total=Sum('total_payable'))['total'] or ZERO,
            'redemptions': redemptions.count(),
            'redemption_collected': redemptions.aggregate(total=Sum('total_payable'))['total'] or ZERO,
        },
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def dashboard_summary(request):
    """Headline counters for the dashboard"""
    return Response(build_dashboard_summary(timezone.localdate()))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payment_split(request):
    """Cash vs transfer collected on a date (default today)"""
    date = _parse_date(request.query_params.get('date'), timezone.localdate())
    if date is None:
        return Response({'error': 'date must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    renewals = _payments(Renewal.objects.filter(created_at__date=date))
    redemptions = _payments(Redemption.objects.filter(created_at__date=date))
    disbursed = Pledge.objects.filter(pledge_date=date).exclude(status='cancelled').aggregate(
        total=Sum('loan_amount'), count=Count('id')
    )
    return Response({
        'date': date.isoformat(),
        'pledges': {'count': disbursed['count'] or 0, 'disbursed': disbursed['total'] or ZERO},
        'renewals': renewals,
        'redemptions': redemptions,
        'totals': {
            'cash': renewals['cash'] + redemptions['cash'],
            'transfer': renewals['transfer'] + redemptions['transfer'],
            'collected': renewals['total'] + redemptions['total'],
        },
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def due_reminders(request):
    """Outstanding pledges falling due within N days (default 7)"""
    try:
        days = max(0, min(int(request.query_params.get('days', 7)), 90))
    except ValueError:
        days = 7
    today = timezone.localdate()
    pledges = Pledge.objects.select_related('customer').annotate(item_count=Count('items')).filter(
        status='active', due_date__gte=today, due_date__lte=today + timedelta(days=days)
    ).order_by('due_date')
    return Response({
        'days': days,
        'count': pledges.count(),
        'pledges': PledgeListSerializer(pledges[:100], many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def overdue_pledges(request):
    """Pledges past due, with days overdue; in_grace=true limits to the grace period"""
    today = timezone.localdate()
    pledges = Pledge.objects.select_related('customer').annotate(item_count=Count('items')).filter(
        status__in=Pledge.OUTSTANDING_STATUSES, due_date__lt=today
    )
    if request.query_params.get('in_grace') == 'true':
        pledges = pledges.filter(grace_end_date__gte=today)
    elif request.query_params.get('in_grace') == 'false':
        pledges = pledges.filter(grace_end_date__lt=today)
    pledges = pledges.order_by('due_date')
    totals = pledges.aggregate(principal=Sum('loan_amount'))
    return Response({
        'count': pledges.count(),
        'outstanding_principal': totals['principal'] or ZERO,
        'pledges': PledgeListSerializer(pledges, many=True).data,
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def day_end_summary(request):
    """Everything that happened on a date: pledges, renewals, redemptions, reprints, reconciliations"""
    date = _parse_date(request.query_params.get('date'), timezone.localdate())
    if date is None:
        return Response({'error': 'date must be YYYY-MM-DD'}, status=status.HTTP_400_BAD_REQUEST)

    pledges = Pledge.objects.filter(pledge_date=date)
    pledge_totals = pledges.exclude(status='cancelled').aggregate(
        count=Count('id'), loan=Sum('loan_amount'), weight=Sum('total_net_weight')
    )
    renewals = _payments(Renewal.objects.filter(created_at__date=date))
    redemptions = _payments(Redemption.objects.filter(created_at__date=date))
    reprints = Reprint.objects.filter(created_at__date=date).aggregate(count=Count('id'), charges=Sum('charge'))
    items_in = PledgeItem.objects.filter(pledge__pledge_date=date).exclude(pledge__status='cancelled').count()
    items_out = PledgeItem.objects.filter(released_at__date=date).count()
    reconciliations = Reconciliation.objects.filter(started_at__date=date)

    cash_in = renewals['cash'] + redemptions['cash'] + (reprints['charges'] or ZERO)
    return Response({
        'date': date.isoformat(),
        'pledges': {
            'count': pledge_totals['count'] or 0,
            'loan_amount': pledge_totals['loan'] or ZERO,
            'net_weight': pledge_totals['weight'] or Decimal('0.000'),
            'cancelled': pledges.filter(status='cancelled').count(),
        },
        'renewals': renewals,
        'redemptions': redemptions,
        'reprints': {'count': reprints['count'] or 0, 'charges': reprints['charges'] or ZERO},
        'items': {'received': items_in, 'released': items_out},
        'reconciliations': {
            'count': reconciliations.count(),
            'completed': reconciliations.filter(status='completed').count(),
            'with_discrepancies': reconciliations.filter(outcome='discrepancy').count(),
        },
        'cash_flow': {
            'cash_in': cash_in,
            'transfer_in': renewals['transfer'] + redemptions['transfer'],
            'loans_out': pledge_totals['loan'] or ZERO,
            'net_cash': cash_in - (pledge_totals['loan'] or ZERO),
        },
    })


def build_storage_capacity():
    vaults = []
    for vault in Vault.objects.filter(is_active=True).order_by('code'):
        counts = Slot.objects.filter(box__vault=vault, box__is_active=True).aggregate(
            total=Count('id'), occupied=Count('id', filter=Q(is_occupied=True))
        )
        total = counts['total'] or 0
        occupied = counts['occupied'] or 0
        vaults.append({
            'vault': vault.code,
            'total_slots': total,
            'occupied_slots': occupied,
            'available_slots': total - occupied,
            'utilisation': round(occupied / total * 100, 1) if total else 0,
        })
    unassigned = PledgeItem.objects.filter(
        status='stored', slot__isnull=True, pledge__status__in=Pledge.OUTSTANDING_STATUSES
    ).count()
    total_slots = sum(v['total_slots'] for v in vaults)
    occupied_slots = sum(v['occupied_slots'] for v in vaults)
    return {
        'vaults': vaults,
        'total_slots': total_slots,
        'occupied_slots': occupied_slots,
        'available_slots': total_slots - occupied_slots,
        'unassigned_items': unassigned,
        'utilisation': round(occupied_slots / total_slots * 100, 1) if total_slots else 0,
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def storage_capacity(request):
    """Slot capacity per vault and items still waiting for a slot"""
    return Response(build_storage_capacity())
