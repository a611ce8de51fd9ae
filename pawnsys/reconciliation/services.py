"""
Server-side reconciliation sessions

One session may be in progress at a time. Sessions left open longer than
the configured timeout are cancelled the next time anyone starts one.
Matching itself is delegated to matching.py so server and offline
sessions agree.
"""
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from pawnsys.core.utils import generate_sequence_number, pawn_config
from pawnsys.pledges.models import Pledge, PledgeItem
from pawnsys.pledges.utils import expand_compact_barcode, expand_compact_pledge_no
from .matching import (
    ExpectedItem, ScanEvent, MATCHED, UNEXPECTED, MISSING,
    classify_scan, match_scans, normalize_barcode,
)
from .models import Reconciliation, ReconciliationItem

logger = logging.getLogger('pawnsys.reconciliation')


class ReconciliationError(Exception):
    """A reconciliation request that breaks a business rule"""


def timeout_hours():
    return int(pawn_config('reconciliation', 'timeout_hours', default=4))


def expected_items_queryset():
    """Items that should physically be in storage right now"""
    return PledgeItem.objects.select_related('pledge', 'slot__box__vault', 'category', 'purity').filter(
        status='stored', pledge__status__in=Pledge.OUTSTANDING_STATUSES,
    )


def expected_items():
    return [
        ExpectedItem(
            barcode=normalize_barcode(item.barcode),
            item_id=item.id,
            pledge_no=item.pledge.pledge_no,
            description=item.description,
            location=item.slot.location_code if item.slot_id else None,
        )
        for item in expected_items_queryset().order_by('barcode')
    ]


def generate_reconciliation_no(on=None):
    on = on or timezone.localdate()
    return generate_sequence_number(Reconciliation, 'reconciliation_no', f'RCN-{on:%Y%m%d}')


def active_session():
    return Reconciliation.objects.filter(status='in_progress', expires_at__gt=timezone.now()).order_by('-started_at').first()


def cancel_expired(now=None):
    """Cancel in-progress sessions past their expiry. Returns the number cancelled."""
    now = now or timezone.now()
    stale = list(Reconciliation.objects.filter(status='in_progress', expires_at__lte=now))
    for reconciliation in stale:
        _cancel(reconciliation, 'Auto-cancelled: session expired', now=now)
    if stale:
        logger.warning(f"Auto-cancelled {len(stale)} expired reconciliation(s)")
    return len(stale)


def _cancel(reconciliation, note, now=None):
    reconciliation.status = 'cancelled'
    reconciliation.completed_at = now or timezone.now()
    reconciliation.notes = f"{reconciliation.notes} | {note}" if reconciliation.notes else note
    reconciliation.save(update_fields=['status', 'completed_at', 'notes', 'updated_at'])
    return reconciliation


@transaction.atomic
def start_reconciliation(user=None, reconciliation_type='daily', notes='', force_start=False):
    cancel_expired()
    existing = active_session()
    if existing is not None:
        if not force_start:
            raise ReconciliationError(
                f"Reconciliation {existing.reconciliation_no} is already in progress"
            )
        _cancel(existing, 'Force cancelled to start a new reconciliation')
        logger.warning(f"Reconciliation {existing.reconciliation_no} force cancelled")

    now = timezone.now()
    reconciliation = Reconciliation.objects.create(
        reconciliation_no=generate_reconciliation_no(timezone.localdate()),
        reconciliation_type=reconciliation_type,
        expected_items=expected_items_queryset().count(),
        started_at=now,
        expires_at=now + timedelta(hours=timeout_hours()),
        started_by=user,
        notes=notes or '',
    )
    logger.info(f"Reconciliation {reconciliation.reconciliation_no} started with {reconciliation.expected_items} expected items")
    return reconciliation


def resolve_scan(value):
    """
    Map a scanned value to (barcode, PledgeItem or None).

    Accepts item barcodes in printed or scanner form, and a pledge number
    when that pledge has exactly one stored item.
    """
    scanned = normalize_barcode(value)
    barcode = expand_compact_barcode(scanned)
    item = PledgeItem.objects.select_related('pledge').filter(barcode__in={scanned, barcode}).first()
    if item is not None:
        return item.barcode, item

    pledge_no = expand_compact_pledge_no(scanned)
    candidates = list(expected_items_queryset().filter(pledge__pledge_no=pledge_no)[:2])
    if len(candidates) == 1:
        return candidates[0].barcode, candidates[0]
    return scanned, None


def record_scan(reconciliation, value, user=None, notes=''):
    """
    Record one scan. A scan against an expired session cancels it; the
    cancellation is committed before the error is raised.
    """
    with transaction.atomic():
        reconciliation = Reconciliation.objects.select_for_update().get(pk=reconciliation.pk)
        if reconciliation.status != 'in_progress':
            raise ReconciliationError('Reconciliation is not in progress')
        if not reconciliation.is_expired:
            return _store_scan(reconciliation, value, user, notes)
        _cancel(reconciliation, 'Auto-cancelled: session expired')
        logger.warning(f"Reconciliation {reconciliation.reconciliation_no} expired during scanning")
    raise ReconciliationError('Reconciliation has expired')


def _store_scan(reconciliation, value, user, notes):
    scanned = normalize_barcode(value)
    if not scanned:
        raise ReconciliationError('Barcode is required')
    barcode, item = resolve_scan(scanned)
    if reconciliation.items.filter(barcode=barcode).exists():
        raise ReconciliationError(f"{barcode} has already been scanned")

    expected = set(expected_items_queryset().filter(barcode=barcode).values_list('barcode', flat=True))
    status = classify_scan(barcode, expected)
    row = ReconciliationItem.objects.create(
        reconciliation=reconciliation,
        pledge_item=item,
        barcode=barcode,
        scanned_value=scanned,
        status=status,
        scanned_at=timezone.now(),
        scanned_by=user,
        notes=notes or '',
    )

    counters = {'scanned_items': F('scanned_items') + 1}
    if status == MATCHED:
        counters['matched_items'] = F('matched_items') + 1
    else:
        counters['unexpected_items'] = F('unexpected_items') + 1
    Reconciliation.objects.filter(pk=reconciliation.pk).update(**counters)
    reconciliation.refresh_from_db()

    if status == MATCHED:
        message = 'Item verified'
    elif item is not None:
        message = 'Item found but should not be in storage'
    else:
        message = 'Unknown barcode'
    return row, message


@transaction.atomic
def complete_reconciliation(reconciliation, user=None, notes=None):
    """
    Close a session and record missing items. Discrepancies are reported
    through the outcome and never block completion.
    """
    reconciliation = Reconciliation.objects.select_for_update().get(pk=reconciliation.pk)
    if reconciliation.status != 'in_progress':
        raise ReconciliationError('Reconciliation is not in progress')

    expected = expected_items()
    scans = [
        ScanEvent(barcode=row.barcode, scanned_at=row.scanned_at, status=row.status)
        for row in reconciliation.items.exclude(status=MISSING)
    ]
    result = match_scans(expected, scans)

    ReconciliationItem.objects.bulk_create([
        ReconciliationItem(
            reconciliation=reconciliation,
            pledge_item_id=item.item_id,
            barcode=item.barcode,
            status=MISSING,
            notes='Not scanned during reconciliation',
        )
        for item in result.missing
    ])

    reconciliation.expected_items = result.expected_count
    reconciliation.matched_items = len(result.matched)
    reconciliation.unexpected_items = len(result.unexpected)
    reconciliation.missing_items = len(result.missing)
    reconciliation.outcome = result.outcome
    reconciliation.status = 'completed'
    reconciliation.completed_at = timezone.now()
    reconciliation.completed_by = user
    if notes:
        reconciliation.notes = f"{reconciliation.notes} | {notes}" if reconciliation.notes else notes
    reconciliation.save()

    # Storage may have changed since the scan was classified
    now_unexpected = {event.barcode for event in result.unexpected if event.status != UNEXPECTED}
    if now_unexpected:
        reconciliation.items.filter(barcode__in=now_unexpected).update(status=UNEXPECTED)
    now_matched = {event.barcode for event in result.matched if event.status != MATCHED}
    if now_matched:
        reconciliation.items.filter(barcode__in=now_matched).update(status=MATCHED)

    logger.info(
        f"Reconciliation {reconciliation.reconciliation_no} completed: {result.outcome} "
        f"(matched {len(result.matched)}, missing {len(result.missing)}, unexpected {len(result.unexpected)})"
    )
    return reconciliation, result


@transaction.atomic
def cancel_reconciliation(reconciliation, reason=''):
    reconciliation = Reconciliation.objects.select_for_update().get(pk=reconciliation.pk)
    if reconciliation.status != 'in_progress':
        raise ReconciliationError('Only in-progress reconciliations can be cancelled')
    _cancel(reconciliation, reason or 'Cancelled by user')
    logger.info(f"Reconciliation {reconciliation.reconciliation_no} cancelled")
    return reconciliation


def force_cancel_active(reason='Force cancelled by user'):
    reconciliation = Reconciliation.objects.filter(status='in_progress').order_by('-started_at').first()
    if reconciliation is None:
        return None
    return _cancel(reconciliation, reason)
