"""Pledge numbering and barcode lookup"""
import re

from django.db.models import Q
from django.utils import timezone

from pawnsys.core.utils import generate_sequence_number
from pawnsys.reconciliation.matching import normalize_barcode

# Scanners that drop hyphens emit e.g. PLG20250001 01 or PLG2025000101
COMPACT_BARCODE_RE = re.compile(r'^([A-Z]{3})(\d{4})(\d{4,})(\d{2})$')
COMPACT_PLEDGE_RE = re.compile(r'^([A-Z]{3})(\d{4})(\d{4,})$')


def generate_pledge_no(year=None):
    from .models import Pledge
    year = year or timezone.localdate().year
    return generate_sequence_number(Pledge, 'pledge_no', f'PLG-{year}')


def generate_receipt_no(year=None):
    from .models import Pledge
    year = year or timezone.localdate().year
    return generate_sequence_number(Pledge, 'receipt_no', f'RCP-{year}')


def item_barcode(pledge_no, item_no):
    return f"{pledge_no}-{str(item_no).zfill(2)}"


def expand_compact_barcode(value):
    """
    Restore hyphens in a scanner barcode: PLG2025000101 -> PLG-2025-0001-01.
    Values that already contain hyphens or do not look compact are returned as is.
    """
    value = normalize_barcode(value)
    if '-' in value:
        return value
    match = COMPACT_BARCODE_RE.match(value)
    if match:
        prefix, year, number, item = match.groups()
        return f"{prefix}-{year}-{number}-{item}"
    return value


def expand_compact_pledge_no(value):
    value = normalize_barcode(value)
    if '-' in value:
        return value
    match = COMPACT_PLEDGE_RE.match(value)
    if match:
        return '-'.join(match.groups())
    return value


def find_item_by_barcode(value):
    """PledgeItem for a scanned barcode in either printed or compact form, or None"""
    from .models import PledgeItem
    barcode = normalize_barcode(value)
    if not barcode:
        return None
    candidates = {barcode, expand_compact_barcode(barcode)}
    return (
        PledgeItem.objects.select_related('pledge__customer', 'slot__box__vault', 'purity', 'category')
        .filter(barcode__in=candidates)
        .first()
    )


def find_pledge(value):
    """Pledge by pledge number, receipt number or any of its item barcodes"""
    from .models import Pledge
    term = normalize_barcode(value)
    if not term:
        return None
    pledge_no = expand_compact_pledge_no(term)
    pledge = Pledge.objects.select_related('customer').filter(
        Q(pledge_no__in={term, pledge_no}) | Q(receipt_no__in={term, pledge_no})
    ).first()
    if pledge is not None:
        return pledge
    item = find_item_by_barcode(term)
    return item.pledge if item is not None else None
