"""
Pledge workflows

Creation, storage assignment and cancellation. Functions here raise
PledgeError for business-rule violations; views turn it into a 422.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.utils import timezone

from pawnsys.core.utils import pawn_config, money
from pawnsys.inventory.models import ItemLocationHistory
from pawnsys.pricing.gold_price import GoldPriceService
from pawnsys.pricing.models import Purity
from pawnsys.storage import services as storage_services
from pawnsys.storage.models import Slot
from .interest import InterestCalculator
from .models import Pledge, PledgeItem
from .utils import generate_pledge_no, generate_receipt_no, item_barcode
from .valuation import value_item, summarize

logger = logging.getLogger('pawnsys.pledges')


class PledgeError(Exception):
    """A pledge operation that breaks a business rule"""


def resolve_purity(purity_id=None, purity_code=None):
    queryset = Purity.objects.filter(is_active=True)
    purity = None
    if purity_id:
        purity = queryset.filter(pk=purity_id).first()
    elif purity_code:
        purity = queryset.filter(code=str(purity_code)).first()
    if purity is None:
        raise PledgeError(f"Unknown or inactive purity: {purity_id or purity_code}")
    return purity


def value_items(items_data, price_service=None):
    """
    Value each item dict (purity, gross_weight, stone deduction, optional
    price_per_gram). Missing prices come from the gold price service.
    Returns (valued_items, price_source).
    """
    price_service = price_service or GoldPriceService()
    valued = []
    source = None
    for index, data in enumerate(items_data, start=1):
        purity = data.get('purity') or resolve_purity(data.get('purity_id'), data.get('purity_code'))
        price, item_source = price_service.price_per_gram(purity.code, data.get('price_per_gram'))
        source = source or item_source
        values = value_item(
            data['gross_weight'], price,
            data.get('stone_deduction_type') or 'none',
            data.get('stone_deduction_value') or 0,
        )
        values.update({
            'item_no': index,
            'purity': purity,
            'purity_code': purity.code,
            'category': data.get('category'),
            'stone_deduction_type': data.get('stone_deduction_type') or 'none',
            'stone_deduction_value': Decimal(str(data.get('stone_deduction_value') or 0)),
            'description': data.get('description', ''),
            'remarks': data.get('remarks', ''),
            'slot': data.get('slot'),
        })
        valued.append(values)
    return valued, source


def pledge_dates(pledge_date):
    term = int(pawn_config('pledge_term_months', default=6))
    grace_days = int(pawn_config('grace_period_days', default=7))
    due_date = pledge_date + relativedelta(months=term)
    return due_date, due_date + timedelta(days=grace_days)


@transaction.atomic
def create_pledge(customer, items_data, loan_percentage, loan_amount=None, user=None,
                  pledge_date=None, notes='', price_service=None):
    """
    Create a pledge with its items.

    Each item may carry a `slot`; the slot is occupied in the same
    transaction. The loan may not exceed the net value of the items.
    """
    if customer.is_blacklisted:
        raise PledgeError(f"Customer {customer.customer_no} is blacklisted")
    if not items_data:
        raise PledgeError("A pledge needs at least one item")

    price_service = price_service or GoldPriceService()
    valued, source = value_items(items_data, price_service)
    totals = summarize(valued, loan_percentage)
    if loan_amount is not None:
        loan_amount = money(loan_amount)
        if loan_amount <= 0:
            raise PledgeError("Loan amount must be positive")
        if loan_amount > totals['net_value']:
            raise PledgeError(f"Loan amount {loan_amount} exceeds net value {totals['net_value']}")
        totals['loan_amount'] = loan_amount

    pledge_date = pledge_date or timezone.localdate()
    due_date, grace_end_date = pledge_dates(pledge_date)
    calculator = InterestCalculator()
    prices = price_service.get_current_prices()

    pledge = Pledge.objects.create(
        pledge_no=generate_pledge_no(pledge_date.year),
        receipt_no=generate_receipt_no(pledge_date.year),
        customer=customer,
        total_gross_weight=totals['total_gross_weight'],
        total_net_weight=totals['total_net_weight'],
        gross_value=totals['gross_value'],
        total_deduction=totals['total_deduction'],
        net_value=totals['net_value'],
        loan_percentage=totals['loan_percentage'],
        loan_amount=totals['loan_amount'],
        interest_rate=calculator.standard_rate,
        interest_rate_extended=calculator.extended_rate,
        interest_rate_overdue=calculator.overdue_rate,
        pledge_date=pledge_date,
        due_date=due_date,
        grace_end_date=grace_end_date,
        gold_price_999=prices['price_999'],
        gold_price_916=prices['purity_codes'].get('916'),
        gold_price_source=source or prices['source'],
        notes=notes or '',
        created_by=user,
    )

    for values in valued:
        item = PledgeItem.objects.create(
            pledge=pledge,
            item_no=values['item_no'],
            barcode=item_barcode(pledge.pledge_no, values['item_no']),
            category=values['category'],
            purity=values['purity'],
            gross_weight=values['gross_weight'],
            stone_deduction_type=values['stone_deduction_type'],
            stone_deduction_value=values['stone_deduction_value'],
            net_weight=values['net_weight'],
            price_per_gram=values['price_per_gram'],
            gross_value=values['gross_value'],
            deduction_amount=values['deduction_amount'],
            net_value=values['net_value'],
            description=values['description'],
            remarks=values['remarks'],
        )
        if values['slot'] is not None:
            place_item(item, values['slot'], user=user, reason='Pledge created')

    customer.update_stats()
    logger.info(f"Pledge {pledge.pledge_no} created for {customer.customer_no}: loan {pledge.loan_amount}")
    return pledge


def place_item(item, slot, user=None, reason=''):
    """Move an item into a slot and record the move"""
    if item.status != 'stored':
        raise PledgeError(f"Item {item.barcode} is {item.status} and cannot be stored")
    from_slot = item.slot
    try:
        storage_services.occupy_slot(item, slot)
    except storage_services.SlotOccupiedError as e:
        raise PledgeError(str(e)) from e
    item.location_assigned_at = timezone.now()
    item.location_assigned_by = user
    item.save(update_fields=['location_assigned_at', 'location_assigned_by', 'updated_at'])
    if from_slot is None or from_slot.pk != slot.pk:
        ItemLocationHistory.objects.create(
            item=item, from_slot=from_slot, to_slot=slot, reason=reason, moved_by=user,
        )
    return item


def take_out_item(item, new_status, user=None, reason=''):
    """Release an item's slot and mark it released, redeemed or forfeited"""
    from_slot = item.slot
    storage_services.release_slot(item)
    item.status = new_status
    item.released_at = timezone.now()
    item.save(update_fields=['status', 'released_at', 'updated_at'])
    if from_slot is not None:
        ItemLocationHistory.objects.create(
            item=item, from_slot=from_slot, to_slot=None, reason=reason, moved_by=user,
        )
    return item


@transaction.atomic
def assign_storage(pledge, assignments, user=None):
    """
    Place items of a pledge into slots.

    assignments: list of {'item_id': ..., 'slot_id': ...}
    """
    if not pledge.is_outstanding:
        raise PledgeError(f"Pledge {pledge.pledge_no} is {pledge.status}")
    target_slots = [a['slot_id'] for a in assignments]
    if len(set(target_slots)) != len(target_slots):
        raise PledgeError("Two items cannot share one slot")

    placed = []
    for assignment in assignments:
        item = pledge.items.select_related('slot').filter(pk=assignment['item_id']).first()
        if item is None:
            raise PledgeError(f"Item {assignment['item_id']} does not belong to pledge {pledge.pledge_no}")
        slot = Slot.objects.select_related('box__vault').filter(pk=assignment['slot_id']).first()
        if slot is None:
            raise PledgeError(f"Slot {assignment['slot_id']} does not exist")
        placed.append(place_item(item, slot, user=user, reason='Storage assigned'))
    logger.info(f"Assigned {len(placed)} items of {pledge.pledge_no} to storage")
    return placed


@transaction.atomic
def cancel_pledge(pledge, user=None, reason=''):
    """Cancel a pledge that was never renewed; items are released from storage"""
    pledge = Pledge.objects.select_for_update().get(pk=pledge.pk)
    if pledge.status != 'active':
        raise PledgeError(f"Only active pledges can be cancelled (pledge is {pledge.status})")
    if pledge.renewal_count > 0:
        raise PledgeError("A renewed pledge cannot be cancelled")

    for item in pledge.items.select_related('slot').filter(status='stored'):
        take_out_item(item, 'released', user=user, reason='Pledge cancelled')

    pledge.status = 'cancelled'
    pledge.cancelled_at = timezone.now()
    pledge.cancelled_by = user
    pledge.cancellation_reason = reason or ''
    pledge.save(update_fields=['status', 'cancelled_at', 'cancelled_by', 'cancellation_reason', 'updated_at'])
    pledge.customer.update_stats()
    logger.info(f"Pledge {pledge.pledge_no} cancelled")
    return pledge


def mark_overdue(on=None):
    """Flag active pledges past their due date as overdue. Returns the count."""
    on = on or timezone.localdate()
    updated = Pledge.objects.filter(status='active', due_date__lt=on).update(status='overdue', updated_at=timezone.now())
    if updated:
        logger.info(f"Marked {updated} pledges overdue as of {on}")
    return updated
