"""
Renewal, redemption and reprint workflows

calculate_* functions are side-effect free and back both the quote
endpoints and the create_* functions, so a customer is charged exactly
what they were quoted.
"""
import logging
from datetime import timedelta
from decimal import Decimal

from dateutil.relativedelta import relativedelta
from django.db import transaction
from django.utils import timezone

from pawnsys.core.utils import generate_sequence_number, pawn_config, money
from pawnsys.pledges.interest import InterestCalculator, handling_fee
from pawnsys.pledges.models import Pledge
from pawnsys.pledges.services import PledgeError, take_out_item
from .models import Renewal, RenewalInterestBreakdown, Redemption, Reprint

logger = logging.getLogger('pawnsys.transactions')

MAX_RENEWAL_MONTHS = 6


def _check_payment(total_payable, cash_amount, transfer_amount):
    paid = money(cash_amount or 0) + money(transfer_amount or 0)
    if paid < total_payable:
        raise PledgeError(f"Insufficient payment: {paid} paid, {total_payable} due")
    return paid


def _check_outstanding(pledge):
    if not pledge.is_outstanding:
        raise PledgeError(f"Pledge {pledge.pledge_no} is {pledge.status}")


# Renewals
def calculate_renewal(pledge, months, on=None):
    _check_outstanding(pledge)
    max_months = int(pawn_config('max_renewal_months', default=MAX_RENEWAL_MONTHS))
    if not 1 <= months <= max_months:
        raise PledgeError(f"Renewal must be between 1 and {max_months} months")

    on = on or timezone.localdate()
    current_month = max(1, pledge.months_elapsed(on))
    calculator = InterestCalculator.for_pledge(pledge)
    interest = calculator.renewal_interest(pledge.loan_amount, current_month, months)
    fee = handling_fee(pledge.loan_amount)
    grace_days = int(pawn_config('grace_period_days', default=7))
    new_due_date = pledge.due_date + relativedelta(months=months)

    return {
        'pledge_id': pledge.id,
        'pledge_no': pledge.pledge_no,
        'loan_amount': pledge.loan_amount,
        'current_due_date': pledge.due_date,
        'renewal_count': pledge.renewal_count,
        'months': months,
        'current_month': current_month,
        'new_due_date': new_due_date,
        'new_grace_end_date': new_due_date + timedelta(days=grace_days),
        'interest_breakdown': interest['breakdown'],
        'interest_amount': interest['total_interest'],
        'handling_fee': fee,
        'total_payable': money(interest['total_interest'] + fee),
    }


@transaction.atomic
def create_renewal(pledge, months, payment_method='cash', cash_amount=0, transfer_amount=0,
                   reference_no='', notes='', user=None):
    pledge = Pledge.objects.select_for_update().get(pk=pledge.pk)
    quote = calculate_renewal(pledge, months)
    _check_payment(quote['total_payable'], cash_amount, transfer_amount)

    year = timezone.localdate().year
    renewal = Renewal.objects.create(
        renewal_no=generate_sequence_number(Renewal, 'renewal_no', f'RNW-{year}'),
        pledge=pledge,
        renewal_months=months,
        previous_due_date=pledge.due_date,
        new_due_date=quote['new_due_date'],
        new_grace_end_date=quote['new_grace_end_date'],
        principal=pledge.loan_amount,
        interest_amount=quote['interest_amount'],
        handling_fee=quote['handling_fee'],
        total_payable=quote['total_payable'],
        payment_method=payment_method,
        cash_amount=money(cash_amount or 0),
        transfer_amount=money(transfer_amount or 0),
        reference_no=reference_no or '',
        notes=notes or '',
        created_by=user,
    )
    RenewalInterestBreakdown.objects.bulk_create([
        RenewalInterestBreakdown(
            renewal=renewal,
            month_number=row['month'],
            interest_rate=row['rate'],
            interest_amount=row['interest'],
        )
        for row in quote['interest_breakdown']
    ])

    pledge.due_date = quote['new_due_date']
    pledge.grace_end_date = quote['new_grace_end_date']
    pledge.renewal_count += 1
    pledge.status = 'active'
    pledge.save(update_fields=['due_date', 'grace_end_date', 'renewal_count', 'status', 'updated_at'])
    pledge.customer.update_stats()
    logger.info(f"Renewal {renewal.renewal_no}: {pledge.pledge_no} extended {months} months to {pledge.due_date}")
    return renewal


# Redemptions
def _split_items(pledge, item_ids):
    stored = list(pledge.items.filter(status='stored').select_related('slot'))
    if not stored:
        raise PledgeError(f"Pledge {pledge.pledge_no} has no items left to redeem")
    if not item_ids:
        return stored, []
    wanted = set(int(i) for i in item_ids)
    selected = [item for item in stored if item.id in wanted]
    if len(selected) != len(wanted):
        raise PledgeError("Some selected items are not stored under this pledge")
    remaining = [item for item in stored if item.id not in wanted]
    return selected, remaining


def calculate_redemption(pledge, item_ids=None, on=None):
    """
    Amount needed to redeem all stored items, or the selected ones.

    A partial redemption repays principal pro rata to the selected items'
    share of the stored net value.
    """
    _check_outstanding(pledge)
    on = on or timezone.localdate()
    selected, remaining = _split_items(pledge, item_ids)
    is_partial = bool(remaining)

    principal = pledge.loan_amount
    if is_partial:
        total_net = sum((item.net_value for item in selected + remaining), Decimal('0'))
        selected_net = sum((item.net_value for item in selected), Decimal('0'))
        ratio = selected_net / total_net if total_net > 0 else Decimal('1')
        principal = money(pledge.loan_amount * ratio)

    months_elapsed = max(1, pledge.months_elapsed(on))
    days_overdue = pledge.days_overdue(on)
    result = InterestCalculator.for_pledge(pledge).redemption(principal, months_elapsed, days_overdue)
    result.update({
        'pledge_id': pledge.id,
        'pledge_no': pledge.pledge_no,
        'is_partial': is_partial,
        'item_ids': [item.id for item in selected],
        'barcodes': [item.barcode for item in selected],
        'remaining_item_ids': [item.id for item in remaining],
    })
    return result


@transaction.atomic
def create_redemption(pledge, item_ids=None, payment_method='cash', cash_amount=0, transfer_amount=0,
                      reference_no='', notes='', user=None):
    pledge = Pledge.objects.select_for_update().get(pk=pledge.pk)
    quote = calculate_redemption(pledge, item_ids)
    _check_payment(quote['total_payable'], cash_amount, transfer_amount)

    year = timezone.localdate().year
    redemption = Redemption.objects.create(
        redemption_no=generate_sequence_number(Redemption, 'redemption_no', f'RDM-{year}'),
        pledge=pledge,
        is_partial=quote['is_partial'],
        principal=quote['principal'],
        months_elapsed=quote['months_elapsed'],
        days_overdue=quote['days_overdue'],
        regular_interest=quote['regular_interest'],
        overdue_interest=quote['overdue_interest'],
        total_interest=quote['total_interest'],
        handling_fee=quote['handling_fee'],
        total_payable=quote['total_payable'],
        payment_method=payment_method,
        cash_amount=money(cash_amount or 0),
        transfer_amount=money(transfer_amount or 0),
        reference_no=reference_no or '',
        notes=notes or '',
        created_by=user,
    )

    selected = list(pledge.items.filter(pk__in=quote['item_ids']).select_related('slot'))
    for item in selected:
        take_out_item(item, 'redeemed', user=user, reason=f'Redeemed ({redemption.redemption_no})')
    redemption.items.set(selected)

    remaining = pledge.items.filter(status='stored')
    if remaining.exists():
        pledge.loan_amount = money(pledge.loan_amount - quote['principal'])
        pledge.net_value = sum((item.net_value for item in remaining), Decimal('0.00'))
        pledge.total_net_weight = sum((item.net_weight for item in remaining), Decimal('0.000'))
        pledge.total_gross_weight = sum((item.gross_weight for item in remaining), Decimal('0.000'))
        pledge.save(update_fields=['loan_amount', 'net_value', 'total_net_weight', 'total_gross_weight', 'updated_at'])
    else:
        pledge.status = 'redeemed'
        pledge.save(update_fields=['status', 'updated_at'])

    pledge.customer.update_stats()
    logger.info(
        f"Redemption {redemption.redemption_no}: {len(selected)} items of {pledge.pledge_no} "
        f"({'partial' if redemption.is_partial else 'full'}), paid {redemption.total_payable}"
    )
    return redemption


# Reprints
def reprint_charge(pledge):
    """Charge for the next print of a pledge receipt"""
    if pledge.receipt_print_count == 0:
        return Decimal('0.00')
    return money(pawn_config('reprint_charge', default='2.00'))


@transaction.atomic
def create_reprint(pledge, reason='', user=None):
    pledge = Pledge.objects.select_for_update().get(pk=pledge.pk)
    charge = reprint_charge(pledge)
    pledge.receipt_print_count += 1
    pledge.save(update_fields=['receipt_print_count', 'updated_at'])
    reprint = Reprint.objects.create(
        pledge=pledge,
        print_number=pledge.receipt_print_count,
        is_free=charge == 0,
        charge=charge,
        reason=reason or '',
        created_by=user,
    )
    logger.info(f"Receipt print #{reprint.print_number} for {pledge.pledge_no} (charge {charge})")
    return reprint
