"""
Item valuation

An item's value is its weight after stone deduction times the price per
gram for its purity. A stone deduction is a percentage of the gross weight,
a weight in grams, or a fixed amount taken off the value.
"""
from decimal import Decimal, ROUND_HALF_UP

from pawnsys.core.utils import money, pawn_config
from .interest import InterestCalculator

THREE_PLACES = Decimal('0.001')
HUNDRED = Decimal('100')


def grams(value):
    return Decimal(str(value or 0)).quantize(THREE_PLACES, rounding=ROUND_HALF_UP)


def value_item(gross_weight, price_per_gram, deduction_type='none', deduction_value=0):
    gross_weight = grams(gross_weight)
    price = money(price_per_gram)
    deduction_value = Decimal(str(deduction_value or 0))
    gross_value = money(gross_weight * price)

    deduction_weight = Decimal('0')
    if deduction_type == 'percentage':
        deduction_weight = gross_weight * deduction_value / HUNDRED
    elif deduction_type == 'grams':
        deduction_weight = deduction_value
    deduction_weight = min(grams(deduction_weight), gross_weight)
    net_weight = gross_weight - deduction_weight

    if deduction_type == 'amount':
        deduction_amount = min(money(deduction_value), gross_value)
        net_value = gross_value - deduction_amount
    else:
        net_value = money(net_weight * price)
        deduction_amount = gross_value - net_value

    return {
        'gross_weight': gross_weight,
        'deduction_weight': deduction_weight,
        'net_weight': net_weight,
        'price_per_gram': price,
        'gross_value': gross_value,
        'deduction_amount': deduction_amount,
        'net_value': net_value,
    }


def summarize(valued_items, loan_percentage):
    totals = {
        'total_gross_weight': sum((i['gross_weight'] for i in valued_items), Decimal('0.000')),
        'total_net_weight': sum((i['net_weight'] for i in valued_items), Decimal('0.000')),
        'gross_value': sum((i['gross_value'] for i in valued_items), Decimal('0.00')),
        'total_deduction': sum((i['deduction_amount'] for i in valued_items), Decimal('0.00')),
        'net_value': sum((i['net_value'] for i in valued_items), Decimal('0.00')),
    }
    loan_percentage = Decimal(str(loan_percentage))
    totals['loan_percentage'] = loan_percentage
    totals['loan_amount'] = money(totals['net_value'] * loan_percentage / HUNDRED)
    return totals


def preview(valued_items, loan_percentage, loan_amount=None, calculator=None):
    """
    Valuation preview shown before a pledge is saved: per-item values,
    totals, six-month interest breakdown and redemption estimates.
    """
    calculator = calculator or InterestCalculator()
    summary = summarize(valued_items, loan_percentage)
    if loan_amount is not None:
        summary['loan_amount'] = money(loan_amount)
    principal = summary['loan_amount']
    term = int(pawn_config('pledge_term_months', default=6))

    estimates = []
    for months in (1, 3, 6):
        interest = calculator.interest_for_months(principal, months)
        estimates.append({
            'months': months,
            'interest': interest,
            'total_payable': money(principal + interest),
        })
    return {
        'items': valued_items,
        'summary': summary,
        'interest_breakdown': calculator.monthly_breakdown(principal, term),
        'redemption_estimates': estimates,
    }
