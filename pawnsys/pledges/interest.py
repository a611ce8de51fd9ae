"""
Pawn interest arithmetic

Rates are percent per month. Months 1-6 of a pledge carry the standard
rate, later months the extended rate. Days past the due date accrue the
overdue rate pro-rated over a 30-day month.
"""
from decimal import Decimal

from pawnsys.core.utils import pawn_config, get_setting, get_decimal_setting, money

HUNDRED = Decimal('100')
DAYS_PER_MONTH = Decimal('30')


def handling_fee(principal):
    """
    Handling fee charged on renewals and redemptions.

    Settings handling_charge_type ('fixed' or 'percentage'),
    handling_charge_value and handling_charge_min override the configured
    defaults. A percentage fee never goes below the minimum.
    """
    defaults = pawn_config('handling_fee', default={}) or {}
    fee_type = get_setting('handling_charge_type', defaults.get('type', 'fixed'))
    value = get_decimal_setting('handling_charge_value', defaults.get('value', Decimal('0.50')))
    minimum = get_decimal_setting('handling_charge_min', defaults.get('min', Decimal('0')))

    if fee_type == 'percentage':
        fee = Decimal(str(principal)) * value / HUNDRED
        if fee < minimum:
            fee = minimum
    else:
        fee = value
    return money(fee)


class InterestCalculator:
    def __init__(self, standard_rate=None, extended_rate=None, overdue_rate=None, standard_months=None):
        rates = pawn_config('interest', default={}) or {}
        self.standard_rate = Decimal(str(standard_rate if standard_rate is not None else rates.get('standard', '0.5')))
        self.extended_rate = Decimal(str(extended_rate if extended_rate is not None else rates.get('extended', '1.5')))
        self.overdue_rate = Decimal(str(overdue_rate if overdue_rate is not None else rates.get('overdue', '2.0')))
        self.standard_months = int(standard_months if standard_months is not None else rates.get('standard_months', 6))

    @classmethod
    def for_pledge(cls, pledge):
        """Calculator using the rates locked in on the pledge"""
        return cls(
            standard_rate=pledge.interest_rate,
            extended_rate=pledge.interest_rate_extended,
            overdue_rate=pledge.interest_rate_overdue,
        )

    def rate_for_month(self, month):
        return self.standard_rate if month <= self.standard_months else self.extended_rate

    def monthly_interest(self, principal, month):
        return Decimal(str(principal)) * self.rate_for_month(month) / HUNDRED

    def monthly_breakdown(self, principal, months=6):
        """Month-by-month interest with running totals"""
        principal = Decimal(str(principal))
        breakdown = []
        cumulative = Decimal('0')
        for month in range(1, months + 1):
            interest = self.monthly_interest(principal, month)
            cumulative += interest
            breakdown.append({
                'month': month,
                'rate': self.rate_for_month(month),
                'interest': money(interest),
                'cumulative': money(cumulative),
                'total_payable': money(principal + cumulative),
            })
        return breakdown

    def interest_for_months(self, principal, months):
        total = sum((self.monthly_interest(principal, month) for month in range(1, months + 1)), Decimal('0'))
        return money(total)

    def renewal_interest(self, principal, current_month, renewal_months):
        """
        Interest for renewing `renewal_months` months on top of
        `current_month` months already elapsed.
        """
        breakdown = []
        total = Decimal('0')
        for offset in range(renewal_months):
            month = current_month + offset + 1
            interest = self.monthly_interest(principal, month)
            total += interest
            breakdown.append({
                'month': month,
                'rate': self.rate_for_month(month),
                'interest': money(interest),
            })
        return {'breakdown': breakdown, 'total_interest': money(total)}

    def overdue_interest(self, principal, days_overdue):
        if days_overdue <= 0:
            return Decimal('0.00')
        daily_rate = self.overdue_rate / HUNDRED / DAYS_PER_MONTH
        return money(Decimal(str(principal)) * daily_rate * days_overdue)

    def redemption(self, principal, months_elapsed, days_overdue=0):
        """Everything owed to redeem: principal, regular and overdue interest, handling fee"""
        principal = money(principal)
        regular = self.interest_for_months(principal, months_elapsed)
        overdue = self.overdue_interest(principal, days_overdue)
        total_interest = money(regular + overdue)
        fee = handling_fee(principal)
        return {
            'principal': principal,
            'months_elapsed': months_elapsed,
            'days_overdue': days_overdue,
            'regular_interest': regular,
            'overdue_interest': overdue,
            'total_interest': total_interest,
            'handling_fee': fee,
            'total_payable': money(principal + total_interest + fee),
        }
