"""
Recompute the cached pledge counters on every customer.

Usage:
    python manage.py sync_customer_stats
    python manage.py sync_customer_stats --customer CUS-2025-00001
"""
from django.core.management.base import BaseCommand

from pawnsys.customers.models import Customer


class Command(BaseCommand):
    help = 'Recompute total/active pledge counts and outstanding loan totals for customers'

    def add_arguments(self, parser):
        parser.add_argument(
            '--customer',
            type=str,
            help='Only sync the customer with this customer number',
        )

    def handle(self, *args, **options):
        customers = Customer.objects.all()
        if options.get('customer'):
            customers = customers.filter(customer_no=options['customer'])
            if not customers.exists():
                self.stdout.write(self.style.WARNING(f"Customer {options['customer']} not found"))
                return

        changed = 0
        for customer in customers.iterator():
            before = (customer.total_pledges, customer.active_pledges, customer.total_loan_amount)
            customer.update_stats()
            after = (customer.total_pledges, customer.active_pledges, customer.total_loan_amount)
            if before != after:
                changed += 1
                self.stdout.write(f"  {customer.customer_no}: {before} -> {after}")

        self.stdout.write(self.style.SUCCESS(f"Synced {customers.count()} customers ({changed} changed)"))
