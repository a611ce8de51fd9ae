"""
Flag active pledges whose due date has passed as overdue.

Usage:
    python manage.py mark_overdue_pledges
    python manage.py mark_overdue_pledges --dry-run
"""
from django.core.management.base import BaseCommand
from django.utils import timezone

from pawnsys.core.cache_utils import invalidate_dashboard_cache
from pawnsys.pledges.models import Pledge
from pawnsys.pledges.services import mark_overdue


class Command(BaseCommand):
    help = 'Mark active pledges past their due date as overdue'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the pledges that would be marked without changing them',
        )

    def handle(self, *args, **options):
        today = timezone.localdate()
        due = Pledge.objects.filter(status='active', due_date__lt=today).order_by('due_date')

        if options['dry_run']:
            for pledge in due:
                self.stdout.write(f"  {pledge.pledge_no}: due {pledge.due_date}, {pledge.days_overdue(today)} days overdue")
            self.stdout.write(self.style.WARNING(f"DRY RUN - {due.count()} pledges would be marked overdue"))
            return

        updated = mark_overdue(today)
        if updated:
            invalidate_dashboard_cache()
        self.stdout.write(self.style.SUCCESS(f"Marked {updated} pledges overdue"))
