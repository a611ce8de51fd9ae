"""
Cancel reconciliations left in progress past their expiry.

Usage:
    python manage.py cleanup_stuck_reconciliations
    python manage.py cleanup_stuck_reconciliations --all
"""
from django.core.management.base import BaseCommand

from pawnsys.reconciliation.models import Reconciliation
from pawnsys.reconciliation.services import cancel_expired, force_cancel_active


class Command(BaseCommand):
    help = 'Cancel expired in-progress reconciliations'

    def add_arguments(self, parser):
        parser.add_argument(
            '--all',
            action='store_true',
            help='Cancel every in-progress reconciliation, expired or not',
        )

    def handle(self, *args, **options):
        in_progress = Reconciliation.objects.filter(status='in_progress')
        if not in_progress.exists():
            self.stdout.write(self.style.SUCCESS('No in-progress reconciliations'))
            return

        for reconciliation in in_progress:
            state = 'expired' if reconciliation.is_expired else 'active'
            self.stdout.write(f"  {reconciliation.reconciliation_no}: started {reconciliation.started_at:%Y-%m-%d %H:%M} ({state})")

        cancelled = cancel_expired()
        if options['all']:
            while force_cancel_active('Cancelled by cleanup command') is not None:
                cancelled += 1

        self.stdout.write(self.style.SUCCESS(f"Cancelled {cancelled} reconciliation(s)"))
