from datetime import timedelta

from dateutil.relativedelta import relativedelta
from django.core.management.base import BaseCommand
from django.db.models import F, Q, Sum
from django.db.models.functions import Coalesce
from django.utils import timezone

from pharmacy.models import Medicine, PharmacySettings, StockBatch


class Command(BaseCommand):
    help = 'Lists medicines below their reorder level and batches close to (or past) expiry'

    def add_arguments(self, parser):
        window = parser.add_mutually_exclusive_group()
        window.add_argument(
            '--days', type=int, default=None,
            help='Near-expiry window in days (defaults to the store setting)'
        )
        window.add_argument(
            '--months', type=int, default=None,
            help='Near-expiry window in calendar months'
        )

    def handle(self, *args, **options):
        today = timezone.localdate()
        if options['months'] is not None:
            cutoff = today + relativedelta(months=options['months'])
            window = f"{options['months']} months"
        else:
            days = options['days']
            if days is None:
                days = PharmacySettings.load().near_expiry_days
            cutoff = today + timedelta(days=days)
            window = f"{days} days"

        low_stock = (
            Medicine.objects
            .filter(is_active=True)
            .annotate(sellable=Coalesce(
                Sum('batches__qty_available', filter=Q(batches__expiry_date__gt=today)), 0
            ))
            .filter(sellable__lt=F('reorder_level'))
            .order_by('name')
        )
        self.stdout.write(f"Low stock ({low_stock.count()}):")
        for med in low_stock:
            self.stdout.write(
                self.style.WARNING(f"  {med.name}: {med.sellable} left, reorder level {med.reorder_level}")
            )

        near_expiry = (
            StockBatch.objects
            .select_related('medicine')
            .filter(qty_available__gt=0, expiry_date__lte=cutoff)
            .order_by('expiry_date', 'created_at')
        )
        self.stdout.write(f"Expiring within {window} ({near_expiry.count()}):")
        for batch in near_expiry:
            state = 'EXPIRED' if batch.expiry_date <= today else 'expires'
            line = f"  {batch.medicine.name} ({batch.batch_no}): {state} {batch.expiry_date}, qty {batch.qty_available}"
            self.stdout.write(self.style.ERROR(line) if state == 'EXPIRED' else line)

        self.stdout.write(self.style.SUCCESS('Stock check complete.'))
