"""Management command to persist the EXPIRED status of overdue redemptions."""

from django.core.management.base import BaseCommand

from pointsman.services.redemption import RedemptionService


class Command(BaseCommand):
    help = "Mark COMPLETED redemptions past their expiry as EXPIRED"

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="List overdue redemptions without changing them",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]
        codes = RedemptionService.expire_overdue(dry_run=dry_run)

        for code in codes:
            self.stdout.write(f"  {code}")

        if dry_run:
            self.stdout.write(f"{len(codes)} redemptions would be expired.")
        else:
            self.stdout.write(self.style.SUCCESS(f"Expired {len(codes)} redemptions."))
