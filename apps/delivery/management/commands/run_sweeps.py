import datetime as dt

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from apps.delivery.availability import restore_daily
from apps.delivery.lifecycle import expire_stale_orders


class Command(BaseCommand):
    help = "Runs the order expiry and menu restoration sweeps once (idempotent)."

    def add_arguments(self, parser):
        parser.add_argument("--now", dest="now", help="ISO timestamp to evaluate the sweeps at; default: now", default=None)
        parser.add_argument("--skip-orders", action="store_true", help="Do not expire stale pending orders")
        parser.add_argument("--skip-menu", action="store_true", help="Do not restore menu availability")

    def handle(self, *args, **options):
        raw = options.get("now")
        if raw:
            try:
                now = dt.datetime.fromisoformat(raw)
            except ValueError:
                raise CommandError("--now must be an ISO 8601 timestamp")
            if timezone.is_naive(now):
                now = timezone.make_aware(now)
        else:
            now = timezone.now()

        expired = 0 if options["skip_orders"] else expire_stale_orders(now)
        restored = 0 if options["skip_menu"] else restore_daily(now)
        self.stdout.write(self.style.SUCCESS(f"OK: expired={expired} restored={restored}"))
