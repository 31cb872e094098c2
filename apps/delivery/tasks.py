import datetime as dt
import logging

from celery import shared_task
from django.utils import timezone

from .availability import restore_daily
from .lifecycle import expire_stale_orders

log = logging.getLogger(__name__)


def _parse_now(now: str | None):
    if not now:
        return None
    try:
        parsed = dt.datetime.fromisoformat(now)
    except ValueError:
        log.warning("Ignoring invalid timestamp %r; using current time", now)
        return None
    return timezone.make_aware(parsed) if timezone.is_naive(parsed) else parsed


@shared_task
def expire_pending_orders(now: str | None = None):
    """Periodic twin of the lazy sweep run before every order read."""
    expired = expire_stale_orders(_parse_now(now))
    return {"expired": expired}


@shared_task
def restore_menu_availability(now: str | None = None):
    """Runs at the restoration hour so the menu is fresh before anyone reads it."""
    restored = restore_daily(_parse_now(now))
    return {"restored": restored}
