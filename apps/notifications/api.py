from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from django.db import transaction

from .models import Notification

log = logging.getLogger(__name__)


def emit(*, user_id, order_id, message: str, category: str) -> Optional[Notification]:
    """Persist a user-facing notification, best effort.

    Runs in its own savepoint so a failed insert never poisons the caller's
    transaction; errors are logged and swallowed.
    """
    try:
        with transaction.atomic():
            return Notification.objects.create(
                user_id=user_id,
                order_id=order_id,
                message=message,
                category=category,
            )
    except Exception:
        log.exception("Notification failed: user_id=%s order_id=%s category=%s", user_id, order_id, category)
        return None


@dataclass
class Emit:
    user_id: object
    order_id: object
    message: str
    category: str


def emit_many(items: Iterable[Optional[Emit]]) -> int:
    sent = 0
    for it in items:
        if not it:
            continue
        if emit(user_id=it.user_id, order_id=it.order_id, message=it.message, category=it.category):
            sent += 1
    return sent
