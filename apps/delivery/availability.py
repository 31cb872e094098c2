"""Menu availability.

Administrators can take an item off the menu at any time. Items switched off
before today's restoration hour (``MENU_RESTORE_HOUR``, local time) come back
automatically on the first menu read at or after that hour.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any

from django.conf import settings
from django.utils import timezone

from apps.accounts.auth import require_role
from apps.accounts.models import Role
from apps.accounts.tokens import Principal
from apps.common.errors import NotFoundError, ValidationError

from . import pricing
from .consistency import cancel_orders_for_unavailable_item
from .models import MenuItem, Order

log = logging.getLogger(__name__)

EDITABLE_FIELDS = ("name", "price", "image", "description", "is_available")


def restore_boundary(now: dt.datetime) -> dt.datetime | None:
    """Today's restoration instant, or None when it has not been reached yet."""
    local = timezone.localtime(now)
    hour = int(getattr(settings, "MENU_RESTORE_HOUR", 9))
    if local.hour < hour:
        return None
    return local.replace(hour=hour, minute=0, second=0, microsecond=0)


def restore_daily(now: dt.datetime | None = None) -> int:
    now = now or timezone.now()
    boundary = restore_boundary(now)
    if boundary is None:
        return 0
    restored = MenuItem.objects.filter(is_available=False, availability_changed_at__lt=boundary).update(
        is_available=True, availability_changed_at=now, updated_at=now
    )
    if restored:
        log.info("Restored %d menu item(s) switched off before %s", restored, boundary.isoformat())
    return restored


def list_menu(now: dt.datetime | None = None) -> list[MenuItem]:
    restore_daily(now)
    return list(MenuItem.objects.order_by("-created_at"))


def get_menu_item(item_id, now: dt.datetime | None = None) -> MenuItem:
    restore_daily(now)
    item = MenuItem.objects.filter(pk=item_id).first()
    if item is None:
        raise NotFoundError("Menu item not found")
    return item


def set_availability(item: MenuItem, available: bool, *, now: dt.datetime | None = None) -> list[Order]:
    """Flip availability immediately, ignoring the restoration hour.

    Items due for restoration are restored first, so switching one off is a
    real flip. Only a real available -> unavailable flip cancels in-flight
    orders; the returned list holds the orders that were cancelled. Marking
    an already unavailable item unavailable again restamps it so the next
    restoration does not bring it back.
    """
    now = now or timezone.now()
    restore_daily(now)
    changed = MenuItem.objects.filter(pk=item.pk, is_available=not available).update(
        is_available=available, availability_changed_at=now, updated_at=now
    )
    item.is_available = available
    if not changed:
        if not available:
            MenuItem.objects.filter(pk=item.pk).update(availability_changed_at=now, updated_at=now)
            item.availability_changed_at = now
        return []
    item.availability_changed_at = now
    log.info("Menu item %s is now %s", item.pk, "available" if available else "unavailable")
    if available:
        return []
    return cancel_orders_for_unavailable_item(item)


def _text(data: dict[str, Any], field: str, *, required: bool) -> str | None:
    if field not in data:
        if required:
            raise ValidationError(f"{field} is required")
        return None
    value = data[field]
    if not isinstance(value, str) or (required and not value.strip()):
        raise ValidationError(f"{field} must be a non-empty string" if required else f"{field} must be a string")
    return value.strip()


def _flag(data: dict[str, Any], field: str) -> bool | None:
    if field not in data:
        return None
    if not isinstance(data[field], bool):
        raise ValidationError(f"{field} must be true or false")
    return data[field]


def create_menu_item(principal: Principal, data: dict[str, Any]) -> MenuItem:
    require_role(principal, Role.ADMINISTRATOR)
    name = _text(data, "name", required=True)
    image = _text(data, "image", required=True)
    if "price" not in data:
        raise ValidationError("price is required")
    price = pricing.parse_price(data["price"])
    description = _text(data, "description", required=False) or ""
    available = _flag(data, "is_available")
    item = MenuItem.objects.create(
        name=name,
        price=price,
        image=image,
        description=description,
        is_available=True if available is None else available,
    )
    log.info("Menu item created: item_id=%s by user_id=%s", item.id, principal.user_id)
    return item


def update_menu_item(
    principal: Principal, item_id, data: dict[str, Any], now: dt.datetime | None = None
) -> tuple[MenuItem, list[Order]]:
    require_role(principal, Role.ADMINISTRATOR)
    unknown = sorted(set(data) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(unknown)}")
    item = MenuItem.objects.filter(pk=item_id).first()
    if item is None:
        raise NotFoundError("Menu item not found")

    changed = []
    for field in ("name", "image"):
        value = _text(data, field, required=field in data)
        if value is not None:
            setattr(item, field, value)
            changed.append(field)
    description = _text(data, "description", required=False)
    if description is not None:
        item.description = description
        changed.append("description")
    if "price" in data:
        item.price = pricing.parse_price(data["price"])
        changed.append("price")
    available = _flag(data, "is_available")

    if changed:
        item.save(update_fields=changed + ["updated_at"])
    cancelled: list[Order] = []
    if available is not None:
        cancelled = set_availability(item, available, now=now)
    return item, cancelled


def delete_menu_item(principal: Principal, item_id) -> None:
    require_role(principal, Role.ADMINISTRATOR)
    deleted, _ = MenuItem.objects.filter(pk=item_id).delete()
    if not deleted:
        raise NotFoundError("Menu item not found")
    log.info("Menu item deleted: item_id=%s by user_id=%s", item_id, principal.user_id)
