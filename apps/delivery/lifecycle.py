"""Order state machine.

pending -> accepted -> completed, pending/accepted -> rejected, and any active
order -> cancelled. completed, rejected and cancelled are terminal. All time
windows are recomputed from the wall clock on every call; nothing here keeps
state between requests.
"""
from __future__ import annotations

import datetime as dt
import logging
import uuid
from typing import Any

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.accounts.auth import require_role
from apps.accounts.models import Role
from apps.accounts.tokens import Principal
from apps.common.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    WindowExpiredError,
)
from apps.notifications.api import Emit, emit, emit_many
from apps.notifications.models import Notification

from . import pricing
from .models import MenuItem, Order, OrderItem, OrderStatusChange

log = logging.getLogger(__name__)

S = Order.Status

ADMIN_TARGETS = {S.ACCEPTED, S.REJECTED, S.COMPLETED, S.CANCELLED}

# Edges enforced when ORDER_STRICT_ADMIN_TRANSITIONS is on.
TRANSITIONS = {
    S.PENDING: {S.ACCEPTED, S.REJECTED, S.CANCELLED},
    S.ACCEPTED: {S.COMPLETED, S.REJECTED, S.CANCELLED},
    S.REJECTED: set(),
    S.COMPLETED: set(),
    S.CANCELLED: set(),
}

STATUS_CATEGORY = {
    S.ACCEPTED: Notification.Category.ORDER_ACCEPTED,
    S.REJECTED: Notification.Category.ORDER_REJECTED,
    S.COMPLETED: Notification.Category.ORDER_COMPLETED,
    S.CANCELLED: Notification.Category.ORDER_CANCELLED,
}


def cancel_window() -> dt.timedelta:
    return dt.timedelta(minutes=int(getattr(settings, "ORDER_CANCEL_WINDOW_MINUTES", 5)))


def expiry_age() -> dt.timedelta:
    return dt.timedelta(minutes=int(getattr(settings, "ORDER_AUTO_EXPIRY_MINUTES", 2)))


def status_message(order: Order, status: str) -> str:
    if status == S.PENDING:
        return f"Your order #{order.short_code} has been placed successfully."
    return f"Your order #{order.short_code} has been {status}."


def _clean_items(raw_items: Any) -> list[dict[str, Any]]:
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("Order must contain at least one item")
    cleaned = []
    for idx, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{idx}] must be an object")
        item_ref = raw.get("item_id")
        if isinstance(item_ref, bool) or item_ref is None or not str(item_ref).strip():
            raise ValidationError(f"items[{idx}].item_id is required")
        item_ref = str(item_ref).strip()
        pk = _as_uuid(item_ref)
        if pk is not None:
            item_ref = str(pk)
        name = raw.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"items[{idx}].name is required")
        cleaned.append(
            {
                "item_ref": item_ref,
                "name": name.strip(),
                "price": pricing.parse_price(raw.get("price"), f"items[{idx}].price"),
                "quantity": pricing.parse_quantity(raw.get("quantity"), f"items[{idx}].quantity"),
            }
        )
    return cleaned


def _reprice(items: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Replace submitted name/price snapshots with live catalogue values."""
    ids = [pk for pk in (_as_uuid(it["item_ref"]) for it in items) if pk]
    by_id = {item.id: item for item in MenuItem.objects.filter(pk__in=ids)}
    for it in items:
        live = by_id.get(_as_uuid(it["item_ref"]))
        if live is None:
            raise ValidationError(f"Unknown menu item: {it['item_ref']}")
        if not live.is_available:
            raise ValidationError(f'"{live.name}" is not available right now')
        it["item_ref"] = str(live.id)
        it["name"] = live.name
        it["price"] = pricing.quantize(live.price)
    return items


def _as_uuid(value: str):
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


def create_order(
    principal: Principal,
    *,
    items: Any,
    customer_name: Any,
    customer_phone: Any,
    customer_address: Any,
) -> Order:
    contact = {}
    for field, value in (
        ("customer_name", customer_name),
        ("customer_phone", customer_phone),
        ("customer_address", customer_address),
    ):
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{field} is required")
        contact[field] = value.strip()
    cleaned = _clean_items(items)
    if getattr(settings, "ORDER_REPRICE_FROM_MENU", False):
        cleaned = _reprice(cleaned)

    total = pricing.order_total((it["price"], it["quantity"]) for it in cleaned)
    with transaction.atomic():
        order = Order.objects.create(
            user_id=principal.user_id,
            status=S.PENDING,
            total_amount=total,
            **contact,
        )
        OrderItem.objects.bulk_create([OrderItem(order=order, **it) for it in cleaned])

    log.info("Order placed: order_id=%s user_id=%s total=%s items=%d", order.id, principal.user_id, total, len(cleaned))
    emit(
        user_id=order.user_id,
        order_id=order.id,
        message=status_message(order, S.PENDING),
        category=Notification.Category.ORDER_PLACED,
    )
    return order


def transition_order(principal: Principal, order_id, status: Any) -> Order:
    require_role(principal, Role.ADMINISTRATOR)
    if not isinstance(status, str) or status not in ADMIN_TARGETS:
        raise ValidationError("status must be one of: accepted, rejected, completed, cancelled")
    status = S(status)
    strict = getattr(settings, "ORDER_STRICT_ADMIN_TRANSITIONS", False)

    with transaction.atomic():
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found")
        current = order.status
        if order.is_terminal:
            raise InvalidTransitionError(f"Order is already {current}")
        if strict and status == current:
            raise InvalidTransitionError(f"Order is already {current}")
        if strict and status not in TRANSITIONS[S(current)]:
            raise InvalidTransitionError(f"Cannot move order from {current} to {status}")
        order.set_status(status, source="admin")

    log.info("Order transition: order_id=%s %s -> %s by user_id=%s", order.id, current, status, principal.user_id)
    emit(
        user_id=order.user_id,
        order_id=order.id,
        message=status_message(order, status),
        category=STATUS_CATEGORY[status],
    )
    return order


def cancel_order(principal: Principal, order_id, now: dt.datetime | None = None) -> Order:
    now = now or timezone.now()
    with transaction.atomic():
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found")
        if order.user_id != principal.user_id:
            raise ForbiddenError("You can only cancel your own orders")
        if order.is_terminal:
            raise InvalidTransitionError(f"Order is already {order.status}")
        if now - order.created_at > cancel_window():
            minutes = int(cancel_window().total_seconds() // 60)
            raise WindowExpiredError(f"Order can only be cancelled within {minutes} minutes of placing it")
        order.set_status(S.CANCELLED, source="customer")

    log.info("Order cancelled by customer: order_id=%s user_id=%s", order.id, principal.user_id)
    emit(
        user_id=order.user_id,
        order_id=order.id,
        message=status_message(order, S.CANCELLED),
        category=Notification.Category.ORDER_CANCELLED,
    )
    return order


def expire_stale_orders(now: dt.datetime | None = None) -> int:
    """Cancel every pending order at least ``ORDER_AUTO_EXPIRY_MINUTES`` old.

    Idempotent; safe to call before every read and from the periodic task.
    """
    now = now or timezone.now()
    cutoff = now - expiry_age()
    with transaction.atomic():
        stale = list(
            Order.objects.select_for_update()
            .filter(status=S.PENDING, created_at__lte=cutoff)
            .values_list("id", "user_id")
        )
        if not stale:
            return 0
        ids = [order_id for order_id, _ in stale]
        Order.objects.filter(pk__in=ids, status=S.PENDING).update(status=S.CANCELLED, updated_at=now)
        OrderStatusChange.objects.bulk_create(
            [OrderStatusChange(order_id=order_id, status=S.CANCELLED, source="auto_expiry") for order_id in ids]
        )

    log.info("Expired %d pending order(s) older than %s", len(ids), cutoff.isoformat())
    emit_many(
        Emit(
            user_id=user_id,
            order_id=order_id,
            message=f"Your order #{order_id.hex[-6:].upper()} has been cancelled.",
            category=Notification.Category.ORDER_CANCELLED,
        )
        for order_id, user_id in stale
    )
    return len(ids)


def list_orders(principal: Principal, now: dt.datetime | None = None) -> list[Order]:
    expire_stale_orders(now)
    qs = Order.objects.select_related("user").prefetch_related("items").order_by("-created_at")
    if principal.role is Role.ADMINISTRATOR:
        return list(qs)
    elif principal.role is Role.CUSTOMER:
        return list(qs.filter(user_id=principal.user_id))
    else:
        raise ForbiddenError("Not allowed for this role")


def get_order(principal: Principal, order_id, now: dt.datetime | None = None) -> Order:
    expire_stale_orders(now)
    order = (
        Order.objects.select_related("user")
        .prefetch_related("items", "status_changes")
        .filter(pk=order_id)
        .first()
    )
    if order is None:
        raise NotFoundError("Order not found")
    if not principal.is_admin and order.user_id != principal.user_id:
        raise ForbiddenError("You can only view your own orders")
    return order


def delete_order(principal: Principal, order_id) -> None:
    require_role(principal, Role.ADMINISTRATOR)
    deleted, _ = Order.objects.filter(pk=order_id).delete()
    if not deleted:
        raise NotFoundError("Order not found")
    log.info("Order deleted: order_id=%s by user_id=%s", order_id, principal.user_id)
