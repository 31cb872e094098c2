from __future__ import annotations

import logging

from django.db import transaction

from apps.notifications.api import emit
from apps.notifications.models import Notification

from .models import MenuItem, Order

log = logging.getLogger(__name__)


def cancel_orders_for_unavailable_item(item: MenuItem) -> list[Order]:
    """Cancel every in-flight order that contains ``item``.

    Orders reference menu items by the identifier string snapshotted on the
    line item. Each order is cancelled in its own atomic step and only if it
    is still active when locked; the owner is then notified, best effort.
    """
    ref = str(item.id)
    candidate_ids = list(
        Order.objects.filter(status__in=Order.ACTIVE_STATUSES, items__item_ref=ref)
        .order_by()
        .values_list("id", flat=True)
        .distinct()
    )
    cancelled: list[Order] = []
    for order_id in candidate_ids:
        with transaction.atomic():
            order = (
                Order.objects.select_for_update()
                .filter(pk=order_id, status__in=Order.ACTIVE_STATUSES)
                .first()
            )
            if order is None:
                continue
            order.set_status(Order.Status.CANCELLED, source="item_unavailable", note=f"item {ref}")

        line = order.items.filter(item_ref=ref).first()
        item_name = (line.name if line else "") or item.name
        emit(
            user_id=order.user_id,
            order_id=order.id,
            message=(
                f"Your order #{order.short_code} has been cancelled because "
                f'the item "{item_name}" is no longer available.'
            ),
            category=Notification.Category.ORDER_CANCELLED,
        )
        cancelled.append(order)

    if cancelled:
        log.info("Item unavailable: item_id=%s cancelled %d order(s)", ref, len(cancelled))
    return cancelled
