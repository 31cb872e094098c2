from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from django.db import IntegrityError, transaction
from django.db.models import Avg, Count

from apps.accounts.auth import require_role
from apps.accounts.models import Role
from apps.accounts.tokens import Principal
from apps.common.errors import NotEligibleError, NotFoundError, RangeError, ValidationError
from apps.common.http import parse_uuid

from .models import MenuItem, OrderItem, Rating

log = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


def _parse_value(value: Any) -> int:
    if value is None or value == "":
        raise ValidationError("rating is required")
    if isinstance(value, bool):
        raise ValidationError("rating must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise ValidationError("rating must be a number")
    if not isinstance(value, (int, float)):
        raise ValidationError("rating must be a number")
    if isinstance(value, float) and not value.is_integer():
        raise RangeError(f"rating must be a whole number between {MIN_RATING} and {MAX_RATING}")
    value = int(value)
    if not MIN_RATING <= value <= MAX_RATING:
        raise RangeError(f"rating must be between {MIN_RATING} and {MAX_RATING}")
    return value


def has_ordered(user_id, item: MenuItem) -> bool:
    """Any past order of the user, whatever its status, that contains the item."""
    return OrderItem.objects.filter(order__user_id=user_id, item_ref=str(item.id)).exists()


def _upsert(user_id, item: MenuItem, value: int) -> Rating:
    try:
        with transaction.atomic():
            rating, _ = Rating.objects.update_or_create(
                user_id=user_id, menu_item=item, defaults={"value": value}
            )
    except IntegrityError:
        # Lost the insert race to a concurrent request; the row exists now.
        with transaction.atomic():
            rating, _ = Rating.objects.update_or_create(
                user_id=user_id, menu_item=item, defaults={"value": value}
            )
    return rating


def recompute(item: MenuItem) -> tuple[Decimal, int]:
    agg = Rating.objects.filter(menu_item=item).aggregate(avg=Avg("value"), count=Count("id"))
    count = agg["count"] or 0
    if not count:
        average = Decimal("0.00")
    else:
        average = Decimal(str(agg["avg"])).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    MenuItem.objects.filter(pk=item.pk).update(rating_average=average, rating_count=count)
    item.rating_average = average
    item.rating_count = count
    return average, count


def submit_rating(principal: Principal, menu_item_id: Any, value: Any) -> dict[str, Any]:
    require_role(principal, Role.CUSTOMER)
    if menu_item_id is None or menu_item_id == "":
        raise ValidationError("menu_item_id is required")
    rating_value = _parse_value(value)

    item = MenuItem.objects.filter(pk=parse_uuid(menu_item_id, "menu_item_id")).first()
    if item is None:
        raise NotFoundError("Menu item not found")
    if not has_ordered(principal.user_id, item):
        raise NotEligibleError("You can only rate items you have ordered")

    _upsert(principal.user_id, item, rating_value)
    average, count = recompute(item)
    log.info("Rating saved: item_id=%s user_id=%s value=%d avg=%s count=%d", item.id, principal.user_id, rating_value, average, count)
    return {"rating": average, "rating_count": count}
