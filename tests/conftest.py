import datetime as dt
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import caches
from django.utils import timezone

from apps.accounts.models import Role
from apps.accounts.tokens import issue_token, verify_token
from apps.delivery.models import MenuItem, Order, OrderItem

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_cache():
    caches["default"].clear()
    yield
    caches["default"].clear()


@pytest.fixture
def make_user(db):
    def _make_user(username: str = "alice", *, role: str = Role.CUSTOMER, password: str = "pwd12345") -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            phone="555-0100",
            address="1 Bean Street",
            role=role,
        )
        user.set_password(password)
        user.save()
        return user

    return _make_user


@pytest.fixture
def customer(make_user):
    return make_user("alice")


@pytest.fixture
def other_customer(make_user):
    return make_user("bob")


@pytest.fixture
def admin_user(make_user):
    return make_user("barista", role=Role.ADMINISTRATOR)


@pytest.fixture
def principal_for():
    def _principal_for(user):
        return verify_token(issue_token(user))

    return _principal_for


@pytest.fixture
def auth_header():
    def _auth_header(user) -> dict:
        return {"HTTP_AUTHORIZATION": f"Bearer {issue_token(user)}"}

    return _auth_header


@pytest.fixture
def make_item(db):
    def _make_item(name: str = "Latte", price: str = "4.50", *, is_available: bool = True, **extra) -> MenuItem:
        return MenuItem.objects.create(
            name=name,
            price=Decimal(price),
            image=f"/img/{name.lower()}.jpg",
            description=extra.pop("description", ""),
            is_available=is_available,
            **extra,
        )

    return _make_item


@pytest.fixture
def make_order(db):
    def _make_order(
        user,
        *,
        items=None,
        status: str = Order.Status.PENDING,
        age: dt.timedelta | None = None,
    ) -> Order:
        items = items or []
        total = sum((Decimal(str(price)) * qty for _ref, _name, price, qty in items), Decimal("0"))
        order = Order.objects.create(
            user=user,
            status=status,
            total_amount=total,
            customer_name="Alice",
            customer_phone="555-0100",
            customer_address="1 Bean Street",
        )
        for ref, name, price, qty in items:
            OrderItem.objects.create(order=order, item_ref=str(ref), name=name, price=Decimal(str(price)), quantity=qty)
        if age is not None:
            Order.objects.filter(pk=order.pk).update(created_at=timezone.now() - age)
            order.refresh_from_db()
        return order

    return _make_order
