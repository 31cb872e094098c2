import datetime as dt
from io import StringIO

import pytest
from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.accounts.models import Role
from apps.delivery.models import MenuItem, Order
from apps.delivery.tasks import expire_pending_orders, restore_menu_availability

User = get_user_model()


@pytest.mark.django_db
def test_expiry_task_matches_lazy_sweep(customer, make_order):
    stale = make_order(customer, age=dt.timedelta(minutes=5))
    assert expire_pending_orders.apply().get() == {"expired": 1}
    stale.refresh_from_db()
    assert stale.status == Order.Status.CANCELLED
    assert expire_pending_orders.apply().get() == {"expired": 0}


@pytest.mark.django_db
def test_restore_task_accepts_timestamp(make_item):
    item = make_item()
    MenuItem.objects.filter(pk=item.pk).update(
        is_available=False, availability_changed_at=dt.datetime(2026, 3, 9, 12, 0, tzinfo=dt.timezone.utc)
    )
    assert restore_menu_availability.apply(kwargs={"now": "2026-03-10T08:00:00"}).get() == {"restored": 0}
    assert restore_menu_availability.apply(kwargs={"now": "2026-03-10T09:00:00+00:00"}).get() == {"restored": 1}


@pytest.mark.django_db
def test_run_sweeps_command(customer, make_order, make_item):
    make_order(customer, age=dt.timedelta(minutes=3))
    item = make_item()
    MenuItem.objects.filter(pk=item.pk).update(
        is_available=False, availability_changed_at=dt.datetime(2026, 3, 9, 12, 0, tzinfo=dt.timezone.utc)
    )
    out = StringIO()
    call_command("run_sweeps", "--now", "2026-03-10T10:00:00", "--skip-orders", stdout=out)
    assert "expired=0 restored=1" in out.getvalue()

    out = StringIO()
    call_command("run_sweeps", stdout=out)
    assert "expired=1" in out.getvalue()

    with pytest.raises(CommandError):
        call_command("run_sweeps", "--now", "yesterday")


@pytest.mark.django_db
def test_create_admin_command(customer):
    call_command("create_admin", "--username", "boss", "--password", "pw123456", stdout=StringIO())
    boss = User.objects.get(username="boss")
    assert boss.role == Role.ADMINISTRATOR
    assert boss.check_password("pw123456")

    call_command("create_admin", "--username", customer.username, stdout=StringIO())
    customer.refresh_from_db()
    assert customer.role == Role.ADMINISTRATOR

    with pytest.raises(CommandError):
        call_command("create_admin", "--username", "ghost")
