import uuid
from decimal import Decimal

import pytest

from apps.common.errors import ForbiddenError, NotEligibleError, NotFoundError, RangeError, ValidationError
from apps.delivery.models import MenuItem, Order, Rating
from apps.delivery.ratings import submit_rating


@pytest.fixture
def latte(make_item):
    return make_item("Latte")


@pytest.fixture
def ordered(make_order, latte):
    def _ordered(user, status=Order.Status.COMPLETED):
        return make_order(user, status=status, items=[(latte.id, "Latte", "4.50", 1)])

    return _ordered


@pytest.mark.django_db
def test_rating_requires_a_prior_order(customer, principal_for, latte):
    with pytest.raises(NotEligibleError):
        submit_rating(principal_for(customer), str(latte.id), 5)
    assert not Rating.objects.exists()


@pytest.mark.django_db
def test_any_order_status_makes_a_customer_eligible(customer, principal_for, latte, ordered):
    ordered(customer, status=Order.Status.CANCELLED)
    assert submit_rating(principal_for(customer), str(latte.id), 4) == {"rating": Decimal("4.00"), "rating_count": 1}


@pytest.mark.django_db
def test_average_and_count_track_all_ratings(make_user, principal_for, latte, ordered):
    users = [make_user(name) for name in ("ann", "ben", "cat")]
    for user in users:
        ordered(user)

    submit_rating(principal_for(users[0]), str(latte.id), 5)
    submit_rating(principal_for(users[1]), str(latte.id), 4)
    result = submit_rating(principal_for(users[2]), str(latte.id), 4)

    assert result == {"rating": Decimal("4.33"), "rating_count": 3}
    latte.refresh_from_db()
    assert latte.rating_average == Decimal("4.33")
    assert latte.rating_count == 3


@pytest.mark.django_db
def test_rerating_replaces_previous_value(customer, other_customer, principal_for, latte, ordered):
    ordered(customer)
    ordered(other_customer)
    submit_rating(principal_for(customer), str(latte.id), 5)
    submit_rating(principal_for(other_customer), str(latte.id), 4)
    result = submit_rating(principal_for(customer), str(latte.id), 2)

    assert result == {"rating": Decimal("3.00"), "rating_count": 2}
    assert Rating.objects.get(user=customer).value == 2


@pytest.mark.django_db
def test_average_rounds_half_up(make_user, principal_for, latte, ordered):
    # (5 + 4 + 4 + 4 + 4 + 4 + 4 + 4) / 8 = 4.125
    values = [5, 4, 4, 4, 4, 4, 4, 4]
    for idx, value in enumerate(values):
        user = make_user(f"u{idx}")
        ordered(user)
        result = submit_rating(principal_for(user), str(latte.id), value)
    assert result["rating"] == Decimal("4.13")


@pytest.mark.django_db
@pytest.mark.parametrize("value", [0, 6, -1, 4.5, "7"])
def test_out_of_range_values(customer, principal_for, latte, ordered, value):
    ordered(customer)
    with pytest.raises(RangeError):
        submit_rating(principal_for(customer), str(latte.id), value)


@pytest.mark.django_db
@pytest.mark.parametrize("value", [None, "", "great", True, [5]])
def test_missing_or_non_numeric_values(customer, principal_for, latte, ordered, value):
    ordered(customer)
    with pytest.raises(ValidationError) as exc:
        submit_rating(principal_for(customer), str(latte.id), value)
    assert exc.value.code == "validation_error"


@pytest.mark.django_db
def test_missing_item_id(customer, principal_for):
    with pytest.raises(ValidationError):
        submit_rating(principal_for(customer), None, 5)
    with pytest.raises(ValidationError):
        submit_rating(principal_for(customer), "not-a-uuid", 5)


@pytest.mark.django_db
def test_range_is_checked_before_item_lookup(customer, principal_for):
    with pytest.raises(RangeError):
        submit_rating(principal_for(customer), str(uuid.uuid4()), 9)
    with pytest.raises(NotFoundError):
        submit_rating(principal_for(customer), str(uuid.uuid4()), 3)


@pytest.mark.django_db
def test_administrators_cannot_rate(admin_user, principal_for, latte, ordered):
    ordered(admin_user)
    with pytest.raises(ForbiddenError):
        submit_rating(principal_for(admin_user), str(latte.id), 5)


@pytest.mark.django_db
def test_ratings_are_removed_with_the_item(customer, principal_for, latte, ordered):
    ordered(customer)
    submit_rating(principal_for(customer), str(latte.id), 5)
    MenuItem.objects.filter(pk=latte.pk).delete()
    assert not Rating.objects.exists()
