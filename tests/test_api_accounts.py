import json

import pytest
from django.contrib.auth import get_user_model
from django.urls import reverse

from apps.accounts.models import Role
from apps.accounts.tokens import verify_token

User = get_user_model()


def post_json(client, url, payload, **extra):
    return client.post(url, data=json.dumps(payload), content_type="application/json", **extra)


@pytest.mark.django_db
def test_register_creates_customer(client):
    r = post_json(
        client,
        reverse("accounts:register"),
        {"username": "carol", "password": "s3cret!!", "email": "Carol@Example.com", "phone": "555-0101", "role": "administrator"},
    )
    assert r.status_code == 201
    body = r.json()
    assert body["user"]["username"] == "carol"
    assert body["user"]["role"] == "customer"
    assert body["user"]["email"] == "carol@example.com"
    assert User.objects.get(username="carol").check_password("s3cret!!")


@pytest.mark.django_db
def test_register_rejects_duplicates_and_missing_fields(client, customer):
    r = post_json(
        client,
        reverse("accounts:register"),
        {"username": customer.username, "password": "x1234567", "email": "a@b.c", "phone": "1"},
    )
    assert r.status_code == 409
    assert r.json()["error"]["code"] == "conflict"

    r = post_json(client, reverse("accounts:register"), {"username": "dave", "password": "x1234567"})
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "validation_error"


@pytest.mark.django_db
def test_login_returns_verifiable_token(client, customer):
    r = post_json(client, reverse("accounts:login"), {"username": "alice", "password": "pwd12345"})
    assert r.status_code == 200
    principal = verify_token(r.json()["token"])
    assert principal.user_id == customer.id
    assert principal.role is Role.CUSTOMER


@pytest.mark.django_db
def test_login_with_bad_credentials(client, customer):
    r = post_json(client, reverse("accounts:login"), {"username": "alice", "password": "wrong"})
    assert r.status_code == 401
    assert r.json()["error"]["code"] == "unauthorized"
    r = post_json(client, reverse("accounts:login"), {"username": "nobody", "password": "wrong"})
    assert r.status_code == 401


@pytest.mark.django_db
def test_login_is_rate_limited(client, customer, settings):
    settings.RATE_LIMITS = {"login": {"limit": 2, "window_seconds": 3600}}
    codes = [
        post_json(client, reverse("accounts:login"), {"username": "alice", "password": "wrong"}).status_code
        for _ in range(3)
    ]
    assert codes == [401, 401, 429]
    r = post_json(client, reverse("accounts:login"), {"username": "alice", "password": "pwd12345"})
    assert r.status_code == 429
    assert r.json()["error"]["code"] == "rate_limited"
    assert int(r["Retry-After"]) > 0


@pytest.mark.django_db
def test_me_requires_token(client, customer, auth_header):
    assert client.get(reverse("accounts:me")).status_code == 401
    assert client.get(reverse("accounts:me"), HTTP_AUTHORIZATION="Bearer nope").status_code == 401
    r = client.get(reverse("accounts:me"), **auth_header(customer))
    assert r.status_code == 200
    assert r.json()["user"]["id"] == str(customer.id)


@pytest.mark.django_db
def test_update_credentials(client, customer, other_customer, auth_header):
    url = reverse("accounts:update_credentials")
    assert post_json(client, url, {}, **auth_header(customer)).status_code == 400
    r = post_json(client, url, {"username": other_customer.username}, **auth_header(customer))
    assert r.status_code == 409

    r = post_json(client, url, {"username": "alice2", "password": "newpass1"}, **auth_header(customer))
    assert r.status_code == 200
    customer.refresh_from_db()
    assert customer.username == "alice2"
    assert customer.check_password("newpass1")
