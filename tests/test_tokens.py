import uuid

import pytest
from django.core import signing
from django.test import RequestFactory

from apps.accounts.auth import authenticate, bearer_token, require_role
from apps.accounts.models import Role
from apps.accounts.tokens import TOKEN_SALT, Principal, issue_token, verify_token
from apps.common.errors import AuthError, ForbiddenError


@pytest.mark.django_db
def test_issue_and_verify_carries_subject_and_role(customer, admin_user):
    p = verify_token(issue_token(customer))
    assert p == Principal(user_id=customer.id, role=Role.CUSTOMER)
    assert not p.is_admin
    assert verify_token(issue_token(admin_user)).is_admin


@pytest.mark.django_db
def test_tampered_token_fails_closed(customer):
    token = issue_token(customer)
    with pytest.raises(AuthError):
        verify_token(token[:-2] + ("aa" if not token.endswith("aa") else "bb"))
    with pytest.raises(AuthError):
        verify_token("")


@pytest.mark.django_db
def test_expired_token_is_rejected(customer, settings):
    token = issue_token(customer)
    settings.AUTH_TOKEN_TTL_DAYS = -1
    with pytest.raises(AuthError):
        verify_token(token)


def test_unknown_role_is_rejected():
    token = signing.dumps({"sub": str(uuid.uuid4()), "role": "user"}, salt=TOKEN_SALT)
    with pytest.raises(AuthError):
        verify_token(token)


def test_token_signed_with_other_salt_is_rejected():
    token = signing.dumps({"sub": str(uuid.uuid4()), "role": "customer"}, salt="something-else")
    with pytest.raises(AuthError):
        verify_token(token)


def test_bearer_header_parsing():
    rf = RequestFactory()
    assert bearer_token(rf.get("/", HTTP_AUTHORIZATION="Bearer abc")) == "abc"
    for header in ("", "Basic abc", "Bearer ", "Token abc"):
        with pytest.raises(AuthError):
            bearer_token(rf.get("/", HTTP_AUTHORIZATION=header))


def test_require_role_gates_on_role():
    customer = Principal(user_id=uuid.uuid4(), role=Role.CUSTOMER)
    admin = Principal(user_id=uuid.uuid4(), role=Role.ADMINISTRATOR)
    assert require_role(customer) is customer
    assert require_role(admin, Role.ADMINISTRATOR) is admin
    with pytest.raises(ForbiddenError, match="Administrator"):
        require_role(customer, Role.ADMINISTRATOR)
    with pytest.raises(ForbiddenError):
        require_role(admin, Role.CUSTOMER)


@pytest.mark.django_db
def test_authenticate_attaches_principal(customer):
    request = RequestFactory().get("/", HTTP_AUTHORIZATION=f"Bearer {issue_token(customer)}")
    principal = authenticate(request)
    assert request.principal == principal
    assert principal.user_id == customer.id
