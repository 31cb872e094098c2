from __future__ import annotations

from functools import wraps

from django.http import HttpRequest

from apps.common.errors import AuthError, ForbiddenError
from .models import Role
from .tokens import Principal, verify_token


def bearer_token(request: HttpRequest) -> str:
    scheme, _, token = (request.headers.get("Authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Unauthorized")
    return token.strip()


def require_role(principal: Principal, *roles: Role) -> Principal:
    """Gate an operation on the caller's role; no roles means any authenticated caller."""
    if roles and principal.role not in roles:
        if Role.ADMINISTRATOR in roles and Role.CUSTOMER not in roles:
            raise ForbiddenError("Administrator access required")
        raise ForbiddenError("Not allowed for this role")
    return principal


def authenticate(request: HttpRequest, *roles: Role) -> Principal:
    principal = require_role(verify_token(bearer_token(request)), *roles)
    request.principal = principal
    return principal


def token_required(*roles: Role):
    def decorator(view):
        @wraps(view)
        def _wrapped(request, *args, **kwargs):
            authenticate(request, *roles)
            return view(request, *args, **kwargs)

        return _wrapped

    return decorator
