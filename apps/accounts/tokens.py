"""Bearer token issue/verify.

Tokens are ``django.core.signing`` payloads carrying the subject id and role,
valid for ``AUTH_TOKEN_TTL_DAYS``. Verification fails closed: any decoding,
signature, expiry or payload problem is an ``AuthError``.
"""
from __future__ import annotations

import datetime as dt
import uuid
from dataclasses import dataclass

from django.conf import settings
from django.core import signing

from apps.common.errors import AuthError
from .models import Role

TOKEN_SALT = "cafe.accounts.token"


@dataclass(frozen=True)
class Principal:
    user_id: uuid.UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMINISTRATOR


def token_ttl() -> dt.timedelta:
    return dt.timedelta(days=int(getattr(settings, "AUTH_TOKEN_TTL_DAYS", 7)))


def issue_token(user) -> str:
    return signing.dumps({"sub": str(user.id), "role": str(user.role)}, salt=TOKEN_SALT, compress=True)


def verify_token(token: str) -> Principal:
    try:
        payload = signing.loads(token, salt=TOKEN_SALT, max_age=token_ttl())
        return Principal(user_id=uuid.UUID(payload["sub"]), role=Role(payload["role"]))
    except Exception:
        raise AuthError("Invalid token")
