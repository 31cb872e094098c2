from __future__ import annotations

from dataclasses import dataclass
from time import time

from django.conf import settings
from django.core.cache import caches

from .errors import RateLimitedError


@dataclass
class LimitResult:
    allowed: bool
    remaining: int
    retry_after: int


def _bucket_key(namespace: str, ident: str, bucket: int) -> str:
    return f"rl:{namespace}:{ident}:{bucket}"


def hit(namespace: str, ident: str, limit: int, window_seconds: int) -> LimitResult:
    """Fixed-window counter kept in the default cache."""
    cache = caches["default"]
    now = int(time())
    bucket = now // window_seconds
    key = _bucket_key(namespace, ident, bucket)

    current = cache.get(key, 0)
    if current >= limit:
        return LimitResult(False, 0, (bucket + 1) * window_seconds - now)
    cache.add(key, 0, timeout=window_seconds)
    new_val = cache.incr(key)
    return LimitResult(True, max(0, limit - new_val), 0)


def enforce(namespace: str, ident: str, *, limit: int | None = None, window_seconds: int | None = None) -> LimitResult:
    conf = getattr(settings, "RATE_LIMITS", {}).get(namespace, {})
    limit = limit or int(conf.get("limit", 20))
    window_seconds = window_seconds or int(conf.get("window_seconds", 60))
    res = hit(namespace, ident, limit, window_seconds)
    if not res.allowed:
        raise RateLimitedError(retry_after=res.retry_after)
    return res


def client_ip(request) -> str:
    xfwd = (request.META.get("HTTP_X_FORWARDED_FOR") or "").split(",")[0].strip()
    if xfwd:
        return xfwd
    return request.META.get("REMOTE_ADDR") or "0.0.0.0"
