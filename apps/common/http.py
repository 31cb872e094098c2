from __future__ import annotations

import json
import logging
import uuid
from functools import wraps
from typing import Any, Callable, Iterable

from django.http import HttpRequest, JsonResponse
from django.views.decorators.csrf import csrf_exempt

from . import errors

log = logging.getLogger(__name__)


def error_response(exc: errors.ApiError) -> JsonResponse:
    resp = JsonResponse({"error": {"code": exc.code, "message": exc.message}}, status=exc.status)
    retry_after = getattr(exc, "retry_after", 0)
    if retry_after:
        resp["Retry-After"] = str(retry_after)
    return resp


def api_view(methods: Iterable[str]):
    """JSON endpoint decorator.

    Restricts HTTP methods, skips CSRF (bearer tokens, no cookies) and turns
    ``ApiError`` into a structured response. Anything else is logged with the
    full traceback and surfaced as a generic internal error.
    """
    allowed = [m.upper() for m in methods]

    def decorator(view: Callable[..., JsonResponse]):
        @csrf_exempt
        @wraps(view)
        def _wrapped(request: HttpRequest, *args, **kwargs):
            if request.method not in allowed:
                resp = JsonResponse(
                    {"error": {"code": "method_not_allowed", "message": "Method not allowed"}}, status=405
                )
                resp["Allow"] = ", ".join(allowed)
                return resp
            try:
                return view(request, *args, **kwargs)
            except errors.ApiError as exc:
                return error_response(exc)
            except Exception:
                log.exception("Unhandled error on %s %s", request.method, request.path)
                return JsonResponse(
                    {"error": {"code": "internal_error", "message": "Internal server error"}}, status=500
                )

        return _wrapped

    return decorator


def json_body(request: HttpRequest) -> dict[str, Any]:
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        raise errors.ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise errors.ValidationError("JSON body must be an object")
    return data


def require_text(data: dict[str, Any], field: str, label: str | None = None) -> str:
    val = data.get(field)
    if not isinstance(val, str) or not val.strip():
        raise errors.ValidationError(f"{label or field} is required and must be a non-empty string")
    return val.strip()


def parse_uuid(value: Any, label: str = "id") -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise errors.ValidationError(f"Invalid {label}")
