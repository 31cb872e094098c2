from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError, transaction
from django.http import JsonResponse

from apps.common import errors
from apps.common.http import api_view, json_body, require_text
from apps.common.rate_limit import client_ip, enforce
from .auth import authenticate, token_required
from .models import Role
from .tokens import issue_token

User = get_user_model()
log = logging.getLogger(__name__)


def serialize_user(user) -> dict:
    return {
        "id": str(user.id),
        "username": user.username,
        "email": user.email,
        "phone": user.phone,
        "address": user.address,
        "role": user.role,
    }


def _username_taken(username: str, exclude_id=None) -> bool:
    qs = User.objects.filter(username=username)
    if exclude_id:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


@api_view(["POST"])
def register(request):
    data = json_body(request)
    username = require_text(data, "username")
    password = data.get("password")
    if not isinstance(password, str) or not password.strip():
        raise errors.ValidationError("password is required and must be a non-empty string")
    email = require_text(data, "email")
    phone = require_text(data, "phone")
    address = str(data.get("address") or "").strip()

    if _username_taken(username):
        raise errors.ConflictError("Username already exists")
    user = User(username=username, email=email, phone=phone, address=address, role=Role.CUSTOMER)
    user.set_password(password)
    try:
        with transaction.atomic():
            user.save()
    except IntegrityError:
        # lost the race on the unique index
        raise errors.ConflictError("Username already exists")
    log.info("User registered: user_id=%s username=%s", user.id, user.username)
    return JsonResponse({"success": True, "user": serialize_user(user)}, status=201)


@api_view(["POST"])
def login(request):
    data = json_body(request)
    username = require_text(data, "username")
    password = data.get("password")
    if not isinstance(password, str) or not password.strip():
        raise errors.ValidationError("password is required and must be a non-empty string")
    ip = client_ip(request)
    enforce("login", f"{ip}:{username.lower()}")

    user = User.objects.filter(username=username).first()
    if not user or not user.is_active or not user.check_password(password):
        log.warning("Login failed for username=%s from ip=%s", username, ip)
        raise errors.AuthError("Invalid username or password")
    log.info("Login success: user_id=%s role=%s", user.id, user.role)
    return JsonResponse({"success": True, "token": issue_token(user), "user": serialize_user(user)})


@api_view(["POST"])
@token_required()
def update_credentials(request):
    data = json_body(request)
    username = data.get("username")
    password = data.get("password")
    if not username and not password:
        raise errors.ValidationError("At least one field (username or password) must be provided")

    user = User.objects.filter(pk=request.principal.user_id).first()
    if not user:
        raise errors.NotFoundError("User not found")

    update_fields = []
    if username is not None:
        if not isinstance(username, str) or not username.strip():
            raise errors.ValidationError("Username must be a non-empty string")
        username = username.strip()
        if _username_taken(username, exclude_id=user.pk):
            raise errors.ConflictError("Username already taken")
        user.username = username
        update_fields.append("username")
    if password is not None:
        if not isinstance(password, str) or not password.strip():
            raise errors.ValidationError("Password must be a non-empty string")
        user.set_password(password.strip())
        update_fields.append("password")

    try:
        with transaction.atomic():
            user.save(update_fields=update_fields + ["updated_at"])
    except IntegrityError:
        raise errors.ConflictError("Username already taken")
    log.info("Credentials updated: user_id=%s fields=%s", user.id, ",".join(update_fields))
    return JsonResponse({"success": True, "user": serialize_user(user)})


@api_view(["GET"])
def me(request):
    principal = authenticate(request)
    user = User.objects.filter(pk=principal.user_id).first()
    if not user:
        raise errors.AuthError("Unknown user")
    return JsonResponse({"success": True, "user": serialize_user(user)})
