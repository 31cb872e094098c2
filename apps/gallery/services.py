from __future__ import annotations

import logging

from apps.accounts.auth import require_role
from apps.accounts.models import Role
from apps.accounts.tokens import Principal
from apps.common.errors import NotFoundError, ValidationError
from apps.common.images import process_gallery_photo
from apps.common.storage import get_blob_store
from apps.common.validators import validate_upload

from .models import GalleryPhoto

log = logging.getLogger(__name__)


def list_photos() -> list[GalleryPhoto]:
    return list(GalleryPhoto.objects.order_by("-created_at"))


def add_photo(principal: Principal, url, title=None) -> GalleryPhoto:
    require_role(principal, Role.ADMINISTRATOR)
    if not isinstance(url, str) or not url.strip():
        raise ValidationError("url is required and must be a non-empty string")
    photo = GalleryPhoto.objects.create(url=url.strip(), title=str(title).strip() if title else "")
    log.info("Gallery photo added: photo_id=%s", photo.id)
    return photo


def upload_photo(principal: Principal, file, title: str = "") -> GalleryPhoto:
    require_role(principal, Role.ADMINISTRATOR)
    if file is None:
        raise ValidationError("file is required")
    validate_upload(file)
    out = process_gallery_photo(file)
    photo = GalleryPhoto.objects.create(url=out["url"], title=(title or "").strip(), storage_path=out["path"])
    log.info("Gallery photo uploaded: photo_id=%s path=%s", photo.id, out["path"])
    return photo


def delete_photo(principal: Principal, photo_id) -> None:
    require_role(principal, Role.ADMINISTRATOR)
    photo = GalleryPhoto.objects.filter(pk=photo_id).first()
    if photo is None:
        raise NotFoundError("Photo not found")
    path = photo.storage_path
    photo.delete()
    if path:
        try:
            get_blob_store().delete(path)
        except OSError:
            log.exception("Failed to delete gallery blob path=%s", path)
    log.info("Gallery photo deleted: photo_id=%s", photo_id)
