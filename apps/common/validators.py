from django.conf import settings
from PIL import Image, UnidentifiedImageError

from .errors import ValidationError

_FORMAT_MIME = {"JPEG": "image/jpeg", "PNG": "image/png", "WEBP": "image/webp"}


def validate_max_size(file, max_bytes: int):
    size = getattr(file, "size", 0) or 0
    if size > max_bytes:
        if max_bytes >= 1024 * 1024:
            raise ValidationError(f"File exceeds {max_bytes // (1024 * 1024)}MB")
        raise ValidationError(f"File exceeds {max_bytes} bytes")


def validate_mime(file, allowed: set[str]):
    mime = getattr(file, "content_type", "") or ""
    if mime not in allowed:
        raise ValidationError("File type not allowed")


def verify_image(file, allowed: set[str]):
    """Sniff the payload with Pillow; the declared content type is not trusted."""
    pos = file.tell()
    try:
        img = Image.open(file)
        fmt = img.format
        img.verify()
    except (UnidentifiedImageError, OSError):
        raise ValidationError("Corrupted or invalid image")
    finally:
        file.seek(pos)
    if _FORMAT_MIME.get(fmt or "") not in allowed:
        raise ValidationError("Invalid image content")


def validate_upload(file):
    allowed = getattr(settings, "ALLOWED_IMAGE_MIME_TYPES", {"image/jpeg", "image/png"})
    validate_max_size(file, getattr(settings, "MAX_UPLOAD_BYTES", 2 * 1024 * 1024))
    validate_mime(file, allowed)
    verify_image(file, allowed)
