import hashlib
import io
from datetime import datetime

from django.utils import timezone

from PIL import Image, ImageOps

from .storage import get_blob_store


def content_hash(img: Image.Image) -> str:
    bio = io.BytesIO()
    # Hash pixels, not metadata
    img.save(bio, format="PNG")
    return hashlib.sha1(bio.getvalue()).hexdigest()


def sanitize(img: Image.Image) -> Image.Image:
    # Drop EXIF and normalize orientation
    return ImageOps.exif_transpose(img).convert("RGB")


def contain(img: Image.Image, max_w: int) -> Image.Image:
    w, h = img.size
    if w <= max_w:
        return img.copy()
    ratio = max_w / float(w)
    return img.resize((max_w, int(h * ratio)), Image.Resampling.LANCZOS)


def encode_jpeg(img: Image.Image, quality: int = 82) -> bytes:
    bio = io.BytesIO()
    img.save(bio, format="JPEG", optimize=True, progressive=True, quality=quality)
    return bio.getvalue()


def process_gallery_photo(file_obj, max_width: int = 1600, now: datetime | None = None) -> dict:
    img = sanitize(Image.open(file_obj))
    h = content_hash(img)
    now = now or timezone.now()
    name = f"gallery/{now:%Y/%m/%d}/img-{h}.jpg"
    path, url = get_blob_store().save(name, encode_jpeg(contain(img, max_width)))
    return {"path": path, "url": url, "hash": h}
