import io
import json

import pytest
from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from PIL import Image

from apps.common.storage import set_blob_store
from apps.gallery.models import GalleryPhoto


@pytest.fixture(autouse=True)
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    set_blob_store(None)
    yield tmp_path
    set_blob_store(None)


def png_upload(name="bar.png", size=(40, 20)):
    buf = io.BytesIO()
    Image.new("RGB", size, "red").save(buf, format="PNG")
    return SimpleUploadedFile(name, buf.getvalue(), content_type="image/png")


@pytest.mark.django_db
def test_gallery_listing_is_public(client):
    GalleryPhoto.objects.create(url="https://cdn.example.com/a.jpg", title="Counter")
    r = client.get(reverse("gallery:list"))
    assert r.status_code == 200
    assert [p["title"] for p in r.json()["photos"]] == ["Counter"]


@pytest.mark.django_db
def test_add_photo_by_url(client, customer, admin_user, auth_header):
    payload = json.dumps({"url": " https://cdn.example.com/b.jpg ", "title": "Terrace"})
    r = client.post(reverse("gallery:list"), data=payload, content_type="application/json", **auth_header(customer))
    assert r.status_code == 403
    r = client.post(reverse("gallery:list"), data=payload, content_type="application/json", **auth_header(admin_user))
    assert r.status_code == 201
    assert r.json()["photo"]["url"] == "https://cdn.example.com/b.jpg"

    r = client.post(reverse("gallery:list"), data=json.dumps({"title": "x"}), content_type="application/json", **auth_header(admin_user))
    assert r.status_code == 400


@pytest.mark.django_db
def test_upload_stores_processed_jpeg(client, admin_user, auth_header):
    r = client.post(reverse("gallery:upload"), {"file": png_upload(), "title": "Espresso bar"}, **auth_header(admin_user))
    assert r.status_code == 201
    photo = GalleryPhoto.objects.get()
    assert photo.title == "Espresso bar"
    assert photo.storage_path.startswith("gallery/")
    assert photo.storage_path.endswith(".jpg")
    assert r.json()["photo"]["url"] == photo.url
    assert default_storage.exists(photo.storage_path)
    with default_storage.open(photo.storage_path) as fh:
        assert Image.open(fh).format == "JPEG"


@pytest.mark.django_db
def test_upload_rejects_non_images(client, admin_user, auth_header):
    bogus = SimpleUploadedFile("x.png", b"definitely not a png", content_type="image/png")
    r = client.post(reverse("gallery:upload"), {"file": bogus}, **auth_header(admin_user))
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "validation_error"

    r = client.post(reverse("gallery:upload"), {}, **auth_header(admin_user))
    assert r.status_code == 400
    assert not GalleryPhoto.objects.exists()


@pytest.mark.django_db
def test_upload_respects_size_limit(client, admin_user, auth_header, settings):
    settings.MAX_UPLOAD_BYTES = 10
    r = client.post(reverse("gallery:upload"), {"file": png_upload()}, **auth_header(admin_user))
    assert r.status_code == 400


@pytest.mark.django_db
def test_delete_removes_record_and_blob(client, admin_user, auth_header):
    client.post(reverse("gallery:upload"), {"file": png_upload()}, **auth_header(admin_user))
    photo = GalleryPhoto.objects.get()
    url = reverse("gallery:detail", args=[photo.id])

    assert client.delete(url, **auth_header(admin_user)).status_code == 200
    assert not GalleryPhoto.objects.exists()
    assert not default_storage.exists(photo.storage_path)
    assert client.delete(url, **auth_header(admin_user)).status_code == 404
