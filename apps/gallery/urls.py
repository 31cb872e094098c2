from django.urls import path

from . import views

app_name = "gallery"

urlpatterns = [
    path("gallery", views.gallery_collection, name="list"),
    path("gallery/upload", views.gallery_upload, name="upload"),
    path("gallery/<uuid:photo_id>", views.gallery_detail, name="detail"),
]
