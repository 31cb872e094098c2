from django.contrib import admin

from .models import GalleryPhoto


@admin.register(GalleryPhoto)
class GalleryPhotoAdmin(admin.ModelAdmin):
    list_display = ("title", "url", "created_at")
    search_fields = ("title", "url")
    ordering = ("-created_at",)
