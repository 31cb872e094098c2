from django.db import models

from apps.common.models import BaseModel


class GalleryPhoto(BaseModel):
    url = models.CharField(max_length=500)
    title = models.CharField(max_length=200, blank=True)
    # Blob store key for uploaded files; empty for photos added by URL.
    storage_path = models.CharField(max_length=255, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.title or self.url
