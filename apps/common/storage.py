from __future__ import annotations

import threading

from django.core.files.base import ContentFile
from django.core.files.storage import Storage, default_storage


class BlobStore:
    """Durable binary storage returning retrievable URLs."""

    def __init__(self, storage: Storage):
        self._storage = storage

    def save(self, name: str, data: bytes) -> tuple[str, str]:
        saved = self._storage.save(name, ContentFile(data))
        return saved, self._storage.url(saved)

    def delete(self, name: str) -> None:
        if name and self._storage.exists(name):
            self._storage.delete(name)


_lock = threading.Lock()
_store: BlobStore | None = None


def get_blob_store() -> BlobStore:
    # Single-flight: only the first caller constructs the handle.
    global _store
    if _store is None:
        with _lock:
            if _store is None:
                _store = BlobStore(default_storage)
    return _store


def set_blob_store(store: BlobStore | None) -> None:
    global _store
    with _lock:
        _store = store
