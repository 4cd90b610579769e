"""
Blob storage service backed by Django's configured storage.

DefaultStorageBlobStore satisfies toolkit.protocols.BlobStore using
``django.core.files.storage.default_storage``, so the backend (local
MEDIA_ROOT in development, any django-storages backend in production) is
a settings concern.

Usage:
    from toolkit.services.storage import get_blob_store

    url = get_blob_store().store(request.FILES["image"], folder="messages")
"""

from __future__ import annotations

import logging
import os
import uuid
from typing import TYPE_CHECKING

from django.core.files.storage import default_storage

from core.exceptions import ExternalServiceError

if TYPE_CHECKING:
    from django.core.files.base import File

    from toolkit.protocols import BlobStore

logger = logging.getLogger(__name__)


class DefaultStorageBlobStore:
    """Stores uploads under ``<folder>/<uuid><ext>`` in default_storage."""

    def __init__(self, storage=None):
        self.storage = storage or default_storage

    def store(self, file: File, folder: str = "") -> str:
        ext = os.path.splitext(file.name or "")[1].lower()
        name = f"{uuid.uuid4().hex}{ext}"
        path = f"{folder}/{name}" if folder else name

        try:
            saved_path = self.storage.save(path, file)
        except OSError as exc:
            logger.error(f"Failed to store upload {file.name}: {exc}", exc_info=True)
            raise ExternalServiceError("File upload failed") from exc

        url = self.storage.url(saved_path)
        logger.info(f"Stored upload {file.name} at {saved_path}")
        return url


def get_blob_store() -> BlobStore:
    """Return the blob store used by upload endpoints."""
    return DefaultStorageBlobStore()
