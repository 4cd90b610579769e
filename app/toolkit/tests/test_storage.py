"""
Tests for the default-storage blob store.

This module tests:
- Files land under <folder>/<uuid><ext> in MEDIA_ROOT
- The returned URL is the storage URL
- Storage OSErrors become ExternalServiceError
"""

from unittest.mock import MagicMock

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from core.exceptions import ExternalServiceError
from toolkit.protocols import BlobStore
from toolkit.services.storage import DefaultStorageBlobStore, get_blob_store


class TestDefaultStorageBlobStore:
    def test_satisfies_protocol(self):
        assert isinstance(get_blob_store(), BlobStore)

    def test_store_writes_under_folder(self, media_root):
        upload = SimpleUploadedFile("Photo.PNG", b"pixels", content_type="image/png")

        url = DefaultStorageBlobStore().store(upload, folder="messages")

        assert url.startswith("/media/messages/")
        assert url.endswith(".png")
        stored = list((media_root / "messages").iterdir())
        assert len(stored) == 1
        assert stored[0].read_bytes() == b"pixels"

    def test_names_are_unique(self, media_root):
        store = DefaultStorageBlobStore()

        first = store.store(SimpleUploadedFile("a.png", b"1"), folder="avatars")
        second = store.store(SimpleUploadedFile("a.png", b"2"), folder="avatars")

        assert first != second

    def test_os_error_becomes_external_service_error(self):
        """
        A failing backend surfaces as EXTERNAL_SERVICE_ERROR (502).

        Why it matters: Clients get a clean error instead of a 500 trace.
        """
        storage = MagicMock()
        storage.save.side_effect = OSError("disk full")

        with pytest.raises(ExternalServiceError) as exc_info:
            DefaultStorageBlobStore(storage=storage).store(SimpleUploadedFile("a.png", b"1"))

        assert exc_info.value.message == "File upload failed"
