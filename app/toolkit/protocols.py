"""
Protocol definitions for external collaborators.

Protocols define contracts that services must fulfill, enabling:
- Duck typing with static type checking
- Dependency inversion (depend on abstractions, not concretions)
- Easy mocking in tests

Available Protocols:
    BlobStore: Stores an uploaded file and returns its public URL

Usage:
    from toolkit.protocols import BlobStore

    def save_avatar(store: BlobStore, upload) -> str:
        return store.store(upload, folder="avatars")
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from django.core.files.base import File


@runtime_checkable
class BlobStore(Protocol):
    """
    Protocol for file storage backends.

    The chat core treats storage as opaque: it hands over a file and
    keeps only the URL that comes back.

    Example:
        class S3BlobStore:
            def store(self, file, folder: str = "") -> str:
                key = upload_to_bucket(file, folder)
                return f"https://cdn.example.com/{key}"
    """

    def store(self, file: File, folder: str = "") -> str:
        """
        Persist a file.

        Args:
            file: Uploaded file (Django File / UploadedFile)
            folder: Logical folder to group uploads ("avatars", "messages")

        Returns:
            Public URL of the stored file
        """
        ...
