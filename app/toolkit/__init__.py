"""
Toolkit - adapters for external collaborators.

Key components:
    - protocols.py: BlobStore interface
    - services/storage.py: DefaultStorageBlobStore (Django default_storage)

Usage:
    from toolkit.services.storage import get_blob_store

    url = get_blob_store().store(upload, folder="avatars")

Note:
    This app has no models.
"""
