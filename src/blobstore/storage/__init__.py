"""Storage layer for BlobStore.

This module provides the in-memory metadata tree, its JSON persistence,
and the flat content file store.
"""

from blobstore.storage.content_store import ContentStore
from blobstore.storage.metadata import NamespaceMetadata, ObjectMetadata, StoreMetadata
from blobstore.storage.metadata_io import (
    MetadataPersistenceError,
    load_metadata,
    save_metadata,
)

__all__ = [
    "StoreMetadata",
    "NamespaceMetadata",
    "ObjectMetadata",
    "ContentStore",
    "MetadataPersistenceError",
    "load_metadata",
    "save_metadata",
]
