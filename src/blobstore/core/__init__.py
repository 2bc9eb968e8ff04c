"""Core engine layer for BlobStore.

This module provides the blob store engine and the error kinds it raises.
"""

from blobstore.core.engine import BlobStore, ConsistencyReport
from blobstore.core.errors import (
    BlobStoreError,
    BlobStoreInitError,
    BlobStoreIOError,
    DuplicateVersionError,
    ErrorCode,
    NamespaceNotFoundError,
    NotFoundError,
    ObjectNotFoundError,
    VersionNotFoundError,
)

__all__ = [
    "BlobStore",
    "ConsistencyReport",
    "BlobStoreError",
    "BlobStoreInitError",
    "BlobStoreIOError",
    "DuplicateVersionError",
    "ErrorCode",
    "NotFoundError",
    "NamespaceNotFoundError",
    "ObjectNotFoundError",
    "VersionNotFoundError",
]
