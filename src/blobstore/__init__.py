"""BlobStore - Local versioned blob storage.

BlobStore keeps versioned pieces of content under a (namespace, id, version)
key in a plain directory, with a single JSON file indexing every version.
"""

__version__ = "0.1.0"
__author__ = "BlobStore Contributors"

from blobstore.constants import VALID_ID_PATTERN, VALID_NAMESPACE_PATTERN
from blobstore.core import (
    BlobStore,
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
    "__version__",
    "__author__",
    "BlobStore",
    "BlobStoreError",
    "BlobStoreInitError",
    "BlobStoreIOError",
    "DuplicateVersionError",
    "ErrorCode",
    "NotFoundError",
    "NamespaceNotFoundError",
    "ObjectNotFoundError",
    "VersionNotFoundError",
    "VALID_NAMESPACE_PATTERN",
    "VALID_ID_PATTERN",
]
