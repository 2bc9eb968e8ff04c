"""Error kinds raised by the BlobStore engine.

Every engine failure carries an ErrorCode plus the key it concerns, so
callers can branch on the kind of failure and log enough to diagnose it.
"""

from enum import Enum
from typing import Optional


class ErrorCode(Enum):
    """Stable error codes with their message templates."""

    METADATA_IO = ("BLOB_STORE_0001", "Can't persist or load metadata")
    DUPLICATE_VERSION = ("BLOB_STORE_0003", "Object already has this version")
    CONTENT_WRITE = ("BLOB_STORE_0004", "Can't write content")
    NAMESPACE_NOT_FOUND = ("BLOB_STORE_0005", "Namespace does not exist")
    OBJECT_NOT_FOUND = ("BLOB_STORE_0006", "Object does not exist")
    VERSION_NOT_FOUND = ("BLOB_STORE_0007", "Version does not exist")
    CONTENT_IO = ("BLOB_STORE_0008", "Can't read or remove content")
    NO_VERSIONS = ("BLOB_STORE_0009", "Object has no versions")
    NOT_INITIALIZED = ("BLOB_STORE_0010", "Blob store is not initialized")
    INIT_FAILED = ("BLOB_STORE_0011", "Can't initialize blob store")

    @property
    def code(self) -> str:
        return self.value[0]

    @property
    def message(self) -> str:
        return self.value[1]


class BlobStoreError(Exception):
    """Base exception for all engine failures.

    Attributes:
        code: Kind of failure
        namespace: Namespace involved, if any
        object_id: Object id involved, if any
        version: Version involved, if any
    """

    def __init__(
        self,
        code: ErrorCode,
        detail: Optional[str] = None,
        namespace: Optional[str] = None,
        object_id: Optional[str] = None,
        version: Optional[int] = None,
    ) -> None:
        self.code = code
        self.detail = detail
        self.namespace = namespace
        self.object_id = object_id
        self.version = version
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.namespace is not None:
            parts.append(f"namespace={self.namespace}")
        if self.object_id is not None:
            parts.append(f"id={self.object_id}")
        if self.version is not None:
            parts.append(f"version={self.version}")

        text = f"{self.code.code} - {self.code.message}"
        if parts:
            text += f" ({', '.join(parts)})"
        if self.detail:
            text += f": {self.detail}"
        return text


class NotFoundError(BlobStoreError):
    """Raised when a namespace, object or version does not exist."""


class NamespaceNotFoundError(NotFoundError):
    def __init__(self, namespace: str) -> None:
        super().__init__(ErrorCode.NAMESPACE_NOT_FOUND, namespace=namespace)


class ObjectNotFoundError(NotFoundError):
    def __init__(self, namespace: str, object_id: str) -> None:
        super().__init__(ErrorCode.OBJECT_NOT_FOUND, namespace=namespace, object_id=object_id)


class VersionNotFoundError(NotFoundError):
    def __init__(self, namespace: str, object_id: str, version: int) -> None:
        super().__init__(
            ErrorCode.VERSION_NOT_FOUND,
            namespace=namespace,
            object_id=object_id,
            version=version,
        )


class DuplicateVersionError(BlobStoreError):
    """Raised when storing a version that already exists."""

    def __init__(self, namespace: str, object_id: str, version: int) -> None:
        super().__init__(
            ErrorCode.DUPLICATE_VERSION,
            namespace=namespace,
            object_id=object_id,
            version=version,
        )


class BlobStoreIOError(BlobStoreError):
    """Raised when reading or writing content or metadata fails.

    The underlying OSError or MetadataPersistenceError is chained as __cause__.
    """


class BlobStoreInitError(BlobStoreError):
    """Raised when the store cannot start. Not recoverable."""

    def __init__(self, detail: str) -> None:
        super().__init__(ErrorCode.INIT_FAILED, detail=detail)
