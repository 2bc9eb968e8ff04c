"""Blob store engine.

The engine is the only entry point clients use. It owns the metadata tree,
the content store and the metadata file, and runs every operation under a
single lock so callers always see a consistent snapshot.

Every mutation follows the same order: write content (store only), update
the in-memory tree, persist the tree, and only then remove content (delete
only). A failed persist rolls the in-memory change back, so the tree never
holds state that was not saved.
"""

import logging
import threading
from pathlib import Path
from typing import Any, List, Optional, Set, Tuple

from blobstore.constants import (
    BASE_DIR,
    MAX_VERSION,
    METADATA_FILE,
    MIN_VERSION,
    is_valid_id,
    is_valid_namespace,
)
from blobstore.core.errors import (
    BlobStoreError,
    BlobStoreInitError,
    BlobStoreIOError,
    DuplicateVersionError,
    ErrorCode,
    NamespaceNotFoundError,
    ObjectNotFoundError,
    VersionNotFoundError,
)
from blobstore.storage import (
    ContentStore,
    MetadataPersistenceError,
    ObjectMetadata,
    StoreMetadata,
    load_metadata,
    save_metadata,
)

logger = logging.getLogger(__name__)


class ConsistencyReport:
    """Result of comparing the metadata tree with the content files on disk."""

    def __init__(
        self,
        orphaned: Optional[List[str]] = None,
        missing: Optional[List[Tuple[str, str, int, str]]] = None,
    ):
        """Initialize consistency report.

        Args:
            orphaned: Content files that no version references
            missing: (namespace, id, version, content_ref) entries whose file is gone
        """
        self.orphaned = orphaned or []
        self.missing = missing or []

    @property
    def is_consistent(self) -> bool:
        return not self.orphaned and not self.missing

    def __repr__(self) -> str:
        return f"ConsistencyReport(orphaned={len(self.orphaned)}, missing={len(self.missing)})"


class BlobStore:
    """Versioned blob store backed by a directory on local disk.

    Storage layout:
        <data_dir>/blobstore/metadata.json              # Metadata tree
        <data_dir>/blobstore/<namespace><uuid>.content  # One file per version

    Attributes:
        data_dir: Writable directory supplied by the host
        base_dir: Directory holding the metadata file and content files
        metadata_file: Path of the serialized metadata tree
        contents: ContentStore for the base directory

    Example:
        >>> store = BlobStore.open(Path("/var/lib/app"))
        >>> store.store("pipelines", "p1", 1, b"{}")
        >>> store.retrieve("pipelines", "p1", 1)
        b'{}'
    """

    def __init__(self, data_dir: Path) -> None:
        """Initialize the engine without touching the disk.

        Args:
            data_dir: Writable data directory supplied by the host
        """
        self.data_dir = Path(data_dir)
        self.base_dir = self.data_dir / BASE_DIR
        self.metadata_file = self.base_dir / METADATA_FILE
        self.contents = ContentStore(self.base_dir)
        self._metadata: Optional[StoreMetadata] = None
        self._lock = threading.RLock()

    @classmethod
    def open(cls, data_dir: Path) -> "BlobStore":
        """Create and initialize an engine in one step."""
        store = cls(data_dir)
        store.initialize()
        return store

    def initialize(self) -> None:
        """Create a fresh store or load the existing one from disk.

        Safe to call more than once; later calls do nothing.

        Raises:
            BlobStoreInitError: If the base directory can't be created, or the
                metadata file can't be written (fresh install) or loaded
        """
        with self._lock:
            if self._metadata is not None:
                return

            if not self.base_dir.exists():
                self._initialize_fresh_install()
            else:
                self._initialize_from_disk()

    def close(self) -> None:
        """Release in-memory state. Content and metadata stay on disk."""
        with self._lock:
            self._metadata = None

    def __enter__(self) -> "BlobStore":
        self.initialize()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    @property
    def is_initialized(self) -> bool:
        return self._metadata is not None

    def store(self, namespace: str, object_id: str, version: int, content: bytes) -> None:
        """Store content as a new version of an object.

        Args:
            namespace: Namespace name (must match VALID_NAMESPACE_PATTERN)
            object_id: Object id (must match VALID_ID_PATTERN)
            version: Version number, any signed 64-bit integer
            content: Bytes to store

        Raises:
            ValueError: If namespace, id or version is malformed
            TypeError: If content is not bytes-like
            DuplicateVersionError: If the version already exists
            BlobStoreIOError: If the content or metadata write fails
        """
        self._validate_key(namespace, object_id)
        self._validate_version(version)
        if not isinstance(content, (bytes, bytearray, memoryview)):
            raise TypeError(f"Content must be bytes, got {type(content).__name__}")

        with self._lock:
            metadata = self._require_metadata()

            namespace_existed = metadata.get_namespace(namespace) is not None
            existing = self._get_object(namespace, object_id)
            if existing is not None and existing.contains_version(version):
                raise DuplicateVersionError(namespace, object_id, version)

            # Content goes to its own file first; metadata is untouched on failure
            content_ref = self.contents.new_identifier(namespace)
            try:
                self.contents.write(content_ref, bytes(content))
            except OSError as e:
                raise BlobStoreIOError(
                    ErrorCode.CONTENT_WRITE,
                    detail=str(e),
                    namespace=namespace,
                    object_id=object_id,
                    version=version,
                ) from e

            obj = metadata.get_or_create_namespace(namespace).get_or_create_object(object_id)
            obj.create_content(version, content_ref)

            try:
                save_metadata(metadata, self.metadata_file)
            except MetadataPersistenceError as e:
                obj.remove_version(version)
                if existing is None:
                    metadata.get_or_create_namespace(namespace).remove_object(object_id)
                if not namespace_existed:
                    metadata.remove_namespace(namespace)
                self._discard_content(content_ref)
                raise BlobStoreIOError(
                    ErrorCode.METADATA_IO,
                    detail=str(e),
                    namespace=namespace,
                    object_id=object_id,
                    version=version,
                ) from e

            logger.debug(
                "Stored %s/%s version %d as %s (%d bytes)",
                namespace, object_id, version, content_ref, len(content),
            )

    def retrieve(self, namespace: str, object_id: str, version: int) -> bytes:
        """Return the content stored for a version.

        Raises:
            NamespaceNotFoundError: If the namespace does not exist
            ObjectNotFoundError: If the object does not exist
            VersionNotFoundError: If the version does not exist
            BlobStoreIOError: If the referenced content file can't be read
        """
        with self._lock:
            obj = self._get_object_or_raise(namespace, object_id)
            if not obj.contains_version(version):
                raise VersionNotFoundError(namespace, object_id, version)

            content_ref = obj.content_for_version(version)
            try:
                return self.contents.read(content_ref)
            except (OSError, ValueError) as e:
                raise BlobStoreIOError(
                    ErrorCode.CONTENT_IO,
                    detail=str(e),
                    namespace=namespace,
                    object_id=object_id,
                    version=version,
                ) from e

    def delete(self, namespace: str, object_id: str, version: int) -> None:
        """Delete a single version and its content file.

        The metadata is persisted before the file is removed, so a crash in
        between leaves an orphaned file rather than a dangling reference.

        Raises:
            NamespaceNotFoundError: If the namespace does not exist
            ObjectNotFoundError: If the object does not exist
            VersionNotFoundError: If the version does not exist
            BlobStoreIOError: If the metadata write or the file removal fails
        """
        with self._lock:
            metadata = self._require_metadata()
            obj = self._get_object_or_raise(namespace, object_id)
            if not obj.contains_version(version):
                raise VersionNotFoundError(namespace, object_id, version)

            content_ref = obj.remove_version(version)
            try:
                save_metadata(metadata, self.metadata_file)
            except MetadataPersistenceError as e:
                obj.create_content(version, content_ref)
                raise BlobStoreIOError(
                    ErrorCode.METADATA_IO,
                    detail=str(e),
                    namespace=namespace,
                    object_id=object_id,
                    version=version,
                ) from e

            try:
                self.contents.remove(content_ref)
            except (OSError, ValueError) as e:
                raise BlobStoreIOError(
                    ErrorCode.CONTENT_IO,
                    detail=str(e),
                    namespace=namespace,
                    object_id=object_id,
                    version=version,
                ) from e

            logger.debug("Deleted %s/%s version %d (%s)", namespace, object_id, version, content_ref)

    def latest_version(self, namespace: str, object_id: str) -> int:
        """Return the highest stored version of an object.

        Raises:
            NamespaceNotFoundError: If the namespace does not exist
            ObjectNotFoundError: If the object does not exist
            BlobStoreError: With code NO_VERSIONS if the object has no versions
        """
        with self._lock:
            obj = self._get_object_or_raise(namespace, object_id)
            if len(obj) == 0:
                raise BlobStoreError(
                    ErrorCode.NO_VERSIONS, namespace=namespace, object_id=object_id
                )
            return obj.latest_version()

    def exists(self, namespace: str, object_id: str) -> bool:
        """Check whether an object exists.

        Never raises: a missing key or an engine that was never initialized
        both answer False.
        """
        with self._lock:
            if self._metadata is None:
                return False
            return self._get_object(namespace, object_id) is not None

    def all_versions(self, namespace: str, object_id: str) -> Set[int]:
        """Return every stored version of an object, empty if it doesn't exist."""
        with self._lock:
            if self._metadata is None:
                return set()
            obj = self._get_object(namespace, object_id)
            return set() if obj is None else obj.all_versions()

    def namespaces(self) -> List[str]:
        with self._lock:
            return sorted(self._require_metadata().namespaces)

    def objects(self, namespace: str) -> List[str]:
        """Return the object ids in a namespace, empty if it doesn't exist."""
        with self._lock:
            ns_meta = self._require_metadata().get_namespace(namespace)
            return [] if ns_meta is None else sorted(ns_meta.objects)

    def check_consistency(self) -> ConsistencyReport:
        """Compare metadata references with the content files on disk.

        Read-only: nothing is repaired or removed.
        """
        with self._lock:
            metadata = self._require_metadata()
            on_disk = set(self.contents.list_identifiers())

            referenced = set()
            missing = []
            for ns_name, object_id, version, content_ref in metadata.content_references():
                referenced.add(content_ref)
                if content_ref not in on_disk:
                    missing.append((ns_name, object_id, version, content_ref))

            report = ConsistencyReport(
                orphaned=sorted(on_disk - referenced),
                missing=sorted(missing),
            )
            if not report.is_consistent:
                logger.warning(
                    "Blob store at %s is inconsistent: %d orphaned, %d missing",
                    self.base_dir, len(report.orphaned), len(report.missing),
                )
            return report

    def _initialize_fresh_install(self) -> None:
        try:
            self.base_dir.mkdir(parents=True)
        except OSError as e:
            raise BlobStoreInitError(f"Could not create directory '{self.base_dir}': {e}") from e

        metadata = StoreMetadata()
        try:
            save_metadata(metadata, self.metadata_file)
        except MetadataPersistenceError as e:
            raise BlobStoreInitError(str(e)) from e

        self._metadata = metadata
        logger.info("Initialized new blob store at %s", self.base_dir)

    def _initialize_from_disk(self) -> None:
        try:
            metadata = load_metadata(self.metadata_file)
        except MetadataPersistenceError as e:
            raise BlobStoreInitError(str(e)) from e

        self._metadata = metadata
        logger.debug(
            "Loaded blob store metadata of version %d with %d namespaces",
            metadata.version, len(metadata.namespaces),
        )

    def _require_metadata(self) -> StoreMetadata:
        if self._metadata is None:
            raise BlobStoreError(ErrorCode.NOT_INITIALIZED, detail=str(self.base_dir))
        return self._metadata

    def _get_object(self, namespace: str, object_id: str) -> Optional[ObjectMetadata]:
        ns_meta = self._require_metadata().get_namespace(namespace)
        if ns_meta is None:
            return None
        return ns_meta.get_object(object_id)

    def _get_object_or_raise(self, namespace: str, object_id: str) -> ObjectMetadata:
        ns_meta = self._require_metadata().get_namespace(namespace)
        if ns_meta is None:
            raise NamespaceNotFoundError(namespace)

        obj = ns_meta.get_object(object_id)
        if obj is None:
            raise ObjectNotFoundError(namespace, object_id)
        return obj

    def _discard_content(self, content_ref: str) -> None:
        """Best-effort removal of a content file that never got committed."""
        try:
            self.contents.remove(content_ref)
        except OSError:
            logger.warning("Could not remove uncommitted content file %s", content_ref)

    @staticmethod
    def _validate_key(namespace: str, object_id: str) -> None:
        """Validate namespace and id syntax.

        Raises:
            ValueError: If either doesn't match its pattern
        """
        if not is_valid_namespace(namespace):
            raise ValueError(f"Invalid namespace: {namespace!r}")
        if not is_valid_id(object_id):
            raise ValueError(f"Invalid object id: {object_id!r}")

    @staticmethod
    def _validate_version(version: int) -> None:
        if not isinstance(version, int) or isinstance(version, bool):
            raise ValueError(f"Version must be an integer, got {type(version).__name__}")
        if not MIN_VERSION <= version <= MAX_VERSION:
            raise ValueError(f"Version out of 64-bit range: {version}")
