"""In-memory metadata tree for BlobStore.

The tree has four levels: store -> namespaces -> objects -> versions, where
each version maps to the name of the content file holding its bytes. The
classes here are plain data holders with no I/O and no locking; the engine
owns the only instance and serializes access to it.
"""

from typing import Dict, Iterator, Optional, Set, Tuple

from blobstore.constants import METADATA_SCHEMA_VERSION


class ObjectMetadata:
    """Versions stored for a single object.

    Attributes:
        versions: Mapping of version number to content reference
    """

    def __init__(self, versions: Optional[Dict[int, str]] = None) -> None:
        self.versions: Dict[int, str] = dict(versions or {})

    def contains_version(self, version: int) -> bool:
        return version in self.versions

    def latest_version(self) -> int:
        """Return the highest stored version number.

        Raises:
            ValueError: If the object has no versions
        """
        if not self.versions:
            raise ValueError("Object has no versions")
        return max(self.versions)

    def all_versions(self) -> Set[int]:
        return set(self.versions)

    def create_content(self, version: int, content_ref: str) -> None:
        """Record a new version -> content reference mapping.

        Raises:
            ValueError: If the version is already present
        """
        if version in self.versions:
            raise ValueError(f"Version {version} already exists")
        self.versions[version] = content_ref

    def content_for_version(self, version: int) -> str:
        """Return the content reference for a version.

        Raises:
            KeyError: If the version is not present
        """
        return self.versions[version]

    def remove_version(self, version: int) -> str:
        """Remove a version entry and return its content reference."""
        return self.versions.pop(version)

    def __len__(self) -> int:
        return len(self.versions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ObjectMetadata):
            return NotImplemented
        return self.versions == other.versions

    def __repr__(self) -> str:
        return f"ObjectMetadata(versions={sorted(self.versions)})"


class NamespaceMetadata:
    """Objects stored under a single namespace."""

    def __init__(self, objects: Optional[Dict[str, ObjectMetadata]] = None) -> None:
        self.objects: Dict[str, ObjectMetadata] = dict(objects or {})

    def get_object(self, object_id: str) -> Optional[ObjectMetadata]:
        return self.objects.get(object_id)

    def get_or_create_object(self, object_id: str) -> ObjectMetadata:
        obj = self.objects.get(object_id)
        if obj is None:
            obj = ObjectMetadata()
            self.objects[object_id] = obj
        return obj

    def remove_object(self, object_id: str) -> None:
        self.objects.pop(object_id, None)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NamespaceMetadata):
            return NotImplemented
        return self.objects == other.objects

    def __repr__(self) -> str:
        return f"NamespaceMetadata(objects={sorted(self.objects)})"


class StoreMetadata:
    """Root of the metadata tree.

    Attributes:
        version: Schema version of the tree
        namespaces: Mapping of namespace name to NamespaceMetadata

    Example:
        >>> metadata = StoreMetadata()
        >>> obj = metadata.get_or_create_namespace("pipelines").get_or_create_object("p1")
        >>> obj.create_content(1, "pipelines1b2c....content")
        >>> obj.latest_version()
        1
    """

    def __init__(
        self,
        version: int = METADATA_SCHEMA_VERSION,
        namespaces: Optional[Dict[str, NamespaceMetadata]] = None,
    ) -> None:
        self.version = version
        self.namespaces: Dict[str, NamespaceMetadata] = dict(namespaces or {})

    def get_namespace(self, name: str) -> Optional[NamespaceMetadata]:
        return self.namespaces.get(name)

    def get_or_create_namespace(self, name: str) -> NamespaceMetadata:
        namespace = self.namespaces.get(name)
        if namespace is None:
            namespace = NamespaceMetadata()
            self.namespaces[name] = namespace
        return namespace

    def remove_namespace(self, name: str) -> None:
        self.namespaces.pop(name, None)

    def content_references(self) -> Iterator[Tuple[str, str, int, str]]:
        """Iterate over every recorded content reference.

        Yields:
            Tuples of (namespace, object_id, version, content_ref)
        """
        for ns_name, namespace in self.namespaces.items():
            for object_id, obj in namespace.objects.items():
                for version, content_ref in obj.versions.items():
                    yield ns_name, object_id, version, content_ref

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StoreMetadata):
            return NotImplemented
        return self.version == other.version and self.namespaces == other.namespaces

    def __repr__(self) -> str:
        return f"StoreMetadata(version={self.version}, namespaces={sorted(self.namespaces)})"
