"""JSON persistence for the BlobStore metadata tree.

The whole tree is written to a single file. File format (JSON):
{
    "version": 1,
    "namespaces": {
        "<namespace>": {
            "objects": {
                "<object id>": {
                    "versions": {"<version>": "<content file name>", ...}
                }
            }
        }
    }
}

Version numbers are JSON object keys and therefore stored as decimal strings.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from blobstore.constants import MAX_VERSION, METADATA_SCHEMA_VERSION, MIN_VERSION, TMP_PREFIX
from blobstore.storage.metadata import NamespaceMetadata, ObjectMetadata, StoreMetadata

logger = logging.getLogger(__name__)


class MetadataPersistenceError(Exception):
    """Raised when the metadata file cannot be written, read or parsed."""

    pass


def metadata_to_dict(metadata: StoreMetadata) -> Dict[str, Any]:
    """Convert a metadata tree into its JSON-compatible form."""
    return {
        "version": metadata.version,
        "namespaces": {
            ns_name: {
                "objects": {
                    object_id: {
                        "versions": {
                            str(version): content_ref
                            for version, content_ref in sorted(obj.versions.items())
                        }
                    }
                    for object_id, obj in namespace.objects.items()
                }
            }
            for ns_name, namespace in metadata.namespaces.items()
        },
    }


def metadata_from_dict(payload: Any) -> StoreMetadata:
    """Build a metadata tree from its JSON form.

    Args:
        payload: Decoded JSON document

    Returns:
        StoreMetadata instance

    Raises:
        MetadataPersistenceError: If the document does not match the schema
    """
    if not isinstance(payload, dict):
        raise MetadataPersistenceError("Expected JSON object at top level")

    schema_version = payload.get("version")
    if not isinstance(schema_version, int) or isinstance(schema_version, bool):
        raise MetadataPersistenceError(f"Missing or invalid schema version: {schema_version!r}")
    if schema_version != METADATA_SCHEMA_VERSION:
        raise MetadataPersistenceError(f"Unsupported metadata version: {schema_version}")

    raw_namespaces = payload.get("namespaces")
    if not isinstance(raw_namespaces, dict):
        raise MetadataPersistenceError("'namespaces' must be an object")

    namespaces: Dict[str, NamespaceMetadata] = {}
    for ns_name, raw_namespace in raw_namespaces.items():
        raw_objects = raw_namespace.get("objects") if isinstance(raw_namespace, dict) else None
        if not isinstance(raw_objects, dict):
            raise MetadataPersistenceError(f"Namespace '{ns_name}' has no 'objects' object")

        objects: Dict[str, ObjectMetadata] = {}
        for object_id, raw_object in raw_objects.items():
            raw_versions = raw_object.get("versions") if isinstance(raw_object, dict) else None
            if not isinstance(raw_versions, dict):
                raise MetadataPersistenceError(
                    f"Object '{ns_name}/{object_id}' has no 'versions' object"
                )

            versions: Dict[int, str] = {}
            for raw_version, content_ref in raw_versions.items():
                version = _parse_version_key(raw_version, ns_name, object_id)
                if not _is_plain_file_name(content_ref):
                    raise MetadataPersistenceError(
                        f"Invalid content reference for '{ns_name}/{object_id}' version {version}"
                    )
                versions[version] = content_ref

            objects[object_id] = ObjectMetadata(versions)
        namespaces[ns_name] = NamespaceMetadata(objects)

    return StoreMetadata(version=schema_version, namespaces=namespaces)


def _parse_version_key(raw_version: str, ns_name: str, object_id: str) -> int:
    """Parse a version key written by metadata_to_dict.

    Only the canonical decimal form is accepted, so two keys can never
    name the same version.

    Raises:
        MetadataPersistenceError: If the key is not canonical or out of range
    """
    try:
        version = int(raw_version)
    except ValueError as e:
        raise MetadataPersistenceError(
            f"Invalid version '{raw_version}' for object '{ns_name}/{object_id}'"
        ) from e

    if str(version) != raw_version or not MIN_VERSION <= version <= MAX_VERSION:
        raise MetadataPersistenceError(
            f"Invalid version '{raw_version}' for object '{ns_name}/{object_id}'"
        )
    return version


def _is_plain_file_name(content_ref: Any) -> bool:
    if not isinstance(content_ref, str) or not content_ref:
        return False
    if "/" in content_ref or "\\" in content_ref:
        return False
    return content_ref not in (".", "..")


def save_metadata(metadata: StoreMetadata, path: Path) -> None:
    """Write the metadata tree to disk, replacing any existing file.

    Uses atomic write (tmp file + rename) so that a crash mid-write never
    leaves a truncated metadata file behind.

    Args:
        metadata: Tree to serialize
        path: Destination file

    Raises:
        MetadataPersistenceError: If the write fails
    """
    path = Path(path)
    payload = metadata_to_dict(metadata)

    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=path.parent,
            prefix=TMP_PREFIX,
            suffix=".json",
        )
    except OSError as e:
        raise MetadataPersistenceError(f"Failed to save metadata to {path}: {e}") from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())

        os.replace(tmp_path, path)

    except (OSError, TypeError, ValueError) as e:
        # Clean up temp file on error
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.warning("Could not remove temporary metadata file %s", tmp_path)
        raise MetadataPersistenceError(f"Failed to save metadata to {path}: {e}") from e


def load_metadata(path: Path) -> StoreMetadata:
    """Read the metadata tree from disk.

    Args:
        path: Metadata file

    Returns:
        StoreMetadata instance

    Raises:
        MetadataPersistenceError: If the file is missing, unreadable or corrupt
    """
    path = Path(path)

    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except FileNotFoundError as e:
        raise MetadataPersistenceError(f"Metadata file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise MetadataPersistenceError(f"Corrupted metadata file {path}: {e}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataPersistenceError(f"Failed to read metadata file {path}: {e}") from e

    return metadata_from_dict(payload)
