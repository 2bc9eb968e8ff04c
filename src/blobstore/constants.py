"""Constants used throughout BlobStore."""

import re

# Version
VERSION = "0.1.0"

# Directory names
BASE_DIR = "blobstore"

# File names
METADATA_FILE = "metadata.json"
CONTENT_SUFFIX = ".content"
TMP_PREFIX = ".tmp_"

# Metadata schema version
METADATA_SCHEMA_VERSION = 1

# Version numbers are signed 64-bit integers
MIN_VERSION = -(2**63)
MAX_VERSION = 2**63 - 1

# Validation patterns (exposed so callers can pre-validate)
VALID_NAMESPACE_PATTERN = re.compile(r"[a-zA-Z0-9_]+")
VALID_ID_PATTERN = re.compile(r"[a-zA-Z0-9_.\-]+")

# Environment variable naming the data directory for the CLI
DATA_DIR_ENV = "BLOBSTORE_DATA_DIR"

# Exit codes
EXIT_SUCCESS = 0
EXIT_USER_ERROR = 1
EXIT_SYSTEM_ERROR = 2
EXIT_DATA_ERROR = 3
EXIT_INTERRUPTED = 130


def is_valid_namespace(namespace: str) -> bool:
    """Check whether a namespace name matches VALID_NAMESPACE_PATTERN."""
    return isinstance(namespace, str) and VALID_NAMESPACE_PATTERN.fullmatch(namespace) is not None


def is_valid_id(object_id: str) -> bool:
    """Check whether an object id matches VALID_ID_PATTERN."""
    return isinstance(object_id, str) and VALID_ID_PATTERN.fullmatch(object_id) is not None
