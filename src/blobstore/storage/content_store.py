"""Flat file storage for blob contents.

Each stored version lives in its own file directly inside the base directory.
File names are generated as ``<namespace><uuid4><CONTENT_SUFFIX>`` so they are
unique without consulting the metadata tree. Files are written once and never
modified afterwards.
"""

import os
import tempfile
import uuid
from pathlib import Path
from typing import List

from blobstore.constants import CONTENT_SUFFIX, TMP_PREFIX


class ContentStore:
    """Whole-file storage for version contents.

    Storage layout:
        <base_dir>/<namespace><uuid4>.content

    Attributes:
        base_dir: Directory holding the content files

    Example:
        >>> contents = ContentStore(Path("data/blobstore"))
        >>> ref = contents.new_identifier("pipelines")
        >>> contents.write(ref, b"{}")
        >>> assert contents.read(ref) == b"{}"
    """

    def __init__(self, base_dir: Path) -> None:
        self.base_dir = Path(base_dir)

    @staticmethod
    def new_identifier(namespace: str) -> str:
        """Generate a fresh content file name for a namespace.

        Args:
            namespace: Owning namespace, used as file name prefix

        Returns:
            File name made of the namespace, a random UUID and the suffix
        """
        return f"{namespace}{uuid.uuid4()}{CONTENT_SUFFIX}"

    def write(self, identifier: str, content: bytes) -> None:
        """Create a new content file.

        The bytes are written to a temporary file first and then linked under
        the final name, so a half-written file never appears under it.

        Args:
            identifier: Content file name
            content: Bytes to store

        Raises:
            FileExistsError: If a file with this identifier already exists
            OSError: If the write fails (permissions, disk full, etc.)
        """
        target = self._get_path(identifier)
        if target.exists():
            raise FileExistsError(f"Content file already exists: {target}")

        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=self.base_dir,
            prefix=TMP_PREFIX,
            suffix=CONTENT_SUFFIX,
        )
        try:
            with os.fdopen(tmp_fd, "wb") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())

            # os.link fails if the target exists, unlike os.replace
            os.link(tmp_path, target)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)

    def read(self, identifier: str) -> bytes:
        """Read a content file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        with open(self._get_path(identifier), "rb") as f:
            return f.read()

    def remove(self, identifier: str) -> None:
        """Delete a content file.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        os.unlink(self._get_path(identifier))

    def exists(self, identifier: str) -> bool:
        try:
            return self._get_path(identifier).is_file()
        except ValueError:
            return False

    def list_identifiers(self) -> List[str]:
        """List every content file currently in the base directory.

        Temporary files from interrupted writes are not included.
        """
        if not self.base_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.base_dir.iterdir()
            if entry.is_file()
            and entry.name.endswith(CONTENT_SUFFIX)
            and not entry.name.startswith(TMP_PREFIX)
        )

    def _get_path(self, identifier: str) -> Path:
        """Get the filesystem path for a content file.

        Raises:
            ValueError: If the identifier is not a plain file name
        """
        if not isinstance(identifier, str) or not identifier:
            raise ValueError(f"Content identifier must be a non-empty string, got {identifier!r}")
        if "/" in identifier or "\\" in identifier or identifier in (".", ".."):
            raise ValueError(f"Content identifier must be a plain file name: {identifier!r}")
        return self.base_dir / identifier
