"""Unit tests for engine error kinds."""

import pytest

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


class TestErrorCode:
    """Test the error code catalogue."""

    def test_codes_are_unique(self) -> None:
        codes = [member.code for member in ErrorCode]
        assert len(codes) == len(set(codes))

    def test_code_and_message(self) -> None:
        assert ErrorCode.DUPLICATE_VERSION.code == "BLOB_STORE_0003"
        assert "version" in ErrorCode.DUPLICATE_VERSION.message


class TestErrorMessages:
    """Test the context carried by each error."""

    def test_duplicate_version_message(self) -> None:
        error = DuplicateVersionError("pipelines", "ingest", 3)
        assert str(error) == (
            "BLOB_STORE_0003 - Object already has this version "
            "(namespace=pipelines, id=ingest, version=3)"
        )

    def test_not_found_hierarchy(self) -> None:
        errors = [
            NamespaceNotFoundError("ns"),
            ObjectNotFoundError("ns", "id"),
            VersionNotFoundError("ns", "id", 1),
        ]
        for error in errors:
            assert isinstance(error, NotFoundError)
            assert isinstance(error, BlobStoreError)
            assert error.namespace == "ns"

    def test_io_error_with_detail(self) -> None:
        error = BlobStoreIOError(ErrorCode.CONTENT_IO, detail="permission denied", version=2)
        assert error.code is ErrorCode.CONTENT_IO
        assert str(error).endswith("(version=2): permission denied")

    def test_init_error(self) -> None:
        error = BlobStoreInitError("no space")
        assert error.code is ErrorCode.INIT_FAILED
        assert "no space" in str(error)
        with pytest.raises(BlobStoreError):
            raise error
