"""Pytest configuration and shared fixtures."""

from pathlib import Path

import pytest

from blobstore.core import BlobStore


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Create a host data directory with no blob store in it yet."""
    directory = tmp_path / "data"
    directory.mkdir()
    return directory


@pytest.fixture
def store(data_dir: Path) -> BlobStore:
    """Create an initialized BlobStore on a fresh data directory."""
    return BlobStore.open(data_dir)


@pytest.fixture
def populated_store(store: BlobStore) -> BlobStore:
    """Create a BlobStore holding a few namespaces, objects and versions."""
    store.store("pipelines", "ingest", 1, b"ingest v1")
    store.store("pipelines", "ingest", 3, b"ingest v3")
    store.store("pipelines", "ingest", 7, b"ingest v7")
    store.store("pipelines", "export", 10, b"export v10")
    store.store("offsets", "kafka_orders", 42, b'{"partition": 0, "offset": 1042}')
    return store
