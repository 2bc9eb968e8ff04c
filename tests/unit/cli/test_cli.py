"""Unit tests for the blobstore CLI."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from blobstore.cli.main import app
from blobstore.constants import BASE_DIR, DATA_DIR_ENV, METADATA_FILE
from blobstore.core import BlobStore

runner = CliRunner()


@pytest.fixture
def payload(tmp_path: Path) -> Path:
    """Create a file to store."""
    path = tmp_path / "pipeline.json"
    path.write_bytes(b'{"stages": ["read", "write"]}')
    return path


def _put(data_dir: Path, source: Path, version: str = "1"):
    return runner.invoke(
        app, ["put", "pipelines", "ingest", version, str(source), "--data-dir", str(data_dir)]
    )


class TestInitCommand:
    """Test blobstore init."""

    def test_init_creates_store(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["init", "--data-dir", str(data_dir)])

        assert result.exit_code == 0
        assert "Blob store ready" in result.stdout
        assert (data_dir / BASE_DIR / METADATA_FILE).exists()

    def test_init_quiet(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["init", "--quiet", "--data-dir", str(data_dir)])

        assert result.exit_code == 0
        assert result.stdout == ""

    def test_init_reads_env(self, data_dir: Path) -> None:
        result = runner.invoke(app, ["init", "--quiet"], env={DATA_DIR_ENV: str(data_dir)})

        assert result.exit_code == 0
        assert (data_dir / BASE_DIR / METADATA_FILE).exists()

    def test_init_corrupt_metadata(self, data_dir: Path) -> None:
        (data_dir / BASE_DIR).mkdir()
        (data_dir / BASE_DIR / METADATA_FILE).write_text("{", encoding="utf-8")

        result = runner.invoke(app, ["init", "--data-dir", str(data_dir)])

        assert result.exit_code == 3
        assert "BLOB_STORE_0011" in result.stdout


class TestPutGet:
    """Test blobstore put and get."""

    def test_put_then_get(self, data_dir: Path, payload: Path) -> None:
        put_result = _put(data_dir, payload)
        assert put_result.exit_code == 0
        assert "pipelines/ingest version 1" in put_result.stdout

        get_result = runner.invoke(
            app, ["get", "pipelines", "ingest", "1", "--data-dir", str(data_dir)]
        )
        assert get_result.exit_code == 0
        assert get_result.stdout_bytes == payload.read_bytes()

    def test_get_latest_by_default(self, data_dir: Path, payload: Path, tmp_path: Path) -> None:
        _put(data_dir, payload, "1")
        newer = tmp_path / "newer.json"
        newer.write_bytes(b"newer")
        _put(data_dir, newer, "5")

        result = runner.invoke(app, ["get", "pipelines", "ingest", "--data-dir", str(data_dir)])

        assert result.exit_code == 0
        assert result.stdout_bytes == b"newer"

    def test_get_to_file(self, data_dir: Path, payload: Path, tmp_path: Path) -> None:
        _put(data_dir, payload)
        output = tmp_path / "out.json"

        result = runner.invoke(
            app,
            ["get", "pipelines", "ingest", "1", "-o", str(output), "--data-dir", str(data_dir)],
        )

        assert result.exit_code == 0
        assert output.read_bytes() == payload.read_bytes()

    def test_put_duplicate_version(self, data_dir: Path, payload: Path) -> None:
        _put(data_dir, payload)
        result = _put(data_dir, payload)

        assert result.exit_code == 1
        assert "BLOB_STORE_0003" in result.stdout

    def test_put_invalid_namespace(self, data_dir: Path, payload: Path) -> None:
        result = runner.invoke(
            app, ["put", "bad-ns", "ingest", "1", str(payload), "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 1
        assert "Invalid namespace" in result.stdout

    def test_put_missing_file(self, data_dir: Path, tmp_path: Path) -> None:
        result = _put(data_dir, tmp_path / "missing.json")

        assert result.exit_code == 1
        assert "File not found" in result.stdout

    def test_get_missing_version(self, data_dir: Path, payload: Path) -> None:
        _put(data_dir, payload)

        result = runner.invoke(
            app, ["get", "pipelines", "ingest", "9", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 1
        assert "BLOB_STORE_0007" in result.stdout


class TestRmVersionsLs:
    """Test blobstore rm, versions and ls."""

    def test_rm(self, data_dir: Path, payload: Path) -> None:
        _put(data_dir, payload, "1")
        _put(data_dir, payload, "2")

        result = runner.invoke(
            app, ["rm", "pipelines", "ingest", "1", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 0
        assert BlobStore.open(data_dir).all_versions("pipelines", "ingest") == {2}

    def test_rm_missing(self, data_dir: Path) -> None:
        result = runner.invoke(
            app, ["rm", "pipelines", "ingest", "1", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 1
        assert "BLOB_STORE_0005" in result.stdout

    def test_versions(self, data_dir: Path, payload: Path) -> None:
        for version in ("3", "1", "7"):
            _put(data_dir, payload, version)

        result = runner.invoke(
            app, ["versions", "pipelines", "ingest", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 0
        lines = result.stdout.strip().splitlines()
        assert lines == ["1", "3", "7  (latest)"]

    def test_versions_missing_object(self, data_dir: Path) -> None:
        BlobStore.open(data_dir)

        result = runner.invoke(
            app, ["versions", "pipelines", "ingest", "--data-dir", str(data_dir)]
        )

        assert result.exit_code == 1
        assert "Object not found" in result.stdout

    def test_ls_empty(self, data_dir: Path) -> None:
        BlobStore.open(data_dir)

        result = runner.invoke(app, ["ls", "--data-dir", str(data_dir)])

        assert result.exit_code == 0
        assert "Blob store is empty" in result.stdout

    def test_ls_namespaces_and_objects(self, data_dir: Path, payload: Path) -> None:
        _put(data_dir, payload)

        namespaces = runner.invoke(app, ["ls", "--data-dir", str(data_dir)])
        objects = runner.invoke(app, ["ls", "pipelines", "--data-dir", str(data_dir)])

        assert namespaces.exit_code == 0
        assert "pipelines" in namespaces.stdout
        assert objects.exit_code == 0
        assert "ingest" in objects.stdout


class TestCheckCommand:
    """Test blobstore check."""

    def test_check_consistent(self, data_dir: Path, payload: Path) -> None:
        _put(data_dir, payload)

        result = runner.invoke(app, ["check", "--data-dir", str(data_dir)])

        assert result.exit_code == 0
        assert "consistent" in result.stdout

    def test_check_reports_orphans(self, data_dir: Path, payload: Path) -> None:
        _put(data_dir, payload)
        (data_dir / BASE_DIR / "stray.content").write_bytes(b"orphan")

        result = runner.invoke(app, ["check", "--data-dir", str(data_dir)])

        assert result.exit_code == 1
        assert "stray.content" in result.stdout


class TestMissingStore:
    """Test that read-only commands don't create a store in a wrong data dir."""

    @pytest.mark.parametrize(
        "args",
        [
            ["ls"],
            ["ls", "pipelines"],
            ["check"],
            ["get", "pipelines", "ingest", "1"],
            ["versions", "pipelines", "ingest"],
        ],
    )
    def test_read_only_command_needs_existing_store(self, data_dir: Path, args: list) -> None:
        result = runner.invoke(app, args + ["--data-dir", str(data_dir)])

        assert result.exit_code == 1
        assert "No blob store found" in result.stdout
        assert not (data_dir / BASE_DIR).exists()

    def test_put_creates_store(self, data_dir: Path, payload: Path) -> None:
        result = _put(data_dir, payload)

        assert result.exit_code == 0
        assert (data_dir / BASE_DIR / METADATA_FILE).exists()


def test_version_command() -> None:
    result = runner.invoke(app, ["version"])

    assert result.exit_code == 0
    assert "BlobStore version 0.1.0" in result.stdout
