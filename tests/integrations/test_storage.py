"""Tests for document storage.

Tests cover:
- Filesystem detection for local paths and URLs
- Path building for local and cloud URLs
- Saving, reading and deleting document files
"""

import os
import tempfile

import pytest

from src.integrations.storage import DocumentStorage, build_full_path, get_filesystem


def _has_s3fs() -> bool:
    """Check if s3fs package is available."""
    try:
        import s3fs  # noqa: F401

        return True
    except ImportError:
        return False


class TestGetFilesystem:
    """Tests for get_filesystem function."""

    def test_local_path_returns_local_filesystem(self) -> None:
        """Local path returns LocalFileSystem."""
        with tempfile.TemporaryDirectory() as tmpdir:
            fs = get_filesystem(tmpdir)
            assert "LocalFileSystem" in type(fs).__name__

    def test_file_url_returns_local_filesystem(self) -> None:
        """file:// URL returns LocalFileSystem."""
        with tempfile.TemporaryDirectory() as tmpdir:
            fs = get_filesystem(f"file://{tmpdir}")
            assert "LocalFileSystem" in type(fs).__name__

    @pytest.mark.skipif(
        not _has_s3fs(),
        reason="s3fs not installed",
    )
    def test_s3_url_returns_s3_filesystem(self) -> None:
        """s3:// URL returns S3FileSystem (lazy initialization)."""
        fs = get_filesystem("s3://bucket/path")
        assert "S3FileSystem" in type(fs).__name__


class TestBuildFullPath:
    """Tests for build_full_path function."""

    def test_local_base(self) -> None:
        assert build_full_path("/data/docs", "c1/pan.pdf") == os.path.join(
            "/data/docs", "c1/pan.pdf"
        )

    def test_file_url_base(self) -> None:
        assert build_full_path("file:///data/docs", "c1/pan.pdf") == os.path.join(
            "/data/docs", "c1/pan.pdf"
        )

    def test_cloud_base(self) -> None:
        assert build_full_path("s3://bucket/docs/", "/c1/pan.pdf") == "bucket/docs/c1/pan.pdf"

    def test_empty_path_returns_base(self) -> None:
        assert build_full_path("s3://bucket/docs", "") == "bucket/docs"


class TestDocumentStorage:
    """Tests for DocumentStorage."""

    @pytest.mark.asyncio
    async def test_save_creates_directories_and_returns_ref(self, tmp_path) -> None:
        storage = DocumentStorage(str(tmp_path))
        ref = await storage.save("client-1/nested/pan.pdf", b"%PDF-1.7")
        assert ref == os.path.join(str(tmp_path), "client-1/nested/pan.pdf")
        assert os.path.exists(ref)
        assert await storage.read(ref) == b"%PDF-1.7"

    @pytest.mark.asyncio
    async def test_delete_removes_file(self, tmp_path) -> None:
        storage = DocumentStorage(str(tmp_path))
        ref = await storage.save("pan.pdf", b"data")
        assert await storage.delete(ref) is True
        assert not os.path.exists(ref)

    @pytest.mark.asyncio
    async def test_delete_missing_file_returns_false(self, tmp_path) -> None:
        storage = DocumentStorage(str(tmp_path))
        assert await storage.delete(str(tmp_path / "missing.pdf")) is False

    @pytest.mark.asyncio
    async def test_read_missing_file_raises(self, tmp_path) -> None:
        storage = DocumentStorage(str(tmp_path))
        with pytest.raises(FileNotFoundError):
            await storage.read(str(tmp_path / "missing.pdf"))
