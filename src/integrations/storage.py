"""Document storage using fsspec for filesystem abstraction.

Provides unified access to local filesystem and cloud storage (S3, GCS)
through fsspec's protocol detection. The client service only keeps the
reference returned by save(); file bytes never pass through the database.
"""

import asyncio
import os
from urllib.parse import urlparse

import fsspec

from src.core.logging import get_logger

logger = get_logger(__name__)


def get_filesystem(url: str) -> fsspec.AbstractFileSystem:
    """Get filesystem for URL, auto-detecting protocol.

    Args:
        url: Storage URL (file://, s3://, gs://, or local path)

    Returns:
        Filesystem instance for the protocol

    Examples:
        get_filesystem("s3://bucket/path") -> S3FileSystem
        get_filesystem("/local/path") -> LocalFileSystem
        get_filesystem("file:///local/path") -> LocalFileSystem
    """
    parsed = urlparse(url)

    # For local paths without scheme or with file:// scheme
    if not parsed.scheme or parsed.scheme == "file":
        return fsspec.filesystem("file")

    # For cloud protocols (s3://, gs://, etc.)
    return fsspec.filesystem(parsed.scheme)


def build_full_path(url: str, path: str) -> str:
    """Build full path from base URL and relative path.

    Args:
        url: Base storage URL
        path: Relative path within storage

    Returns:
        Full path for filesystem operations
    """
    parsed = urlparse(url)

    if not parsed.scheme or parsed.scheme == "file":
        # Local filesystem
        base = parsed.path if parsed.path else url
        if path:
            return os.path.join(base, path)
        return base

    # Cloud storage - combine netloc and path
    base = f"{parsed.netloc}{parsed.path}" if parsed.netloc else parsed.path
    if path:
        return f"{base.rstrip('/')}/{path.lstrip('/')}"
    return base


def _is_local(url: str) -> bool:
    scheme = urlparse(url).scheme
    return not scheme or scheme == "file"


class DocumentStorage:
    """Stores client document files under a base URL.

    Example:
        >>> storage = DocumentStorage("/tmp/storage")
        >>> ref = await storage.save("client-1/id-proof.pdf", b"%PDF-1.7")
        >>> await storage.delete(ref)
    """

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url
        self.fs = get_filesystem(base_url)

    async def save(self, path: str, content: bytes) -> str:
        """Write file bytes and return the storage reference.

        Args:
            path: File path relative to the base URL.
            content: File contents.

        Returns:
            Full storage path, used as the document's storage_ref.
        """
        full_path = build_full_path(self.base_url, path)
        if _is_local(self.base_url):
            directory = os.path.dirname(full_path)
            if directory:
                os.makedirs(directory, exist_ok=True)
        await asyncio.to_thread(self._write_sync, full_path, content)
        return full_path

    async def read(self, ref: str) -> bytes:
        """Read file bytes for a storage reference."""
        return await asyncio.to_thread(self._read_sync, ref)

    async def delete(self, ref: str) -> bool:
        """Remove a stored file.

        Returns:
            True if a file was removed, False if it did not exist.
        """
        exists = await asyncio.to_thread(self.fs.exists, ref)
        if not exists:
            logger.warning("document_file_missing", storage_ref=ref)
            return False
        await asyncio.to_thread(self.fs.rm, ref)
        return True

    def _write_sync(self, path: str, content: bytes) -> None:
        with self.fs.open(path, "wb") as f:
            f.write(content)

    def _read_sync(self, path: str) -> bytes:
        with self.fs.open(path, "rb") as f:
            return f.read()
