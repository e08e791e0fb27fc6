"""Integrations module for external services and storage.

Provides document storage through fsspec abstraction.
"""

from src.integrations.storage import DocumentStorage, build_full_path, get_filesystem

__all__ = [
    "DocumentStorage",
    "build_full_path",
    "get_filesystem",
]
