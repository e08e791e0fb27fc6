"""Application configuration using Pydantic Settings."""

import json
from collections.abc import Iterable
from pathlib import Path
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


DEFAULT_ALLOWED_UPLOAD_TYPES = [
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/jpg",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./clients.db"
    """Database connection URL (asyncpg driver in production)."""

    store_timeout_seconds: float = 10.0
    """Upper bound for one client operation against the store."""

    # Error Tracking
    sentry_dsn: str | None = None
    """Sentry DSN for error tracking. Optional."""

    # Environment
    environment: str = "development"
    """Current environment (development, staging, production)."""

    debug: bool = False
    """Enable debug mode."""

    log_format: str | None = None
    """Logging format override (json or console). Defaults by environment."""

    # Documents
    storage_url: str = "/tmp/storage"
    """Storage URL for client documents (file://, s3://, gs://, or local)."""

    max_upload_bytes: int = 10 * 1024 * 1024
    """Maximum upload size in bytes for client documents."""

    # NoDecode prevents pydantic-settings from forcing JSON parsing at the
    # env-source layer, so we can accept either JSON arrays or CSV strings.
    allowed_upload_types: Annotated[list[str], NoDecode] = DEFAULT_ALLOWED_UPLOAD_TYPES
    """Allowed content types for document uploads."""

    # Audit trail
    audit_cascade_on_delete: bool = True
    """Delete a client's audit rows together with the client.

    Set to false to retain audit history after the client is gone.
    """

    audit_recent_days: int = 30
    """Window used for the recent-changes figure in audit stats."""

    audit_retention_days: int = 365
    """Age after which audit rows may be purged."""

    audit_page_size: int = 50
    """Default page size for audit log listings."""

    audit_max_page_size: int = 100
    """Maximum page size for audit log listings."""

    @field_validator("allowed_upload_types", mode="before")
    @classmethod
    def parse_allowed_upload_types(cls, value: object) -> list[str]:
        """Parse allowed upload types from JSON array, CSV, or list."""
        if isinstance(value, str):
            text = value.strip()
            if not text:
                return DEFAULT_ALLOWED_UPLOAD_TYPES.copy()

            try:
                decoded = json.loads(text)
            except json.JSONDecodeError:
                decoded = None

            if isinstance(decoded, list):
                return _normalize_upload_types(decoded)
            if isinstance(decoded, str):
                text = decoded
            elif decoded is not None:
                raise ValueError(
                    "ALLOWED_UPLOAD_TYPES must be a JSON array or comma-separated string."
                )

            # Fallback: comma-separated values
            parsed = [item.strip() for item in text.split(",")]
            return _normalize_upload_types(parsed)

        if isinstance(value, (list, tuple, set)):
            return _normalize_upload_types(value)

        raise ValueError(
            "ALLOWED_UPLOAD_TYPES must be a string, list, tuple, or set."
        )

    @field_validator("store_timeout_seconds")
    @classmethod
    def check_store_timeout(cls, value: float) -> float:
        """Reject non-positive timeouts."""
        if value <= 0:
            raise ValueError("STORE_TIMEOUT_SECONDS must be greater than zero.")
        return value


def _normalize_upload_types(values: Iterable[object]) -> list[str]:
    """Normalize and dedupe upload types while preserving declaration order."""
    normalized: list[str] = []
    seen: set[str] = set()
    for raw_item in values:
        item = str(raw_item).strip().strip("'").strip('"')
        if not item:
            continue
        item = item.lower()
        if item in seen:
            continue
        normalized.append(item)
        seen.add(item)

    if not normalized:
        return DEFAULT_ALLOWED_UPLOAD_TYPES.copy()
    return normalized


try:
    settings = Settings()
except Exception as exc:
    env_file = Path(".env")
    root_error = str(exc)
    suggestions = [
        "Check DATABASE_URL and STORE_TIMEOUT_SECONDS.",
        "Allowed values for ALLOWED_UPLOAD_TYPES are:",
        '  1) ["application/pdf","image/jpeg","image/png","image/jpg"]',
        "  2) application/pdf,image/jpeg,image/png,image/jpg",
    ]

    raise RuntimeError(
        "Failed to initialize application settings. "
        f"Check environment variables in {env_file.resolve() if env_file.exists() else '.env'}.\n"
        + f"Error: {root_error}\n"
        + "\n".join(suggestions)
    ) from exc
