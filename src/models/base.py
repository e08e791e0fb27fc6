"""Declarative base and shared column mixins."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime.

    Timestamps are stored without timezone so SQLite and PostgreSQL
    compare them the same way.
    """
    return datetime.now(UTC).replace(tzinfo=None)


def new_uuid() -> str:
    """Generate an opaque string identifier."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Base class all database models inherit from."""


class TimestampMixin:
    """Adds created_at/updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime)
