"""Audit trail SQLAlchemy model."""

import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, utcnow


class AuditAction(enum.Enum):
    """Enumeration of audited client operations."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    VIEW = "VIEW"


class AuditLogEntry(Base):
    """Represents one immutable, field-level change to a client.

    client_id is a plain back-reference without a foreign key so entries
    can outlive the client when the retention policy keeps them.
    """

    __tablename__ = "audit_logs"
    __table_args__ = (Index("ix_audit_logs_client_changed", "client_id", "changed_at"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    client_id: Mapped[str] = mapped_column(String(36), nullable=False)
    action: Mapped[AuditAction] = mapped_column(Enum(AuditAction), nullable=False)
    field_name: Mapped[str | None] = mapped_column(String(100))
    old_value: Mapped[str | None] = mapped_column(Text)
    new_value: Mapped[str | None] = mapped_column(Text)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, nullable=False
    )
