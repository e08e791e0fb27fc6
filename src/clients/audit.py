"""Audit trail: recording field-level changes and reading them back.

The recorder never opens or commits a transaction of its own. It adds
rows to the caller's session so that audit rows and the entity change
they describe commit or roll back together.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Protocol

import orjson
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.diff import FieldChange
from src.core.logging import get_logger
from src.models.audit import AuditAction, AuditLogEntry
from src.models.base import utcnow
from src.models.client import Client
from src.models.document import Document

logger = get_logger(__name__)

DOCUMENT_FIELD = "document"


class AuditRecorder:
    """Writes audit rows into an open session."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def record_create(
        self, client_id: str, flat: Mapping[str, str | None]
    ) -> list[AuditLogEntry]:
        """Write one CREATE row per non-empty field."""
        return await self._write(
            client_id,
            AuditAction.CREATE,
            [(name, None, value) for name, value in flat.items() if value],
        )

    async def record_update(
        self, client_id: str, changes: Sequence[FieldChange]
    ) -> list[AuditLogEntry]:
        """Write one UPDATE row per changed field."""
        return await self._write(
            client_id,
            AuditAction.UPDATE,
            [(change.field_name, change.old_value, change.new_value) for change in changes],
        )

    async def record_delete(
        self, client_id: str, flat: Mapping[str, str | None]
    ) -> list[AuditLogEntry]:
        """Write one DELETE row per field holding a value."""
        return await self._write(
            client_id,
            AuditAction.DELETE,
            [(name, value, None) for name, value in flat.items() if value],
        )

    async def record_view(self, client_id: str) -> list[AuditLogEntry]:
        """Write a single VIEW marker."""
        return await self._write(client_id, AuditAction.VIEW, [(None, None, None)])

    async def record_document(
        self, client_id: str, action: AuditAction, document: Document
    ) -> list[AuditLogEntry]:
        """Write a CREATE or DELETE row describing a document operation."""
        if action not in (AuditAction.CREATE, AuditAction.DELETE):
            raise ValueError(f"Unsupported document audit action: {action.value}")
        summary = orjson.dumps(
            {
                "fileName": document.file_name,
                "documentType": document.document_type.value,
            }
        ).decode("utf-8")
        if action is AuditAction.CREATE:
            row = (DOCUMENT_FIELD, None, summary)
        else:
            row = (DOCUMENT_FIELD, summary, None)
        return await self._write(client_id, action, [row])

    async def _write(
        self,
        client_id: str,
        action: AuditAction,
        rows: list[tuple[str | None, str | None, str | None]],
    ) -> list[AuditLogEntry]:
        if not rows:
            return []
        changed_at = utcnow()
        entries = [
            AuditLogEntry(
                client_id=client_id,
                action=action,
                field_name=field_name,
                old_value=old_value,
                new_value=new_value,
                changed_at=changed_at,
            )
            for field_name, old_value, new_value in rows
        ]
        self.session.add_all(entries)
        await self.session.flush()
        logger.debug(
            "audit_entries_written",
            client_id=client_id,
            action=action.value,
            count=len(entries),
        )
        return entries


class _AuditRow(Protocol):
    action: AuditAction
    field_name: str | None
    changed_at: datetime


@dataclass
class AuditStats:
    """Aggregated audit figures for one client."""

    total_changes: int = 0
    recent_changes: int = 0
    changes_by_action: dict[str, int] = field(default_factory=dict)
    changes_by_field: dict[str, int] = field(default_factory=dict)
    last_modified: datetime | None = None


@dataclass
class AuditPage:
    """One page of audit entries."""

    entries: list[AuditLogEntry]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


@dataclass
class AuditReport:
    """Audit activity across clients for a date range."""

    start: datetime
    end: datetime
    total_operations: int = 0
    operations_by_action: dict[str, int] = field(default_factory=dict)
    operations_by_client: dict[str, int] = field(default_factory=dict)
    operations_by_field: dict[str, int] = field(default_factory=dict)
    daily_activity: dict[str, int] = field(default_factory=dict)


def summarize(
    entries: Iterable[_AuditRow],
    now: datetime,
    window_days: int = 30,
) -> AuditStats:
    """Aggregate audit rows into statistics.

    Args:
        entries: Rows exposing action, field_name and changed_at.
        now: Reference time for the recent window.
        window_days: Size of the recent window in days.

    Returns:
        AuditStats over all rows given.
    """
    cutoff = now - timedelta(days=window_days)
    by_action: Counter[str] = Counter()
    by_field: Counter[str] = Counter()
    total = 0
    recent = 0
    last_modified: datetime | None = None
    for entry in entries:
        total += 1
        by_action[entry.action.value] += 1
        if entry.field_name:
            by_field[entry.field_name] += 1
        if entry.changed_at >= cutoff:
            recent += 1
        if last_modified is None or entry.changed_at > last_modified:
            last_modified = entry.changed_at
    return AuditStats(
        total_changes=total,
        recent_changes=recent,
        changes_by_action=dict(by_action),
        changes_by_field=dict(by_field),
        last_modified=last_modified,
    )


async def get_audit_stats(
    session: AsyncSession,
    client_id: str,
    window_days: int = 30,
    now: datetime | None = None,
) -> AuditStats:
    """Compute statistics over a client's stored audit rows."""
    result = await session.execute(
        select(AuditLogEntry.action, AuditLogEntry.field_name, AuditLogEntry.changed_at).where(
            AuditLogEntry.client_id == client_id
        )
    )
    return summarize(result.all(), now=now or utcnow(), window_days=window_days)


async def get_audit_log(
    session: AsyncSession,
    client_id: str,
    page: int = 1,
    limit: int = 50,
    chronological: bool = False,
    action: AuditAction | None = None,
    field_name: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> AuditPage:
    """Fetch one page of a client's audit trail.

    Newest entries come first unless chronological is set. field_name
    matches case-insensitively as a substring.
    """
    filters = [AuditLogEntry.client_id == client_id]
    if action is not None:
        filters.append(AuditLogEntry.action == action)
    if field_name:
        filters.append(
            func.lower(AuditLogEntry.field_name).like(f"%{field_name.strip().lower()}%")
        )
    if start is not None:
        filters.append(AuditLogEntry.changed_at >= start)
    if end is not None:
        filters.append(AuditLogEntry.changed_at <= end)

    if chronological:
        ordering = (AuditLogEntry.changed_at.asc(), AuditLogEntry.id.asc())
    else:
        ordering = (AuditLogEntry.changed_at.desc(), AuditLogEntry.id.desc())

    total_result = await session.execute(select(func.count(AuditLogEntry.id)).where(*filters))
    total = int(total_result.scalar() or 0)

    entries_result = await session.execute(
        select(AuditLogEntry)
        .where(*filters)
        .order_by(*ordering)
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return AuditPage(
        entries=list(entries_result.scalars().all()),
        total=total,
        page=page,
        limit=limit,
    )


async def build_report(
    session: AsyncSession,
    start: datetime,
    end: datetime,
    client_id: str | None = None,
) -> AuditReport:
    """Aggregate audit activity between start and end (inclusive).

    Operations are attributed to the client's name when the client still
    exists, otherwise to its id.
    """
    if start > end:
        raise ValueError("start must not be after end")
    stmt = (
        select(
            AuditLogEntry.client_id,
            AuditLogEntry.action,
            AuditLogEntry.field_name,
            AuditLogEntry.changed_at,
            Client.first_name,
            Client.last_name,
        )
        .outerjoin(Client, Client.id == AuditLogEntry.client_id)
        .where(AuditLogEntry.changed_at >= start, AuditLogEntry.changed_at <= end)
    )
    if client_id is not None:
        stmt = stmt.where(AuditLogEntry.client_id == client_id)
    result = await session.execute(stmt)

    report = AuditReport(start=start, end=end)
    by_action: Counter[str] = Counter()
    by_client: Counter[str] = Counter()
    by_field: Counter[str] = Counter()
    by_day: Counter[str] = Counter()
    for row in result.all():
        report.total_operations += 1
        by_action[row.action.value] += 1
        name = " ".join(part for part in (row.first_name, row.last_name) if part)
        by_client[name or row.client_id] += 1
        if row.field_name:
            by_field[row.field_name] += 1
        by_day[row.changed_at.date().isoformat()] += 1
    report.operations_by_action = dict(by_action)
    report.operations_by_client = dict(by_client)
    report.operations_by_field = dict(by_field)
    report.daily_activity = dict(sorted(by_day.items()))
    return report


async def delete_client_entries(session: AsyncSession, client_id: str) -> int:
    """Remove every audit row of a client. Returns the number removed."""
    result = await session.execute(
        delete(AuditLogEntry).where(AuditLogEntry.client_id == client_id)
    )
    return int(result.rowcount or 0)


async def purge_expired(
    session: AsyncSession,
    days_to_keep: int,
    now: datetime | None = None,
) -> int:
    """Remove audit rows older than the retention window.

    Returns:
        Number of rows removed.
    """
    cutoff = (now or utcnow()) - timedelta(days=days_to_keep)
    result = await session.execute(
        delete(AuditLogEntry).where(AuditLogEntry.changed_at < cutoff)
    )
    removed = int(result.rowcount or 0)
    logger.info("audit_entries_purged", removed=removed, days_to_keep=days_to_keep)
    return removed
