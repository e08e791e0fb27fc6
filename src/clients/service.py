"""Client service: orchestrates validation, persistence and auditing.

Every public operation runs in its own session and transaction. The
root row, the detail row and the audit rows of one operation commit
together or not at all.

Example:
    >>> service = ClientService(session_factory)
    >>> view = await service.create_client({
    ...     "firstName": "John",
    ...     "personalDetails": {"mobileNumber": "9876543210", "birthDate": "1990-01-01"},
    ... })
    >>> view.client_type
    <ClientVariant.PERSONAL: 'PERSONAL'>
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Iterable, Mapping
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, assert_never

from sqlalchemy import exc as sa_exc
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from src.clients.aggregate import ClientAggregate
from src.clients.audit import (
    AuditPage,
    AuditRecorder,
    AuditReport,
    AuditStats,
    build_report,
    delete_client_entries,
    get_audit_log,
    get_audit_stats,
    purge_expired,
)
from src.clients.diff import diff
from src.clients.errors import (
    ClientNotFound,
    DocumentNotFound,
    ErrorCode,
    FieldError,
    FormatKind,
    StoreTimeout,
    TransactionFailed,
    ValidationFailed,
)
from src.clients.variants import ClientVariant, is_valid_variant, validate
from src.clients.views import ClientPage, ClientView, DocumentView
from src.core.config import settings
from src.core.logging import bind_client, get_logger
from src.integrations.storage import DocumentStorage
from src.models.audit import AuditAction
from src.models.base import utcnow
from src.models.client import Client, CorporateDetails
from src.models.document import Document, DocumentType

logger = get_logger(__name__)

_CLIENT_LOAD_OPTIONS = (
    selectinload(Client.personal_details),
    selectinload(Client.family_details),
    selectinload(Client.corporate_details),
    selectinload(Client.documents),
)


class ClientService:
    """Create, update, delete and read clients with a field-level audit trail."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: DocumentStorage | None = None,
        timeout: float | None = None,
        audit_cascade_on_delete: bool | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session_factory: Factory producing sessions bound to the store.
            storage: Document storage used to remove files of deleted
                documents. Files are left in place when omitted.
            timeout: Seconds allowed per operation. Defaults to
                settings.store_timeout_seconds.
            audit_cascade_on_delete: Remove a client's audit rows with the
                client. Defaults to settings.audit_cascade_on_delete.
        """
        self.session_factory = session_factory
        self.storage = storage
        self.timeout = timeout if timeout is not None else settings.store_timeout_seconds
        self.audit_cascade_on_delete = (
            audit_cascade_on_delete
            if audit_cascade_on_delete is not None
            else settings.audit_cascade_on_delete
        )

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        """Open a session and transaction, translating store failures."""
        try:
            async with asyncio.timeout(self.timeout):
                async with self.session_factory() as session, session.begin():
                    yield session
        except (TimeoutError, sa_exc.TimeoutError) as exc:
            logger.warning("store_timeout", timeout=self.timeout)
            raise StoreTimeout(
                f"Store did not respond within {self.timeout} seconds"
            ) from exc
        except sa_exc.SQLAlchemyError as exc:
            logger.exception("transaction_failed", error=str(exc))
            raise TransactionFailed(str(exc)) from exc

    async def _load(
        self, session: AsyncSession, client_id: str, for_update: bool = False
    ) -> Client:
        stmt = select(Client).where(Client.id == client_id).options(*_CLIENT_LOAD_OPTIONS)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        client = result.scalar_one_or_none()
        if client is None:
            raise ClientNotFound(client_id)
        return client

    async def _exists(self, session: AsyncSession, client_id: str) -> bool:
        result = await session.execute(select(Client.id).where(Client.id == client_id))
        return result.scalar_one_or_none() is not None

    async def create_client(self, payload: Mapping[str, Any]) -> ClientView:
        """Validate and persist a new client, auditing every supplied field.

        Raises:
            ValidationFailed: With every variant, required-field and
                format error found. Nothing is written.
            StoreTimeout: The store did not answer in time.
            TransactionFailed: The store rejected the transaction.
        """
        aggregate = ClientAggregate.from_payload(payload)
        result = validate(aggregate.variant, aggregate.flatten())
        if not result.valid:
            logger.info(
                "client_validation_failed",
                client_type=aggregate.variant.value,
                error_count=len(result.errors),
            )
            raise ValidationFailed(result.errors)

        async with self._transaction() as session:
            now = utcnow()
            client = Client(
                created_at=now,
                updated_at=now,
                personal_details=None,
                family_details=None,
                corporate_details=None,
                documents=[],
            )
            aggregate.apply_to(client)
            session.add(client)
            await session.flush()
            bind_client(client.id)

            entries = await AuditRecorder(session).record_create(client.id, aggregate.flatten())
            view = ClientView.build(client, ClientAggregate.from_model(client))

        logger.info(
            "client_created",
            client_id=view.id,
            client_type=view.client_type.value,
            audit_entries=len(entries),
        )
        return view

    async def update_client(self, client_id: str, payload: Mapping[str, Any]) -> ClientView:
        """Apply a partial update and audit each changed field.

        An update that changes nothing writes nothing, not even updated_at.

        Raises:
            ClientNotFound: No client with this id.
            ValidationFailed: VARIANT_IMMUTABLE, or every required-field
                and format error of the merged record.
            StoreTimeout: The store did not answer in time.
            TransactionFailed: The store rejected the transaction.
        """
        bind_client(client_id)
        async with self._transaction() as session:
            client = await self._load(session, client_id, for_update=True)
            current = ClientAggregate.from_model(client)
            merged = current.updated_with(payload)

            result = validate(
                merged.variant,
                merged.flatten(),
                supplied=current.supplied_fields(payload),
            )
            if not result.valid:
                logger.info(
                    "client_validation_failed",
                    client_type=merged.variant.value,
                    error_count=len(result.errors),
                )
                raise ValidationFailed(result.errors)

            changes = diff(current.flatten(), merged.flatten(), current.field_order)
            if not changes:
                logger.info("client_update_noop")
                return ClientView.build(client, current)

            merged.apply_to(client)
            client.updated_at = utcnow()
            await session.flush()
            await AuditRecorder(session).record_update(client.id, changes)
            view = ClientView.build(client, merged)

        logger.info(
            "client_updated",
            changed_fields=[change.field_name for change in changes],
        )
        return view

    async def delete_client(self, client_id: str) -> None:
        """Delete a client with its details and documents.

        DELETE audit rows are written first. Audit rows are removed too
        only when audit_cascade_on_delete is set. Stored files of the
        client's documents are removed after commit, best effort.

        Raises:
            ClientNotFound: No client with this id.
            StoreTimeout: The store did not answer in time.
            TransactionFailed: The store rejected the transaction.
        """
        bind_client(client_id)
        async with self._transaction() as session:
            client = await self._load(session, client_id, for_update=True)
            aggregate = ClientAggregate.from_model(client)
            storage_refs = [document.storage_ref for document in client.documents]

            await AuditRecorder(session).record_delete(client.id, aggregate.flatten())
            purged = 0
            if self.audit_cascade_on_delete:
                purged = await delete_client_entries(session, client.id)
            await session.delete(client)

        logger.info(
            "client_deleted",
            client_type=aggregate.variant.value,
            documents=len(storage_refs),
            audit_entries_purged=purged,
        )
        await self._remove_files(storage_refs)

    async def get_client(self, client_id: str, record_view: bool = False) -> ClientView:
        """Fetch a client.

        Args:
            client_id: Client identifier.
            record_view: Also write a VIEW audit marker.

        Raises:
            ClientNotFound: No client with this id.
        """
        async with self._transaction() as session:
            client = await self._load(session, client_id)
            if record_view:
                await AuditRecorder(session).record_view(client.id)
            return ClientView.build(client, ClientAggregate.from_model(client))

    async def list_clients(
        self,
        search: str | None = None,
        client_type: str | ClientVariant | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> ClientPage:
        """List clients, newest first, with optional search and type filter.

        Raises:
            ValidationFailed: client_type is not a known variant.
        """
        filters = []
        if search and search.strip():
            pattern = f"%{search.strip().lower()}%"
            filters.append(
                or_(
                    func.lower(func.coalesce(Client.first_name, "")).like(pattern),
                    func.lower(func.coalesce(Client.last_name, "")).like(pattern),
                    func.lower(func.coalesce(Client.email, "")).like(pattern),
                    func.lower(func.coalesce(Client.phone, "")).like(pattern),
                    Client.corporate_details.has(
                        func.lower(CorporateDetails.company_name).like(pattern)
                    ),
                )
            )
        if client_type is not None:
            filters.append(_variant_filter(_parse_variant(client_type)))

        async with self._transaction() as session:
            count_stmt = select(func.count(Client.id))
            list_stmt = (
                select(Client)
                .options(*_CLIENT_LOAD_OPTIONS)
                .order_by(Client.created_at.desc(), Client.id.desc())
            )
            if filters:
                count_stmt = count_stmt.where(*filters)
                list_stmt = list_stmt.where(*filters)

            total_result = await session.execute(count_stmt)
            total = int(total_result.scalar() or 0)
            clients_result = await session.execute(list_stmt.limit(limit).offset(offset))
            items = [
                ClientView.build(client, ClientAggregate.from_model(client))
                for client in clients_result.scalars().all()
            ]
        return ClientPage(items=items, total=total, limit=limit, offset=offset)

    async def attach_document(
        self,
        client_id: str,
        *,
        document_type: str | DocumentType,
        file_name: str,
        original_name: str,
        storage_ref: str,
        mime_type: str,
        file_size: int,
    ) -> DocumentView:
        """Record a stored file against a client and audit it.

        Raises:
            ClientNotFound: No client with this id.
            ValidationFailed: document_type is not a known type.
        """
        parsed_type = _parse_document_type(document_type)
        bind_client(client_id)
        async with self._transaction() as session:
            if not await self._exists(session, client_id):
                raise ClientNotFound(client_id)
            document = Document(
                client_id=client_id,
                document_type=parsed_type,
                file_name=file_name,
                original_name=original_name,
                storage_ref=storage_ref,
                mime_type=mime_type,
                file_size=file_size,
                uploaded_at=utcnow(),
            )
            session.add(document)
            await session.flush()
            await AuditRecorder(session).record_document(client_id, AuditAction.CREATE, document)
            view = DocumentView.from_model(document)

        logger.info("document_attached", document_id=view.id, document_type=view.document_type)
        return view

    async def get_document(self, client_id: str, document_id: str) -> DocumentView:
        """Fetch one document reference of a client.

        Raises:
            ClientNotFound: No client with this id.
            DocumentNotFound: The client has no such document.
        """
        async with self._transaction() as session:
            document = await self._get_document(session, client_id, document_id)
            return DocumentView.from_model(document)

    async def remove_document(self, client_id: str, document_id: str) -> None:
        """Remove a document reference, audit it, then remove the file.

        Raises:
            ClientNotFound: No client with this id.
            DocumentNotFound: The client has no such document.
        """
        bind_client(client_id)
        async with self._transaction() as session:
            document = await self._get_document(session, client_id, document_id)
            storage_ref = document.storage_ref
            await AuditRecorder(session).record_document(client_id, AuditAction.DELETE, document)
            await session.delete(document)

        logger.info("document_removed", document_id=document_id)
        await self._remove_files([storage_ref])

    async def _get_document(
        self, session: AsyncSession, client_id: str, document_id: str
    ) -> Document:
        document = await session.get(Document, document_id)
        if document is None or document.client_id != client_id:
            if not await self._exists(session, client_id):
                raise ClientNotFound(client_id)
            raise DocumentNotFound(client_id, document_id)
        return document

    async def get_audit_log(
        self,
        client_id: str,
        page: int = 1,
        limit: int | None = None,
        chronological: bool = False,
        action: AuditAction | None = None,
        field_name: str | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> AuditPage:
        """Page through a client's audit trail, newest first by default.

        Entries of a deleted client remain readable while retained.

        Raises:
            ClientNotFound: Unknown client with no retained entries.
        """
        limit = min(max(limit or settings.audit_page_size, 1), settings.audit_max_page_size)
        async with self._transaction() as session:
            result = await get_audit_log(
                session,
                client_id,
                page=max(page, 1),
                limit=limit,
                chronological=chronological,
                action=action,
                field_name=field_name,
                start=start,
                end=end,
            )
            if result.total == 0 and not await self._exists(session, client_id):
                raise ClientNotFound(client_id)
            return result

    async def get_audit_stats(self, client_id: str) -> AuditStats:
        """Aggregate a client's audit trail.

        Raises:
            ClientNotFound: Unknown client with no retained entries.
        """
        async with self._transaction() as session:
            stats = await get_audit_stats(
                session, client_id, window_days=settings.audit_recent_days
            )
            if stats.total_changes == 0 and not await self._exists(session, client_id):
                raise ClientNotFound(client_id)
            return stats

    async def get_audit_report(
        self,
        start: datetime,
        end: datetime,
        client_id: str | None = None,
    ) -> AuditReport:
        """Aggregate audit activity across clients for a date range.

        Raises:
            ValidationFailed: start is after end.
        """
        if start > end:
            raise ValidationFailed(
                [
                    FieldError(
                        code=ErrorCode.INVALID_FORMAT,
                        field="startDate",
                        kind=FormatKind.DATE,
                        message="startDate must be before endDate",
                    )
                ]
            )
        async with self._transaction() as session:
            return await build_report(session, start, end, client_id=client_id)

    async def purge_audit_log(self, days_to_keep: int | None = None) -> int:
        """Remove audit rows older than the retention window.

        Returns:
            Number of rows removed.
        """
        days = days_to_keep if days_to_keep is not None else settings.audit_retention_days
        async with self._transaction() as session:
            return await purge_expired(session, days)

    async def _remove_files(self, storage_refs: Iterable[str]) -> None:
        """Delete stored files after commit; failures are logged only."""
        if self.storage is None:
            return
        for ref in storage_refs:
            try:
                await self.storage.delete(ref)
            except Exception as exc:
                logger.warning("document_cleanup_failed", storage_ref=ref, error=str(exc))


def _parse_variant(value: str | ClientVariant) -> ClientVariant:
    if not is_valid_variant(value):
        raise ValidationFailed(
            [
                FieldError(
                    code=ErrorCode.INVALID_FORMAT,
                    field="clientType",
                    kind=FormatKind.CHOICE,
                    message="clientType must be one of "
                    + ", ".join(variant.value for variant in ClientVariant),
                )
            ]
        )
    return ClientVariant(value)


def _variant_filter(variant: ClientVariant) -> Any:
    match variant:
        case ClientVariant.PERSONAL:
            return Client.personal_details.has()
        case ClientVariant.FAMILY_EMPLOYEE:
            return Client.family_details.has()
        case ClientVariant.CORPORATE:
            return Client.corporate_details.has()
        case _:
            assert_never(variant)


def _parse_document_type(value: str | DocumentType) -> DocumentType:
    if isinstance(value, DocumentType):
        return value
    try:
        return DocumentType(str(value).strip().upper())
    except ValueError:
        raise ValidationFailed(
            [
                FieldError(
                    code=ErrorCode.INVALID_FORMAT,
                    field="documentType",
                    kind=FormatKind.CHOICE,
                    message="documentType must be one of "
                    + ", ".join(member.value for member in DocumentType),
                )
            ]
        ) from None


__all__ = ["ClientService"]
