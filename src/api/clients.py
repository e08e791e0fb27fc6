"""Clients API endpoints."""

import re
import uuid
from datetime import date, datetime, time
from pathlib import Path
from typing import Annotated, Any, Literal

from fastapi import (
    APIRouter,
    Body,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    Response,
    UploadFile,
    status,
)
from pydantic import BaseModel

from src.api.deps import get_client_service, get_storage
from src.clients.audit import AuditPage, AuditReport, AuditStats
from src.clients.service import ClientService
from src.clients.views import ClientView, DocumentView
from src.core.config import settings
from src.core.logging import get_logger
from src.integrations.storage import DocumentStorage
from src.models.audit import AuditAction, AuditLogEntry

logger = get_logger(__name__)

router = APIRouter(prefix="/api/clients", tags=["clients"])


class DocumentResponse(BaseModel):
    """Document reference response model."""

    id: str
    document_type: str
    file_name: str
    original_name: str
    mime_type: str
    file_size: int
    uploaded_at: datetime


class ClientResponse(BaseModel):
    """Client response model with flattened fields."""

    id: str
    client_type: str
    fields: dict[str, str]
    documents: list[DocumentResponse]
    created_at: datetime
    updated_at: datetime | None


class ClientListResponse(BaseModel):
    """Paginated client list response."""

    items: list[ClientResponse]
    total: int
    limit: int
    offset: int


class AuditEntryResponse(BaseModel):
    """A single audit row."""

    id: int
    client_id: str
    action: str
    field_name: str | None
    old_value: str | None
    new_value: str | None
    changed_at: datetime


class AuditLogResponse(BaseModel):
    """Paginated audit trail response."""

    items: list[AuditEntryResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class AuditStatsResponse(BaseModel):
    """Audit statistics for one client."""

    total_changes: int
    recent_changes: int
    changes_by_action: dict[str, int]
    changes_by_field: dict[str, int]
    last_modified: datetime | None


class AuditReportResponse(BaseModel):
    """Audit activity across clients for a date range."""

    start: datetime
    end: datetime
    total_operations: int
    operations_by_action: dict[str, int]
    operations_by_client: dict[str, int]
    operations_by_field: dict[str, int]
    daily_activity: dict[str, int]


def _to_document_response(document: DocumentView) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        document_type=document.document_type,
        file_name=document.file_name,
        original_name=document.original_name,
        mime_type=document.mime_type,
        file_size=document.file_size,
        uploaded_at=document.uploaded_at,
    )


def _to_client_response(view: ClientView) -> ClientResponse:
    """Map a client view to the response model."""
    return ClientResponse(
        id=view.id,
        client_type=view.client_type.value,
        fields=view.fields,
        documents=[_to_document_response(document) for document in view.documents],
        created_at=view.created_at,
        updated_at=view.updated_at,
    )


def _to_audit_entry(entry: AuditLogEntry) -> AuditEntryResponse:
    return AuditEntryResponse(
        id=entry.id,
        client_id=entry.client_id,
        action=entry.action.value,
        field_name=entry.field_name,
        old_value=entry.old_value,
        new_value=entry.new_value,
        changed_at=entry.changed_at,
    )


def _sanitize_filename(filename: str) -> str:
    """Sanitize filename to prevent path traversal."""
    name = Path(filename).name
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "upload"


ServiceDep = Annotated[ClientService, Depends(get_client_service)]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    service: ServiceDep,
    payload: dict[str, Any] = Body(...),
) -> ClientResponse:
    """Create a client with exactly one of personal, family or corporate details."""
    view = await service.create_client(payload)
    return _to_client_response(view)


@router.get("", response_model=ClientListResponse)
async def list_clients(
    service: ServiceDep,
    search: str | None = Query(default=None, min_length=1),
    client_type: str | None = Query(default=None, alias="clientType"),
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
) -> ClientListResponse:
    """List clients with optional search, type filter and pagination."""
    page = await service.list_clients(
        search=search, client_type=client_type, limit=limit, offset=offset
    )
    return ClientListResponse(
        items=[_to_client_response(view) for view in page.items],
        total=page.total,
        limit=page.limit,
        offset=page.offset,
    )


@router.get("/audit-report", response_model=AuditReportResponse)
async def get_audit_report(
    service: ServiceDep,
    start_date: date = Query(alias="startDate"),
    end_date: date = Query(alias="endDate"),
    client_id: str | None = Query(default=None, alias="clientId"),
) -> AuditReportResponse:
    """Aggregate audit activity between two dates, both inclusive."""
    report: AuditReport = await service.get_audit_report(
        datetime.combine(start_date, time.min),
        datetime.combine(end_date, time.max),
        client_id=client_id,
    )
    return AuditReportResponse(
        start=report.start,
        end=report.end,
        total_operations=report.total_operations,
        operations_by_action=report.operations_by_action,
        operations_by_client=report.operations_by_client,
        operations_by_field=report.operations_by_field,
        daily_activity=report.daily_activity,
    )


@router.get("/{client_id}", response_model=ClientResponse)
async def get_client(
    client_id: str,
    service: ServiceDep,
    record_view: bool = Query(default=False, alias="recordView"),
) -> ClientResponse:
    """Get client by ID."""
    view = await service.get_client(client_id, record_view=record_view)
    return _to_client_response(view)


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    client_id: str,
    service: ServiceDep,
    payload: dict[str, Any] = Body(...),
) -> ClientResponse:
    """Partially update client fields; blank or null clears a field."""
    view = await service.update_client(client_id, payload)
    return _to_client_response(view)


@router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_client(client_id: str, service: ServiceDep) -> Response:
    """Delete a client with its details and documents."""
    await service.delete_client(client_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{client_id}/audit-logs", response_model=AuditLogResponse)
async def get_audit_logs(
    client_id: str,
    service: ServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1),
    order: Literal["asc", "desc"] = Query(default="desc"),
    action: AuditAction | None = Query(default=None),
    field_name: str | None = Query(default=None, alias="fieldName"),
) -> AuditLogResponse:
    """Page through a client's audit trail, newest first by default."""
    result: AuditPage = await service.get_audit_log(
        client_id,
        page=page,
        limit=limit,
        chronological=order == "asc",
        action=action,
        field_name=field_name,
    )
    return AuditLogResponse(
        items=[_to_audit_entry(entry) for entry in result.entries],
        total=result.total,
        page=result.page,
        limit=result.limit,
        total_pages=result.total_pages,
    )


@router.get("/{client_id}/audit-stats", response_model=AuditStatsResponse)
async def get_audit_stats(client_id: str, service: ServiceDep) -> AuditStatsResponse:
    """Summarize a client's audit trail."""
    stats: AuditStats = await service.get_audit_stats(client_id)
    return AuditStatsResponse(
        total_changes=stats.total_changes,
        recent_changes=stats.recent_changes,
        changes_by_action=stats.changes_by_action,
        changes_by_field=stats.changes_by_field,
        last_modified=stats.last_modified,
    )


@router.post(
    "/{client_id}/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    client_id: str,
    service: ServiceDep,
    storage: Annotated[DocumentStorage, Depends(get_storage)],
    file: UploadFile = File(...),
    document_type: str = Form("OTHER", alias="documentType"),
) -> DocumentResponse:
    """Store an uploaded file and attach it to the client."""
    if file.content_type not in settings.allowed_upload_types:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Invalid file type: {file.content_type}",
        )

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail="File exceeds maximum upload size",
        )

    # client_id becomes a storage path segment; only known ids get that far.
    await service.get_client(client_id)

    original_name = file.filename or "upload"
    safe_name = f"{uuid.uuid4().hex}-{_sanitize_filename(original_name)}"
    storage_ref = await storage.save(f"{client_id}/{safe_name}", content)
    try:
        document = await service.attach_document(
            client_id,
            document_type=document_type,
            file_name=safe_name,
            original_name=original_name,
            storage_ref=storage_ref,
            mime_type=file.content_type or "application/octet-stream",
            file_size=len(content),
        )
    except Exception:
        try:
            await storage.delete(storage_ref)
        except Exception:
            logger.warning("document_cleanup_failed", storage_ref=storage_ref, exc_info=True)
        raise
    return _to_document_response(document)


@router.get("/{client_id}/documents/{document_id}")
async def download_document(
    client_id: str,
    document_id: str,
    service: ServiceDep,
    storage: Annotated[DocumentStorage, Depends(get_storage)],
) -> Response:
    """Return the stored file of a document."""
    document = await service.get_document(client_id, document_id)
    try:
        content = await storage.read(document.storage_ref)
    except FileNotFoundError:
        logger.warning("document_file_missing", storage_ref=document.storage_ref)
        raise HTTPException(status_code=404, detail="Document file not found") from None
    return Response(
        content=content,
        media_type=document.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{document.file_name}"'},
    )


@router.delete(
    "/{client_id}/documents/{document_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_document(client_id: str, document_id: str, service: ServiceDep) -> Response:
    """Detach a document from the client and remove its file."""
    await service.remove_document(client_id, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
