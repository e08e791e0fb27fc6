"""Read models returned by the client service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from src.clients.aggregate import ClientAggregate
from src.clients.variants import ClientVariant
from src.models.client import Client
from src.models.document import Document


@dataclass
class DocumentView:
    """A document reference attached to a client."""

    id: str
    client_id: str
    document_type: str
    file_name: str
    original_name: str
    storage_ref: str
    mime_type: str
    file_size: int
    uploaded_at: datetime

    @classmethod
    def from_model(cls, document: Document) -> "DocumentView":
        return cls(
            id=document.id,
            client_id=document.client_id,
            document_type=document.document_type.value,
            file_name=document.file_name,
            original_name=document.original_name,
            storage_ref=document.storage_ref,
            mime_type=document.mime_type,
            file_size=document.file_size,
            uploaded_at=document.uploaded_at,
        )


@dataclass
class ClientView:
    """A client as exposed to callers: flattened fields plus documents."""

    id: str
    client_type: ClientVariant
    fields: dict[str, str]
    created_at: datetime
    updated_at: datetime | None
    documents: list[DocumentView] = field(default_factory=list)

    @classmethod
    def build(cls, client: Client, aggregate: ClientAggregate) -> "ClientView":
        return cls(
            id=client.id,
            client_type=aggregate.variant,
            fields=aggregate.flatten(),
            created_at=client.created_at,
            updated_at=client.updated_at,
            documents=[DocumentView.from_model(document) for document in client.documents],
        )


@dataclass
class ClientPage:
    """Paginated client listing."""

    items: list[ClientView]
    total: int
    limit: int
    offset: int
