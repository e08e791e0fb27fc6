"""SQLAlchemy models for the client records service."""

from src.models.audit import AuditAction, AuditLogEntry
from src.models.base import Base
from src.models.client import (
    Client,
    ClientDetails,
    CorporateDetails,
    FamilyDetails,
    PersonalDetails,
)
from src.models.document import Document, DocumentType

__all__ = [
    "Base",
    "Client",
    "ClientDetails",
    "PersonalDetails",
    "FamilyDetails",
    "CorporateDetails",
    "Document",
    "DocumentType",
    "AuditAction",
    "AuditLogEntry",
]
