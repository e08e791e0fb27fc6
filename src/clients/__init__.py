"""Client records with variant-specific details and a field-level audit trail."""

from src.clients.aggregate import ClientAggregate, select_variant
from src.clients.diff import FieldChange, diff
from src.clients.errors import (
    ClientError,
    ClientNotFound,
    DocumentNotFound,
    ErrorCode,
    FieldError,
    FormatKind,
    StoreTimeout,
    TransactionFailed,
    ValidationFailed,
)
from src.clients.service import ClientService
from src.clients.variants import (
    ClientVariant,
    ValidationResult,
    is_valid_variant,
    required_fields_for,
    validate,
)
from src.clients.views import ClientPage, ClientView, DocumentView

__all__ = [
    "ClientAggregate",
    "ClientError",
    "ClientNotFound",
    "ClientPage",
    "ClientService",
    "ClientVariant",
    "ClientView",
    "DocumentNotFound",
    "DocumentView",
    "ErrorCode",
    "FieldChange",
    "FieldError",
    "FormatKind",
    "StoreTimeout",
    "TransactionFailed",
    "ValidationFailed",
    "ValidationResult",
    "diff",
    "is_valid_variant",
    "required_fields_for",
    "select_variant",
    "validate",
]
