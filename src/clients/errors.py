"""Error taxonomy for client record operations.

Every error carries an ErrorCode so the HTTP boundary can map it to a
status without inspecting messages.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error kinds."""

    MISSING_VARIANT = "MISSING_VARIANT"
    AMBIGUOUS_VARIANT = "AMBIGUOUS_VARIANT"
    VARIANT_IMMUTABLE = "VARIANT_IMMUTABLE"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FORMAT = "INVALID_FORMAT"
    NOT_FOUND = "NOT_FOUND"
    STORE_TIMEOUT = "STORE_TIMEOUT"
    TRANSACTION_FAILED = "TRANSACTION_FAILED"


class FormatKind(str, Enum):
    """Sub-kinds of INVALID_FORMAT."""

    PHONE = "PHONE"
    TAX_ID = "TAX_ID"
    TAX_ID_SECONDARY = "TAX_ID_SECONDARY"
    EMAIL = "EMAIL"
    DATE = "DATE"
    NUMBER = "NUMBER"
    CHOICE = "CHOICE"
    URL = "URL"
    LENGTH = "LENGTH"


@dataclass(frozen=True)
class FieldError:
    """A single validation failure.

    Attributes:
        code: Error kind.
        field: Flat field name, or None for record-level errors.
        kind: Format sub-kind for INVALID_FORMAT errors.
        message: Human-readable description.
    """

    code: ErrorCode
    field: str | None = None
    kind: FormatKind | None = None
    message: str = ""

    def to_dict(self) -> dict[str, str | None]:
        """Serialize for API responses."""
        return {
            "field": self.field,
            "code": self.code.value,
            "kind": self.kind.value if self.kind else None,
            "message": self.message,
        }


class ClientError(Exception):
    """Base class for client record errors."""

    code: ErrorCode = ErrorCode.TRANSACTION_FAILED
    retryable: bool = False


class ValidationFailed(ClientError):
    """Raised with the full set of accumulated validation errors."""

    def __init__(self, errors: Iterable[FieldError]) -> None:
        self.errors: tuple[FieldError, ...] = tuple(errors)
        if not self.errors:
            raise ValueError("ValidationFailed requires at least one error")
        self.code = self.errors[0].code
        super().__init__("; ".join(_describe(error) for error in self.errors))

    @classmethod
    def single(
        cls, code: ErrorCode, message: str, field: str | None = None
    ) -> "ValidationFailed":
        """Build a failure carrying one record-level error."""
        return cls([FieldError(code=code, field=field, message=message)])

    @property
    def codes(self) -> set[ErrorCode]:
        """Distinct error codes present."""
        return {error.code for error in self.errors}

    def fields_with(self, code: ErrorCode) -> set[str]:
        """Field names that failed with the given code."""
        return {error.field for error in self.errors if error.code is code and error.field}


class ClientNotFound(ClientError):
    """Raised when a client id does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        super().__init__(f"Client {client_id} not found")


class DocumentNotFound(ClientError):
    """Raised when a document does not exist for the client."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, client_id: str, document_id: str) -> None:
        self.client_id = client_id
        self.document_id = document_id
        super().__init__(f"Document {document_id} not found for client {client_id}")


class StoreTimeout(ClientError):
    """Raised when the store does not answer in time. Safe to retry."""

    code = ErrorCode.STORE_TIMEOUT
    retryable = True


class TransactionFailed(ClientError):
    """Raised when the store rejects or aborts a transaction."""

    code = ErrorCode.TRANSACTION_FAILED


def _describe(error: FieldError) -> str:
    if error.field:
        return f"{error.code.value}: {error.field}"
    return error.code.value
