"""Field registry for flattened client records.

Each FieldSpec ties a flat field name (as used in payloads, validation,
diffs and audit rows) to a model attribute, and knows how to turn any
accepted input into one canonical string and back into a column value.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from src.clients.errors import ErrorCode, FieldError, FormatKind
from src.clients.validators import (
    validate_email,
    validate_gst,
    validate_pan,
    validate_past_date,
    validate_phone,
    validate_positive_number,
    validate_url,
)


class Gender(str, Enum):
    """Gender choices."""

    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class MaritalStatus(str, Enum):
    """Marital status choices."""

    SINGLE = "SINGLE"
    MARRIED = "MARRIED"
    DIVORCED = "DIVORCED"
    WIDOWED = "WIDOWED"


class Relationship(str, Enum):
    """Relationship of a family member/employee to the primary client."""

    SPOUSE = "SPOUSE"
    CHILD = "CHILD"
    PARENT = "PARENT"
    SIBLING = "SIBLING"
    EMPLOYEE = "EMPLOYEE"
    DEPENDENT = "DEPENDENT"
    OTHER = "OTHER"


class FieldKind(Enum):
    """Storage kind of a field."""

    TEXT = "text"
    DATE = "date"
    DECIMAL = "decimal"
    INTEGER = "integer"
    CHOICE = "choice"


FORMAT_CHECKS: dict[FormatKind, Callable[[str | None], bool]] = {
    FormatKind.PHONE: validate_phone,
    FormatKind.TAX_ID: validate_pan,
    FormatKind.TAX_ID_SECONDARY: validate_gst,
    FormatKind.EMAIL: validate_email,
    FormatKind.URL: validate_url,
}

_FORMAT_MESSAGES: dict[FormatKind, str] = {
    FormatKind.PHONE: "must be a valid 10-digit Indian mobile number",
    FormatKind.TAX_ID: "must be in format ABCDE1234F",
    FormatKind.TAX_ID_SECONDARY: "must be a valid GST number",
    FormatKind.EMAIL: "must be a valid email address",
    FormatKind.URL: "must be a valid http(s) URL",
    FormatKind.DATE: "must be a valid date (YYYY-MM-DD) in the past",
    FormatKind.NUMBER: "must be a positive number",
    FormatKind.CHOICE: "must be one of",
    FormatKind.LENGTH: "is too long",
}


@dataclass(frozen=True)
class FieldSpec:
    """Declaration of one flattened field.

    Attributes:
        name: Flat field name (camelCase, as exposed to callers).
        attr: Attribute on the root or detail model.
        kind: Storage kind; drives canonical serialization.
        check: Format validator applied when the field is present.
        choices: Allowed values for CHOICE fields.
        min_value: Inclusive lower bound for INTEGER fields.
        max_value: Inclusive upper bound for INTEGER and DECIMAL fields.
        scale: Decimal places a DECIMAL column keeps; more are rejected.
        max_length: Longest accepted TEXT value.
    """

    name: str
    attr: str
    kind: FieldKind = FieldKind.TEXT
    check: FormatKind | None = None
    choices: tuple[str, ...] = ()
    min_value: int | None = None
    max_value: int | None = None
    scale: int | None = None
    max_length: int | None = None

    def canonical(self, value: Any) -> str | None:
        """Serialize a raw or stored value to its canonical string.

        Blank input becomes None. Input that cannot be parsed is returned
        as its stripped string so that validation can report it.
        """
        if value is None:
            return None
        if isinstance(value, Enum):
            value = value.value
        match self.kind:
            case FieldKind.DATE:
                return _canonical_date(value)
            case FieldKind.DECIMAL:
                return _canonical_decimal(value)
            case FieldKind.INTEGER:
                return _canonical_integer(value)
            case FieldKind.CHOICE:
                text = str(value).strip().upper()
                return text or None
            case _:
                text = str(value).strip()
                return text or None

    def to_python(self, text: str | None) -> Any:
        """Convert a canonical string into the column value."""
        if text is None:
            return None
        match self.kind:
            case FieldKind.DATE:
                return date.fromisoformat(text)
            case FieldKind.DECIMAL:
                return Decimal(text)
            case FieldKind.INTEGER:
                return int(text)
            case _:
                return text

    def problem(self, text: str | None) -> FieldError | None:
        """Return the format error for a canonical value, if any."""
        if text is None:
            return None
        kind = self._failed_kind(text)
        if kind is None:
            return None
        message = _FORMAT_MESSAGES[kind]
        if kind is FormatKind.CHOICE:
            message = f"{message} {', '.join(self.choices)}"
        elif kind is FormatKind.NUMBER and self.kind is FieldKind.INTEGER:
            message = f"must be a whole number between {self.min_value} and {self.max_value}"
        elif kind is FormatKind.NUMBER:
            message = _decimal_message(self.max_value, self.scale)
        elif kind is FormatKind.LENGTH:
            message = f"must be at most {self.max_length} characters"
        return FieldError(
            code=ErrorCode.INVALID_FORMAT,
            field=self.name,
            kind=kind,
            message=f"{self.name} {message}",
        )

    def _failed_kind(self, text: str) -> FormatKind | None:
        match self.kind:
            case FieldKind.DATE:
                if not validate_past_date(text):
                    return FormatKind.DATE
            case FieldKind.DECIMAL:
                if not validate_positive_number(text) or not self._fits_column(text):
                    return FormatKind.NUMBER
            case FieldKind.INTEGER:
                if not self._in_range(text):
                    return FormatKind.NUMBER
            case FieldKind.CHOICE:
                if text not in self.choices:
                    return FormatKind.CHOICE
            case _:
                if self.max_length is not None and len(text) > self.max_length:
                    return FormatKind.LENGTH
        if self.check is not None and not FORMAT_CHECKS[self.check](text):
            return self.check
        return None

    def _in_range(self, text: str) -> bool:
        try:
            number = int(text)
        except ValueError:
            return False
        if self.min_value is not None and number < self.min_value:
            return False
        if self.max_value is not None and number > self.max_value:
            return False
        return True

    def _fits_column(self, text: str) -> bool:
        # Positive and finite already checked.
        number = Decimal(text)
        if self.max_value is not None and number > self.max_value:
            return False
        if self.scale is not None and -number.normalize().as_tuple().exponent > self.scale:
            return False
        return True


def _decimal_message(max_value: int | None, scale: int | None) -> str:
    message = "must be a positive number"
    if max_value is not None:
        message += f" no greater than {max_value}"
    if scale is not None:
        message += f" with at most {scale} decimal places"
    return message


def _canonical_date(value: Any) -> str | None:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    if not text:
        return None
    try:
        return datetime.fromisoformat(text).date().isoformat()
    except ValueError:
        return text


def _canonical_decimal(value: Any) -> str | None:
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return text
    if not number.is_finite():
        return text
    return format(number.normalize(), "f")


def _canonical_integer(value: Any) -> str | None:
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return text
    if not number.is_finite() or number != number.to_integral_value():
        return text
    return str(int(number))


def _choices(enum_type: type[Enum]) -> tuple[str, ...]:
    return tuple(member.value for member in enum_type)


SHARED_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("firstName", "first_name", max_length=50),
    FieldSpec("middleName", "middle_name", max_length=50),
    FieldSpec("lastName", "last_name", max_length=50),
    FieldSpec("email", "email", check=FormatKind.EMAIL, max_length=255),
    FieldSpec("phone", "phone", check=FormatKind.PHONE),
    FieldSpec("address", "address", max_length=500),
    FieldSpec("city", "city", max_length=50),
    FieldSpec("state", "state", max_length=50),
    FieldSpec("profileImage", "profile_image", check=FormatKind.URL, max_length=500),
)

_AGE = FieldSpec("age", "age", FieldKind.INTEGER, min_value=1, max_value=120)
_GENDER = FieldSpec("gender", "gender", FieldKind.CHOICE, choices=_choices(Gender))
# Bounds match the Numeric(precision, 2) columns that store them.
_HEIGHT = FieldSpec("height", "height", FieldKind.DECIMAL, max_value=10, scale=2)
_WEIGHT = FieldSpec("weight", "weight", FieldKind.DECIMAL, max_value=500, scale=2)
_ANNUAL_INCOME = FieldSpec(
    "annualIncome", "annual_income", FieldKind.DECIMAL, max_value=100_000_000, scale=2
)
_PAN = FieldSpec("panNumber", "pan_number", check=FormatKind.TAX_ID)
_GST = FieldSpec("gstNumber", "gst_number", check=FormatKind.TAX_ID_SECONDARY)

PERSONAL_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("mobileNumber", "mobile_number", check=FormatKind.PHONE),
    FieldSpec("birthDate", "birth_date", FieldKind.DATE),
    FieldSpec("birthPlace", "birth_place", max_length=100),
    _AGE,
    _GENDER,
    _HEIGHT,
    _WEIGHT,
    FieldSpec("education", "education", max_length=100),
    FieldSpec(
        "maritalStatus",
        "marital_status",
        FieldKind.CHOICE,
        choices=_choices(MaritalStatus),
    ),
    FieldSpec("businessJob", "business_job", max_length=100),
    FieldSpec("nameOfBusiness", "name_of_business", max_length=100),
    FieldSpec("typeOfDuty", "type_of_duty", max_length=100),
    _ANNUAL_INCOME,
    _PAN,
    _GST,
)

FAMILY_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("phoneNumber", "phone_number", check=FormatKind.PHONE),
    FieldSpec("whatsappNumber", "whatsapp_number", check=FormatKind.PHONE),
    FieldSpec("dateOfBirth", "date_of_birth", FieldKind.DATE),
    FieldSpec(
        "relationship",
        "relationship_type",
        FieldKind.CHOICE,
        choices=_choices(Relationship),
    ),
    _AGE,
    _GENDER,
    _HEIGHT,
    _WEIGHT,
    _PAN,
)

CORPORATE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("companyName", "company_name", max_length=200),
    FieldSpec("mobile", "mobile", check=FormatKind.PHONE),
    FieldSpec("companyEmail", "email", check=FormatKind.EMAIL, max_length=255),
    FieldSpec("companyAddress", "address"),
    FieldSpec("companyCity", "city", max_length=50),
    FieldSpec("companyState", "state", max_length=50),
    _ANNUAL_INCOME,
    _PAN,
    _GST,
)
