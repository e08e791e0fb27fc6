"""Field format validators.

All validators treat an absent or blank value as valid. Whether a field
must be present is decided by the variant rules, not here.

Example:
    >>> validate_pan("ABCDE1234F")
    True
    >>> validate_pan("INVALID_PAN")
    False
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from urllib.parse import urlparse

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
PAN_PATTERN = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
GST_PATTERN = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_blank(value: str | None) -> bool:
    """Return True for None, empty or whitespace-only strings."""
    return value is None or not str(value).strip()


def validate_phone(value: str | None) -> bool:
    """Validate a 10-digit Indian mobile number (leading digit 6-9)."""
    if is_blank(value):
        return True
    return bool(PHONE_PATTERN.match(value.strip()))


def validate_pan(value: str | None) -> bool:
    """Validate a PAN: five letters, four digits, one letter."""
    if is_blank(value):
        return True
    return bool(PAN_PATTERN.match(value.strip()))


def validate_gst(value: str | None) -> bool:
    """Validate a GSTIN.

    Fifteen characters: two-digit state code, the holder's PAN, an entity
    number, the literal ``Z`` and a check character.
    """
    if is_blank(value):
        return True
    return bool(GST_PATTERN.match(value.strip()))


def validate_email(value: str | None) -> bool:
    """Validate a local@domain.tld email address."""
    if is_blank(value):
        return True
    return bool(EMAIL_PATTERN.match(value.strip()))


def validate_past_date(value: str | None, today: date | None = None) -> bool:
    """Validate an ISO date (YYYY-MM-DD) strictly in the past."""
    if is_blank(value):
        return True
    try:
        parsed = date.fromisoformat(value.strip())
    except ValueError:
        return False
    return parsed < (today or date.today())


def validate_positive_number(value: str | None) -> bool:
    """Validate a finite number greater than zero."""
    if is_blank(value):
        return True
    try:
        number = Decimal(value.strip())
    except InvalidOperation:
        return False
    return number.is_finite() and number > 0


def validate_url(value: str | None) -> bool:
    """Validate an absolute http(s) URL."""
    if is_blank(value):
        return True
    parsed = urlparse(value.strip())
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)
