"""Variant rules: which fields each kind of client requires.

A client is exactly one of three variants. Each variant owns one detail
payload key and one ordered field list; shared root fields come first in
every variant's flattened order.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import assert_never

from src.clients.errors import ErrorCode, FieldError
from src.clients.fields import (
    CORPORATE_FIELDS,
    FAMILY_FIELDS,
    PERSONAL_FIELDS,
    SHARED_FIELDS,
    FieldSpec,
)
from src.clients.validators import is_blank


class ClientVariant(str, Enum):
    """The three mutually exclusive kinds of client."""

    PERSONAL = "PERSONAL"
    FAMILY_EMPLOYEE = "FAMILY_EMPLOYEE"
    CORPORATE = "CORPORATE"


@dataclass(frozen=True)
class VariantRule:
    """Field contract for one variant.

    Attributes:
        variant: The variant this rule describes.
        detail_key: Payload key carrying the variant's detail fields.
        fields: Detail fields in declaration order.
        required: Names of mandatory detail fields.
    """

    variant: ClientVariant
    detail_key: str
    fields: tuple[FieldSpec, ...]
    required: frozenset[str]

    @property
    def optional(self) -> frozenset[str]:
        """Names of all non-mandatory fields, shared fields included."""
        return frozenset(spec.name for spec in self.all_fields) - self.required

    @property
    def all_fields(self) -> tuple[FieldSpec, ...]:
        """Shared fields followed by detail fields."""
        return SHARED_FIELDS + self.fields

    @property
    def field_names(self) -> tuple[str, ...]:
        """Flat field names in canonical order."""
        return tuple(spec.name for spec in self.all_fields)

    def spec(self, name: str) -> FieldSpec | None:
        """Look up a field by flat name."""
        for candidate in self.all_fields:
            if candidate.name == name:
                return candidate
        return None


PERSONAL_RULE = VariantRule(
    variant=ClientVariant.PERSONAL,
    detail_key="personalDetails",
    fields=PERSONAL_FIELDS,
    required=frozenset({"mobileNumber", "birthDate"}),
)

FAMILY_EMPLOYEE_RULE = VariantRule(
    variant=ClientVariant.FAMILY_EMPLOYEE,
    detail_key="familyDetails",
    fields=FAMILY_FIELDS,
    required=frozenset({"phoneNumber", "whatsappNumber", "dateOfBirth"}),
)

CORPORATE_RULE = VariantRule(
    variant=ClientVariant.CORPORATE,
    detail_key="corporateDetails",
    fields=CORPORATE_FIELDS,
    required=frozenset({"companyName"}),
)


def rule_for(variant: ClientVariant) -> VariantRule:
    """Return the rule for a variant."""
    match variant:
        case ClientVariant.PERSONAL:
            return PERSONAL_RULE
        case ClientVariant.FAMILY_EMPLOYEE:
            return FAMILY_EMPLOYEE_RULE
        case ClientVariant.CORPORATE:
            return CORPORATE_RULE
        case _:
            assert_never(variant)


RULES: Mapping[ClientVariant, VariantRule] = MappingProxyType(
    {variant: rule_for(variant) for variant in ClientVariant}
)

DETAIL_KEYS: tuple[str, ...] = tuple(rule.detail_key for rule in RULES.values())


def is_valid_variant(tag: object) -> bool:
    """Return True when tag names a known variant."""
    if isinstance(tag, ClientVariant):
        return True
    return isinstance(tag, str) and tag in ClientVariant.__members__


def required_fields_for(variant: ClientVariant) -> frozenset[str]:
    """Return the mandatory field names of a variant."""
    return rule_for(variant).required


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of validating a flattened record.

    Attributes:
        missing_fields: Required fields that are absent or blank, in
            declaration order.
        format_errors: Format failures keyed by field name.
    """

    missing_fields: tuple[str, ...] = ()
    format_errors: Mapping[str, FieldError] = field(
        default_factory=lambda: MappingProxyType({})
    )

    @property
    def valid(self) -> bool:
        return not self.missing_fields and not self.format_errors

    @property
    def errors(self) -> tuple[FieldError, ...]:
        """Missing-field errors followed by format errors."""
        missing = tuple(
            FieldError(
                code=ErrorCode.MISSING_FIELD,
                field=name,
                message=f"{name} is required",
            )
            for name in self.missing_fields
        )
        return missing + tuple(self.format_errors.values())


def validate(
    variant: ClientVariant,
    flat: Mapping[str, str | None],
    supplied: Collection[str] | None = None,
) -> ValidationResult:
    """Validate a flattened record against a variant's contract.

    Collects every missing required field and every format failure
    instead of stopping at the first one.

    Args:
        variant: Variant whose contract applies.
        flat: Flat field name to canonical string.
        supplied: On update, the field names present in the payload.
            Required checks then apply only to those fields.

    Returns:
        ValidationResult with all errors found.
    """
    rule = rule_for(variant)
    missing = tuple(
        spec.name
        for spec in rule.fields
        if spec.name in rule.required
        and (supplied is None or spec.name in supplied)
        and is_blank(flat.get(spec.name))
    )
    format_errors: dict[str, FieldError] = {}
    for spec in rule.all_fields:
        problem = spec.problem(flat.get(spec.name))
        if problem is not None:
            format_errors[spec.name] = problem
    return ValidationResult(
        missing_fields=missing,
        format_errors=MappingProxyType(format_errors),
    )
