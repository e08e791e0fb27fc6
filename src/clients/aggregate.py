"""Client aggregate: the flattened, variant-tagged view of a client.

The aggregate is what validation and diffing operate on. It is built
either from an incoming payload or from the stored root + detail rows,
and can write itself back onto those rows.

Payload shape:
    {
        "firstName": "John",
        "email": "john@example.com",
        "personalDetails": {"mobileNumber": "9876543210", "birthDate": "1990-01-01"},
    }
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, assert_never

from src.clients.errors import ErrorCode, FieldError, FormatKind, ValidationFailed
from src.clients.fields import SHARED_FIELDS
from src.clients.validators import is_blank
from src.clients.variants import RULES, ClientVariant, VariantRule, is_valid_variant, rule_for
from src.models.client import (
    Client,
    ClientDetails,
    CorporateDetails,
    FamilyDetails,
    PersonalDetails,
)

VARIANT_TAG_KEY = "clientType"


def detail_model_for(variant: ClientVariant) -> type[ClientDetails]:
    """Return the detail model class that stores a variant."""
    match variant:
        case ClientVariant.PERSONAL:
            return PersonalDetails
        case ClientVariant.FAMILY_EMPLOYEE:
            return FamilyDetails
        case ClientVariant.CORPORATE:
            return CorporateDetails
        case _:
            assert_never(variant)


def variant_of(details: ClientDetails) -> ClientVariant:
    """Return the variant a detail row represents."""
    match details:
        case PersonalDetails():
            return ClientVariant.PERSONAL
        case FamilyDetails():
            return ClientVariant.FAMILY_EMPLOYEE
        case CorporateDetails():
            return ClientVariant.CORPORATE
        case _:
            raise TypeError(f"Unsupported detail record: {type(details).__name__}")


def _has_values(detail: Any) -> bool:
    if not isinstance(detail, Mapping):
        return False
    return any(value is not None and str(value).strip() for value in detail.values())


def _payload_variants(payload: Mapping[str, Any]) -> list[ClientVariant]:
    return [
        rule.variant for rule in RULES.values() if _has_values(payload.get(rule.detail_key))
    ]


def _variant_tag(payload: Mapping[str, Any]) -> ClientVariant | None:
    tag = payload.get(VARIANT_TAG_KEY)
    if tag is None or is_blank(str(tag)):
        return None
    if not is_valid_variant(tag):
        raise ValidationFailed(
            [
                FieldError(
                    code=ErrorCode.INVALID_FORMAT,
                    field=VARIANT_TAG_KEY,
                    kind=FormatKind.CHOICE,
                    message=f"{VARIANT_TAG_KEY} must be one of "
                    + ", ".join(variant.value for variant in ClientVariant),
                )
            ]
        )
    return ClientVariant(tag)


def select_variant(payload: Mapping[str, Any]) -> ClientVariant:
    """Pick the variant from whichever detail payload is non-empty.

    Raises:
        ValidationFailed: AMBIGUOUS_VARIANT when more than one detail
            payload is present or the clientType tag contradicts it,
            MISSING_VARIANT when none is present.
    """
    tag = _variant_tag(payload)
    present = _payload_variants(payload)
    if len(present) > 1:
        names = ", ".join(rule_for(variant).detail_key for variant in present)
        raise ValidationFailed.single(
            ErrorCode.AMBIGUOUS_VARIANT,
            f"Only one detail payload may be supplied, got: {names}",
        )
    if not present:
        raise ValidationFailed.single(
            ErrorCode.MISSING_VARIANT,
            "One of " + ", ".join(rule.detail_key for rule in RULES.values()) + " is required",
        )
    variant = present[0]
    if tag is not None and tag is not variant:
        raise ValidationFailed.single(
            ErrorCode.AMBIGUOUS_VARIANT,
            f"{VARIANT_TAG_KEY} {tag.value} does not match {rule_for(variant).detail_key}",
        )
    return variant


def _extract(rule: VariantRule, payload: Mapping[str, Any]) -> dict[str, str | None]:
    """Canonicalize every known field present in the payload.

    Keys that are not part of the variant's contract are dropped.
    """
    extracted: dict[str, str | None] = {}
    for spec in SHARED_FIELDS:
        if spec.name in payload:
            extracted[spec.name] = spec.canonical(payload[spec.name])
    detail = payload.get(rule.detail_key)
    if isinstance(detail, Mapping):
        for spec in rule.fields:
            if spec.name in detail:
                extracted[spec.name] = spec.canonical(detail[spec.name])
    return extracted


@dataclass(frozen=True)
class ClientAggregate:
    """Flattened, variant-tagged client state.

    Attributes:
        variant: The client's variant.
        values: Flat field name to canonical string; absent fields omitted.
        client_id: Identifier once persisted.
    """

    variant: ClientVariant
    values: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    client_id: str | None = None

    @classmethod
    def build(
        cls,
        variant: ClientVariant,
        values: Mapping[str, str | None],
        client_id: str | None = None,
    ) -> "ClientAggregate":
        """Build an aggregate, ordering fields and dropping blanks."""
        ordered = {
            name: values[name]
            for name in rule_for(variant).field_names
            if values.get(name) is not None
        }
        return cls(variant=variant, values=MappingProxyType(ordered), client_id=client_id)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ClientAggregate":
        """Build a new (unpersisted) aggregate from a create payload."""
        variant = select_variant(payload)
        return cls.build(variant, _extract(rule_for(variant), payload))

    @classmethod
    def from_model(cls, client: Client) -> "ClientAggregate":
        """Build the aggregate from stored rows.

        Raises:
            ValueError: If the client has no detail row attached.
        """
        details = client.details
        if details is None:
            raise ValueError(f"Client {client.id} has no detail record")
        variant = variant_of(details)
        values: dict[str, str | None] = {
            spec.name: spec.canonical(getattr(client, spec.attr)) for spec in SHARED_FIELDS
        }
        for spec in rule_for(variant).fields:
            values[spec.name] = spec.canonical(getattr(details, spec.attr))
        return cls.build(variant, values, client_id=client.id)

    @property
    def rule(self) -> VariantRule:
        return rule_for(self.variant)

    @property
    def field_order(self) -> tuple[str, ...]:
        """Declared field order for this variant, shared fields first."""
        return self.rule.field_names

    def flatten(self) -> dict[str, str]:
        """Return an ordered copy of the flat field mapping."""
        return dict(self.values)

    def supplied_fields(self, payload: Mapping[str, Any]) -> frozenset[str]:
        """Names of this variant's fields that a payload supplies."""
        return frozenset(_extract(self.rule, payload))

    def updated_with(self, payload: Mapping[str, Any]) -> "ClientAggregate":
        """Merge a partial update payload over the current state.

        Blank or null values clear a field.

        Raises:
            ValidationFailed: VARIANT_IMMUTABLE when the payload carries
                another variant's details or a different clientType.
        """
        tag = _variant_tag(payload)
        switched = [variant for variant in _payload_variants(payload) if variant is not self.variant]
        if switched or (tag is not None and tag is not self.variant):
            target = tag if tag is not None and tag is not self.variant else switched[0]
            raise ValidationFailed.single(
                ErrorCode.VARIANT_IMMUTABLE,
                f"Client is {self.variant.value}; cannot change it to {target.value}",
            )
        merged: dict[str, str | None] = dict(self.values)
        merged.update(_extract(self.rule, payload))
        return self.build(self.variant, merged, client_id=self.client_id)

    def apply_to(self, client: Client) -> ClientDetails:
        """Write typed values onto the root and detail rows.

        Creates and attaches the detail row when the client has none.

        Returns:
            The detail row written to.

        Raises:
            ValueError: If a detail row of another variant is attached.
        """
        details = client.details
        if details is None:
            details = detail_model_for(self.variant)()
            client.attach_details(details)
        elif variant_of(details) is not self.variant:
            raise ValueError(
                f"Client {client.id} is {variant_of(details).value}, not {self.variant.value}"
            )
        for spec in SHARED_FIELDS:
            setattr(client, spec.attr, spec.to_python(self.values.get(spec.name)))
        for spec in self.rule.fields:
            setattr(details, spec.attr, spec.to_python(self.values.get(spec.name)))
        return details
