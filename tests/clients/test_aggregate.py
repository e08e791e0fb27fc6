"""Tests for the client aggregate."""

from datetime import date
from decimal import Decimal

import pytest

from src.clients.aggregate import ClientAggregate, select_variant
from src.clients.errors import ErrorCode, FormatKind, ValidationFailed
from src.clients.variants import ClientVariant
from src.models.client import Client, CorporateDetails, PersonalDetails


def _new_client() -> Client:
    return Client(
        id="client-1",
        personal_details=None,
        family_details=None,
        corporate_details=None,
        documents=[],
    )


def test_select_variant_by_detail_payload(personal_payload, family_payload, corporate_payload) -> None:
    assert select_variant(personal_payload) is ClientVariant.PERSONAL
    assert select_variant(family_payload) is ClientVariant.FAMILY_EMPLOYEE
    assert select_variant(corporate_payload) is ClientVariant.CORPORATE


def test_select_variant_rejects_two_detail_payloads(personal_payload) -> None:
    payload = {**personal_payload, "corporateDetails": {"companyName": "Acme"}}
    with pytest.raises(ValidationFailed) as exc_info:
        select_variant(payload)
    assert exc_info.value.code is ErrorCode.AMBIGUOUS_VARIANT


def test_select_variant_requires_a_detail_payload() -> None:
    with pytest.raises(ValidationFailed) as exc_info:
        select_variant({"firstName": "John", "personalDetails": {"mobileNumber": " "}})
    assert exc_info.value.code is ErrorCode.MISSING_VARIANT


def test_select_variant_checks_client_type_tag(personal_payload) -> None:
    assert select_variant({**personal_payload, "clientType": "PERSONAL"}) is ClientVariant.PERSONAL

    with pytest.raises(ValidationFailed) as mismatch:
        select_variant({**personal_payload, "clientType": "CORPORATE"})
    assert mismatch.value.code is ErrorCode.AMBIGUOUS_VARIANT

    with pytest.raises(ValidationFailed) as unknown:
        select_variant({**personal_payload, "clientType": "RETAIL"})
    error = unknown.value.errors[0]
    assert error.code is ErrorCode.INVALID_FORMAT
    assert error.field == "clientType"
    assert error.kind is FormatKind.CHOICE


def test_from_payload_flattens_in_declared_order() -> None:
    aggregate = ClientAggregate.from_payload(
        {
            "personalDetails": {
                "birthDate": "1990-01-01",
                "mobileNumber": "9876543210",
                "height": "5.80",
                "unknownField": "dropped",
            },
            "lastName": "Doe",
            "firstName": "John",
            "nickname": "dropped too",
        }
    )
    assert aggregate.variant is ClientVariant.PERSONAL
    assert list(aggregate.flatten()) == [
        "firstName",
        "lastName",
        "mobileNumber",
        "birthDate",
        "height",
    ]
    assert aggregate.flatten()["height"] == "5.8"


def test_updated_with_merges_and_clears() -> None:
    current = ClientAggregate.build(
        ClientVariant.PERSONAL,
        {"firstName": "John", "mobileNumber": "9876543210", "birthDate": "1990-01-01"},
    )
    merged = current.updated_with(
        {"firstName": None, "lastName": "Doe", "personalDetails": {"education": "MBA"}}
    )
    flat = merged.flatten()
    assert "firstName" not in flat
    assert flat["lastName"] == "Doe"
    assert flat["education"] == "MBA"
    assert flat["mobileNumber"] == "9876543210"
    assert current.flatten()["firstName"] == "John"


def test_updated_with_rejects_variant_switch() -> None:
    current = ClientAggregate.build(ClientVariant.PERSONAL, {"mobileNumber": "9876543210"})
    with pytest.raises(ValidationFailed) as by_payload:
        current.updated_with({"corporateDetails": {"companyName": "Acme"}})
    assert by_payload.value.code is ErrorCode.VARIANT_IMMUTABLE

    with pytest.raises(ValidationFailed) as by_tag:
        current.updated_with({"clientType": "FAMILY_EMPLOYEE"})
    assert by_tag.value.code is ErrorCode.VARIANT_IMMUTABLE


def test_supplied_fields() -> None:
    current = ClientAggregate.build(ClientVariant.PERSONAL, {"mobileNumber": "9876543210"})
    supplied = current.supplied_fields(
        {"email": "", "personalDetails": {"education": "MBA"}, "bogus": 1}
    )
    assert supplied == {"email", "education"}


def test_apply_to_writes_typed_values_and_round_trips() -> None:
    aggregate = ClientAggregate.from_payload(
        {
            "firstName": "John",
            "personalDetails": {
                "mobileNumber": "9876543210",
                "birthDate": "1990-01-01",
                "age": "34",
                "height": "5.8",
                "gender": "male",
            },
        }
    )
    client = _new_client()
    details = aggregate.apply_to(client)

    assert isinstance(details, PersonalDetails)
    assert client.personal_details is details
    assert client.first_name == "John"
    assert details.birth_date == date(1990, 1, 1)
    assert details.age == 34
    assert details.height == Decimal("5.8")
    assert details.gender == "MALE"

    restored = ClientAggregate.from_model(client)
    assert restored.variant is ClientVariant.PERSONAL
    assert restored.flatten() == aggregate.flatten()
    assert restored.client_id == "client-1"


def test_apply_to_refuses_a_second_detail_kind() -> None:
    client = _new_client()
    client.attach_details(CorporateDetails(company_name="Acme"))
    aggregate = ClientAggregate.build(ClientVariant.PERSONAL, {"mobileNumber": "9876543210"})
    with pytest.raises(ValueError):
        aggregate.apply_to(client)


def test_from_model_requires_details() -> None:
    with pytest.raises(ValueError):
        ClientAggregate.from_model(_new_client())
