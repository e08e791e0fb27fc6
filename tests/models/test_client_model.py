"""Tests for client model invariants."""

import pytest

from src.models.client import Client, CorporateDetails, FamilyDetails, PersonalDetails


def _client() -> Client:
    return Client(id="c1", personal_details=None, family_details=None, corporate_details=None)


def test_details_is_none_until_attached() -> None:
    assert _client().details is None


def test_attach_details_sets_matching_relationship() -> None:
    client = _client()
    details = FamilyDetails(phone_number="9876543210")
    client.attach_details(details)
    assert client.family_details is details
    assert client.details is details


def test_attach_details_replaces_same_kind() -> None:
    client = _client()
    client.attach_details(PersonalDetails(mobile_number="9876543210"))
    replacement = PersonalDetails(mobile_number="9876543211")
    client.attach_details(replacement)
    assert client.details is replacement


def test_attach_second_kind_raises() -> None:
    client = _client()
    client.attach_details(PersonalDetails(mobile_number="9876543210"))
    with pytest.raises(ValueError):
        client.attach_details(CorporateDetails(company_name="Acme"))
    assert client.corporate_details is None


def test_attach_unknown_type_raises() -> None:
    with pytest.raises(TypeError):
        _client().attach_details(object())  # type: ignore[arg-type]
