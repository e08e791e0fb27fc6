"""Tests for the field registry and canonical serialization."""

from datetime import date
from decimal import Decimal

from src.clients.errors import ErrorCode, FormatKind
from src.clients.fields import (
    CORPORATE_FIELDS,
    FAMILY_FIELDS,
    PERSONAL_FIELDS,
    SHARED_FIELDS,
    FieldKind,
    FieldSpec,
    Gender,
)
from src.models.client import Client, CorporateDetails, FamilyDetails, PersonalDetails


def _spec(fields: tuple[FieldSpec, ...], name: str) -> FieldSpec:
    return next(spec for spec in fields if spec.name == name)


def test_every_field_maps_to_a_model_column() -> None:
    """Registry attributes exist on the models they are written to."""
    for fields, model in (
        (SHARED_FIELDS, Client),
        (PERSONAL_FIELDS, PersonalDetails),
        (FAMILY_FIELDS, FamilyDetails),
        (CORPORATE_FIELDS, CorporateDetails),
    ):
        for spec in fields:
            assert hasattr(model, spec.attr), f"{model.__name__}.{spec.attr}"


def test_canonical_decimal_drops_trailing_zeros() -> None:
    height = _spec(PERSONAL_FIELDS, "height")
    assert height.canonical("5.80") == "5.8"
    assert height.canonical(Decimal("5.80")) == "5.8"
    assert height.canonical(5.8) == "5.8"
    income = _spec(PERSONAL_FIELDS, "annualIncome")
    assert income.canonical("1200000.00") == "1200000"


def test_canonical_is_idempotent() -> None:
    """Serializing an already canonical value yields the same string."""
    samples = {
        "birthDate": "1990-01-01",
        "height": "5.8",
        "annualIncome": "1200000",
        "age": "35",
        "gender": "MALE",
        "mobileNumber": "9876543210",
    }
    for name, value in samples.items():
        spec = _spec(PERSONAL_FIELDS, name)
        once = spec.canonical(value)
        assert spec.canonical(once) == once
        assert spec.canonical(spec.to_python(once)) == once


def test_canonical_dates_and_choices() -> None:
    birth_date = _spec(PERSONAL_FIELDS, "birthDate")
    assert birth_date.canonical(date(1990, 1, 1)) == "1990-01-01"
    assert birth_date.canonical("1990-01-01T00:00:00") == "1990-01-01"
    gender = _spec(PERSONAL_FIELDS, "gender")
    assert gender.canonical("male") == "MALE"
    assert gender.canonical(Gender.FEMALE) == "FEMALE"


def test_canonical_blank_is_none_and_garbage_is_kept() -> None:
    age = _spec(PERSONAL_FIELDS, "age")
    assert age.canonical("  ") is None
    assert age.canonical(None) is None
    assert age.canonical("thirty") == "thirty"
    assert age.canonical("35.0") == "35"


def test_to_python_converts_by_kind() -> None:
    assert _spec(PERSONAL_FIELDS, "birthDate").to_python("1990-01-01") == date(1990, 1, 1)
    assert _spec(PERSONAL_FIELDS, "height").to_python("5.8") == Decimal("5.8")
    assert _spec(PERSONAL_FIELDS, "age").to_python("35") == 35
    assert _spec(PERSONAL_FIELDS, "education").to_python(None) is None


def test_problem_reports_format_kind() -> None:
    gst = _spec(PERSONAL_FIELDS, "gstNumber")
    error = gst.problem("INVALID_GST_FORMAT")
    assert error is not None
    assert error.code is ErrorCode.INVALID_FORMAT
    assert error.kind is FormatKind.TAX_ID_SECONDARY
    assert error.field == "gstNumber"

    assert _spec(PERSONAL_FIELDS, "age").problem("150").kind is FormatKind.NUMBER
    assert _spec(PERSONAL_FIELDS, "gender").problem("UNKNOWN").kind is FormatKind.CHOICE
    assert _spec(PERSONAL_FIELDS, "birthDate").problem("2999-01-01").kind is FormatKind.DATE
    assert _spec(SHARED_FIELDS, "profileImage").problem("nope").kind is FormatKind.URL


def test_problem_accepts_valid_and_absent_values() -> None:
    assert _spec(PERSONAL_FIELDS, "panNumber").problem("ABCDE1234F") is None
    assert _spec(PERSONAL_FIELDS, "panNumber").problem(None) is None
    assert _spec(FAMILY_FIELDS, "relationship").problem("CHILD") is None


def test_kinds_are_declared_where_expected() -> None:
    assert _spec(CORPORATE_FIELDS, "companyName").kind is FieldKind.TEXT
    assert _spec(FAMILY_FIELDS, "dateOfBirth").kind is FieldKind.DATE
    assert _spec(CORPORATE_FIELDS, "companyEmail").attr == "email"


def test_decimal_problem_enforces_scale_and_upper_bound() -> None:
    height = _spec(PERSONAL_FIELDS, "height")
    assert height.problem("5.86") is None
    assert height.problem("10") is None
    for value in ("5.855", "10.01", "0"):
        error = height.problem(value)
        assert error is not None, value
        assert error.kind is FormatKind.NUMBER
    assert "at most 2 decimal places" in height.problem("5.855").message

    income = _spec(CORPORATE_FIELDS, "annualIncome")
    assert income.problem("100000000") is None
    assert income.problem("100000000.01").kind is FormatKind.NUMBER
    assert _spec(FAMILY_FIELDS, "weight").problem("500.5").kind is FormatKind.NUMBER


def test_text_problem_enforces_max_length() -> None:
    first_name = _spec(SHARED_FIELDS, "firstName")
    assert first_name.problem("J" * 50) is None
    error = first_name.problem("J" * 51)
    assert error.kind is FormatKind.LENGTH
    assert error.message == "firstName must be at most 50 characters"
    assert _spec(CORPORATE_FIELDS, "companyName").problem("A" * 200) is None
    assert _spec(CORPORATE_FIELDS, "companyName").problem("A" * 201).kind is FormatKind.LENGTH


def test_field_bounds_fit_their_columns() -> None:
    """Anything validation accepts can be stored without overflow."""
    for fields, model in (
        (SHARED_FIELDS, Client),
        (PERSONAL_FIELDS, PersonalDetails),
        (FAMILY_FIELDS, FamilyDetails),
        (CORPORATE_FIELDS, CorporateDetails),
    ):
        for spec in fields:
            column_type = getattr(model, spec.attr).property.columns[0].type
            if spec.kind is FieldKind.DECIMAL:
                assert spec.scale == column_type.scale, spec.name
                integer_digits = column_type.precision - column_type.scale
                assert spec.max_value < 10**integer_digits, spec.name
            elif spec.max_length is not None and getattr(column_type, "length", None):
                assert spec.max_length <= column_type.length, spec.name
