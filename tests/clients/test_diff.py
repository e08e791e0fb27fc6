"""Tests for the field-level diff."""

from src.clients.diff import FieldChange, diff


def test_identical_records_have_no_changes() -> None:
    record = {"firstName": "John", "mobileNumber": "9876543210"}
    assert diff(record, dict(record)) == []


def test_diff_reports_changes_additions_and_removals() -> None:
    old = {"firstName": "John", "email": "john@example.com", "city": "Pune"}
    new = {"firstName": "Johnny", "city": "Pune", "education": "MBA"}
    changes = diff(old, new, field_order=("firstName", "email", "city", "education"))
    assert changes == [
        FieldChange("firstName", "John", "Johnny"),
        FieldChange("email", "john@example.com", None),
        FieldChange("education", None, "MBA"),
    ]


def test_diff_orders_unknown_names_alphabetically_after_declared() -> None:
    changes = diff({}, {"zeta": "1", "alpha": "2", "firstName": "John"}, field_order=("firstName",))
    assert [change.field_name for change in changes] == ["firstName", "alpha", "zeta"]


def test_none_and_absent_are_equal() -> None:
    assert diff({"education": None}, {}) == []


def test_diff_is_complete() -> None:
    """Applying every change to the old record reproduces the new one."""
    old = {"a": "1", "b": "2", "c": "3"}
    new = {"a": "1", "b": "20", "d": "4"}
    rebuilt = dict(old)
    for change in diff(old, new):
        if change.new_value is None:
            rebuilt.pop(change.field_name, None)
        else:
            rebuilt[change.field_name] = change.new_value
    assert rebuilt == new
