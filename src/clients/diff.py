"""Field-level diff between two flattened client records."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldChange:
    """One changed field.

    Attributes:
        field_name: Flat field name.
        old_value: Previous canonical value, None when the field was absent.
        new_value: New canonical value, None when the field was removed.
    """

    field_name: str
    old_value: str | None
    new_value: str | None


def diff(
    old: Mapping[str, str | None],
    new: Mapping[str, str | None],
    field_order: Sequence[str] = (),
) -> list[FieldChange]:
    """Compute the changes between two flattened records.

    A field missing on one side is compared as None, so additions and
    removals are reported alongside value changes.

    Args:
        old: Flattened record before the change.
        new: Flattened record after the change.
        field_order: Declared field order. Names not listed follow,
            sorted alphabetically.

    Returns:
        One FieldChange per differing field; empty when nothing changed.
    """
    known = set(field_order)
    extra = sorted((set(old) | set(new)) - known)
    changes: list[FieldChange] = []
    for name in (*field_order, *extra):
        before = old.get(name)
        after = new.get(name)
        if before != after:
            changes.append(FieldChange(field_name=name, old_value=before, new_value=after))
    return changes
