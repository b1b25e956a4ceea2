"""Field provenance: which fields the user has protected from enrichment."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from lenexus.domain.model.record import Record


class UnknownFieldError(KeyError):
    """Raised when protecting or editing a field the record does not know."""


def is_protected(record: Record, field_name: str) -> bool:
    """Return whether the user has edited ``field_name`` since the last overwrite."""

    return field_name in record.user_modified_fields


def mark_user_edited(record: Record, field_name: str) -> Record:
    """Return a copy of ``record`` with ``field_name`` protected.

    Marking an already protected field returns the record unchanged.
    """

    if not record.knows(field_name):
        raise UnknownFieldError(field_name)
    if field_name in record.user_modified_fields:
        return record
    return replace(record, user_modified_fields=record.user_modified_fields | {field_name})


def clear_protection(record: Record, field_name: str) -> Record:
    if field_name not in record.user_modified_fields:
        return record
    return replace(record, user_modified_fields=record.user_modified_fields - {field_name})


def edit_field(record: Record, field_name: str, value: object) -> Record:
    """Apply a user edit: set the value and protect the field."""

    if not record.knows(field_name):
        raise UnknownFieldError(field_name)
    return mark_user_edited(record.with_fields({field_name: value}), field_name)
