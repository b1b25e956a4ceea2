"""Public domain model surface."""

from __future__ import annotations

from lenexus.domain.model.enums import MediaType, PublicationStatus
from lenexus.domain.model.provenance import (
    UnknownFieldError,
    clear_protection,
    edit_field,
    is_protected,
    mark_user_edited,
)
from lenexus.domain.model.record import RESERVED_FIELD_NAMES, Record, freeze_value, new_id

__all__ = [
    "RESERVED_FIELD_NAMES",
    "MediaType",
    "PublicationStatus",
    "Record",
    "UnknownFieldError",
    "clear_protection",
    "edit_field",
    "freeze_value",
    "is_protected",
    "mark_user_edited",
    "new_id",
]
