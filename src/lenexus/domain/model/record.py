"""Catalog record: one media entry tracked by the user."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Final
from uuid import UUID, uuid4

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from lenexus.domain.model.enums import MediaType

RESERVED_FIELD_NAMES: Final[frozenset[str]] = frozenset(
    {"id", "media_type", "enriched_at", "user_modified_fields", "update_available"}
)


def new_id() -> UUID:
    return uuid4()


def freeze_value(value: object) -> object:
    """Return an immutable equivalent of a field value.

    Lists become tuples, sets become frozensets and mappings become read-only
    views over a frozen copy.
    """

    if isinstance(value, MappingProxyType):
        return value
    if isinstance(value, dict):
        return MappingProxyType({key: freeze_value(item) for key, item in value.items()})

    if isinstance(value, list | tuple):
        return tuple(freeze_value(item) for item in value)
    if isinstance(value, set):
        return frozenset(value)
    return value


@dataclass(frozen=True, slots=True, kw_only=True)
class Record:
    """Immutable snapshot of a catalog entry.

    Operations on records never mutate them; they return the next snapshot via
    :func:`dataclasses.replace` so callers keep the previous state for diffing.
    """

    id: UUID = field(default_factory=new_id)
    media_type: MediaType
    fields: Mapping[str, object] = field(default_factory=dict[str, object])
    enriched_at: datetime | None = None
    user_modified_fields: frozenset[str] = frozenset()
    update_available: bool = False
    """Set by enrichment when a tracked count grew or the status changed."""

    def __post_init__(self) -> None:
        frozen = {name: freeze_value(value) for name, value in self.fields.items()}
        object.__setattr__(self, "fields", MappingProxyType(frozen))
        object.__setattr__(self, "user_modified_fields", frozenset(self.user_modified_fields))

    @classmethod
    def create(
        cls,
        media_type: MediaType,
        values: Mapping[str, object] | None = None,
        *,
        field_names: Iterable[str] = (),
    ) -> Record:
        """Create a fresh record: no protection, never enriched.

        Every name in ``field_names`` is seeded with ``None`` so the record knows
        the full field set of its media type from the start.
        """

        seeded: dict[str, object] = dict.fromkeys(field_names)
        for name, value in (values or {}).items():
            if name in RESERVED_FIELD_NAMES:
                raise ValueError(f"'{name}' is not a record field")
            seeded[name] = value
        return cls(media_type=media_type, fields=seeded)

    def knows(self, field_name: str) -> bool:
        return field_name in self.fields

    def get(self, field_name: str, default: object = None) -> object:
        return self.fields.get(field_name, default)

    def __getitem__(self, field_name: str) -> object:
        return self.fields[field_name]

    def with_fields(self, updates: Mapping[str, object]) -> Record:
        """Return a copy with the given field values replaced or added."""

        if not updates:
            return self
        merged = dict(self.fields)
        merged.update(updates)
        return replace(self, fields=merged)
