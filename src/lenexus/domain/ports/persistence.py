"""Ports for persisting catalog records and settings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from uuid import UUID

    from lenexus.domain.model import MediaType, Record


@runtime_checkable
class RecordRepository(Protocol):
    """Persistence contract for catalog records."""

    def add(self, record: Record) -> None: ...

    def get(self, record_id: UUID) -> Record | None: ...

    def update(self, record: Record) -> None: ...

    def remove(self, record_id: UUID) -> None: ...

    def query(
        self,
        *,
        media_type: MediaType | None = None,
        only_unenriched: bool = False,
        ids: Iterable[UUID] | None = None,
        limit: int | None = None,
    ) -> Sequence[Record]: ...


@runtime_checkable
class SettingsRepository(Protocol):
    """Key/value store for persisted application settings (JSON values)."""

    def get(self, key: str, default: object = None) -> object: ...

    def set(self, key: str, value: object) -> None: ...
