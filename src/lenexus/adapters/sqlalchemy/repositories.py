"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, insert, select, update

from lenexus.adapters.sqlalchemy.mappings import record_table, setting_table
from lenexus.domain.model import MediaType, Record

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from sqlalchemy import Row
    from sqlalchemy.orm import Session


def _record_values(record: Record) -> dict[str, Any]:
    return {
        "media_type": record.media_type.value,
        "fields": dict(record.fields),
        "enriched_at": record.enriched_at,
        "user_modified_fields": record.user_modified_fields,
        "update_available": record.update_available,
    }


def _record_from_row(row: Row[Any]) -> Record:
    values = row._mapping  # noqa: SLF001
    return Record(
        id=values["id"],
        media_type=MediaType(values["media_type"]),
        fields=values["fields"],
        enriched_at=values["enriched_at"],
        user_modified_fields=values["user_modified_fields"],
        update_available=bool(values["update_available"]),
    )


class SqlAlchemyRecordRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, record: Record) -> None:
        self.session.execute(
            insert(record_table).values(
                id=record.id,
                created_at=datetime.now(UTC),
                **_record_values(record),
            )
        )

    def get(self, record_id: UUID) -> Record | None:
        stmt = select(record_table).where(record_table.c.id == record_id)
        row = self.session.execute(stmt).one_or_none()
        return _record_from_row(row) if row is not None else None

    def update(self, record: Record) -> None:
        stmt = (
            update(record_table)
            .where(record_table.c.id == record.id)
            .values(**_record_values(record))
        )
        self.session.execute(stmt)

    def remove(self, record_id: UUID) -> None:
        self.session.execute(delete(record_table).where(record_table.c.id == record_id))

    def query(
        self,
        *,
        media_type: MediaType | None = None,
        only_unenriched: bool = False,
        ids: Iterable[UUID] | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        stmt = select(record_table).order_by(record_table.c.created_at, record_table.c.id)
        if media_type is not None:
            stmt = stmt.where(record_table.c.media_type == media_type.value)
        if only_unenriched:
            stmt = stmt.where(record_table.c.enriched_at.is_(None))
        if ids is not None:
            stmt = stmt.where(record_table.c.id.in_(list(ids)))
        if limit is not None:
            stmt = stmt.limit(limit)
        return [_record_from_row(row) for row in self.session.execute(stmt)]


class SqlAlchemySettingsRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, key: str, default: object = None) -> object:
        stmt = select(setting_table.c.value).where(setting_table.c.key == key)
        value = self.session.execute(stmt).scalar_one_or_none()
        return default if value is None else value

    def set(self, key: str, value: object) -> None:
        exists = self.session.execute(
            select(setting_table.c.key).where(setting_table.c.key == key)
        ).scalar_one_or_none()
        if exists is None:
            self.session.execute(insert(setting_table).values(key=key, value=value))
        else:
            self.session.execute(
                update(setting_table).where(setting_table.c.key == key).values(value=value)
            )
