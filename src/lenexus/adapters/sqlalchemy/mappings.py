"""SQLAlchemy table metadata for catalog records and settings."""

from __future__ import annotations

import json
import logging
import uuid
from datetime import UTC, datetime
from types import MappingProxyType
from typing import Any, Final, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    Index,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    Uuid,
    false,
    func,
)

log = logging.getLogger(__name__)

UUIDColumnType = Uuid[uuid.UUID]


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


def _json_default(value: object) -> object:
    if isinstance(value, MappingProxyType):
        return dict(value)
    if isinstance(value, set | frozenset):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class FieldValuesType(TypeDecorator[dict[str, object]]):
    """Record field values stored as a JSON object."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(dict(value), ensure_ascii=False, default=_json_default)

    def process_result_value(self, value: str | None, dialect: Dialect) -> dict[str, object]:
        _ = dialect
        if value is None:
            return {}
        loaded = json.loads(value)
        if not isinstance(loaded, dict):
            return {}
        return cast(dict[str, object], loaded)


class FieldNameSetType(TypeDecorator[frozenset[str]]):
    """Set of field names stored as a JSON array, NULL when empty."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        _ = dialect
        if not value:
            return None
        return json.dumps(sorted(value), ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> frozenset[str]:
        _ = dialect
        if not value:
            return frozenset()
        try:
            loaded = json.loads(value)
        except json.JSONDecodeError:
            log.warning("Ignoring unparsable user_modified_fields value: %r", value)
            return frozenset()
        if not isinstance(loaded, list):
            return frozenset()
        items = cast(list[Any], loaded)
        return frozenset(item for item in items if isinstance(item, str))


class JSONValueType(TypeDecorator[object]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(value, ensure_ascii=False, default=_json_default)

    def process_result_value(self, value: str | None, dialect: Dialect) -> object:
        _ = dialect
        if value is None:
            return None
        return json.loads(value)


metadata: Final[MetaData] = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

record_table = Table(
    "record",
    metadata,
    Column("id", UUIDColumnType, primary_key=True),
    Column("media_type", String(32), nullable=False),
    Column("fields", FieldValuesType(), nullable=False),
    Column("created_at", UTCDateTime(), nullable=False, server_default=func.current_timestamp()),
    Column("enriched_at", UTCDateTime(), nullable=True),
    Column("user_modified_fields", FieldNameSetType(), nullable=True),
    Column("update_available", Boolean(), nullable=False, server_default=false()),
    Index("ix_record_media_type_enriched_at", "media_type", "enriched_at"),
)

setting_table = Table(
    "setting",
    metadata,
    Column("key", String(128), primary_key=True),
    Column("value", JSONValueType(), nullable=True),
)
