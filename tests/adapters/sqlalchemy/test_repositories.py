from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import text

from lenexus.domain.enrichment import stamp_enriched
from lenexus.domain.model import MediaType, Record, mark_user_edited

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.engine import Engine

    from lenexus.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork

    UowFactory = Callable[[], SqlAlchemyCatalogUnitOfWork]

NOW = datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC)


def _store(uow_factory: UowFactory, *records: Record) -> None:
    with uow_factory() as uow:
        for record in records:
            uow.repositories.records.add(record)
        uow.commit()


def test_record_round_trip(sqlite_unit_of_work: UowFactory) -> None:
    record = Record.create(
        MediaType.MANGA,
        {"title": "Dorohedoro", "genres": ["Action", "Horror"], "score": 8.1, "volume_count": 23},
    )
    record = stamp_enriched(mark_user_edited(record, "title"), NOW)
    _store(sqlite_unit_of_work, record)

    with sqlite_unit_of_work() as uow:
        loaded = uow.repositories.records.get(record.id)

    assert loaded == record
    assert loaded is not None
    assert loaded.enriched_at == NOW
    assert loaded.user_modified_fields == frozenset({"title"})


def test_update_and_remove(sqlite_unit_of_work: UowFactory) -> None:
    record = Record.create(MediaType.BOOK, {"title": "Dune"})
    _store(sqlite_unit_of_work, record)

    with sqlite_unit_of_work() as uow:
        uow.repositories.records.update(record.with_fields({"page_count": 412}))
        uow.commit()
    with sqlite_unit_of_work() as uow:
        loaded = uow.repositories.records.get(record.id)
        uow.repositories.records.remove(record.id)
        uow.commit()
    with sqlite_unit_of_work() as uow:
        assert uow.repositories.records.get(record.id) is None

    assert loaded is not None
    assert loaded["page_count"] == 412


def test_empty_protection_is_stored_as_null(
    sqlite_unit_of_work: UowFactory,
    sqlite_engine: Engine,
) -> None:
    record = Record.create(MediaType.ANIME, {"title": "Mushishi"})
    _store(sqlite_unit_of_work, record)

    with sqlite_engine.connect() as connection:
        stored = connection.execute(text("SELECT user_modified_fields FROM record")).scalar_one()

    assert stored is None


def test_corrupt_protection_reads_as_empty(
    sqlite_unit_of_work: UowFactory,
    sqlite_engine: Engine,
) -> None:
    record = mark_user_edited(Record.create(MediaType.ANIME, {"title": "Mushishi"}), "title")
    _store(sqlite_unit_of_work, record)
    with sqlite_engine.begin() as connection:
        connection.execute(text("UPDATE record SET user_modified_fields = 'not json'"))

    with sqlite_unit_of_work() as uow:
        loaded = uow.repositories.records.get(record.id)

    assert loaded is not None
    assert loaded.user_modified_fields == frozenset()


def test_query_filters(sqlite_unit_of_work: UowFactory) -> None:
    manga = Record.create(MediaType.MANGA, {"title": "A"})
    enriched = stamp_enriched(Record.create(MediaType.MANGA, {"title": "B"}), NOW)
    anime = Record.create(MediaType.ANIME, {"title": "C"})
    _store(sqlite_unit_of_work, manga, enriched, anime)

    with sqlite_unit_of_work() as uow:
        records = uow.repositories.records
        everything = records.query()
        mangas = records.query(media_type=MediaType.MANGA)
        pending = records.query(only_unenriched=True)
        by_id = records.query(ids=[anime.id, enriched.id])
        limited = records.query(limit=2)

    assert [r.id for r in everything] == [manga.id, enriched.id, anime.id]
    assert [r.id for r in mangas] == [manga.id, enriched.id]
    assert [r.id for r in pending] == [manga.id, anime.id]
    assert {r.id for r in by_id} == {anime.id, enriched.id}
    assert len(limited) == 2


def test_enriched_at_is_normalised_to_utc(sqlite_unit_of_work: UowFactory) -> None:
    local = NOW.astimezone(UTC).replace(tzinfo=None)
    offset = NOW.astimezone(timezone(timedelta(hours=2)))
    record = Record(media_type=MediaType.MOVIE, fields={"title": "Heat"}, enriched_at=local)
    other = Record(media_type=MediaType.MOVIE, fields={"title": "Ran"}, enriched_at=offset)
    _store(sqlite_unit_of_work, record, other)

    with sqlite_unit_of_work() as uow:
        loaded = uow.repositories.records.get(record.id)
        loaded_other = uow.repositories.records.get(other.id)

    assert loaded is not None
    assert loaded_other is not None
    assert loaded.enriched_at == NOW
    assert loaded_other.enriched_at == NOW


def test_settings_store_json_values(sqlite_unit_of_work: UowFactory) -> None:
    with sqlite_unit_of_work() as uow:
        settings = uow.repositories.settings
        settings.set("flag", True)
        settings.set("names", ["a", "b"])
        settings.set("flag", False)
        uow.commit()

    with sqlite_unit_of_work() as uow:
        settings = uow.repositories.settings
        assert settings.get("flag") is False
        assert settings.get("names") == ["a", "b"]
        assert settings.get("missing") is None
        assert settings.get("missing", 7) == 7


def test_mapping_field_values_round_trip(sqlite_unit_of_work: UowFactory) -> None:
    record = Record.create(MediaType.BOOK, {"title": "Dune", "extra": {"series": "Dune", "order": 1}})
    _store(sqlite_unit_of_work, record)

    with sqlite_unit_of_work() as uow:
        loaded = uow.repositories.records.get(record.id)

    assert loaded is not None
    assert loaded["extra"] == {"series": "Dune", "order": 1}


def test_update_flag_round_trip(sqlite_unit_of_work: UowFactory) -> None:
    record = Record.create(MediaType.ANIME, {"title": "Mushishi"})
    _store(sqlite_unit_of_work, record)

    with sqlite_unit_of_work() as uow:
        fresh = uow.repositories.records.get(record.id)
        uow.repositories.records.update(replace(record, update_available=True))
        uow.commit()
    with sqlite_unit_of_work() as uow:
        flagged = uow.repositories.records.get(record.id)

    assert fresh is not None
    assert fresh.update_available is False
    assert flagged is not None
    assert flagged.update_available is True
