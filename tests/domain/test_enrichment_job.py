from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from lenexus.domain.catalog import create_record, edit_record, get_record
from lenexus.domain.enrichment import stamp_enriched
from lenexus.domain.enrichment_job import enrich_records
from lenexus.domain.model import MediaType
from lenexus.domain.ports import MetadataSourceError
from lenexus.domain.single_flight import RecordGate
from tests.helpers.sources import FakeSource

if TYPE_CHECKING:
    from collections.abc import Callable

    from lenexus.adapters.sqlalchemy.unit_of_work import SqlAlchemyCatalogUnitOfWork
    from lenexus.domain.model import Record
    from lenexus.domain.policy import RuleTable

    UowFactory = Callable[[], SqlAlchemyCatalogUnitOfWork]

NOW = datetime(2025, 5, 4, 8, 30, tzinfo=UTC)

MANGA_PAYLOAD = {
    "title": "Berserk",
    "description": "Guts, a former mercenary...",
    "chapter_count": 364,
    "publication_status": "hiatus",
}


def _now() -> datetime:
    return NOW


def _add_manga(uow: UowFactory, rules: dict[MediaType, RuleTable], **values: object) -> Record:
    return create_record(uow, MediaType.MANGA, values, rules=rules[MediaType.MANGA])


def test_enrich_merges_and_stamps(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk", description="Mine")
    source = FakeSource(MANGA_PAYLOAD)

    result = enrich_records(
        sources={MediaType.MANGA: source},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    stored = get_record(sqlite_unit_of_work, record.id)
    assert (result.candidates, result.enriched, result.changed) == (1, 1, 1)
    assert stored["description"] == "Mine"
    assert stored["chapter_count"] == 364
    assert stored["publication_status"] == "hiatus"
    assert stored.enriched_at == NOW


def test_enrich_respects_user_edits(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")
    edit_record(sqlite_unit_of_work, record.id, "chapter_count", 380)

    enrich_records(
        sources={MediaType.MANGA: FakeSource(MANGA_PAYLOAD)},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    stored = get_record(sqlite_unit_of_work, record.id)
    assert stored["chapter_count"] == 380
    assert stored.user_modified_fields == frozenset({"chapter_count"})


def test_override_protection_overwrites_user_edits(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")
    edit_record(sqlite_unit_of_work, record.id, "chapter_count", 380)

    enrich_records(
        sources={MediaType.MANGA: FakeSource(MANGA_PAYLOAD)},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        override_protection=True,
        now_provider=_now,
    )

    stored = get_record(sqlite_unit_of_work, record.id)
    assert stored["chapter_count"] == 364
    assert stored.user_modified_fields == frozenset()


def test_enriched_records_are_skipped_unless_forced(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")
    source = FakeSource(MANGA_PAYLOAD)
    kwargs = {
        "sources": {MediaType.MANGA: source},
        "unit_of_work_factory": sqlite_unit_of_work,
        "rule_tables": rule_tables,
        "now_provider": _now,
    }

    first = enrich_records(**kwargs)  # type: ignore[arg-type]
    second = enrich_records(**kwargs)  # type: ignore[arg-type]
    forced = enrich_records(force=True, **kwargs)  # type: ignore[arg-type]

    assert first.enriched == 1
    assert second.candidates == 0
    assert forced.enriched == 1
    assert forced.changed == 0
    assert len(source.calls) == 2


def test_record_is_stamped_even_without_changes(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")

    result = enrich_records(
        sources={MediaType.MANGA: FakeSource({})},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    assert (result.enriched, result.changed) == (1, 0)
    assert get_record(sqlite_unit_of_work, record.id).enriched_at == NOW


def test_source_failure_is_counted_and_not_stamped(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
    caplog: pytest.LogCaptureFixture,
) -> None:
    failing = _add_manga(sqlite_unit_of_work, rule_tables, title="Broken")
    source = FakeSource(error=MetadataSourceError("HTTP 503"))

    with caplog.at_level("WARNING"):
        result = enrich_records(
            sources={MediaType.MANGA: source},
            unit_of_work_factory=sqlite_unit_of_work,
            rule_tables=rule_tables,
            now_provider=_now,
        )

    assert (result.failed, result.enriched) == (1, 0)
    assert get_record(sqlite_unit_of_work, failing.id).enriched_at is None
    assert "HTTP 503" in caplog.text


def test_records_without_source_are_skipped(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    movie = create_record(
        sqlite_unit_of_work,
        MediaType.MOVIE,
        {"title": "Heat"},
        rules=rule_tables[MediaType.MOVIE],
    )

    result = enrich_records(
        sources={MediaType.MANGA: FakeSource(MANGA_PAYLOAD)},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    assert (result.candidates, result.skipped) == (1, 1)
    assert get_record(sqlite_unit_of_work, movie.id).enriched_at is None


def test_busy_record_is_skipped(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")
    gate = RecordGate()
    source = FakeSource(MANGA_PAYLOAD)

    with gate.acquire(record.id):
        result = enrich_records(
            sources={MediaType.MANGA: source},
            unit_of_work_factory=sqlite_unit_of_work,
            rule_tables=rule_tables,
            gate=gate,
            now_provider=_now,
        )

    assert result.skipped == 1
    assert source.calls == []


def test_edit_during_fetch_wins(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")

    def user_edits_meanwhile(_: Record) -> None:
        edit_record(sqlite_unit_of_work, record.id, "chapter_count", 1)

    enrich_records(
        sources={MediaType.MANGA: FakeSource(MANGA_PAYLOAD, on_call=user_edits_meanwhile)},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    stored = get_record(sqlite_unit_of_work, record.id)
    assert stored["chapter_count"] == 1
    assert stored["publication_status"] == "hiatus"


def test_field_filter_limits_payload(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")

    enrich_records(
        sources={MediaType.MANGA: FakeSource(MANGA_PAYLOAD)},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        field_filter={MediaType.MANGA: {"chapter_count"}},
        now_provider=_now,
    )

    stored = get_record(sqlite_unit_of_work, record.id)
    assert stored["chapter_count"] == 364
    assert stored["publication_status"] is None
    assert stored["description"] is None


def test_media_type_ids_and_limit_restrict_candidates(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    first = _add_manga(sqlite_unit_of_work, rule_tables, title="One")
    second = _add_manga(sqlite_unit_of_work, rule_tables, title="Two")
    create_record(sqlite_unit_of_work, MediaType.ANIME, {"title": "Three"})
    source = FakeSource({})

    by_id = enrich_records(
        sources={MediaType.MANGA: source, MediaType.ANIME: source},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        record_ids=[second.id],
        now_provider=_now,
    )
    limited = enrich_records(
        sources={MediaType.MANGA: source, MediaType.ANIME: source},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        media_type=MediaType.MANGA,
        limit=1,
        now_provider=_now,
    )

    assert by_id.candidates == 1
    assert limited.candidates == 1
    assert [call.id for call in source.calls] == [second.id, first.id]


def test_record_enriched_by_another_pass_is_not_fetched_again(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    first = _add_manga(sqlite_unit_of_work, rule_tables, title="One")
    second = _add_manga(sqlite_unit_of_work, rule_tables, title="Two")

    def other_pass_finishes_second(_: Record) -> None:
        with sqlite_unit_of_work() as uow:
            stored = uow.repositories.records.get(second.id)
            assert stored is not None
            uow.repositories.records.update(stamp_enriched(stored, NOW))
            uow.commit()

    source = FakeSource(MANGA_PAYLOAD, on_call=other_pass_finishes_second)
    result = enrich_records(
        sources={MediaType.MANGA: source},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    assert [call.id for call in source.calls] == [first.id]
    assert (result.candidates, result.enriched, result.skipped) == (2, 1, 1)
    assert get_record(sqlite_unit_of_work, second.id)["chapter_count"] is None


def test_new_chapters_and_status_flag_update(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(
        sqlite_unit_of_work,
        rule_tables,
        title="Berserk",
        chapter_count=300,
        publication_status="ongoing",
    )
    edit_record(sqlite_unit_of_work, record.id, "chapter_count", 300)

    result = enrich_records(
        sources={MediaType.MANGA: FakeSource(MANGA_PAYLOAD)},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    stored = get_record(sqlite_unit_of_work, record.id)
    assert result.updates == 1
    assert stored.update_available is True
    assert stored["chapter_count"] == 300


def test_first_fill_does_not_flag_update(
    sqlite_unit_of_work: UowFactory,
    rule_tables: dict[MediaType, RuleTable],
) -> None:
    record = _add_manga(sqlite_unit_of_work, rule_tables, title="Berserk")

    result = enrich_records(
        sources={MediaType.MANGA: FakeSource(MANGA_PAYLOAD)},
        unit_of_work_factory=sqlite_unit_of_work,
        rule_tables=rule_tables,
        now_provider=_now,
    )

    assert result.updates == 0
    assert get_record(sqlite_unit_of_work, record.id).update_available is False
