"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from lenexus.adapters.jikan import build_jikan_sources
from lenexus.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyCatalogUnitOfWork,
    is_started,
    startup,
)
from lenexus.config import (
    get_jikan_config,
    load_field_filters,
    load_last_run,
    load_scheduler_config,
    save_field_filter,
    save_last_run,
    save_scheduler_config,
)
from lenexus.domain.catalog import (
    acknowledge_update,
    create_record,
    delete_record,
    edit_record,
    get_record,
)
from lenexus.domain.enrichment_job import EnrichmentRunResult, enrich_records
from lenexus.domain.policy import default_rule_tables
from lenexus.domain.ports.unit_of_work import CatalogUnitOfWork
from lenexus.domain.single_flight import RecordGate
from lenexus.scheduler import EnrichmentScheduler

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from uuid import UUID

    from lenexus.config import SchedulerConfig
    from lenexus.domain.model import MediaType, Record
    from lenexus.domain.policy import RuleTables
    from lenexus.domain.ports import MetadataSource

UnitOfWorkFactory = Callable[[], CatalogUnitOfWork]

log = getLogger(__name__)

# Shared by manual and scheduled runs in this process.
RECORD_GATE = RecordGate()


def _unit_of_work_factory(factory: UnitOfWorkFactory | None) -> UnitOfWorkFactory:
    if factory is not None:
        return factory
    if not is_started():
        startup()
    return SqlAlchemyCatalogUnitOfWork


def add_record(
    media_type: MediaType,
    values: Mapping[str, object],
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rule_tables: RuleTables | None = None,
) -> Record:
    tables = rule_tables or default_rule_tables()
    return create_record(
        _unit_of_work_factory(unit_of_work_factory),
        media_type,
        values,
        rules=tables.get(media_type),
    )


def edit_record_field(
    record_id: UUID,
    field_name: str,
    value: object,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Record:
    return edit_record(_unit_of_work_factory(unit_of_work_factory), record_id, field_name, value)


def show_record(
    record_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Record:
    return get_record(_unit_of_work_factory(unit_of_work_factory), record_id)


def remove_record(
    record_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> None:
    delete_record(_unit_of_work_factory(unit_of_work_factory), record_id)


def acknowledge_record_update(
    record_id: UUID,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> Record:
    return acknowledge_update(_unit_of_work_factory(unit_of_work_factory), record_id)


def run_enrichment(
    *,
    media_type: MediaType | None = None,
    record_ids: Iterable[UUID] | None = None,
    limit: int | None = None,
    force: bool = False,
    override_protection: bool = False,
    sources: Mapping[MediaType, MetadataSource] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rule_tables: RuleTables | None = None,
    gate: RecordGate | None = None,
) -> EnrichmentRunResult:
    """Enrich stored records with the configured metadata sources."""

    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    with effective_uow() as uow:
        field_filter = load_field_filters(uow.repositories.settings)

    return enrich_records(
        sources=sources if sources is not None else build_jikan_sources(get_jikan_config()),
        unit_of_work_factory=effective_uow,
        rule_tables=rule_tables or default_rule_tables(),
        gate=gate or RECORD_GATE,
        media_type=media_type,
        record_ids=record_ids,
        limit=limit,
        force=force,
        override_protection=override_protection,
        field_filter=field_filter,
    )


def configure_schedule(
    *,
    enabled: bool | None = None,
    interval_hours: int | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> SchedulerConfig:
    """Update and persist the automatic enrichment schedule."""

    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        settings = uow.repositories.settings
        current = load_scheduler_config(settings)
        updated = replace(
            current,
            enabled=current.enabled if enabled is None else enabled,
            interval_hours=current.interval_hours if interval_hours is None else interval_hours,
        )
        save_scheduler_config(settings, updated)
        uow.commit()
    log.info(
        "Automatic enrichment %s, interval=%sh",
        "enabled" if updated.enabled else "disabled",
        updated.interval_hours,
    )
    return updated


def configure_field_filter(
    media_type: MediaType,
    fields: Iterable[str] | None,
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    rule_tables: RuleTables | None = None,
) -> None:
    """Restrict enrichment of ``media_type`` to ``fields``; ``None`` lifts the restriction."""

    selected = set(fields) if fields is not None else None
    if selected is not None:
        table = (rule_tables or default_rule_tables()).get(media_type)
        known = set(table.field_names) if table is not None else set[str]()
        unknown = selected - known
        if unknown:
            raise ValueError(f"Unknown {media_type} fields: {', '.join(sorted(unknown))}")

    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        save_field_filter(uow.repositories.settings, media_type, selected)
        uow.commit()


def field_filters(
    *,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
) -> dict[MediaType, frozenset[str]]:
    with _unit_of_work_factory(unit_of_work_factory)() as uow:
        return load_field_filters(uow.repositories.settings)


def build_scheduler(
    *,
    sources: Mapping[MediaType, MetadataSource] | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    now_provider: Callable[[], datetime] | None = None,
) -> tuple[EnrichmentScheduler, datetime | None]:
    """Return a scheduler for the persisted schedule and the time of the last run."""

    effective_uow = _unit_of_work_factory(unit_of_work_factory)
    clock = now_provider or (lambda: datetime.now(UTC))

    def scheduled_enrichment() -> None:
        result = run_enrichment(sources=sources, unit_of_work_factory=effective_uow)
        with effective_uow() as uow:
            save_last_run(uow.repositories.settings, clock())
            uow.commit()
        log.info(
            "Scheduled enrichment finished: enriched=%s, updates=%s, failed=%s",
            result.enriched,
            result.updates,
            result.failed,
        )

    with effective_uow() as uow:
        config = load_scheduler_config(uow.repositories.settings)
        last_run_at = load_last_run(uow.repositories.settings)
    return EnrichmentScheduler(scheduled_enrichment, config), last_run_at
