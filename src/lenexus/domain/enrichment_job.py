"""Application service running enrichment passes over stored records."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING

from lenexus.domain.enrichment import (
    changed_fields,
    detect_updates,
    merge_enrichment,
    needs_enrichment,
    select_enrichment_candidates,
    stamp_enriched,
)
from lenexus.domain.policy import RuleTable
from lenexus.domain.ports.metadata import MetadataSourceError
from lenexus.domain.single_flight import RecordGate

if TYPE_CHECKING:
    from collections.abc import Callable, Collection, Iterable, Mapping
    from uuid import UUID

    from lenexus.domain.model import MediaType, Record
    from lenexus.domain.policy import RuleTables
    from lenexus.domain.ports import CatalogUnitOfWork, EnrichmentPayload, MetadataSource

log = getLogger(__name__)


@dataclass(slots=True)
class EnrichmentRunResult:
    """Outcome of one enrichment run."""

    candidates: int = 0
    enriched: int = 0
    changed: int = 0
    skipped: int = 0
    failed: int = 0
    updates: int = 0


def _utcnow() -> datetime:
    return datetime.now(UTC)


def enrich_records(
    *,
    sources: Mapping[MediaType, MetadataSource],
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    rule_tables: RuleTables,
    gate: RecordGate | None = None,
    media_type: MediaType | None = None,
    record_ids: Iterable[UUID] | None = None,
    limit: int | None = None,
    force: bool = False,
    override_protection: bool = False,
    field_filter: Mapping[MediaType, Collection[str]] | None = None,
    now_provider: Callable[[], datetime] = _utcnow,
) -> EnrichmentRunResult:
    """Fetch metadata for candidate records, merge it and persist the result.

    Records already enriched are skipped unless ``force``. ``override_protection``
    lets the merge overwrite user-edited fields. A record whose pass is already
    in flight (per ``gate``) is skipped, as is a record with no source for its
    media type, or one enriched by another pass after candidates were selected.
    Source failures are counted and leave the record unstamped. Records whose
    tracked counts grew or whose status changed are flagged ``update_available``.
    """

    active_gate = gate or RecordGate()
    ids = list(record_ids) if record_ids is not None else None

    with unit_of_work_factory() as uow:
        stored = uow.repositories.records.query(
            media_type=media_type,
            only_unenriched=not force,
            ids=ids,
            limit=limit,
        )
        candidates = select_enrichment_candidates(stored, force=force)

    result = EnrichmentRunResult(candidates=len(candidates))
    log.info(
        "Starting enrichment: candidates=%s, media_type=%s, force=%s",
        len(candidates),
        media_type,
        force,
    )

    for record in candidates:
        with active_gate.acquire(record.id) as owned:
            if not owned:
                log.info("Record %s: enrichment already in progress, skipping", record.id)
                result.skipped += 1
                continue
            _enrich_one(
                record,
                sources=sources,
                unit_of_work_factory=unit_of_work_factory,
                rule_tables=rule_tables,
                force=force,
                override_protection=override_protection,
                allowed_fields=(field_filter or {}).get(record.media_type),
                now_provider=now_provider,
                result=result,
            )

    log.info(
        "Finished enrichment: enriched=%s, changed=%s, updates=%s, skipped=%s, failed=%s",
        result.enriched,
        result.changed,
        result.updates,
        result.skipped,
        result.failed,
    )
    return result


def _enrich_one(
    record: Record,
    *,
    sources: Mapping[MediaType, MetadataSource],
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    rule_tables: RuleTables,
    force: bool,
    override_protection: bool,
    allowed_fields: Collection[str] | None,
    now_provider: Callable[[], datetime],
    result: EnrichmentRunResult,
) -> None:
    with unit_of_work_factory() as uow:
        latest = uow.repositories.records.get(record.id)
    if latest is None:
        log.info("Record %s was deleted before enrichment", record.id)
        result.skipped += 1
        return
    if not force and not needs_enrichment(latest):
        log.info("Record %s was enriched by another pass, skipping", record.id)
        result.skipped += 1
        return
    record = latest

    source = sources.get(record.media_type)
    if source is None:
        log.debug("Record %s: no metadata source for %s", record.id, record.media_type)
        result.skipped += 1
        return

    try:
        payload = source(record)
    except MetadataSourceError as exc:
        log.warning("Record %s: metadata fetch failed: %s", record.id, exc)
        result.failed += 1
        return

    payload = _restrict_payload(payload, allowed_fields)
    rules = rule_tables.get(record.media_type) or RuleTable(record.media_type)

    with unit_of_work_factory() as uow:
        repository = uow.repositories.records
        current = repository.get(record.id)
        if current is None:
            log.info("Record %s was deleted during enrichment", record.id)
            result.skipped += 1
            return
        merged = merge_enrichment(current, payload, rules, force=override_protection)
        updates = detect_updates(current, payload)
        if updates:
            merged = replace(merged, update_available=True)
        repository.update(stamp_enriched(merged, now_provider()))
        uow.commit()

    changes = changed_fields(current, merged)
    result.enriched += 1
    if changes:
        result.changed += 1
    if updates:
        result.updates += 1
        log.info("Record %s has new content: %s", record.id, ", ".join(updates))
    log.info("Record %s enriched: changed=%s", record.id, ", ".join(changes) or "-")


def _restrict_payload(
    payload: EnrichmentPayload,
    allowed_fields: Collection[str] | None,
) -> EnrichmentPayload:
    if allowed_fields is None:
        return payload
    return {name: value for name, value in payload.items() if name in allowed_fields}
