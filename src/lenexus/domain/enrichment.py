"""Domain services for enrichment workflows."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Final

from lenexus.domain.model import RESERVED_FIELD_NAMES, freeze_value, is_protected
from lenexus.domain.policy import MergeRule, is_empty

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from lenexus.domain.model import Record
    from lenexus.domain.policy import RuleTable

log = getLogger(__name__)

TRACKED_COUNT_FIELDS: Final[tuple[str, ...]] = ("chapter_count", "volume_count", "episode_count")
TRACKED_STATUS_FIELD: Final[str] = "publication_status"


def merge_enrichment(
    record: Record,
    payload: Mapping[str, object],
    rules: RuleTable,
    *,
    force: bool = False,
) -> Record:
    """Compute the next record state from an enrichment payload.

    Each payload field is decided on its own:

    - protected fields (edited by the user) keep their value, unless ``force``;
    - ``fill_if_empty`` fields accept the incoming value only when empty;
    - ``always_accept`` fields accept any non-empty incoming value.

    Empty incoming values never overwrite anything. Unknown names, reserved keys
    and values of the wrong type are ignored. Overwritten fields lose their
    protection. The input record is left untouched.
    """

    accepted: dict[str, object] = {}
    for name, incoming in payload.items():
        if not _is_mergeable_field(record, rules, name, incoming):
            continue
        if is_protected(record, name) and not force:
            log.debug("Record %s: keeping user-edited field %s", record.id, name)
            continue
        if is_empty(incoming):
            continue
        if rules.rule_for(name).rule == MergeRule.FILL_IF_EMPTY and not is_empty(record.get(name)):
            continue
        accepted[name] = incoming

    changed = {
        name: value
        for name, value in accepted.items()
        if not record.knows(name) or record[name] != freeze_value(value)
    }
    if not changed:
        return record
    return replace(
        record.with_fields(changed),
        user_modified_fields=record.user_modified_fields - frozenset(changed),
    )


def stamp_enriched(record: Record, now: datetime) -> Record:
    """Record that an enrichment pass ran, whether or not anything changed."""

    if record.enriched_at is not None and record.enriched_at > now:
        return record
    return replace(record, enriched_at=now)


def needs_enrichment(record: Record) -> bool:
    return record.enriched_at is None


def select_enrichment_candidates(
    records: Iterable[Record],
    *,
    force: bool = False,
) -> list[Record]:
    """Select records an enrichment pass should visit."""

    if force:
        return list(records)
    return [record for record in records if needs_enrichment(record)]


def changed_fields(before: Record, after: Record) -> tuple[str, ...]:
    """Return the names of fields whose values differ between two snapshots."""

    names = dict.fromkeys([*before.fields, *after.fields])
    return tuple(name for name in names if before.get(name) != after.get(name))


def _is_mergeable_field(
    record: Record,
    rules: RuleTable,
    name: str,
    incoming: object,
) -> bool:
    if name in RESERVED_FIELD_NAMES:
        log.debug("Record %s: ignoring reserved payload key %s", record.id, name)
        return False
    if not (record.knows(name) or rules.knows(name)):
        log.debug("Record %s: ignoring unknown payload field %s", record.id, name)
        return False
    if incoming is not None and not rules.accepts_type(name, incoming):
        log.debug(
            "Record %s: ignoring %s value of type %s",
            record.id,
            name,
            type(incoming).__name__,
        )
        return False
    return True


def detect_updates(record: Record, payload: Mapping[str, object]) -> tuple[str, ...]:
    """Return the tracked fields for which the source reports newer content.

    A count signals an update when the source value is larger than a non-empty
    stored count. The status signals one when it differs from a non-empty
    stored status. Filling an empty field is not an update, and the comparison
    uses the payload so user-edited fields still raise the signal.
    """

    signals: list[str] = []
    for name in TRACKED_COUNT_FIELDS:
        current, incoming = record.get(name), payload.get(name)
        if not _is_count(current) or not _is_count(incoming):
            continue
        if incoming > current:  # type: ignore[operator]
            signals.append(name)

    current_status = record.get(TRACKED_STATUS_FIELD)
    incoming_status = payload.get(TRACKED_STATUS_FIELD)
    if not is_empty(current_status) and not is_empty(incoming_status):
        if incoming_status != current_status:
            signals.append(TRACKED_STATUS_FIELD)
    return tuple(signals)


def _is_count(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)
