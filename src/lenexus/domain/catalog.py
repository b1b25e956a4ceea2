"""Record lifecycle: creation, user edits and deletion."""

from __future__ import annotations

from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING

from lenexus.domain.model import Record, edit_field

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from uuid import UUID

    from lenexus.domain.model import MediaType
    from lenexus.domain.policy import RuleTable
    from lenexus.domain.ports import CatalogUnitOfWork

log = getLogger(__name__)


class RecordNotFoundError(LookupError):
    """Raised when a record id does not exist in the catalog."""

    def __init__(self, record_id: UUID) -> None:
        super().__init__(f"Record {record_id} not found")
        self.record_id = record_id


def create_record(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    media_type: MediaType,
    values: Mapping[str, object],
    *,
    rules: RuleTable | None = None,
) -> Record:
    """Create and store a record (manual entry or import)."""

    field_names = rules.field_names if rules is not None else ()
    record = Record.create(media_type, values, field_names=field_names)
    with unit_of_work_factory() as uow:
        uow.repositories.records.add(record)
        uow.commit()
    log.info("Created %s record %s", media_type, record.id)
    return record


def get_record(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    record_id: UUID,
) -> Record:
    with unit_of_work_factory() as uow:
        record = uow.repositories.records.get(record_id)
    if record is None:
        raise RecordNotFoundError(record_id)
    return record


def edit_record(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    record_id: UUID,
    field_name: str,
    value: object,
) -> Record:
    """Apply a user edit; the edited field becomes protected from enrichment."""

    with unit_of_work_factory() as uow:
        repository = uow.repositories.records
        current = repository.get(record_id)
        if current is None:
            raise RecordNotFoundError(record_id)
        edited = edit_field(current, field_name, value)
        repository.update(edited)
        uow.commit()
    log.info("Record %s: user edited %s", record_id, field_name)
    return edited


def delete_record(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    record_id: UUID,
) -> None:
    with unit_of_work_factory() as uow:
        repository = uow.repositories.records
        if repository.get(record_id) is None:
            raise RecordNotFoundError(record_id)
        repository.remove(record_id)
        uow.commit()
    log.info("Deleted record %s", record_id)


def acknowledge_update(
    unit_of_work_factory: Callable[[], CatalogUnitOfWork],
    record_id: UUID,
) -> Record:
    """Clear the update flag once the user has seen the new content."""

    with unit_of_work_factory() as uow:
        repository = uow.repositories.records
        current = repository.get(record_id)
        if current is None:
            raise RecordNotFoundError(record_id)
        if not current.update_available:
            return current
        acknowledged = replace(current, update_available=False)
        repository.update(acknowledged)
        uow.commit()
    log.info("Record %s: update acknowledged", record_id)
    return acknowledged
