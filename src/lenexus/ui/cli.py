from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from collections.abc import Mapping
from signal import SIGINT, signal
from typing import TYPE_CHECKING
from uuid import UUID

from dotenv import load_dotenv

from lenexus.app import (
    acknowledge_record_update,
    add_record,
    build_scheduler,
    configure_field_filter,
    configure_schedule,
    edit_record_field,
    field_filters,
    remove_record,
    run_enrichment,
    show_record,
)
from lenexus.config import configure_logging
from lenexus.domain.catalog import RecordNotFoundError
from lenexus.domain.model import MediaType, UnknownFieldError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from lenexus.domain.model import Record

log = logging.getLogger(__name__)

_SCHEDULER_POLL_SECONDS = 1.0


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage and enrich the Le Nexus catalog")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Add a record to the catalog")
    add.add_argument("--media-type", type=MediaType, choices=list(MediaType), required=True)
    add.add_argument("--title", type=str, required=True, help="Record title")
    add.add_argument(
        "--set",
        dest="values",
        action="append",
        default=[],
        metavar="FIELD=VALUE",
        help="Additional field value (JSON, falls back to plain text); repeatable",
    )

    edit = subparsers.add_parser("edit", help="Edit a field; the field becomes protected")
    edit.add_argument("record_id", type=str)
    edit.add_argument("field", type=str)
    edit.add_argument("value", type=str, help="New value (JSON, falls back to plain text)")

    show = subparsers.add_parser("show", help="Print a record as JSON")
    show.add_argument("record_id", type=str)

    delete = subparsers.add_parser("delete", help="Delete a record")
    delete.add_argument("record_id", type=str)

    ack = subparsers.add_parser("ack", help="Clear the update flag of a record")
    ack.add_argument("record_id", type=str)

    enrich = subparsers.add_parser("enrich", help="Enrich records from remote metadata")
    enrich.add_argument("--media-type", type=MediaType, choices=list(MediaType))
    enrich.add_argument(
        "--record-id",
        dest="record_ids",
        action="append",
        type=str,
        help="Only enrich this record; repeatable",
    )
    enrich.add_argument("--limit", type=int, help="Maximum number of records to enrich")
    enrich.add_argument(
        "--force",
        action="store_true",
        help="Re-enrich records that were enriched before",
    )
    enrich.add_argument(
        "--override-protection",
        action="store_true",
        help="Let enrichment overwrite fields the user edited",
    )

    schedule = subparsers.add_parser("schedule", help="Automatic enrichment")
    schedule_sub = schedule.add_subparsers(dest="schedule_command", required=True)
    schedule_set = schedule_sub.add_parser("set", help="Update the schedule")
    toggle = schedule_set.add_mutually_exclusive_group()
    toggle.add_argument("--enable", dest="enabled", action="store_true", default=None)
    toggle.add_argument("--disable", dest="enabled", action="store_false", default=None)
    schedule_set.add_argument("--interval-hours", type=int, help="Hours between runs")
    schedule_sub.add_parser("run", help="Run the scheduler in the foreground until Ctrl+C")

    fields = subparsers.add_parser("fields", help="Choose the fields enrichment may fill")
    fields.add_argument("--media-type", type=MediaType, choices=list(MediaType))
    fields_mode = fields.add_mutually_exclusive_group()
    fields_mode.add_argument(
        "--only",
        nargs="+",
        metavar="FIELD",
        help="Enrich only these fields of --media-type",
    )
    fields_mode.add_argument(
        "--all",
        dest="reset",
        action="store_true",
        help="Enrich every field of --media-type",
    )

    return parser.parse_args(list(argv))


def _parse_value(raw: str) -> object:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _parse_assignments(assignments: Sequence[str]) -> dict[str, object]:
    values: dict[str, object] = {}
    for assignment in assignments:
        name, separator, raw = assignment.partition("=")
        if not separator or not name.strip():
            raise ValueError(f"Expected FIELD=VALUE, got {assignment!r}")
        values[name.strip()] = _parse_value(raw)
    return values


def _parse_uuid(value: str) -> UUID:
    try:
        return UUID(value)
    except ValueError as exc:
        raise ValueError(f"Invalid UUID: {value}") from exc


def _validate(args: argparse.Namespace) -> None:
    if args.command == "add":
        args.values = {"title": args.title, **_parse_assignments(args.values)}
    elif args.command in {"edit", "show", "delete", "ack"}:
        args.record_id = _parse_uuid(args.record_id)
    elif args.command == "enrich":
        args.record_ids = [_parse_uuid(value) for value in args.record_ids or []] or None
        if args.limit is not None and args.limit < 1:
            raise ValueError("Limit must be positive")
    elif args.command == "schedule" and args.schedule_command == "set":
        if args.interval_hours is not None and args.interval_hours < 1:
            raise ValueError("Interval must be at least one hour")
    elif args.command == "fields" and (args.only or args.reset) and args.media_type is None:
        raise ValueError("--only/--all require --media-type")


def _record_to_json(record: Record) -> str:
    document = {
        "id": str(record.id),
        "media_type": record.media_type.value,
        "fields": dict(record.fields),
        "enriched_at": record.enriched_at.isoformat() if record.enriched_at else None,
        "user_modified_fields": sorted(record.user_modified_fields),
        "update_available": record.update_available,
    }
    return json.dumps(document, ensure_ascii=False, indent=2, default=_json_default)


def _json_default(value: object) -> object:
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, set | frozenset):
        return sorted(value, key=str)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _run_scheduler() -> None:
    scheduler, last_run_at = build_scheduler()
    if not scheduler.start(last_run_at=last_run_at):
        log.warning("Automatic enrichment is disabled; enable it with 'schedule set --enable'")
        return
    try:
        while True:
            time.sleep(_SCHEDULER_POLL_SECONDS)
    finally:
        scheduler.shutdown(wait=False)


def _print(text: str) -> None:
    sys.stdout.write(text + "\n")


def _dispatch(args: argparse.Namespace) -> None:
    if args.command == "add":
        record = add_record(args.media_type, args.values)
        _print(str(record.id))
    elif args.command == "edit":
        edit_record_field(args.record_id, args.field, _parse_value(args.value))
    elif args.command == "show":
        _print(_record_to_json(show_record(args.record_id)))
    elif args.command == "delete":
        remove_record(args.record_id)
    elif args.command == "ack":
        acknowledge_record_update(args.record_id)
    elif args.command == "enrich":
        result = run_enrichment(
            media_type=args.media_type,
            record_ids=args.record_ids,
            limit=args.limit,
            force=args.force,
            override_protection=args.override_protection,
        )
        log.info(
            "Enrichment finished: candidates=%s, enriched=%s, changed=%s, updates=%s, "
            "skipped=%s, failed=%s",
            result.candidates,
            result.enriched,
            result.changed,
            result.updates,
            result.skipped,
            result.failed,
        )
    elif args.command == "schedule" and args.schedule_command == "set":
        configure_schedule(enabled=args.enabled, interval_hours=args.interval_hours)
    elif args.command == "schedule" and args.schedule_command == "run":
        _run_scheduler()
    elif args.command == "fields":
        if args.only or args.reset:
            configure_field_filter(args.media_type, args.only if args.only else None)
        for media_type, names in sorted(field_filters().items()):
            _print(f"{media_type}: {', '.join(sorted(names))}")
    else:
        raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)
    try:
        _validate(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        _dispatch(parsed_args)
    except (RecordNotFoundError, UnknownFieldError):
        log.exception("CLI usage error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    """Console script entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
