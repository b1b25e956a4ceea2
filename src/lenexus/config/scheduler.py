"""Automatic enrichment schedule, persisted in the settings store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Final

from .errors import ConfigurationError

if TYPE_CHECKING:
    from lenexus.domain.ports import SettingsRepository

ENABLED_KEY: Final[str] = "enrichment.auto_enabled"
INTERVAL_KEY: Final[str] = "enrichment.interval_hours"
LAST_RUN_KEY: Final[str] = "enrichment.last_run_at"
DEFAULT_INTERVAL_HOURS: Final[int] = 6


@dataclass(frozen=True, slots=True)
class SchedulerConfig:
    enabled: bool = False
    interval_hours: int = DEFAULT_INTERVAL_HOURS

    def __post_init__(self) -> None:
        if isinstance(self.interval_hours, bool) or not isinstance(self.interval_hours, int):
            raise ConfigurationError(f"Invalid enrichment interval: {self.interval_hours!r}")
        if self.interval_hours < 1:
            raise ConfigurationError("Enrichment interval must be at least one hour")


def load_scheduler_config(settings: SettingsRepository) -> SchedulerConfig:
    """Read the schedule once; callers pass the result to the scheduler."""

    enabled = settings.get(ENABLED_KEY, False)
    interval = settings.get(INTERVAL_KEY, DEFAULT_INTERVAL_HOURS)
    if not isinstance(enabled, bool):
        raise ConfigurationError(f"Invalid value for {ENABLED_KEY}: {enabled!r}")
    if isinstance(interval, bool) or not isinstance(interval, int):
        raise ConfigurationError(f"Invalid value for {INTERVAL_KEY}: {interval!r}")
    return SchedulerConfig(enabled=enabled, interval_hours=interval)


def save_scheduler_config(settings: SettingsRepository, config: SchedulerConfig) -> None:
    settings.set(ENABLED_KEY, config.enabled)
    settings.set(INTERVAL_KEY, config.interval_hours)


def load_last_run(settings: SettingsRepository) -> datetime | None:
    value = settings.get(LAST_RUN_KEY)
    if not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    # stored values without an offset are UTC
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=UTC)


def save_last_run(settings: SettingsRepository, when: datetime) -> None:
    settings.set(LAST_RUN_KEY, when.isoformat())
