"""Periodic enrichment runs on an APScheduler background thread."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING, Final

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

if TYPE_CHECKING:
    from collections.abc import Callable

    from apscheduler.schedulers.base import BaseScheduler

    from lenexus.config.scheduler import SchedulerConfig

log = getLogger(__name__)

JOB_ID: Final[str] = "lenexus-enrichment"


def is_due(last_run_at: datetime | None, config: SchedulerConfig, now: datetime) -> bool:
    """Whether a run is owed: never ran, or the last run is an interval old."""

    if last_run_at is None:
        return True
    return now - last_run_at >= timedelta(hours=config.interval_hours)


def next_run_at(last_run_at: datetime | None, config: SchedulerConfig, now: datetime) -> datetime:
    if last_run_at is None or is_due(last_run_at, config, now):
        return now
    return last_run_at + timedelta(hours=config.interval_hours)


class EnrichmentScheduler:
    """Invoke ``callback`` every ``config.interval_hours`` while enabled.

    The configuration is handed in at construction and on ``reconfigure``;
    the scheduler never reads settings on its own. A tick that arrives while a
    run is still in progress (scheduled or manual) is skipped.
    """

    def __init__(
        self,
        callback: Callable[[], object],
        config: SchedulerConfig,
        *,
        scheduler: BaseScheduler | None = None,
    ) -> None:
        self._callback = callback
        self._config = config
        self._scheduler = scheduler or BackgroundScheduler(daemon=True, timezone=UTC)
        self._run_lock = threading.Lock()

    @property
    def config(self) -> SchedulerConfig:
        return self._config

    @property
    def is_scheduled(self) -> bool:
        return self._scheduler.get_job(JOB_ID) is not None

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def next_run_time(self) -> datetime | None:
        job = self._scheduler.get_job(JOB_ID)
        return job.next_run_time if job is not None else None

    def start(self, *, last_run_at: datetime | None = None, now: datetime | None = None) -> bool:
        """Schedule the periodic job; returns ``False`` when disabled.

        When a run is already owed (see ``is_due``) the first tick fires
        immediately, otherwise one interval after ``last_run_at``.
        """

        self.stop()
        if not self._config.enabled:
            log.info("Automatic enrichment disabled")
            return False

        current = now or datetime.now(UTC)
        first_run = next_run_at(last_run_at, self._config, current)
        self._scheduler.add_job(
            self.run_now,
            trigger=IntervalTrigger(hours=self._config.interval_hours, timezone=UTC),
            id=JOB_ID,
            name="Automatic enrichment",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            next_run_time=first_run,
        )
        if not self._scheduler.running:
            self._scheduler.start()
        log.info(
            "Automatic enrichment every %sh, next run at %s",
            self._config.interval_hours,
            first_run.isoformat(),
        )
        return True

    def stop(self) -> None:
        if self._scheduler.get_job(JOB_ID) is not None:
            self._scheduler.remove_job(JOB_ID)
            log.info("Automatic enrichment stopped")

    def reconfigure(
        self,
        config: SchedulerConfig,
        *,
        last_run_at: datetime | None = None,
        now: datetime | None = None,
    ) -> bool:
        self._config = config
        return self.start(last_run_at=last_run_at, now=now)

    def shutdown(self, *, wait: bool = True) -> None:
        self.stop()
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)

    def run_now(self) -> bool:
        """Run the callback on the calling thread; ``False`` if a run is in progress."""

        if not self._run_lock.acquire(blocking=False):
            log.info("Enrichment run already in progress, skipping")
            return False
        try:
            self._callback()
        finally:
            self._run_lock.release()
        return True
