"""Periodic sweep of idle reputation records.

The engine never schedules itself; ``SweepScheduler`` is the optional
collaborator that calls ``AdmissionEngine.sweep()`` on an interval using an
APScheduler background scheduler.
"""

from __future__ import annotations

from datetime import UTC, datetime

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from admission_guard.engine.engine import AdmissionEngine
from admission_guard.utils.logging_config import get_logger

_log = get_logger(__name__, component="sweeper")

SWEEP_JOB_ID = "admission_sweep"


class SweepScheduler:
    """Run ``engine.sweep()`` every ``interval_seconds`` in a background thread."""

    def __init__(
        self,
        engine: AdmissionEngine,
        *,
        interval_seconds: float | None = None,
        retention_seconds: float | None = None,
    ):
        self.engine = engine
        settings = engine.config.settings
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.sweep_interval_seconds
        )
        self.retention_seconds = retention_seconds
        self.last_removed: int | None = None
        self.scheduler = BackgroundScheduler(
            executors={"default": ThreadPoolExecutor(max_workers=1)},
            job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 60},
            timezone=UTC,
        )

    @property
    def running(self) -> bool:
        return bool(self.scheduler.running)

    def start(self) -> None:
        if self.running:
            return
        self.scheduler.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=UTC),
            id=SWEEP_JOB_ID,
            replace_existing=True,
        )
        self.scheduler.start()
        _log.info(
            "Sweep scheduler started",
            event="admission.sweep.scheduler_started",
            interval_seconds=self.interval_seconds,
        )

    def stop(self, wait: bool = True) -> None:
        if not self.running:
            return
        self.scheduler.shutdown(wait=wait)
        _log.info("Sweep scheduler stopped", event="admission.sweep.scheduler_stopped")

    def next_run_time(self) -> datetime | None:
        job = self.scheduler.get_job(SWEEP_JOB_ID)
        return getattr(job, "next_run_time", None) if job else None

    def run_once(self) -> int:
        try:
            removed = self.engine.sweep(self.retention_seconds)
        except Exception as exc:
            _log.error(
                "Scheduled sweep failed",
                event="admission.sweep.failed",
                error=str(exc),
                exc_info=True,
            )
            raise
        self.last_removed = removed
        return removed
