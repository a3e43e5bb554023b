"""Periodic monitoring sweeps using APScheduler."""

from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional

import structlog
from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_MAX_INSTANCES
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.schedulers.blocking import BlockingScheduler

from fleetwatch.scheduler.jobs import (
    AVAILABILITY_SWEEP,
    DEFAULT_INTERVALS,
    DOWNTIME_SWEEP,
    HISTORY_CLEANUP,
    PERFORMANCE_SWEEP,
)

if TYPE_CHECKING:
    from fleetwatch.alerts.monitor import AlertMonitor

log = structlog.get_logger()


class SchedulerError(Exception):
    """Raised when scheduler configuration fails."""

    pass


class MonitoringScheduler:
    """APScheduler-based runner for the monitoring sweeps.

    Every sweep is its own interval job. Jobs are single-flight: a firing
    that would overlap a still-running instance of the same job is skipped
    and logged, and missed firings are coalesced into one.

    Supports:
    - Blocking mode (the service's main loop)
    - Background mode (embedding in another process)
    - Configurable timezone and per-job intervals
    """

    def __init__(
        self,
        timezone: str = "UTC",
        blocking: bool = True,
        misfire_grace_time: int = 60,
    ) -> None:
        """Initialize scheduler.

        Args:
            timezone: IANA timezone for the scheduler
            blocking: Run in the calling thread (True) or a background thread
            misfire_grace_time: Seconds after the scheduled time to still run a missed job
        """
        self.timezone = timezone
        self.blocking = blocking
        self.misfire_grace_time = misfire_grace_time
        self._scheduler: Optional[BaseScheduler] = None

    @property
    def running(self) -> bool:
        """Whether the underlying scheduler is running."""
        return bool(self._scheduler and self._scheduler.running)

    def _create_scheduler(self) -> BaseScheduler:
        """Create configured scheduler."""
        job_defaults = {
            "coalesce": True,  # Combine missed runs into one
            "misfire_grace_time": self.misfire_grace_time,
            "max_instances": 1,  # Prevent concurrent runs
        }
        scheduler_cls = BlockingScheduler if self.blocking else BackgroundScheduler
        scheduler = scheduler_cls(timezone=self.timezone, job_defaults=job_defaults)

        def on_job_error(event: Any) -> None:
            log.error("job_failed", job_id=event.job_id, error=str(event.exception))

        def on_max_instances(event: Any) -> None:
            log.warning("sweep_skipped", job_id=event.job_id, reason="previous run still active")

        scheduler.add_listener(on_job_error, EVENT_JOB_ERROR)
        scheduler.add_listener(on_max_instances, EVENT_JOB_MAX_INSTANCES)
        return scheduler

    def add_interval_job(self, func: Callable[[], Any], job_id: str, seconds: int) -> None:
        """Schedule ``func`` every ``seconds``.

        Raises:
            SchedulerError: If the interval is not positive
        """
        if seconds <= 0:
            raise SchedulerError(f"Interval for '{job_id}' must be positive, got {seconds}")

        if self._scheduler is None:
            self._scheduler = self._create_scheduler()

        self._scheduler.add_job(func, "interval", seconds=seconds, id=job_id, replace_existing=True)
        log.info("job_scheduled", job_id=job_id, interval_seconds=seconds, timezone=self.timezone)

    def schedule_monitor(
        self,
        monitor: "AlertMonitor",
        intervals: Optional[Mapping[str, int]] = None,
    ) -> None:
        """Schedule every monitoring sweep.

        Args:
            monitor: AlertMonitor whose sweeps to run
            intervals: Overrides of DEFAULT_INTERVALS by job id

        Raises:
            SchedulerError: If an override names an unknown job or a bad interval
        """
        overrides = dict(intervals or {})
        unknown = set(overrides) - set(DEFAULT_INTERVALS)
        if unknown:
            available = ", ".join(DEFAULT_INTERVALS)
            raise SchedulerError(f"Unknown job(s): {', '.join(sorted(unknown))}. Available: {available}")

        resolved: Dict[str, int] = {**DEFAULT_INTERVALS, **overrides}
        jobs: Dict[str, Callable[[], Any]] = {
            AVAILABILITY_SWEEP: monitor.check_availability_alerts,
            DOWNTIME_SWEEP: monitor.check_downtime_alerts,
            PERFORMANCE_SWEEP: monitor.check_performance_alerts,
            HISTORY_CLEANUP: monitor.cleanup_history,
        }
        for job_id, func in jobs.items():
            self.add_interval_job(func, job_id, resolved[job_id])

    def start(self) -> None:
        """Start the scheduler.

        In blocking mode this returns only after shutdown or an interrupt.

        Raises:
            SchedulerError: If no jobs have been scheduled
        """
        if self._scheduler is None:
            raise SchedulerError("No jobs scheduled")

        log.info("scheduler_starting", timezone=self.timezone, blocking=self.blocking)
        try:
            self._scheduler.start()
        except KeyboardInterrupt:
            log.info("scheduler_shutdown", reason="keyboard interrupt")

    def shutdown(self, wait: bool = True) -> None:
        """Gracefully shutdown the scheduler.

        Args:
            wait: Wait for running sweeps to finish
        """
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
            log.info("scheduler_shutdown", reason="explicit shutdown")
