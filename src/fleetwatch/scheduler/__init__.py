"""Scheduler subsystem for periodic monitoring sweeps."""

from fleetwatch.scheduler.jobs import DEFAULT_INTERVALS, get_interval, list_jobs
from fleetwatch.scheduler.runner import MonitoringScheduler, SchedulerError

__all__ = [
    "DEFAULT_INTERVALS",
    "MonitoringScheduler",
    "SchedulerError",
    "get_interval",
    "list_jobs",
]
