"""Monitoring job definitions."""

from typing import Dict, List, Optional

AVAILABILITY_SWEEP = "availability_sweep"
DOWNTIME_SWEEP = "downtime_sweep"
PERFORMANCE_SWEEP = "performance_sweep"
HISTORY_CLEANUP = "history_cleanup"

# Job id -> default interval in seconds
DEFAULT_INTERVALS: Dict[str, int] = {
    AVAILABILITY_SWEEP: 300,
    DOWNTIME_SWEEP: 60,
    PERFORMANCE_SWEEP: 600,
    HISTORY_CLEANUP: 3600,
}


def get_interval(name: str) -> Optional[int]:
    """Get the default interval for a job.

    Args:
        name: Job id (e.g., 'downtime_sweep')

    Returns:
        Interval in seconds, or None if the job is unknown
    """
    return DEFAULT_INTERVALS.get(name)


def list_jobs() -> List[str]:
    """List known job ids."""
    return list(DEFAULT_INTERVALS.keys())
