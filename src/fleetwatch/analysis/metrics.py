"""Metric primitives over asset event windows.

Leaf functions used by every analyzer. All durations are seconds and all
functions return finite numbers for empty input (availability defaults to
100, averages to 0, MTBF/MTTR to None).
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from fleetwatch.models.asset import Event

PERIOD_COUNT = 4
SECONDS_PER_DAY = 86400


@dataclass
class Period:
    """A half-open time window ``[start, end)`` and the events inside it."""

    start: datetime
    end: datetime
    events: List[Event] = field(default_factory=list)


@dataclass
class PerformanceMetrics:
    """Reliability metrics over a fixed window.

    Attributes:
        availability: Percentage of the window not lost to stops
        mtbf: Mean time between failures in hours (None without stops)
        mttr: Mean time to repair in minutes (None without stops)
        stop_frequency: Stops per day
    """

    availability: float
    mtbf: Optional[float]
    mttr: Optional[float]
    stop_frequency: float


def availability(runtime: float, downtime: float) -> float:
    """Runtime as a percentage of recorded time, 100 when nothing is recorded."""
    runtime = max(0.0, runtime or 0.0)
    downtime = max(0.0, downtime or 0.0)
    total = runtime + downtime
    if total <= 0:
        return 100.0
    return runtime / total * 100.0


def state_change_availability(events: Iterable[Event]) -> float:
    """Availability from STATE_CHANGE durations.

    Time after a change into RUNNING counts as runtime; any other new state
    counts as downtime.
    """
    runtime = 0.0
    downtime = 0.0
    for event in events:
        if not event.is_state_change:
            continue
        if event.new_state == "RUNNING":
            runtime += event.duration
        else:
            downtime += event.duration
    return availability(runtime, downtime)


def stop_events(events: Iterable[Event]) -> List[Event]:
    """Filter to STOP events."""
    return [e for e in events if e.is_stop]


def stop_count(events: Iterable[Event]) -> int:
    """Count STOP events."""
    return len(stop_events(events))


def average_stop_duration(events: Iterable[Event]) -> float:
    """Mean duration in seconds of STOP events that carry a duration."""
    durations = [e.duration for e in events if e.is_stop and e.duration > 0]
    if not durations:
        return 0.0
    return sum(durations) / len(durations)


def total_stop_duration(events: Iterable[Event]) -> float:
    """Sum of STOP durations in seconds."""
    return sum(e.duration for e in events if e.is_stop)


def events_since(events: Iterable[Event], cutoff: datetime) -> List[Event]:
    """Events at or after ``cutoff``."""
    return [e for e in events if e.timestamp >= cutoff]


def split_into_periods(
    events: Sequence[Event],
    period_days: int,
    now: datetime,
    count: int = PERIOD_COUNT,
) -> List[Period]:
    """Split events into ``count`` consecutive periods ending at ``now``.

    Periods are returned oldest first. An event exactly on a boundary
    belongs to the later period.
    """
    span = timedelta(days=period_days)
    periods: List[Period] = []
    for i in range(count):
        end = now - span * i
        start = end - span
        in_period = [e for e in events if start <= e.timestamp < end]
        periods.insert(0, Period(start=start, end=end, events=in_period))
    return periods


def trend_slope(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` over x = 0..n-1."""
    n = len(values)
    if n < 2:
        return 0.0
    sum_x = n * (n - 1) / 2
    sum_y = sum(values)
    sum_xy = sum(i * v for i, v in enumerate(values))
    sum_x2 = sum(i * i for i in range(n))
    denominator = n * sum_x2 - sum_x * sum_x
    return (n * sum_xy - sum_x * sum_y) / denominator


def group_by_day(events: Iterable[Event]) -> Dict[date, int]:
    """Count events per UTC calendar day."""
    counts: Dict[date, int] = Counter(e.timestamp.date() for e in events)
    return dict(sorted(counts.items()))


def window_availability(events: Sequence[Event], window_seconds: float) -> float:
    """Share of a fixed window not lost to stops.

    Used by the live availability sweep: 100 when there are no events,
    never negative when stops overrun the window.
    """
    if not events or window_seconds <= 0:
        return 100.0
    downtime = total_stop_duration(events)
    return max(0.0, (window_seconds - downtime) / window_seconds * 100.0)


def performance_metrics(events: Sequence[Event], window_days: float) -> PerformanceMetrics:
    """MTBF, MTTR, stop frequency and availability over ``window_days``."""
    stops = stop_events(events)
    total_time = window_days * SECONDS_PER_DAY
    downtime = total_stop_duration(stops)
    uptime = max(0.0, total_time - downtime)

    if stops:
        mtbf: Optional[float] = uptime / len(stops) / 3600.0
        mttr: Optional[float] = downtime / len(stops) / 60.0
    else:
        mtbf = None
        mttr = None

    return PerformanceMetrics(
        availability=window_availability(events, total_time) if stops else 100.0,
        mtbf=mtbf,
        mttr=mttr,
        stop_frequency=len(stops) / window_days if window_days > 0 else 0.0,
    )
