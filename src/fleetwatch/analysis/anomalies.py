"""Anomaly and degradation detection for a single asset's event window."""

from typing import List, Optional, Sequence

from fleetwatch.analysis.metrics import (
    average_stop_duration,
    group_by_day,
    split_into_periods,
    stop_count,
    stop_events,
    trend_slope,
)
from fleetwatch.analysis.thresholds import (
    DEFAULT_ANALYTICS_THRESHOLDS,
    AnalyticsThresholds,
)
from fleetwatch.models.asset import Event
from fleetwatch.models.enums import Level
from fleetwatch.models.insight import Anomaly, DegradationIndicator
from fleetwatch.utils.clock import Clock, utc_now

DURATION_ANOMALY_FACTOR = 3
FREQUENCY_ANOMALY_FACTOR = 2
WEEKLY_PERIOD_DAYS = 7
DEGRADATION_SLOPE = 0.5


class AnomalyDetector:
    """Flags unusually long stops and unusually busy days."""

    def detect(self, recent_events: Sequence[Event]) -> List[Anomaly]:
        """Detect anomalies in an asset's window.

        Args:
            recent_events: The asset's events inside the analysis window

        Returns:
            UNUSUAL_STOP_DURATION anomalies (HIGH) in event order, followed by
            HIGH_STOP_FREQUENCY anomalies (MEDIUM) in date order
        """
        stops = stop_events(recent_events)
        if not stops:
            return []

        anomalies: List[Anomaly] = []
        avg_duration = average_stop_duration(stops)

        for stop in stops:
            if stop.duration > avg_duration * DURATION_ANOMALY_FACTOR:
                anomalies.append(
                    Anomaly(
                        type="UNUSUAL_STOP_DURATION",
                        timestamp=stop.timestamp.isoformat(),
                        description=(
                            f"Stop duration of {round(stop.duration / 60)} minutes is "
                            f"significantly longer than average"
                        ),
                        severity=Level.HIGH,
                        value=stop.duration,
                    )
                )

        daily = group_by_day(stops)
        avg_daily = sum(daily.values()) / len(daily)
        for day, count in daily.items():
            if count > avg_daily * FREQUENCY_ANOMALY_FACTOR:
                anomalies.append(
                    Anomaly(
                        type="HIGH_STOP_FREQUENCY",
                        timestamp=day.isoformat(),
                        description=(
                            f"{count} stops detected on {day.isoformat()}, significantly "
                            f"above average of {round(avg_daily)}"
                        ),
                        severity=Level.MEDIUM,
                        value=float(count),
                    )
                )

        return anomalies


class DegradationDetector:
    """Looks for rising stop frequency and low health."""

    def __init__(
        self,
        thresholds: Optional[AnalyticsThresholds] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._thresholds = thresholds or DEFAULT_ANALYTICS_THRESHOLDS
        self._clock = clock

    def identify(
        self,
        health_score: float,
        recent_events: Sequence[Event],
    ) -> List[DegradationIndicator]:
        """Identify degradation indicators.

        Args:
            health_score: The asset's current health score
            recent_events: The asset's events inside the analysis window

        Returns:
            List of DegradationIndicator, possibly empty
        """
        indicators: List[DegradationIndicator] = []

        weeks = split_into_periods(recent_events, WEEKLY_PERIOD_DAYS, self._clock())
        slope = trend_slope([stop_count(w.events) for w in weeks])
        if slope > DEGRADATION_SLOPE:
            indicators.append(
                DegradationIndicator(
                    type="INCREASING_STOP_FREQUENCY",
                    description="Stop frequency is increasing over time",
                    severity=Level.MEDIUM,
                    trend_slope=slope,
                )
            )

        if health_score < self._thresholds.warning_availability:
            severity = (
                Level.HIGH
                if health_score < self._thresholds.critical_availability
                else Level.MEDIUM
            )
            indicators.append(
                DegradationIndicator(
                    type="DECLINING_AVAILABILITY",
                    description=(
                        f"Asset availability ({health_score:.1f}%) is below warning threshold"
                    ),
                    severity=severity,
                    current_value=health_score,
                )
            )

        return indicators
