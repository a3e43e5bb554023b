"""Health scoring, risk classification and failure prediction.

The health score is a cascading blend: each factor re-weights the already
blended running score, so the order of the steps below changes the result
and must not be rearranged into a flat weighted average.
"""

from datetime import datetime, timedelta
from typing import Optional, Sequence

from fleetwatch.analysis.metrics import (
    availability,
    average_stop_duration,
    events_since,
    state_change_availability,
    stop_count,
)
from fleetwatch.analysis.thresholds import (
    DEFAULT_ANALYTICS_THRESHOLDS,
    AnalyticsThresholds,
)
from fleetwatch.models.asset import Asset, Event
from fleetwatch.models.enums import RiskLevel
from fleetwatch.utils.clock import Clock, utc_now

RECENT_WINDOW_DAYS = 7

# (exclusive upper bound, tier), checked in order
_RISK_TIERS = (
    (60.0, RiskLevel.CRITICAL),
    (75.0, RiskLevel.HIGH),
    (85.0, RiskLevel.MEDIUM),
)


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` into ``[low, high]``."""
    return max(low, min(high, value))


def classify_risk(health_score: float) -> RiskLevel:
    """Map a health score onto a risk tier.

    Lower bounds are inclusive for the better tier: 60.0 is HIGH, 85.0 is LOW.
    """
    for upper, tier in _RISK_TIERS:
        if health_score < upper:
            return tier
    return RiskLevel.LOW


class HealthScorer:
    """Scores assets and turns scores into failure predictions.

    Stateless apart from its thresholds and clock; every call recomputes
    from the events it is given.
    """

    def __init__(
        self,
        thresholds: Optional[AnalyticsThresholds] = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the scorer.

        Args:
            thresholds: Custom thresholds. Defaults to DEFAULT_ANALYTICS_THRESHOLDS.
            clock: Source of "now" for the trailing recent-availability window
                and maintenance dates.
        """
        self._thresholds = thresholds or DEFAULT_ANALYTICS_THRESHOLDS
        self._clock = clock

    @property
    def thresholds(self) -> AnalyticsThresholds:
        """Get the active thresholds."""
        return self._thresholds

    def compute_health_score(self, asset: Asset, recent_events: Sequence[Event]) -> float:
        """Compute the 0-100 health score for an asset.

        Args:
            asset: Asset with cumulative runtime/downtime counters
            recent_events: The asset's events inside the analysis window

        Returns:
            Health score clamped to [0, 100]
        """
        score = 100.0

        availability_score = availability(asset.runtime, asset.downtime)
        score = score * 0.6 + availability_score * 0.4

        stop_frequency_score = max(0.0, 100.0 - stop_count(recent_events) * 5)
        score = score * 0.7 + stop_frequency_score * 0.3

        stop_duration_score = max(0.0, 100.0 - average_stop_duration(recent_events) / 60.0)
        score = score * 0.8 + stop_duration_score * 0.2

        cutoff = self._clock() - timedelta(days=RECENT_WINDOW_DAYS)
        recent_availability = state_change_availability(events_since(recent_events, cutoff))
        score = score * 0.9 + recent_availability * 0.1

        return clamp(score, 0.0, 100.0)

    def failure_probability(self, health_score: float, recent_events: Sequence[Event]) -> float:
        """Estimate failure probability from the score and stop behaviour.

        Args:
            health_score: Score from compute_health_score
            recent_events: The asset's events inside the analysis window

        Returns:
            Probability clamped to [0, 1]
        """
        probability = (100.0 - health_score) / 100.0

        if stop_count(recent_events) > self._thresholds.high_frequency_stops:
            probability += 0.2

        if average_stop_duration(recent_events) > self._thresholds.max_stop_duration:
            probability += 0.15

        return clamp(probability, 0.0, 1.0)

    def predict_maintenance_date(self, failure_probability: float) -> datetime:
        """Suggest when the asset should next be serviced.

        Args:
            failure_probability: Probability from failure_probability

        Returns:
            UTC datetime between 1 and 90 days from now
        """
        if failure_probability > 0.8:
            days = 1.0
        elif failure_probability > 0.6:
            days = 7.0
        elif failure_probability > 0.4:
            days = 30.0
        else:
            days = max(30.0, 90.0 - 90.0 * failure_probability)
        return self._clock() + timedelta(days=days)
