"""Predictive maintenance threshold configuration.

Defines the tunables the health scorer, failure-probability model and
degradation detector compare against.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class AnalyticsThresholds:
    """Thresholds for predictive maintenance heuristics.

    Attributes:
        critical_availability: Health score below which degradation is HIGH severity
        warning_availability: Health score below which degradation is reported
        max_stop_duration: Average stop duration (seconds) that raises failure probability
        high_frequency_stops: Stop count in the window that raises failure probability
        degradation_trend: Percentage decline treated as degradation (reporting only)
    """

    critical_availability: float = 75.0
    warning_availability: float = 85.0

    # 30 minutes
    max_stop_duration: float = 1800.0

    high_frequency_stops: int = 10

    degradation_trend: float = 5.0


DEFAULT_ANALYTICS_THRESHOLDS = AnalyticsThresholds()
