"""Performance forecasts extrapolated from fleet trend analysis.

Forecasts are straight-line extrapolations of the period series with an
interval that widens with the horizon and narrows with trend confidence.
They are heuristics, not fitted models.
"""

import math
from datetime import timedelta
from typing import List

from fleetwatch.analysis.scoring import clamp
from fleetwatch.models.enums import Priority
from fleetwatch.models.insight import (
    AvailabilityForecast,
    HorizonForecast,
    MaintenanceWindow,
    PerformanceForecasts,
    StopForecast,
    TrendAnalysis,
)
from fleetwatch.utils.clock import Clock, utc_now

HORIZONS = (7, 30, 90)
BASE_INTERVAL_WIDTH = 5.5
WINDOW_SPACING_DAYS = 7
MAINTENANCE_TIME_SLOT = "Weekend (Saturday 6AM - Sunday 6PM)"
MAINTENANCE_IMPACT = "Minimal production disruption"


class ForecastEngine:
    """Generates 7/30/90-day availability and stop forecasts."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def generate(self, trend_analysis: TrendAnalysis) -> PerformanceForecasts:
        """Forecast every horizon from a fleet trend analysis.

        Args:
            trend_analysis: Output of TrendAnalyzer.analyze_fleet

        Returns:
            PerformanceForecasts for 7, 30 and 90 days
        """
        short, medium, long_ = (self.forecast_horizon(trend_analysis, d) for d in HORIZONS)
        return PerformanceForecasts(
            next_7_days=short,
            next_30_days=medium,
            next_90_days=long_,
            confidence=trend_analysis.confidence,
        )

    def forecast_horizon(self, trend_analysis: TrendAnalysis, days: int) -> HorizonForecast:
        """Forecast a single horizon."""
        return HorizonForecast(
            horizon_days=days,
            predicted_availability=self.forecast_availability(trend_analysis, days),
            expected_stops=self.forecast_stops(trend_analysis, days),
            maintenance_windows=self.suggest_maintenance_windows(days),
        )

    def forecast_availability(self, trend_analysis: TrendAnalysis, days: int) -> AvailabilityForecast:
        """Extrapolate fleet availability ``days`` ahead."""
        series = trend_analysis.availability_series
        baseline = series[-1] if series else 100.0
        slope = trend_analysis.slopes.get("availability", 0.0)
        periods_ahead = days / max(1, trend_analysis.period_days)

        predicted = clamp(baseline + slope * periods_ahead, 0.0, 100.0)
        half_width = (
            BASE_INTERVAL_WIDTH * math.sqrt(days / 7) * (1.5 - trend_analysis.confidence)
        )

        return AvailabilityForecast(
            predicted_value=round(predicted, 1),
            confidence_interval=(
                round(clamp(predicted - half_width, 0.0, 100.0), 1),
                round(clamp(predicted + half_width, 0.0, 100.0), 1),
            ),
            trend_direction=trend_analysis.overall_availability_trend,
        )

    def forecast_stops(self, trend_analysis: TrendAnalysis, days: int) -> StopForecast:
        """Expected fleet stop count over ``days`` at the observed daily rate."""
        expected = round(trend_analysis.performance_indicators.stops_per_day * days, 6)
        return StopForecast(
            predicted_count=math.ceil(expected),
            confidence_interval=(math.floor(expected * 2 / 3), math.ceil(expected * 5 / 3)),
        )

    def suggest_maintenance_windows(self, days: int) -> List[MaintenanceWindow]:
        """One window per 7-day block; the first is HIGH priority."""
        start = self._clock()
        return [
            MaintenanceWindow(
                date=(start + timedelta(days=i * WINDOW_SPACING_DAYS)).date(),
                time_slot=MAINTENANCE_TIME_SLOT,
                expected_impact=MAINTENANCE_IMPACT,
                priority=Priority.HIGH if i == 0 else Priority.MEDIUM,
            )
            for i in range(math.ceil(days / WINDOW_SPACING_DAYS))
        ]
