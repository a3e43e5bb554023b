"""Trend analysis over chronological periods of an event window."""

import calendar
from collections import Counter
from datetime import timedelta
from typing import Dict, Iterable, List, Sequence

import structlog

from fleetwatch.analysis.metrics import (
    Period,
    average_stop_duration,
    events_since,
    split_into_periods,
    state_change_availability,
    stop_count,
    stop_events,
    trend_slope,
)
from fleetwatch.models.asset import Asset, Event
from fleetwatch.models.enums import TrendDirection
from fleetwatch.models.insight import (
    PerformanceIndicators,
    PerformanceTrends,
    SeasonalPatterns,
    TrendAnalysis,
)
from fleetwatch.utils.clock import Clock, utc_now

log = structlog.get_logger()

SLOPE_THRESHOLD = 0.1
CONFIDENCE_EVENT_COUNT = 100


def classify_trend(values: Sequence[float], lower_is_better: bool = False) -> TrendDirection:
    """Classify a series by its least-squares slope.

    Args:
        values: Per-period values, oldest first
        lower_is_better: Swap IMPROVING/DECLINING (stop counts, durations)

    Returns:
        TrendDirection for the series
    """
    if len(values) < 2:
        return TrendDirection.STABLE

    slope = trend_slope(values)
    if slope > SLOPE_THRESHOLD:
        return TrendDirection.DECLINING if lower_is_better else TrendDirection.IMPROVING
    if slope < -SLOPE_THRESHOLD:
        return TrendDirection.IMPROVING if lower_is_better else TrendDirection.DECLINING
    return TrendDirection.STABLE


def majority_trend(trends: Iterable[TrendDirection]) -> TrendDirection:
    """Majority vote between IMPROVING and DECLINING; ties are STABLE."""
    counts = Counter(trends)
    improving = counts[TrendDirection.IMPROVING]
    declining = counts[TrendDirection.DECLINING]
    if declining > improving:
        return TrendDirection.DECLINING
    if improving > declining:
        return TrendDirection.IMPROVING
    return TrendDirection.STABLE


def period_days_for(timeframe_days: int) -> int:
    """Length of each of the four trend periods."""
    return max(1, timeframe_days // 4)


def _confidence(periods: Sequence[Period]) -> float:
    total = sum(len(p.events) for p in periods)
    return min(1.0, total / CONFIDENCE_EVENT_COUNT)


class TrendAnalyzer:
    """Classifies availability, stop frequency and stop duration trends."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock

    def analyze_asset(
        self,
        asset: Asset,
        recent_events: Sequence[Event],
        timeframe_days: int,
    ) -> PerformanceTrends:
        """Trend classification for one asset.

        Args:
            asset: Asset being analyzed (for logging context)
            recent_events: The asset's events inside the window
            timeframe_days: Window length; split into four periods

        Returns:
            PerformanceTrends with per-dimension and overall trends
        """
        periods = split_into_periods(
            recent_events, period_days_for(timeframe_days), self._clock()
        )

        availabilities = [state_change_availability(p.events) for p in periods]
        stop_counts = [stop_count(p.events) for p in periods]
        durations = [average_stop_duration(p.events) for p in periods]

        trends = PerformanceTrends(
            availability_trend=classify_trend(availabilities),
            stop_frequency_trend=classify_trend(stop_counts, lower_is_better=True),
            stop_duration_trend=classify_trend(durations, lower_is_better=True),
            trend_confidence=_confidence(periods),
            slopes={
                "availability": trend_slope(availabilities),
                "stop_frequency": trend_slope(stop_counts),
                "stop_duration": trend_slope(durations),
            },
        )
        trends.overall_trend = majority_trend(
            [trends.availability_trend, trends.stop_frequency_trend, trends.stop_duration_trend]
        )
        log.debug(
            "asset_trends_computed",
            asset_id=asset.id,
            overall=trends.overall_trend.value,
            confidence=trends.trend_confidence,
        )
        return trends

    def analyze_fleet(
        self,
        assets: Sequence[Asset],
        events: Sequence[Event],
        timeframe_days: int,
    ) -> TrendAnalysis:
        """System-wide trend analysis.

        Args:
            assets: Assets in the fleet
            events: Events for any of the assets (others are ignored)
            timeframe_days: Analysis window in days

        Returns:
            TrendAnalysis with fleet series, classifications, indicators,
            seasonal patterns and per-asset trends
        """
        now = self._clock()
        asset_ids = {a.id for a in assets}
        window = [
            e for e in events_since(events, now - timedelta(days=timeframe_days))
            if e.asset_id in asset_ids
        ]
        period_days = period_days_for(timeframe_days)
        periods = split_into_periods(window, period_days, now)

        availabilities = [state_change_availability(p.events) for p in periods]
        stop_counts = [stop_count(p.events) for p in periods]
        durations = [average_stop_duration(p.events) for p in periods]

        by_asset: Dict[str, List[Event]] = {a.id: [] for a in assets}
        for event in window:
            by_asset[event.asset_id].append(event)

        asset_trends = {
            asset.id: self.analyze_asset(asset, by_asset[asset.id], timeframe_days)
            for asset in assets
        }

        return TrendAnalysis(
            timeframe_days=timeframe_days,
            period_days=period_days,
            overall_availability_trend=classify_trend(availabilities),
            system_reliability_trend=classify_trend(stop_counts, lower_is_better=True),
            maintenance_frequency_trend=classify_trend(durations, lower_is_better=True),
            availability_series=availabilities,
            stop_count_series=stop_counts,
            stop_duration_series=durations,
            slopes={
                "availability": trend_slope(availabilities),
                "stop_frequency": trend_slope(stop_counts),
                "stop_duration": trend_slope(durations),
            },
            confidence=_confidence(periods),
            performance_indicators=self._indicators(window, availabilities, timeframe_days),
            seasonal_patterns=seasonal_patterns(window),
            asset_trends=asset_trends,
        )

    @staticmethod
    def _indicators(
        window: Sequence[Event],
        availabilities: Sequence[float],
        timeframe_days: int,
    ) -> PerformanceIndicators:
        stops = stop_count(window)
        return PerformanceIndicators(
            total_events=len(window),
            total_stops=stops,
            stops_per_day=stops / timeframe_days if timeframe_days > 0 else 0.0,
            average_stop_duration=average_stop_duration(window),
            mean_availability=sum(availabilities) / len(availabilities) if availabilities else 100.0,
        )


def seasonal_patterns(events: Iterable[Event]) -> SeasonalPatterns:
    """Distribution of stops by weekday and hour of day (UTC)."""
    stops = stop_events(events)
    if not stops:
        return SeasonalPatterns()

    by_weekday = Counter(calendar.day_name[s.timestamp.weekday()] for s in stops)
    by_hour = Counter(s.timestamp.hour for s in stops)

    weekdays = {name: by_weekday.get(name, 0) for name in calendar.day_name}
    hours = dict(sorted(by_hour.items()))

    return SeasonalPatterns(
        stops_by_weekday=weekdays,
        stops_by_hour=hours,
        peak_weekday=max(weekdays, key=lambda name: weekdays[name]),
        peak_hour=max(hours, key=lambda hour: hours[hour]),
    )
