"""Derived analytics structures.

Everything here is ephemeral: recomputed from the current event window on
every request and never persisted. Models serialize to JSON-ready dicts via
``model_dump(mode="json")`` for the HTTP layer.
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from fleetwatch.models.enums import (
    AssetState,
    Level,
    Priority,
    RiskLevel,
    TrendDirection,
)


class PerformanceTrends(BaseModel):
    """Per-asset trend classification over four chronological periods."""

    availability_trend: TrendDirection = TrendDirection.STABLE
    stop_frequency_trend: TrendDirection = TrendDirection.STABLE
    stop_duration_trend: TrendDirection = TrendDirection.STABLE
    overall_trend: TrendDirection = TrendDirection.STABLE
    trend_confidence: float = Field(default=0.0, ge=0, le=1)
    slopes: Dict[str, float] = Field(default_factory=dict)


class Anomaly(BaseModel):
    """A single anomalous stop or day."""

    type: str
    timestamp: str = Field(..., description="Event timestamp or ISO date of the anomalous day")
    description: str
    severity: Level
    value: Optional[float] = None


class DegradationIndicator(BaseModel):
    """A sign that an asset is wearing out."""

    type: str
    description: str
    severity: Level
    trend_slope: Optional[float] = None
    current_value: Optional[float] = None


class HealthInsight(BaseModel):
    """Predictive health bundle for one asset."""

    model_config = ConfigDict(from_attributes=True)

    asset_id: str
    asset_name: str
    current_state: AssetState
    health_score: float = Field(..., ge=0, le=100)
    risk_level: RiskLevel
    failure_probability: float = Field(..., ge=0, le=1)
    predicted_maintenance_date: datetime
    performance_trends: PerformanceTrends
    anomalies_detected: List[Anomaly] = Field(default_factory=list)
    degradation_indicators: List[DegradationIndicator] = Field(default_factory=list)


class RiskAssessment(BaseModel):
    """Fleet-level roll-up of per-asset risk."""

    overall_risk_level: RiskLevel = RiskLevel.LOW
    risk_distribution: Dict[RiskLevel, int] = Field(default_factory=dict)
    average_health_score: float = 0.0
    average_failure_probability: float = 0.0
    assets_requiring_attention: int = 0
    total_assets_analyzed: int = 0


class SeasonalPatterns(BaseModel):
    """When stops tend to happen."""

    stops_by_weekday: Dict[str, int] = Field(default_factory=dict)
    stops_by_hour: Dict[int, int] = Field(default_factory=dict)
    peak_weekday: Optional[str] = None
    peak_hour: Optional[int] = None


class PerformanceIndicators(BaseModel):
    """Fleet-wide aggregates over the analysis window."""

    total_events: int = 0
    total_stops: int = 0
    stops_per_day: float = 0.0
    average_stop_duration: float = 0.0
    mean_availability: float = 100.0


class TrendAnalysis(BaseModel):
    """Fleet-wide trend analysis."""

    timeframe_days: int
    period_days: int
    overall_availability_trend: TrendDirection = TrendDirection.STABLE
    system_reliability_trend: TrendDirection = TrendDirection.STABLE
    maintenance_frequency_trend: TrendDirection = TrendDirection.STABLE
    availability_series: List[float] = Field(default_factory=list)
    stop_count_series: List[int] = Field(default_factory=list)
    stop_duration_series: List[float] = Field(default_factory=list)
    slopes: Dict[str, float] = Field(default_factory=dict)
    confidence: float = Field(default=0.0, ge=0, le=1)
    performance_indicators: PerformanceIndicators = Field(default_factory=PerformanceIndicators)
    seasonal_patterns: SeasonalPatterns = Field(default_factory=SeasonalPatterns)
    asset_trends: Dict[str, PerformanceTrends] = Field(default_factory=dict)


class AvailabilityForecast(BaseModel):
    """Predicted availability for one horizon."""

    predicted_value: float
    confidence_interval: Tuple[float, float]
    trend_direction: TrendDirection


class StopForecast(BaseModel):
    """Expected stop count for one horizon."""

    predicted_count: int
    confidence_interval: Tuple[int, int]


class MaintenanceWindow(BaseModel):
    """A suggested slot for planned maintenance."""

    date: date
    time_slot: str
    expected_impact: str
    priority: Priority


class HorizonForecast(BaseModel):
    """Forecast bundle for a single horizon (7, 30 or 90 days)."""

    horizon_days: int
    predicted_availability: AvailabilityForecast
    expected_stops: StopForecast
    maintenance_windows: List[MaintenanceWindow] = Field(default_factory=list)


class PerformanceForecasts(BaseModel):
    """Short, medium and long horizon forecasts."""

    next_7_days: HorizonForecast
    next_30_days: HorizonForecast
    next_90_days: HorizonForecast
    confidence: float = Field(default=0.0, ge=0, le=1)


class Recommendation(BaseModel):
    """A prioritized maintenance action."""

    priority: Priority
    asset_id: Optional[str] = None
    asset_name: str
    recommendation: str
    description: str
    estimated_downtime: str
    cost_impact: Level
    estimated_cost: float


class PredictiveMaintenanceReport(BaseModel):
    """Complete predictive maintenance report for a fleet."""

    timestamp: datetime
    timeframe_days: int
    assets_analyzed: int
    predictive_insights: List[HealthInsight] = Field(default_factory=list)
    risk_assessment: RiskAssessment
    trend_analysis: TrendAnalysis
    performance_forecasts: PerformanceForecasts
    maintenance_recommendations: List[Recommendation] = Field(default_factory=list)
