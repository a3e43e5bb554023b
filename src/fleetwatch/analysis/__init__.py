"""Predictive maintenance analytics."""

from fleetwatch.analysis.anomalies import AnomalyDetector, DegradationDetector
from fleetwatch.analysis.engine import AnalyticsEngine
from fleetwatch.analysis.forecast import ForecastEngine
from fleetwatch.analysis.recommendations import (
    RecommendationGenerator,
    calculate_risk_assessment,
    estimate_cost,
)
from fleetwatch.analysis.scoring import HealthScorer, classify_risk
from fleetwatch.analysis.thresholds import DEFAULT_ANALYTICS_THRESHOLDS, AnalyticsThresholds
from fleetwatch.analysis.trends import TrendAnalyzer, classify_trend

__all__ = [
    "AnalyticsEngine",
    "AnalyticsThresholds",
    "AnomalyDetector",
    "DEFAULT_ANALYTICS_THRESHOLDS",
    "DegradationDetector",
    "ForecastEngine",
    "HealthScorer",
    "RecommendationGenerator",
    "TrendAnalyzer",
    "calculate_risk_assessment",
    "classify_risk",
    "classify_trend",
    "estimate_cost",
]
