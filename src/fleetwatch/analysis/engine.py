"""Analytics engine: the reporting surface for predictive maintenance.

Every method is pure with respect to its inputs and the injected clock.
Nothing is cached between calls; the HTTP layer passes in the current
assets and event window and gets a fresh structure back.
"""

from datetime import timedelta
from typing import Dict, List, Optional, Sequence

import structlog

from fleetwatch.analysis.anomalies import AnomalyDetector, DegradationDetector
from fleetwatch.analysis.forecast import ForecastEngine
from fleetwatch.analysis.metrics import events_since
from fleetwatch.analysis.recommendations import (
    RecommendationGenerator,
    calculate_risk_assessment,
)
from fleetwatch.analysis.scoring import HealthScorer, classify_risk
from fleetwatch.analysis.thresholds import (
    DEFAULT_ANALYTICS_THRESHOLDS,
    AnalyticsThresholds,
)
from fleetwatch.analysis.trends import TrendAnalyzer
from fleetwatch.models.asset import Asset, Event
from fleetwatch.models.insight import (
    Anomaly,
    DegradationIndicator,
    HealthInsight,
    PerformanceForecasts,
    PredictiveMaintenanceReport,
    Recommendation,
    RiskAssessment,
    TrendAnalysis,
)
from fleetwatch.utils.clock import Clock, utc_now

logger = structlog.get_logger(__name__)

DEFAULT_TIMEFRAME_DAYS = 30


class AnalyticsEngine:
    """Predictive maintenance analytics over asset event windows.

    Usage:
        engine = AnalyticsEngine()
        report = engine.generate_predictive_maintenance_report(assets, events)
        insight = engine.analyze_asset_predictive_metrics(asset, events)
    """

    def __init__(
        self,
        thresholds: Optional[AnalyticsThresholds] = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the engine.

        Args:
            thresholds: Custom analytics thresholds. Defaults to
                DEFAULT_ANALYTICS_THRESHOLDS.
            clock: Source of "now" for every window computation.
        """
        self._thresholds = thresholds or DEFAULT_ANALYTICS_THRESHOLDS
        self._clock = clock
        self.scorer = HealthScorer(self._thresholds, clock)
        self.trends = TrendAnalyzer(clock)
        self.anomalies = AnomalyDetector()
        self.degradation = DegradationDetector(self._thresholds, clock)
        self.forecasts = ForecastEngine(clock)
        self.recommendations = RecommendationGenerator()

    @property
    def thresholds(self) -> AnalyticsThresholds:
        """Get the active analytics thresholds."""
        return self._thresholds

    def _asset_window(
        self,
        asset: Asset,
        events: Sequence[Event],
        timeframe_days: int,
    ) -> List[Event]:
        cutoff = self._clock() - timedelta(days=timeframe_days)
        return events_since((e for e in events if e.asset_id == asset.id), cutoff)

    def analyze_asset_predictive_metrics(
        self,
        asset: Asset,
        events: Sequence[Event],
        timeframe_days: int = DEFAULT_TIMEFRAME_DAYS,
    ) -> HealthInsight:
        """Build the HealthInsight for a single asset.

        Args:
            asset: Asset to analyze
            events: Events for the fleet or the asset; filtered to the asset
                and to the last ``timeframe_days``
            timeframe_days: Analysis window in days

        Returns:
            HealthInsight with score, risk, probability, maintenance date,
            trends, anomalies and degradation indicators
        """
        recent = self._asset_window(asset, events, timeframe_days)

        score = self.scorer.compute_health_score(asset, recent)
        probability = self.scorer.failure_probability(score, recent)

        return HealthInsight(
            asset_id=asset.id,
            asset_name=asset.name,
            current_state=asset.current_state,
            health_score=score,
            risk_level=classify_risk(score),
            failure_probability=probability,
            predicted_maintenance_date=self.scorer.predict_maintenance_date(probability),
            performance_trends=self.trends.analyze_asset(asset, recent, timeframe_days),
            anomalies_detected=self.anomalies.detect(recent),
            degradation_indicators=self.degradation.identify(score, recent),
        )

    def perform_trend_analysis(
        self,
        assets: Sequence[Asset],
        events: Sequence[Event],
        timeframe_days: int = DEFAULT_TIMEFRAME_DAYS,
    ) -> TrendAnalysis:
        """Fleet-wide trend analysis over ``timeframe_days``."""
        return self.trends.analyze_fleet(assets, events, timeframe_days)

    def generate_performance_forecasts(self, trend_analysis: TrendAnalysis) -> PerformanceForecasts:
        """7/30/90-day forecasts from a trend analysis."""
        return self.forecasts.generate(trend_analysis)

    def generate_maintenance_recommendations(
        self,
        insights: Sequence[HealthInsight],
    ) -> List[Recommendation]:
        """Prioritized maintenance recommendations for a set of insights."""
        return self.recommendations.generate(insights)

    def calculate_risk_assessment(self, insights: Sequence[HealthInsight]) -> RiskAssessment:
        """Fleet risk roll-up for a set of insights."""
        return calculate_risk_assessment(insights)

    def list_anomalies(
        self,
        assets: Sequence[Asset],
        events: Sequence[Event],
        timeframe_days: int = DEFAULT_TIMEFRAME_DAYS,
    ) -> Dict[str, List[Anomaly]]:
        """Anomalies per asset id; assets without anomalies are omitted."""
        result: Dict[str, List[Anomaly]] = {}
        for asset in assets:
            found = self.anomalies.detect(self._asset_window(asset, events, timeframe_days))
            if found:
                result[asset.id] = found
        return result

    def list_degradation_indicators(
        self,
        assets: Sequence[Asset],
        events: Sequence[Event],
        timeframe_days: int = DEFAULT_TIMEFRAME_DAYS,
    ) -> Dict[str, List[DegradationIndicator]]:
        """Degradation indicators per asset id; healthy assets are omitted."""
        result: Dict[str, List[DegradationIndicator]] = {}
        for asset in assets:
            recent = self._asset_window(asset, events, timeframe_days)
            score = self.scorer.compute_health_score(asset, recent)
            found = self.degradation.identify(score, recent)
            if found:
                result[asset.id] = found
        return result

    def generate_predictive_maintenance_report(
        self,
        assets: Sequence[Asset],
        events: Sequence[Event],
        timeframe_days: int = DEFAULT_TIMEFRAME_DAYS,
        include_recommendations: bool = True,
    ) -> PredictiveMaintenanceReport:
        """Full predictive maintenance report for a fleet.

        Args:
            assets: Assets to analyze
            events: Events for those assets
            timeframe_days: Analysis window in days
            include_recommendations: Attach maintenance recommendations

        Returns:
            PredictiveMaintenanceReport
        """
        insights = [
            self.analyze_asset_predictive_metrics(asset, events, timeframe_days)
            for asset in assets
        ]
        risk = calculate_risk_assessment(insights)
        trend_analysis = self.perform_trend_analysis(assets, events, timeframe_days)
        forecasts = self.generate_performance_forecasts(trend_analysis)
        recommendations = (
            self.generate_maintenance_recommendations(insights) if include_recommendations else []
        )

        logger.info(
            "predictive_report_generated",
            assets_analyzed=len(assets),
            overall_risk=risk.overall_risk_level.value,
            attention_required=risk.assets_requiring_attention,
            recommendations=len(recommendations),
        )

        return PredictiveMaintenanceReport(
            timestamp=self._clock(),
            timeframe_days=timeframe_days,
            assets_analyzed=len(assets),
            predictive_insights=insights,
            risk_assessment=risk,
            trend_analysis=trend_analysis,
            performance_forecasts=forecasts,
            maintenance_recommendations=recommendations,
        )
