"""Tests for the analytics engine."""

from datetime import timedelta

import pytest

from fleetwatch.analysis import AnalyticsEngine
from fleetwatch.analysis.thresholds import DEFAULT_ANALYTICS_THRESHOLDS, AnalyticsThresholds
from fleetwatch.models.enums import AssetState, RiskLevel, TrendDirection

from conftest import FIXED_NOW


@pytest.fixture
def engine(clock) -> AnalyticsEngine:
    return AnalyticsEngine(clock=clock)


@pytest.fixture
def failing_events(make_stop, make_state_change):
    """Asset "2" stopping every hour for twelve hours, 2000 s a time."""
    events = []
    for i in range(12):
        ago = timedelta(hours=1 + i)
        events.append(make_stop(asset_id="2", ago=ago, duration=2000))
        events.append(make_state_change(asset_id="2", ago=ago, new_state="STOPPED", duration=2000))
    return events


class TestAnalyzeAsset:
    """Test AnalyticsEngine.analyze_asset_predictive_metrics()."""

    def test_healthy_asset(self, engine, make_asset) -> None:
        insight = engine.analyze_asset_predictive_metrics(make_asset(), [])

        assert insight.asset_id == "1"
        assert insight.health_score == pytest.approx(100.0)
        assert insight.risk_level == RiskLevel.LOW
        assert insight.failure_probability == 0.0
        assert insight.predicted_maintenance_date == FIXED_NOW + timedelta(days=90)
        assert insight.performance_trends.overall_trend == TrendDirection.STABLE
        assert insight.anomalies_detected == []
        assert insight.degradation_indicators == []

    def test_failing_asset(self, engine, make_asset, failing_events) -> None:
        asset = make_asset("2", name="Press 2", state=AssetState.STOPPED, runtime=0, downtime=3600)

        insight = engine.analyze_asset_predictive_metrics(asset, failing_events)

        assert insight.risk_level == RiskLevel.CRITICAL
        assert insight.current_state == AssetState.STOPPED
        assert insight.failure_probability > 0.8
        types = {d.type for d in insight.degradation_indicators}
        assert types == {"INCREASING_STOP_FREQUENCY", "DECLINING_AVAILABILITY"}

    def test_events_outside_window_are_ignored(self, engine, make_asset, make_stop) -> None:
        old = [make_stop(ago=timedelta(days=40), duration=100000)]

        insight = engine.analyze_asset_predictive_metrics(make_asset(), old, timeframe_days=30)

        assert insight.health_score == pytest.approx(100.0)

    def test_other_assets_events_are_ignored(self, engine, make_asset, failing_events) -> None:
        insight = engine.analyze_asset_predictive_metrics(make_asset("1"), failing_events)
        assert insight.risk_level == RiskLevel.LOW


class TestReport:
    """Test AnalyticsEngine.generate_predictive_maintenance_report()."""

    def test_healthy_fleet(self, engine, make_asset) -> None:
        assets = [make_asset("1"), make_asset("2", name="Press 2")]

        report = engine.generate_predictive_maintenance_report(assets, [])

        assert report.timestamp == FIXED_NOW
        assert report.timeframe_days == 30
        assert report.assets_analyzed == 2
        assert len(report.predictive_insights) == 2
        assert report.risk_assessment.overall_risk_level == RiskLevel.LOW
        assert report.risk_assessment.assets_requiring_attention == 0
        assert report.maintenance_recommendations == []
        assert report.performance_forecasts.next_7_days.horizon_days == 7

    def test_failing_asset_gets_recommendation(self, engine, make_asset, failing_events) -> None:
        assets = [
            make_asset("1"),
            make_asset("2", name="Press 2", state=AssetState.STOPPED, runtime=0, downtime=3600),
        ]

        report = engine.generate_predictive_maintenance_report(assets, failing_events)

        assert report.risk_assessment.overall_risk_level == RiskLevel.CRITICAL
        assert report.risk_assessment.assets_requiring_attention == 1
        assert report.maintenance_recommendations[0].asset_id == "2"
        assert report.maintenance_recommendations[-1].asset_name == "SYSTEM-WIDE"

    def test_without_recommendations(self, engine, make_asset, failing_events) -> None:
        assets = [make_asset("2", runtime=0, downtime=3600)]

        report = engine.generate_predictive_maintenance_report(
            assets, failing_events, include_recommendations=False
        )

        assert report.maintenance_recommendations == []

    def test_serializes_to_json(self, engine, make_asset) -> None:
        report = engine.generate_predictive_maintenance_report([make_asset()], [])
        data = report.model_dump(mode="json")
        assert data["predictive_insights"][0]["risk_level"] == "LOW"


class TestListings:
    """Test list_anomalies() and list_degradation_indicators()."""

    def test_list_anomalies_omits_clean_assets(self, engine, make_asset, make_stop) -> None:
        events = [make_stop(asset_id="2", ago=timedelta(days=d), duration=60) for d in range(1, 8)]
        events.append(make_stop(asset_id="2", ago=timedelta(hours=3), duration=5000))

        result = engine.list_anomalies([make_asset("1"), make_asset("2")], events)

        assert list(result) == ["2"]
        assert result["2"][0].type == "UNUSUAL_STOP_DURATION"

    def test_list_degradation_indicators(self, engine, make_asset, failing_events) -> None:
        assets = [make_asset("1"), make_asset("2", runtime=0, downtime=3600)]

        result = engine.list_degradation_indicators(assets, failing_events)

        assert list(result) == ["2"]
        assert len(result["2"]) == 2


class TestThresholds:
    """Test threshold injection."""

    def test_defaults(self, engine) -> None:
        assert engine.thresholds == DEFAULT_ANALYTICS_THRESHOLDS

    def test_custom(self, clock) -> None:
        custom = AnalyticsThresholds(warning_availability=90)
        assert AnalyticsEngine(custom, clock).thresholds.warning_availability == 90
