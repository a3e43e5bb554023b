"""Scheduled metric sweeps that feed the alert manager.

Each sweep reads every asset from the event store, computes one family of
metrics over its window and hands each value to the alert manager: a
warning or critical value triggers the metric's alert, a good value clears
it. Failures are contained per asset and at the sweep boundary.
"""

from __future__ import annotations

import time
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

import structlog

from fleetwatch.alerts.manager import AlertManager
from fleetwatch.alerts.thresholds import METRIC_UNITS, is_higher_better
from fleetwatch.analysis.metrics import performance_metrics, window_availability
from fleetwatch.models.alert import make_alert_key
from fleetwatch.models.asset import Asset
from fleetwatch.models.enums import AlertSeverity
from fleetwatch.utils.clock import Clock, utc_now

if TYPE_CHECKING:
    from fleetwatch.store.base import EventStore

log = structlog.get_logger()


def format_alert_message(
    asset_name: str,
    metric: str,
    value: float,
    threshold: float,
    severity: AlertSeverity,
) -> str:
    """Operator-facing text for a threshold breach."""
    label = "Critical" if severity == AlertSeverity.CRITICAL else "Warning"

    if metric == "availability":
        return (
            f"{label}: Asset {asset_name} availability is {value:.1f}% "
            f"(below {threshold:g}%)"
        )
    if metric == "downtime":
        return (
            f"{label}: Asset {asset_name} has been down for {value:.0f} minutes "
            f"(exceeds {threshold:g} min)"
        )

    unit = METRIC_UNITS.get(metric, "")
    comparison = "below" if is_higher_better(metric) else "above"
    return (
        f"{label}: Asset {asset_name} {metric.upper()} is {value:.1f} {unit} "
        f"({comparison} {threshold:g} {unit})"
    )


class AlertMonitor:
    """Runs the availability, downtime and performance sweeps.

    Usage:
        monitor = AlertMonitor(event_store, manager)
        monitor.check_availability_alerts()
    """

    def __init__(
        self,
        event_store: "EventStore",
        manager: AlertManager,
        clock: Clock = utc_now,
        availability_window_hours: int = 24,
        performance_window_days: int = 7,
    ) -> None:
        self._store = event_store
        self._manager = manager
        self._clock = clock
        self.availability_window_hours = availability_window_hours
        self.performance_window_days = performance_window_days

    def evaluate_metric(
        self,
        asset: Asset,
        metric: str,
        value: Optional[float],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AlertSeverity:
        """Trigger or clear the alert for one asset metric.

        A ``None`` value means the metric is undefined for the window (no
        stops for MTBF/MTTR) and is treated as good.

        Returns:
            The evaluated severity
        """
        key = make_alert_key(metric, asset.id)

        if value is None:
            self._manager.clear_alert(key)
            return AlertSeverity.GOOD

        severity = self._manager.evaluate(metric, value)
        if severity == AlertSeverity.GOOD:
            self._manager.clear_alert(key)
            return severity

        threshold = self._manager.threshold_for(metric, severity)
        self._manager.trigger_alert(
            key=key,
            type=metric,
            severity=severity,
            asset_id=asset.id,
            asset_name=asset.name,
            message=format_alert_message(asset.name, metric, value, threshold, severity),
            value=round(value, 2),
            threshold=threshold,
            metadata={"unit": METRIC_UNITS[metric], **(metadata or {})},
        )
        return severity

    # Sweeps

    def check_availability_alerts(self) -> int:
        """Availability over the trailing window for every asset."""
        window = timedelta(hours=self.availability_window_hours)

        def check(asset: Asset) -> None:
            end = self._clock()
            events = self._store.get_archived_events(
                asset_id=asset.id, start_date=end - window, end_date=end
            )
            value = window_availability(events, window.total_seconds())
            self.evaluate_metric(
                asset, "availability", value, {"timeframe": f"{self.availability_window_hours}h"}
            )

        return self._sweep("availability", check)

    def check_downtime_alerts(self) -> int:
        """Continuous downtime of currently stopped assets.

        Running assets evaluate as zero downtime so a previous downtime
        alert clears once the asset restarts.
        """

        def check(asset: Asset) -> None:
            minutes = 0.0
            if asset.is_stopped and asset.last_stop_time is not None:
                elapsed = self._clock() - asset.last_stop_time
                minutes = max(0.0, elapsed.total_seconds() / 60.0)
            metadata = {}
            if asset.last_stop_time is not None:
                metadata["stopped_since"] = asset.last_stop_time.isoformat()
            self.evaluate_metric(asset, "downtime", minutes, metadata)

        return self._sweep("downtime", check)

    def check_performance_alerts(self) -> int:
        """MTBF, MTTR and stop frequency over the performance window."""
        days = self.performance_window_days

        def check(asset: Asset) -> None:
            events = self._store.get_archived_events(asset_id=asset.id, timeframe_days=days)
            metrics = performance_metrics(events, days)
            metadata = {"timeframe": f"{days}d"}
            self.evaluate_metric(asset, "mtbf", metrics.mtbf, metadata)
            self.evaluate_metric(asset, "mttr", metrics.mttr, metadata)
            self.evaluate_metric(asset, "frequency", metrics.stop_frequency, metadata)

        return self._sweep("performance", check)

    def cleanup_history(self) -> int:
        """Purge alert history past retention."""
        try:
            return self._manager.cleanup_old_alerts()
        except Exception as e:
            log.error("sweep_failed", sweep="cleanup", error=str(e), exc_info=True)
            return 0

    def run_all(self) -> Dict[str, int]:
        """Run every sweep once, in order. Used by ``--run-once``."""
        return {
            "availability": self.check_availability_alerts(),
            "downtime": self.check_downtime_alerts(),
            "performance": self.check_performance_alerts(),
            "cleanup": self.cleanup_history(),
        }

    def _sweep(self, name: str, check: Callable[[Asset], None]) -> int:
        """Apply ``check`` to every asset.

        Returns:
            Number of assets checked successfully
        """
        start = time.monotonic()
        try:
            assets: List[Asset] = self._store.get_all_assets()
        except Exception as e:
            log.error("sweep_failed", sweep=name, error=str(e), exc_info=True)
            return 0

        checked = 0
        for asset in assets:
            try:
                check(asset)
                checked += 1
            except Exception as e:
                log.error(
                    "asset_check_failed",
                    sweep=name,
                    asset_id=asset.id,
                    error=str(e),
                )

        log.debug(
            "sweep_completed",
            sweep=name,
            assets=len(assets),
            checked=checked,
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )
        return checked
