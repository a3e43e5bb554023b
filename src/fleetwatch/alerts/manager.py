"""Alert lifecycle management.

Owns the active-alert map (at most one live alert per key), the append-only
alert history and the threshold configuration in force. Every
read-modify-write of an alert key happens under one re-entrant lock, so a
scheduled sweep triggering a key cannot interleave with an operator
clearing it. Broadcasts and notifications go out after the lock is released.

State per key: absent -> active -> (acknowledged) -> cleared (absent).
A repeat trigger for an active key inside the cooldown is a no-op.
"""

from __future__ import annotations

import threading
from collections import Counter
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Protocol, Union

import structlog

from fleetwatch.alerts.events import AlertCleared, AlertMessage, AlertPublisher, AlertTriggered, LoggingPublisher
from fleetwatch.alerts.thresholds import (
    LEVELS,
    ThresholdConfig,
    ValidationResult,
    default_thresholds,
    evaluate,
    merge_thresholds,
    validate_thresholds,
)
from fleetwatch.models.alert import Alert
from fleetwatch.models.asset import Asset
from fleetwatch.models.enums import AlertSeverity
from fleetwatch.utils.clock import Clock, utc_now

if TYPE_CHECKING:
    from fleetwatch.store.base import EventStore, SettingsStore

log = structlog.get_logger()

TEST_ASSET = Asset(id="test", name="Test Asset")


class AlertNotFoundError(Exception):
    """Raised when acknowledging an alert that is not active."""

    pass


class ThresholdPersistenceError(Exception):
    """Raised when a validated threshold update cannot be saved."""

    pass


class Notifier(Protocol):
    """Anything that can dispatch notifications for a triggered alert."""

    def notify(self, alert: Alert) -> None:
        ...


class AlertManager:
    """Active alerts, alert history and thresholds for one process.

    Usage:
        manager = AlertManager(settings_store=store, publisher=publisher)
        manager.load_thresholds()
        manager.trigger_alert(key="availability_7", type="availability", ...)
    """

    DEFAULT_COOLDOWN = timedelta(minutes=15)
    DEFAULT_HISTORY_RETENTION = timedelta(hours=24)

    def __init__(
        self,
        settings_store: Optional["SettingsStore"] = None,
        publisher: Optional[AlertPublisher] = None,
        notifier: Optional[Notifier] = None,
        event_store: Optional["EventStore"] = None,
        clock: Clock = utc_now,
        cooldown: Optional[timedelta] = None,
        history_retention: Optional[timedelta] = None,
    ) -> None:
        """Initialize the manager.

        Args:
            settings_store: Where thresholds are loaded from and saved to.
                Without one, thresholds live in memory only.
            publisher: Real-time broadcaster. Defaults to LoggingPublisher.
            notifier: Notification dispatcher. None disables notifications.
            event_store: Used to resolve asset names for test alerts.
            clock: Source of "now" for cooldowns and history retention.
            cooldown: Minimum gap between repeat alerts for a key (15 min).
            history_retention: Age after which history entries are purged (24 h).
        """
        self._settings_store = settings_store
        self._publisher = publisher or LoggingPublisher()
        self._notifier = notifier
        self._event_store = event_store
        self._clock = clock
        self.cooldown = cooldown or self.DEFAULT_COOLDOWN
        self.history_retention = history_retention or self.DEFAULT_HISTORY_RETENTION

        self._lock = threading.RLock()
        self._active: Dict[str, Alert] = {}
        self._history: List[Alert] = []
        self._thresholds: ThresholdConfig = default_thresholds()

    # Thresholds

    def load_thresholds(self) -> ThresholdConfig:
        """Load stored thresholds, falling back to the built-in defaults.

        A missing or unreachable settings store, or stored thresholds that
        fail validation, never stop startup; the defaults are used instead.

        Returns:
            The thresholds now in force
        """
        thresholds = default_thresholds()

        if self._settings_store is not None:
            try:
                settings = self._settings_store.get_notification_settings()
                stored = settings.alert_thresholds if settings else None
                if stored:
                    result = validate_thresholds(stored, thresholds)
                    if result.valid:
                        thresholds = merge_thresholds(thresholds, stored)
                    else:
                        log.warning(
                            "stored_thresholds_invalid",
                            errors=result.errors,
                            action="using defaults",
                        )
            except Exception as e:
                log.warning("thresholds_load_failed", error=str(e), action="using defaults")

        with self._lock:
            self._thresholds = thresholds
        log.info("thresholds_loaded", thresholds=thresholds)
        return self.get_thresholds()

    def get_thresholds(self) -> ThresholdConfig:
        """Copy of the thresholds in force."""
        with self._lock:
            return {metric: dict(levels) for metric, levels in self._thresholds.items()}

    def update_thresholds(self, new_thresholds: Mapping[str, Any]) -> ValidationResult:
        """Validate and apply a threshold update atomically.

        Nothing is applied unless every metric and level in the update is
        valid and the merged result is saved to the settings store.

        Args:
            new_thresholds: metric -> {level: value}; may be partial

        Returns:
            ValidationResult; ``errors`` lists every problem when invalid

        Raises:
            ThresholdPersistenceError: If saving to the settings store fails
        """
        with self._lock:
            result = validate_thresholds(new_thresholds, self._thresholds)
            if not result.valid:
                log.warning("thresholds_rejected", errors=result.errors)
                return result

            merged = merge_thresholds(self._thresholds, new_thresholds)

            if self._settings_store is not None:
                try:
                    settings = self._settings_store.get_notification_settings()
                    updated = settings.model_copy(update={"alert_thresholds": merged})
                    self._settings_store.update_notification_settings(updated)
                except Exception as e:
                    log.error("thresholds_save_failed", error=str(e))
                    raise ThresholdPersistenceError(f"Failed to save thresholds: {e}") from e

            self._thresholds = merged

        log.info("thresholds_updated", thresholds=merged)
        return result

    def evaluate(self, metric: str, value: float) -> AlertSeverity:
        """Evaluate a metric value against the thresholds in force."""
        with self._lock:
            return evaluate(metric, value, self._thresholds)

    def threshold_for(self, metric: str, severity: AlertSeverity) -> Optional[float]:
        """The level value a severity corresponds to, e.g. availability/critical -> 70."""
        if severity.value not in LEVELS:
            return None
        with self._lock:
            return self._thresholds.get(metric, {}).get(severity.value)

    # Lifecycle

    def trigger_alert(
        self,
        key: str,
        type: str,
        severity: Union[AlertSeverity, str],
        asset_id: str,
        message: str,
        asset_name: str = "Unknown",
        value: Optional[float] = None,
        threshold: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Alert]:
        """Raise an alert unless an active alert for the key is still cooling down.

        Args:
            key: Composite key (see make_alert_key)
            type: Metric or alert type
            severity: warning or critical; good is ignored
            asset_id: Asset the alert concerns
            message: Operator-facing message
            asset_name: Human-readable asset name
            value: Observed metric value
            threshold: Level that was crossed
            metadata: Extra context (unit, timeframe, ...)

        Returns:
            The new Alert, or None when suppressed by the cooldown or when
            severity is good
        """
        severity = AlertSeverity(severity)
        if severity == AlertSeverity.GOOD:
            return None

        with self._lock:
            now = self._clock()
            existing = self._active.get(key)
            if existing is not None and now - existing.last_sent < self.cooldown:
                log.debug(
                    "alert_suppressed",
                    key=key,
                    severity=severity.value,
                    cooldown_remaining=str(self.cooldown - (now - existing.last_sent)),
                )
                return None

            alert = Alert(
                key=key,
                type=type,
                severity=severity,
                asset_id=str(asset_id),
                asset_name=asset_name,
                message=message,
                value=value,
                threshold=threshold,
                timestamp=now,
                last_sent=now,
                metadata=dict(metadata or {}),
            )
            self._active[key] = alert
            self._history.append(alert)
            snapshot = alert.model_copy(deep=True)

        self._publish(AlertTriggered(snapshot.model_copy(deep=True)))
        log.info(
            "alert_triggered",
            key=key,
            type=type,
            severity=severity.value,
            asset=asset_name,
            message=message,
        )
        self._notify(snapshot)
        return snapshot

    def clear_alert(self, key: str) -> bool:
        """Remove an alert from the active map. History is untouched.

        Returns:
            True if an alert was cleared, False if the key was not active
        """
        with self._lock:
            alert = self._active.pop(key, None)
            if alert is None:
                return False

        self._publish(AlertCleared(key=key, message=alert.message))
        log.info("alert_cleared", key=key)
        return True

    def acknowledge_alert(
        self,
        alert_id: str,
        notes: Optional[str] = None,
        acknowledged_by: Optional[str] = None,
    ) -> Alert:
        """Acknowledge an active alert in place; it stays active.

        Raises:
            AlertNotFoundError: If no active alert has this id
        """
        with self._lock:
            alert = next((a for a in self._active.values() if a.id == alert_id), None)
            if alert is None:
                raise AlertNotFoundError(f"Alert not found: {alert_id}")
            alert.acknowledge(at=self._clock(), notes=notes, by=acknowledged_by)
            snapshot = alert.model_copy(deep=True)

        log.info("alert_acknowledged", alert_id=alert_id, by=acknowledged_by, notes=notes)
        return snapshot

    def test_alert(
        self,
        type: str = "test",
        severity: Union[AlertSeverity, str] = AlertSeverity.WARNING,
        asset_id: Optional[str] = None,
        triggered_by: Optional[str] = None,
    ) -> Optional[Alert]:
        """Inject a synthetic alert, bypassing metric evaluation.

        The alert goes through trigger_alert, so cooldown and history rules
        apply to it like any other alert.

        Raises:
            ValueError: If severity is not warning or critical
        """
        severity = AlertSeverity(severity)
        if severity == AlertSeverity.GOOD:
            raise ValueError("Test alert severity must be 'warning' or 'critical'")

        asset = TEST_ASSET
        if asset_id and self._event_store is not None:
            asset = self._event_store.get_asset_by_id(asset_id) or TEST_ASSET

        log.info("test_alert_requested", type=type, severity=severity.value, asset_id=asset.id)
        return self.trigger_alert(
            key=f"test_{type}_{asset.id}",
            type=type,
            severity=severity,
            asset_id=asset.id,
            asset_name=asset.name,
            message=f"Test {severity.value} alert for {asset.name}",
            value=50,
            threshold=75,
            metadata={"test": True, "triggered_by": triggered_by},
        )

    # Queries

    def get_active_alerts(self) -> List[Alert]:
        """Active alerts in trigger order."""
        with self._lock:
            return [a.model_copy(deep=True) for a in self._active.values()]

    def get_active_alert(self, key: str) -> Optional[Alert]:
        """The active alert for ``key``, if any."""
        with self._lock:
            alert = self._active.get(key)
            return alert.model_copy(deep=True) if alert else None

    def get_alert_history(
        self,
        limit: int = 100,
        severity: Optional[Union[AlertSeverity, str]] = None,
        type: Optional[str] = None,
        asset_id: Optional[str] = None,
    ) -> List[Alert]:
        """The most recent ``limit`` history entries matching the filters, oldest first."""
        with self._lock:
            entries = list(self._history)

        if severity is not None:
            entries = [a for a in entries if a.severity == AlertSeverity(severity)]
        if type is not None:
            entries = [a for a in entries if a.type == type]
        if asset_id is not None:
            entries = [a for a in entries if a.asset_id == str(asset_id)]

        if limit <= 0:
            return []
        return [a.model_copy(deep=True) for a in entries[-limit:]]

    def get_alert_statistics(self, timeframe_days: int = 7) -> Dict[str, Any]:
        """Counts of recent history entries by severity, type and asset."""
        cutoff = self._clock() - timedelta(days=timeframe_days)
        with self._lock:
            recent = [a for a in self._history if a.timestamp > cutoff]

        return {
            "total": len(recent),
            "by_severity": {
                AlertSeverity.CRITICAL.value: sum(1 for a in recent if a.is_critical),
                AlertSeverity.WARNING.value: sum(1 for a in recent if not a.is_critical),
            },
            "by_type": dict(Counter(a.type for a in recent)),
            "by_asset": dict(Counter(a.asset_name or "Unknown" for a in recent)),
            "acknowledged": sum(1 for a in recent if a.acknowledged),
            "unacknowledged": sum(1 for a in recent if not a.acknowledged),
            "timeframe_days": timeframe_days,
        }

    def cleanup_old_alerts(self) -> int:
        """Drop history entries older than the retention period.

        Returns:
            Number of entries removed
        """
        cutoff = self._clock() - self.history_retention
        with self._lock:
            before = len(self._history)
            self._history = [a for a in self._history if a.timestamp > cutoff]
            removed = before - len(self._history)

        log.info("alert_history_cleaned", removed=removed, remaining=before - removed)
        return removed

    # Side effects

    def _publish(self, message: AlertMessage) -> None:
        try:
            self._publisher.publish(message)
        except Exception as e:
            log.error("alert_publish_failed", topic=message.topic, error=str(e))

    def _notify(self, alert: Alert) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(alert)
        except Exception as e:
            log.error("alert_notify_failed", key=alert.key, error=str(e))
