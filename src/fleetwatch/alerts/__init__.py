"""Threshold alerting: evaluation, lifecycle, broadcast and sweeps."""

from fleetwatch.alerts.events import (
    AlertCleared,
    AlertMessage,
    AlertPublisher,
    AlertTriggered,
    LoggingPublisher,
    RecordingPublisher,
)
from fleetwatch.alerts.manager import AlertManager, AlertNotFoundError, ThresholdPersistenceError
from fleetwatch.alerts.monitor import AlertMonitor, format_alert_message
from fleetwatch.alerts.thresholds import (
    DEFAULT_ALERT_THRESHOLDS,
    LEVELS,
    METRIC_DIRECTIONS,
    METRIC_UNITS,
    ThresholdConfig,
    UnknownMetricError,
    ValidationResult,
    default_thresholds,
    evaluate,
    is_higher_better,
    merge_thresholds,
    validate_thresholds,
)

__all__ = [
    "AlertCleared",
    "AlertManager",
    "AlertMessage",
    "AlertMonitor",
    "AlertNotFoundError",
    "AlertPublisher",
    "AlertTriggered",
    "DEFAULT_ALERT_THRESHOLDS",
    "LEVELS",
    "LoggingPublisher",
    "METRIC_DIRECTIONS",
    "METRIC_UNITS",
    "RecordingPublisher",
    "ThresholdConfig",
    "ThresholdPersistenceError",
    "UnknownMetricError",
    "ValidationResult",
    "default_thresholds",
    "evaluate",
    "format_alert_message",
    "is_higher_better",
    "merge_thresholds",
    "validate_thresholds",
]
