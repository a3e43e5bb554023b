"""Data models for fleetwatch."""

from .alert import Alert, make_alert_key
from .asset import Asset, Event
from .enums import (
    AlertSeverity,
    AssetState,
    EventType,
    Level,
    Priority,
    RiskLevel,
    TrendDirection,
)
from .insight import HealthInsight, PredictiveMaintenanceReport, Recommendation
from .notification import EventNotification, NotificationSettings

__all__ = [
    "Alert",
    "AlertSeverity",
    "Asset",
    "AssetState",
    "Event",
    "EventNotification",
    "EventType",
    "HealthInsight",
    "Level",
    "NotificationSettings",
    "PredictiveMaintenanceReport",
    "Priority",
    "Recommendation",
    "RiskLevel",
    "TrendDirection",
    "make_alert_key",
]
