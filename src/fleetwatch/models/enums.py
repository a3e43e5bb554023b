"""Shared enumerations for fleetwatch models."""

from enum import Enum


class AssetState(str, Enum):
    """Operating state of a monitored asset."""

    RUNNING = "RUNNING"
    STOPPED = "STOPPED"


class EventType(str, Enum):
    """Known event types emitted by the event-ingestion subsystem."""

    STATE_CHANGE = "STATE_CHANGE"
    STOP = "STOP"
    START = "START"


class RiskLevel(str, Enum):
    """Ordinal risk tier derived from the health score."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class TrendDirection(str, Enum):
    """Classification of a metric's least-squares slope."""

    IMPROVING = "IMPROVING"
    STABLE = "STABLE"
    DECLINING = "DECLINING"


class AlertSeverity(str, Enum):
    """Outcome of a threshold evaluation."""

    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"


class Priority(str, Enum):
    """Maintenance recommendation priority."""

    URGENT = "URGENT"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Level(str, Enum):
    """Generic HIGH/MEDIUM/LOW grading used for anomaly severity and cost impact."""

    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"
