"""Alert model for threshold breaches."""

import time
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from fleetwatch.models.enums import AlertSeverity


def generate_alert_id() -> str:
    """Create a unique alert id of the form ``alert_<ms>_<random>``."""
    return f"alert_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


def make_alert_key(metric: str, asset_id: str) -> str:
    """Composite key for the active-alert map: one live alert per metric and asset."""
    return f"{metric}_{asset_id}"


class Alert(BaseModel):
    """A triggered threshold alert.

    The same instance lives in the active map and in the history log, so an
    acknowledgement is visible in both.
    """

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    id: str = Field(default_factory=generate_alert_id, description="Unique alert id")
    key: str = Field(..., description="Composite metric+asset key")
    type: str = Field(..., description="Metric or alert type, e.g. 'availability'")
    severity: AlertSeverity = Field(..., description="warning or critical")
    asset_id: str = Field(..., description="Asset the alert concerns")
    asset_name: str = Field(default="Unknown", description="Human-readable asset name")
    message: str = Field(..., description="Operator-facing message")
    value: Optional[float] = Field(default=None, description="Observed metric value")
    threshold: Optional[float] = Field(default=None, description="Threshold that was crossed")
    timestamp: datetime = Field(..., description="When the alert was triggered")
    last_sent: datetime = Field(..., description="When notifications were last dispatched")
    acknowledged: bool = Field(default=False)
    acknowledged_by: Optional[str] = Field(default=None)
    acknowledged_at: Optional[datetime] = Field(default=None)
    acknowledged_notes: Optional[str] = Field(default=None)
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_critical(self) -> bool:
        """Check if this alert is critical."""
        return self.severity == AlertSeverity.CRITICAL

    @property
    def unit(self) -> str:
        """Unit of ``value``/``threshold`` if the alert carries one."""
        return str(self.metadata.get("unit", ""))

    def acknowledge(
        self,
        at: datetime,
        notes: Optional[str] = None,
        by: Optional[str] = None,
    ) -> None:
        """Mark the alert acknowledged in place."""
        self.acknowledged = True
        self.acknowledged_at = at
        self.acknowledged_notes = notes
        self.acknowledged_by = by
