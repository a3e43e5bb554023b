"""Notification settings as stored by the settings subsystem.

Settings written by the dashboard use camelCase keys (``eventNotifications``,
``alertThresholds``) and camelCase event names (``assetStopped``); both
spellings are accepted on read.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel, to_snake

ASSET_STOPPED = "asset_stopped"
ASSET_WARNING = "asset_warning"

# Alert type -> notification event it is routed through
ALERT_EVENT_TYPES: Dict[str, str] = {
    "availability": ASSET_STOPPED,
    "downtime": ASSET_STOPPED,
    "mtbf": ASSET_WARNING,
    "mttr": ASSET_WARNING,
    "frequency": ASSET_WARNING,
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChannelToggles(_CamelModel):
    """Global on/off switch per delivery channel."""

    in_app: bool = True
    email: bool = False
    sms: bool = False


class EventNotification(_CamelModel):
    """Routing for one notification event."""

    enabled: bool = True
    channels: List[str] = Field(default_factory=lambda: ["in_app"])
    recipients: List[str] = Field(default_factory=list, description="Email addresses")
    phone_numbers: List[str] = Field(default_factory=list, description="SMS recipients")


def _default_events() -> Dict[str, EventNotification]:
    return {
        ASSET_STOPPED: EventNotification(channels=["in_app", "email"]),
        ASSET_WARNING: EventNotification(channels=["in_app"]),
    }


class NotificationSettings(_CamelModel):
    """Notification preferences and persisted alert thresholds."""

    enabled: bool = True
    channels: ChannelToggles = Field(default_factory=ChannelToggles)
    event_notifications: Dict[str, EventNotification] = Field(default_factory=_default_events)
    alert_thresholds: Dict[str, Dict[str, float]] = Field(default_factory=dict)

    @field_validator("event_notifications", mode="before")
    @classmethod
    def normalize_event_keys(cls, v: Any) -> Any:
        """Event names arrive as assetStopped or asset_stopped."""
        if isinstance(v, dict):
            return {to_snake(name): event for name, event in v.items()}
        return v

    def event_for(self, alert_type: str) -> EventNotification:
        """Routing for an alert type; unknown types route as warnings."""
        event = ALERT_EVENT_TYPES.get(alert_type, ASSET_WARNING)
        return self.event_notifications.get(event) or _default_events()[event]
