"""Store contracts.

The relational event/asset store and the settings store are owned by other
subsystems; fleetwatch only calls them through these protocols.
"""

from datetime import datetime
from typing import List, Optional, Protocol

from fleetwatch.models.asset import Asset, Event
from fleetwatch.models.notification import NotificationSettings


class StoreError(Exception):
    """Raised when a store cannot be read or written."""

    pass


class EventStore(Protocol):
    """Read-only access to assets and their archived events."""

    def get_all_assets(self) -> List[Asset]:
        ...

    def get_asset_by_id(self, asset_id: str) -> Optional[Asset]:
        ...

    def get_archived_events(
        self,
        asset_id: Optional[str] = None,
        timeframe_days: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Event]:
        ...


class SettingsStore(Protocol):
    """Notification settings, including the persisted alert thresholds."""

    def get_notification_settings(self) -> NotificationSettings:
        ...

    def update_notification_settings(self, settings: NotificationSettings) -> None:
        ...
