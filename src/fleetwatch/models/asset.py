"""Asset and event models.

Both are owned by the event-ingestion subsystem and are read-only here.
Raw store records are normalized on the way in: timestamps become UTC-aware
datetimes and durations become seconds.
"""

from datetime import datetime
from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fleetwatch.models.enums import AssetState, EventType
from fleetwatch.utils.timestamps import DurationUnit, normalize_timestamp, to_seconds


class Asset(BaseModel):
    """A monitored industrial asset with cumulative runtime counters."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str = Field(..., description="Asset identifier")
    name: str = Field(default="Unknown", description="Human-readable asset name")
    current_state: AssetState = Field(
        default=AssetState.RUNNING, description="Current operating state"
    )
    runtime: float = Field(default=0.0, ge=0, description="Cumulative runtime in seconds")
    downtime: float = Field(default=0.0, ge=0, description="Cumulative downtime in seconds")
    total_stops: int = Field(default=0, ge=0, description="Cumulative stop count")
    last_stop_time: Optional[datetime] = Field(
        default=None, description="When the current stop began (UTC)"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        """Accept integer primary keys from relational stores."""
        return str(v)

    @field_validator("current_state", mode="before")
    @classmethod
    def normalize_state(cls, v: Any) -> Any:
        """Accept lowercase state strings ('running', 'stopped')."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("last_stop_time", mode="before")
    @classmethod
    def normalize_stop_time(cls, v: Any) -> Optional[datetime]:
        """Normalize stop time to UTC."""
        if v is None or v == "":
            return None
        return normalize_timestamp(v)

    @property
    def is_stopped(self) -> bool:
        """Check if the asset is currently stopped."""
        return self.current_state == AssetState.STOPPED

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "Asset":
        """Build an Asset from a raw store record.

        Accepts both snake_case and the camelCase field names used by the
        dashboard API (``lastStopTime``, ``totalStops``, ``status``).
        """
        return cls(
            id=record.get("id", ""),
            name=record.get("name") or "Unknown",
            current_state=record.get("current_state") or record.get("status") or "RUNNING",
            runtime=record.get("runtime") or 0,
            downtime=record.get("downtime") or 0,
            total_stops=record.get("total_stops") or record.get("totalStops") or 0,
            last_stop_time=record.get("last_stop_time") or record.get("lastStopTime"),
        )


class Event(BaseModel):
    """A discrete asset event. ``duration`` is always in seconds."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    timestamp: datetime = Field(..., description="When the event occurred (UTC)")
    asset_id: str = Field(..., description="Asset the event belongs to")
    event_type: Union[EventType, str] = Field(..., description="Event type")
    previous_state: Optional[str] = Field(default=None, description="State before the event")
    new_state: Optional[str] = Field(default=None, description="State after the event")
    duration: float = Field(default=0.0, ge=0, description="Duration in seconds")
    stop_reason: Optional[str] = Field(default=None, description="Operator-supplied stop cause")

    @field_validator("timestamp", mode="before")
    @classmethod
    def normalize_event_timestamp(cls, v: Any) -> datetime:
        """Normalize timestamp to UTC."""
        return normalize_timestamp(v)

    @field_validator("asset_id", mode="before")
    @classmethod
    def coerce_asset_id(cls, v: Any) -> str:
        """Accept integer foreign keys."""
        return str(v)

    @field_validator("event_type", mode="before")
    @classmethod
    def parse_event_type(cls, v: Any) -> Union[EventType, str]:
        """Map known types onto EventType, keep unknown types as strings."""
        if isinstance(v, EventType):
            return v
        text = str(v).upper()
        try:
            return EventType(text)
        except ValueError:
            return text

    @field_validator("previous_state", "new_state", mode="before")
    @classmethod
    def normalize_states(cls, v: Any) -> Optional[str]:
        """Upper-case state names."""
        if v is None:
            return None
        return str(v).upper()

    @property
    def is_stop(self) -> bool:
        """Check if this is a STOP event."""
        return self.event_type == EventType.STOP

    @property
    def is_state_change(self) -> bool:
        """Check if this is a STATE_CHANGE event."""
        return self.event_type == EventType.STATE_CHANGE

    @classmethod
    def from_record(
        cls,
        record: Dict[str, Any],
        duration_unit: DurationUnit = "s",
    ) -> "Event":
        """Build an Event from a raw store record.

        Args:
            record: Raw event dict from the event store
            duration_unit: Unit of ``record["duration"]``, "s" or "ms"

        Returns:
            Event with duration converted to seconds
        """
        return cls(
            timestamp=record["timestamp"],
            asset_id=record.get("asset_id", record.get("assetId", "")),
            event_type=record.get("event_type") or record.get("type") or "",
            previous_state=record.get("previous_state"),
            new_state=record.get("new_state"),
            duration=to_seconds(record.get("duration"), duration_unit),
            stop_reason=record.get("stop_reason"),
        )
