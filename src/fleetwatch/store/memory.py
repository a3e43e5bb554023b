"""In-memory event store, optionally loaded from a snapshot file."""

import json
import threading
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog
import yaml
from pydantic import ValidationError

from fleetwatch.models.asset import Asset, Event
from fleetwatch.store.base import StoreError
from fleetwatch.utils.clock import Clock, utc_now
from fleetwatch.utils.timestamps import DurationUnit

log = structlog.get_logger()


def _read_snapshot(path: Path) -> Dict[str, Any]:
    """Parse a JSON or YAML snapshot file into a mapping."""
    if not path.exists():
        raise StoreError(f"Snapshot file not found: {path}")

    try:
        content = path.read_text(encoding="utf-8")
        if path.suffix.lower() in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        else:
            data = json.loads(content)
    except (OSError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise StoreError(f"Cannot parse snapshot {path}: {e}") from e

    if not isinstance(data, dict):
        raise StoreError(f"Snapshot {path} must contain a mapping with 'assets' and 'events'")
    return data


def _parse_snapshot(
    data: Dict[str, Any],
    duration_unit: DurationUnit,
) -> Tuple[List[Asset], List[Event]]:
    try:
        assets = [Asset.from_record(r) for r in data.get("assets") or []]
        events = [Event.from_record(r, duration_unit=duration_unit) for r in data.get("events") or []]
    except (ValidationError, ValueError, TypeError) as e:
        raise StoreError(f"Invalid snapshot record: {e}") from e
    return assets, events


class InMemoryEventStore:
    """Thread-safe event store holding assets and events in memory.

    Implements the EventStore protocol. Events are kept sorted by
    timestamp; queries return them oldest first.

    Usage:
        store = InMemoryEventStore.from_snapshot("/data/fleet.json")
        store.get_archived_events(asset_id="7", timeframe_days=7)
    """

    def __init__(
        self,
        assets: Optional[Iterable[Asset]] = None,
        events: Optional[Iterable[Event]] = None,
        clock: Clock = utc_now,
    ) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._assets: Dict[str, Asset] = {}
        self._events: List[Event] = []
        self._snapshot_path: Optional[Path] = None
        self._duration_unit: DurationUnit = "s"
        self.replace(assets or [], events or [])

    @classmethod
    def from_snapshot(
        cls,
        path: str,
        duration_unit: DurationUnit = "s",
        clock: Clock = utc_now,
    ) -> "InMemoryEventStore":
        """Load a store from a JSON or YAML snapshot.

        The snapshot is a mapping with ``assets`` and ``events`` lists of raw
        records. Event durations are converted from ``duration_unit``.

        Raises:
            StoreError: If the file is missing or malformed
        """
        store = cls(clock=clock)
        store._snapshot_path = Path(path)
        store._duration_unit = duration_unit
        store.reload()
        return store

    def reload(self) -> None:
        """Re-read the snapshot file this store was loaded from."""
        if self._snapshot_path is None:
            return
        data = _read_snapshot(self._snapshot_path)
        assets, events = _parse_snapshot(data, self._duration_unit)
        self.replace(assets, events)
        log.info(
            "snapshot_loaded",
            path=str(self._snapshot_path),
            assets=len(assets),
            events=len(events),
        )

    def replace(self, assets: Iterable[Asset], events: Iterable[Event]) -> None:
        """Swap the full contents of the store."""
        asset_map = {a.id: a for a in assets}
        ordered = sorted(events, key=lambda e: e.timestamp)
        with self._lock:
            self._assets = asset_map
            self._events = ordered

    def add_asset(self, asset: Asset) -> None:
        """Insert or replace an asset."""
        with self._lock:
            self._assets[asset.id] = asset

    def add_events(self, events: Iterable[Event]) -> None:
        """Append events, keeping timestamp order."""
        with self._lock:
            self._events = sorted([*self._events, *events], key=lambda e: e.timestamp)

    def get_all_assets(self) -> List[Asset]:
        with self._lock:
            return list(self._assets.values())

    def get_asset_by_id(self, asset_id: str) -> Optional[Asset]:
        with self._lock:
            return self._assets.get(str(asset_id))

    def get_archived_events(
        self,
        asset_id: Optional[str] = None,
        timeframe_days: Optional[int] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[Event]:
        """Events matching every given filter, oldest first.

        Args:
            asset_id: Only events for this asset
            timeframe_days: Only events from the trailing N days; ignored
                when ``start_date`` is given
            start_date: Inclusive lower bound
            end_date: Inclusive upper bound
            limit: Keep only the most recent N matches
        """
        if start_date is None and timeframe_days is not None:
            start_date = self._clock() - timedelta(days=timeframe_days)

        with self._lock:
            events = list(self._events)

        if asset_id is not None:
            events = [e for e in events if e.asset_id == str(asset_id)]
        if start_date is not None:
            events = [e for e in events if e.timestamp >= start_date]
        if end_date is not None:
            events = [e for e in events if e.timestamp <= end_date]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events
