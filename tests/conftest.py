"""Shared fixtures for fleetwatch tests."""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional

import pytest

from fleetwatch.models.alert import Alert
from fleetwatch.models.asset import Asset, Event
from fleetwatch.models.enums import AlertSeverity, AssetState, EventType

# Wednesday, fixed so windows and weekday buckets are deterministic
FIXED_NOW = datetime(2024, 6, 12, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    """Clock pinned to FIXED_NOW."""
    return FakeClock()


@pytest.fixture
def make_asset() -> Callable[..., Asset]:
    """Factory for assets with sensible defaults."""

    def _make(
        asset_id: str = "1",
        name: str = "Press 1",
        state: AssetState = AssetState.RUNNING,
        runtime: float = 3600,
        downtime: float = 0,
        last_stop_time: Optional[datetime] = None,
    ) -> Asset:
        return Asset(
            id=asset_id,
            name=name,
            current_state=state,
            runtime=runtime,
            downtime=downtime,
            last_stop_time=last_stop_time,
        )

    return _make


@pytest.fixture
def make_stop() -> Callable[..., Event]:
    """Factory for STOP events relative to FIXED_NOW."""

    def _make(
        asset_id: str = "1",
        ago: timedelta = timedelta(hours=1),
        duration: float = 600,
    ) -> Event:
        return Event(
            timestamp=FIXED_NOW - ago,
            asset_id=asset_id,
            event_type=EventType.STOP,
            previous_state="RUNNING",
            new_state="STOPPED",
            duration=duration,
        )

    return _make


@pytest.fixture
def make_state_change() -> Callable[..., Event]:
    """Factory for STATE_CHANGE events relative to FIXED_NOW."""

    def _make(
        asset_id: str = "1",
        ago: timedelta = timedelta(hours=1),
        new_state: str = "RUNNING",
        duration: float = 3600,
    ) -> Event:
        return Event(
            timestamp=FIXED_NOW - ago,
            asset_id=asset_id,
            event_type=EventType.STATE_CHANGE,
            previous_state="STOPPED" if new_state == "RUNNING" else "RUNNING",
            new_state=new_state,
            duration=duration,
        )

    return _make


def stops_every(
    count: int,
    spacing: timedelta,
    duration: float = 600,
    asset_id: str = "1",
    start_ago: timedelta = timedelta(minutes=30),
) -> List[Event]:
    """``count`` STOP events spaced ``spacing`` apart, newest first."""
    return [
        Event(
            timestamp=FIXED_NOW - start_ago - spacing * i,
            asset_id=asset_id,
            event_type=EventType.STOP,
            duration=duration,
        )
        for i in range(count)
    ]


@pytest.fixture
def stop_series() -> Callable[..., List[Event]]:
    """Factory for evenly spaced STOP events."""
    return stops_every


@pytest.fixture
def make_alert() -> Callable[..., Alert]:
    """Factory for triggered alerts."""

    def _make(
        type: str = "availability",
        severity: AlertSeverity = AlertSeverity.CRITICAL,
        asset_id: str = "4",
        asset_name: str = "Press 4",
    ) -> Alert:
        return Alert(
            key=f"{type}_{asset_id}",
            type=type,
            severity=severity,
            asset_id=asset_id,
            asset_name=asset_name,
            message=f"Critical: Asset {asset_name} availability is 65.0% (below 70%)",
            value=65.0,
            threshold=70,
            timestamp=FIXED_NOW,
            last_sent=FIXED_NOW,
            metadata={"unit": "%"},
        )

    return _make


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Isolate a test from the host's FLEETWATCH_* variables and any stray .env file."""
    from fleetwatch.config import loader

    for key in list(os.environ):
        if key.startswith("FLEETWATCH_"):
            monkeypatch.delenv(key)
    # load_config writes CONFIG_PATH; register it so it is removed afterwards
    monkeypatch.setenv("CONFIG_PATH", "")
    monkeypatch.delenv("CONFIG_PATH")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(loader, "_config", None)
