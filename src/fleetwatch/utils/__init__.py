"""Shared helpers for time handling."""

from fleetwatch.utils.clock import Clock, utc_now
from fleetwatch.utils.timestamps import normalize_timestamp, to_seconds

__all__ = ["Clock", "normalize_timestamp", "to_seconds", "utc_now"]
