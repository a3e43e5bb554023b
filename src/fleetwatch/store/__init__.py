"""Store contracts and reference adapters."""

from fleetwatch.store.base import EventStore, SettingsStore, StoreError
from fleetwatch.store.memory import InMemoryEventStore
from fleetwatch.store.settings import JsonSettingsStore

__all__ = [
    "EventStore",
    "InMemoryEventStore",
    "JsonSettingsStore",
    "SettingsStore",
    "StoreError",
]
