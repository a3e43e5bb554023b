"""Configuration management for fleetwatch."""

from fleetwatch.config.loader import ConfigurationError, get_config, load_config, reload_config
from fleetwatch.config.settings import FleetwatchSettings

__all__ = [
    "ConfigurationError",
    "FleetwatchSettings",
    "get_config",
    "load_config",
    "reload_config",
]
