"""Load, validate and hold the process-wide configuration.

Sources, highest priority first: FLEETWATCH_* environment variables,
Docker secrets named by FLEETWATCH_*_FILE, the YAML file at CONFIG_PATH,
then field defaults.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml
from pydantic import ValidationError

from fleetwatch.config.settings import FleetwatchSettings

ENV_PREFIX = "FLEETWATCH_"
SECRET_SUFFIX = "_FILE"

log = structlog.get_logger()

_config: Optional[FleetwatchSettings] = None
_config_lock = threading.Lock()


class ConfigurationError(Exception):
    """Raised when configuration is invalid or cannot be loaded."""

    pass


def resolve_file_secrets() -> Dict[str, str]:
    """Read secrets referenced by FLEETWATCH_<NAME>_FILE variables.

    Returns:
        NAME -> file contents, e.g. {"SMTP_PASSWORD": "..."}. Files that do
        not exist are skipped with a warning.
    """
    secrets: Dict[str, str] = {}
    for key, filepath in os.environ.items():
        if not (key.startswith(ENV_PREFIX) and key.endswith(SECRET_SUFFIX)):
            continue
        name = key[len(ENV_PREFIX) : -len(SECRET_SUFFIX)]
        path = Path(filepath)
        if not path.is_file():
            log.warning("secret_file_not_found", env_var=key, path=filepath)
            continue
        try:
            secrets[name] = path.read_text().strip()
        except OSError as e:
            raise ConfigurationError(f"Cannot read secret file '{filepath}' named by {key}: {e}") from e
    return secrets


def _check_config_file(path: str) -> None:
    # The settings source skips unreadable files silently; fail loudly here instead
    try:
        with open(path) as f:
            yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(
            f"Configuration file not found: {path}. "
            "Point CONFIG_PATH at a YAML file or unset it to use environment variables only."
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}") from e


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    """Turn pydantic error dicts into one operator-facing line each."""
    messages = []
    for error in errors:
        field = ".".join(str(part) for part in error.get("loc", ()))
        msg = error.get("msg", "Invalid value")
        if not field:
            line = msg
        elif "required" in msg.lower() or "missing" in msg.lower():
            line = (
                f"'{field}' is required. Set {ENV_PREFIX}{field.upper()} "
                f"or add '{field}:' to the config file."
            )
        elif error.get("input") is not None:
            line = f"'{field}' {msg}, got: {error['input']}"
        else:
            line = f"'{field}' {msg}"
        messages.append(f"Configuration error: {line}")
    return messages


def load_config(config_path: Optional[str] = None) -> FleetwatchSettings:
    """Load, validate and install the process configuration.

    Args:
        config_path: YAML file to use instead of the CONFIG_PATH variable.

    Raises:
        ConfigurationError: If a file cannot be read or validation fails.
            Every validation problem is reported in one message.
    """
    global _config

    if config_path:
        os.environ["CONFIG_PATH"] = config_path
    yaml_path = os.environ.get("CONFIG_PATH")
    if yaml_path:
        _check_config_file(yaml_path)

    # Secrets rank below plain environment variables
    overrides = {
        name.lower(): value
        for name, value in resolve_file_secrets().items()
        if f"{ENV_PREFIX}{name}" not in os.environ
        and name.lower() in FleetwatchSettings.model_fields
    }

    try:
        settings = FleetwatchSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError("\n".join(format_validation_errors(e.errors()))) from e

    with _config_lock:
        _config = settings
    log.debug("config_loaded", config_file=yaml_path, secrets=sorted(overrides))
    return settings


def get_config() -> FleetwatchSettings:
    """The configuration installed by load_config().

    Raises:
        ConfigurationError: If load_config() has not run.
    """
    with _config_lock:
        if _config is None:
            raise ConfigurationError("Configuration not loaded. Call load_config() first.")
        return _config


def reload_config() -> FleetwatchSettings:
    """Re-read every source; the previous config stays installed if this fails."""
    return load_config()
