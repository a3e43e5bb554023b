"""JSON file settings store with atomic writes for crash-safe persistence."""

import json
import shutil
import tempfile
from pathlib import Path

import structlog
from pydantic import ValidationError

from fleetwatch.models.notification import NotificationSettings
from fleetwatch.store.base import StoreError

log = structlog.get_logger()


class JsonSettingsStore:
    """Notification settings kept in a single JSON file.

    A missing file means "never configured" and yields the default
    settings. Writes go to a temp file in the same directory and are then
    renamed over the target, so a crash never leaves a half-written file.
    """

    def __init__(self, path: str) -> None:
        """Initialize the store.

        Args:
            path: Settings file path; its directory is created on first write
        """
        self.path = Path(path)

    def get_notification_settings(self) -> NotificationSettings:
        """Read settings from disk.

        Raises:
            StoreError: If the file exists but cannot be read or parsed
        """
        if not self.path.exists():
            log.debug("settings_file_not_found", path=str(self.path))
            return NotificationSettings()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            settings = NotificationSettings.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            log.warning("settings_file_corrupted", path=str(self.path), error=str(e))
            raise StoreError(f"Cannot read settings from {self.path}: {e}") from e

        log.debug("settings_loaded", path=str(self.path))
        return settings

    def update_notification_settings(self, settings: NotificationSettings) -> None:
        """Write settings atomically.

        Raises:
            StoreError: If the settings file cannot be written
        """
        content = json.dumps(settings.model_dump(mode="json"), indent=2) + "\n"

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=self.path.parent,
                prefix=".tmp-settings-",
                suffix=".json",
            )
        except OSError as e:
            log.error("settings_write_failed", path=str(self.path), error=str(e))
            raise StoreError(f"Cannot write settings to {self.path}: {e}") from e

        try:
            with open(temp_fd, "w", encoding="utf-8") as f:
                f.write(content)
            # Atomic rename (same filesystem)
            shutil.move(temp_path, self.path)
        except OSError as e:
            Path(temp_path).unlink(missing_ok=True)
            log.error("settings_write_failed", path=str(self.path), error=str(e))
            raise StoreError(f"Cannot write settings to {self.path}: {e}") from e

        log.info("settings_saved", path=str(self.path))
