"""Tests for configuration loading."""

from datetime import timedelta
from pathlib import Path

import pytest

from fleetwatch.config.loader import (
    ConfigurationError,
    format_validation_errors,
    get_config,
    load_config,
    reload_config,
    resolve_file_secrets,
)
from fleetwatch.config.settings import FleetwatchSettings


pytestmark = pytest.mark.usefixtures("clean_env")


def write_yaml(tmp_path: Path, content: str) -> str:
    path = tmp_path / "config.yaml"
    path.write_text(content)
    return str(path)


class TestSettingsDefaults:
    """Test FleetwatchSettings defaults and helpers."""

    def test_defaults(self) -> None:
        settings = FleetwatchSettings()

        assert settings.log_level == "INFO"
        assert settings.log_format == "json"
        assert settings.email_enabled is False
        assert settings.smtp_port == 587
        assert settings.event_duration_unit == "s"
        assert settings.alert_cooldown == timedelta(minutes=15)
        assert settings.history_retention == timedelta(hours=24)

    def test_sweep_intervals(self) -> None:
        assert FleetwatchSettings().sweep_intervals() == {
            "availability_sweep": 300,
            "downtime_sweep": 60,
            "performance_sweep": 600,
            "history_cleanup": 3600,
        }

    def test_analytics_thresholds(self) -> None:
        thresholds = FleetwatchSettings(critical_availability=60, max_stop_duration=900).analytics_thresholds()
        assert thresholds.critical_availability == 60
        assert thresholds.warning_availability == 85
        assert thresholds.max_stop_duration == 900

    def test_alert_recipients(self) -> None:
        settings = FleetwatchSettings(alert_recipients=" a@x.com, ,b@x.com ")
        assert settings.get_alert_recipients() == ["a@x.com", "b@x.com"]
        assert FleetwatchSettings().get_alert_recipients() == []

    def test_log_level_normalized(self) -> None:
        assert FleetwatchSettings(log_level="warn").log_level == "WARNING"


class TestLoadConfig:
    """Test load_config() precedence and validation."""

    def test_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLEETWATCH_LOG_LEVEL", "debug")
        monkeypatch.setenv("FLEETWATCH_DOWNTIME_CHECK_INTERVAL", "30")

        settings = load_config()

        assert settings.log_level == "DEBUG"
        assert settings.downtime_check_interval == 30

    def test_yaml_file(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path, "smtp_port: 465\nalert_cooldown_minutes: 5\ntimezone: Europe/Berlin\n")

        settings = load_config(path)

        assert settings.smtp_port == 465
        assert settings.alert_cooldown == timedelta(minutes=5)
        assert settings.timezone == "Europe/Berlin"

    def test_environment_beats_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = write_yaml(tmp_path, "log_level: ERROR\n")
        monkeypatch.setenv("FLEETWATCH_LOG_LEVEL", "DEBUG")

        assert load_config(path).log_level == "DEBUG"

    def test_file_secret(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        secret = tmp_path / "smtp_password"
        secret.write_text("s3cret\n")
        monkeypatch.setenv("FLEETWATCH_SMTP_PASSWORD_FILE", str(secret))

        assert resolve_file_secrets() == {"SMTP_PASSWORD": "s3cret"}
        assert load_config().smtp_password == "s3cret"

    def test_environment_beats_file_secret(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        secret = tmp_path / "smtp_password"
        secret.write_text("from-file")
        monkeypatch.setenv("FLEETWATCH_SMTP_PASSWORD_FILE", str(secret))
        monkeypatch.setenv("FLEETWATCH_SMTP_PASSWORD", "from-env")

        assert load_config().smtp_password == "from-env"

    def test_missing_secret_file_is_skipped(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLEETWATCH_SMTP_PASSWORD_FILE", "/nonexistent/secret")
        assert resolve_file_secrets() == {}

    def test_missing_file(self) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config("/nonexistent/config.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path, "log_level: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(path)

    def test_email_requires_host(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLEETWATCH_EMAIL_ENABLED", "true")
        with pytest.raises(ConfigurationError, match="smtp_host is required"):
            load_config()

    def test_availability_levels_ordered(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLEETWATCH_CRITICAL_AVAILABILITY", "90")
        with pytest.raises(ConfigurationError, match="critical_availability"):
            load_config()

    def test_all_errors_reported(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FLEETWATCH_TIMEZONE", "Mars/Olympus")
        monkeypatch.setenv("FLEETWATCH_SMTP_PORT", "70000")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config()

        message = str(exc_info.value)
        assert "'timezone'" in message
        assert "'smtp_port'" in message


class TestGlobalConfig:
    """Test get_config() and reload_config()."""

    def test_get_before_load(self) -> None:
        with pytest.raises(ConfigurationError, match="not loaded"):
            get_config()

    def test_get_after_load(self) -> None:
        settings = load_config()
        assert get_config() is settings

    def test_reload_picks_up_changes(self, monkeypatch: pytest.MonkeyPatch) -> None:
        load_config()
        monkeypatch.setenv("FLEETWATCH_LOG_LEVEL", "ERROR")

        assert reload_config().log_level == "ERROR"
        assert get_config().log_level == "ERROR"


class TestFormatValidationErrors:
    """Test format_validation_errors()."""

    def test_messages(self) -> None:
        messages = format_validation_errors(
            [
                {"loc": ("smtp_host",), "msg": "Field required"},
                {"loc": ("smtp_port",), "msg": "Input should be less than or equal to 65535", "input": 70000},
                {"loc": (), "msg": "Value error, bad combination"},
            ]
        )

        assert messages[0].startswith("Configuration error: 'smtp_host' is required.")
        assert "FLEETWATCH_SMTP_HOST" in messages[0]
        assert messages[1].endswith("got: 70000")
        assert messages[2] == "Configuration error: Value error, bad combination"
