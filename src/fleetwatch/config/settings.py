"""Pydantic settings models for fleetwatch configuration."""

from __future__ import annotations

import os
from datetime import timedelta
from typing import Dict, List, Literal, Optional, Tuple, Type
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from fleetwatch.analysis.thresholds import AnalyticsThresholds
from fleetwatch.scheduler.jobs import (
    AVAILABILITY_SWEEP,
    DOWNTIME_SWEEP,
    HISTORY_CLEANUP,
    PERFORMANCE_SWEEP,
)


class FleetwatchSettings(BaseSettings):
    """fleetwatch configuration settings.

    Configuration is loaded in the following precedence (highest to lowest):
    1. Environment variables (FLEETWATCH_ prefix)
    2. Docker secrets (_FILE pattern, applied via env)
    3. YAML configuration file (via CONFIG_PATH)
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="FLEETWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format: json (production) or text (development)",
    )

    # Data sources
    snapshot_path: Optional[str] = Field(
        default=None,
        description="JSON or YAML file with 'assets' and 'events' to monitor",
    )
    settings_path: str = Field(
        default="./data/notification_settings.json",
        description="JSON file holding notification settings and alert thresholds",
    )
    event_duration_unit: Literal["s", "ms"] = Field(
        default="s",
        description="Unit of event durations in the snapshot: s or ms",
    )

    # Email delivery settings
    email_enabled: bool = Field(
        default=False,
        description="Enable email notifications",
    )
    smtp_host: Optional[str] = Field(
        default=None,
        description="SMTP server hostname",
    )
    smtp_port: int = Field(
        default=587,
        description="SMTP server port (587 for STARTTLS, 465 for implicit TLS)",
        ge=1,
        le=65535,
    )
    smtp_user: Optional[str] = Field(
        default=None,
        description="SMTP authentication username",
    )
    smtp_password: Optional[str] = Field(
        default=None,
        description="SMTP authentication password",
    )
    smtp_use_tls: bool = Field(
        default=True,
        description="Use TLS for SMTP connection",
    )
    email_from: str = Field(
        default="fleetwatch@localhost",
        description="From address for sent emails",
    )
    alert_recipients: str = Field(
        default="",
        description="Comma-separated fallback recipients when settings list none",
    )
    timezone: str = Field(
        default="UTC",
        description="Timezone for the scheduler and email timestamps",
    )

    # Alert lifecycle
    alert_cooldown_minutes: int = Field(
        default=15,
        description="Minimum minutes between repeat alerts for the same metric and asset",
        gt=0,
    )
    history_retention_hours: int = Field(
        default=24,
        description="Hours of alert history to keep",
        gt=0,
    )
    notification_workers: int = Field(
        default=4,
        description="Threads used to dispatch notifications",
        ge=1,
        le=64,
    )

    # Sweep intervals and windows
    availability_check_interval: int = Field(default=300, gt=0, description="Seconds")
    downtime_check_interval: int = Field(default=60, gt=0, description="Seconds")
    performance_check_interval: int = Field(default=600, gt=0, description="Seconds")
    cleanup_interval: int = Field(default=3600, gt=0, description="Seconds")
    availability_window_hours: int = Field(default=24, gt=0)
    performance_window_days: int = Field(default=7, gt=0)

    # Analytics
    critical_availability: float = Field(default=75, ge=0, le=100)
    warning_availability: float = Field(default=85, ge=0, le=100)
    max_stop_duration: float = Field(
        default=1800,
        gt=0,
        description="Average stop duration in seconds above which failure risk rises",
    )
    high_frequency_stops: int = Field(
        default=10,
        ge=0,
        description="Stop count in the analysis window above which failure risk rises",
    )
    analysis_timeframe_days: int = Field(default=30, ge=1, le=365)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to set precedence.

        Order (first = highest priority):
        1. init_settings (constructor arguments)
        2. env_settings (environment variables with FLEETWATCH_ prefix)
        3. dotenv_settings (.env file)
        4. yaml_settings (CONFIG_PATH YAML file)
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=os.environ.get("CONFIG_PATH") or None),
        )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized == "WARN":
            normalized = "WARNING"
        if normalized not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: DEBUG, INFO, WARNING, ERROR"
            )
        return normalized

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Validate the IANA timezone name."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone '{v}'")
        return v

    @model_validator(mode="after")
    def validate_email_config(self) -> "FleetwatchSettings":
        """If email_enabled is True, smtp_host must be set."""
        if self.email_enabled and not self.smtp_host:
            raise ValueError("smtp_host is required when email_enabled is True")
        return self

    @model_validator(mode="after")
    def validate_availability_levels(self) -> "FleetwatchSettings":
        if self.critical_availability >= self.warning_availability:
            raise ValueError("critical_availability must be below warning_availability")
        return self

    def get_alert_recipients(self) -> List[str]:
        """Parse alert_recipients string into a list of addresses.

        Returns:
            List of email addresses, filtered for empty strings.
        """
        if not self.alert_recipients:
            return []
        return [addr.strip() for addr in self.alert_recipients.split(",") if addr.strip()]

    def analytics_thresholds(self) -> AnalyticsThresholds:
        """Thresholds for the analytics engine."""
        return AnalyticsThresholds(
            critical_availability=self.critical_availability,
            warning_availability=self.warning_availability,
            max_stop_duration=self.max_stop_duration,
            high_frequency_stops=self.high_frequency_stops,
        )

    def sweep_intervals(self) -> Dict[str, int]:
        """Scheduler job id -> interval in seconds."""
        return {
            AVAILABILITY_SWEEP: self.availability_check_interval,
            DOWNTIME_SWEEP: self.downtime_check_interval,
            PERFORMANCE_SWEEP: self.performance_check_interval,
            HISTORY_CLEANUP: self.cleanup_interval,
        }

    @property
    def alert_cooldown(self) -> timedelta:
        return timedelta(minutes=self.alert_cooldown_minutes)

    @property
    def history_retention(self) -> timedelta:
        return timedelta(hours=self.history_retention_hours)
