"""
Entry point for the fleetwatch CLI.

Usage:
    fleetwatch             Run the monitoring service (scheduled sweeps)
    fleetwatch --run-once  Run every monitoring sweep once and exit
    fleetwatch --report    Print the predictive maintenance report as JSON and exit
    fleetwatch --test      Validate configuration and data sources, then exit
    fleetwatch --help      Show help message
    fleetwatch --version   Show version and exit

Exit Codes:
    0 - Success
    1 - Configuration error (invalid settings, missing required values)
    2 - Data source error (snapshot or settings store unreadable)
"""

from __future__ import annotations

import argparse
import signal
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, List, Optional

if TYPE_CHECKING:
    from types import FrameType

    from fleetwatch.alerts import AlertManager, AlertMonitor
    from fleetwatch.analysis import AnalyticsEngine
    from fleetwatch.config import FleetwatchSettings
    from fleetwatch.delivery import NotificationDispatcher
    from fleetwatch.store import InMemoryEventStore, JsonSettingsStore

from fleetwatch import __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_DATA_SOURCE_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="fleetwatch",
        description="Predictive maintenance analytics and threshold alerting for asset fleets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0   Success
  1   Configuration error
  2   Data source error (snapshot or settings store unreadable)

Environment Variables:
  CONFIG_PATH                       Path to YAML configuration file
  FLEETWATCH_SNAPSHOT_PATH          JSON/YAML file with assets and events
  FLEETWATCH_SETTINGS_PATH          Notification settings JSON file
  FLEETWATCH_EVENT_DURATION_UNIT    Unit of event durations: s or ms
  FLEETWATCH_EMAIL_ENABLED          Enable email notifications
  FLEETWATCH_SMTP_HOST              SMTP server hostname
  FLEETWATCH_SMTP_PASSWORD_FILE     Path to file containing SMTP password (Docker secrets)
  FLEETWATCH_ALERT_RECIPIENTS       Comma-separated fallback recipients
  FLEETWATCH_LOG_LEVEL              Logging level: DEBUG, INFO, WARNING, ERROR
  FLEETWATCH_LOG_FORMAT             Log format: json or text

Examples:
  # Run the service with a config file
  CONFIG_PATH=/etc/fleetwatch/config.yaml fleetwatch

  # Validate configuration and data sources
  fleetwatch --test

  # One monitoring pass (manual trigger)
  fleetwatch --run-once

  # Predictive maintenance report
  fleetwatch --report > report.json
""",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--test",
        action="store_true",
        help="Test configuration and data sources, then exit",
    )
    mode.add_argument(
        "--run-once",
        action="store_true",
        help="Run every monitoring sweep once and exit",
    )
    mode.add_argument(
        "--report",
        action="store_true",
        help="Print the predictive maintenance report as JSON and exit",
    )
    return parser.parse_args(argv)


@dataclass
class Service:
    """Wired components for one process."""

    event_store: "InMemoryEventStore"
    settings_store: "JsonSettingsStore"
    dispatcher: "NotificationDispatcher"
    manager: "AlertManager"
    monitor: "AlertMonitor"
    engine: "AnalyticsEngine"


def build_service(config: "FleetwatchSettings", synchronous: bool = False) -> Service:
    """Construct stores, dispatcher, alert manager, monitor and analytics engine.

    Raises:
        StoreError: If the event snapshot is not configured or unreadable
    """
    from fleetwatch.alerts import AlertManager, AlertMonitor
    from fleetwatch.analysis import AnalyticsEngine
    from fleetwatch.delivery import EmailDelivery, NotificationDispatcher
    from fleetwatch.store import InMemoryEventStore, JsonSettingsStore, StoreError

    if not config.snapshot_path:
        raise StoreError("No event snapshot configured; set FLEETWATCH_SNAPSHOT_PATH")

    event_store = InMemoryEventStore.from_snapshot(
        config.snapshot_path, duration_unit=config.event_duration_unit
    )
    settings_store = JsonSettingsStore(config.settings_path)

    email_delivery = None
    if config.email_enabled and config.smtp_host:
        email_delivery = EmailDelivery(
            smtp_host=config.smtp_host,
            smtp_port=config.smtp_port,
            smtp_user=config.smtp_user,
            smtp_password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            from_addr=config.email_from,
            timezone=config.timezone,
        )

    dispatcher = NotificationDispatcher(
        settings_store=settings_store,
        email=email_delivery,
        default_recipients=config.get_alert_recipients(),
        max_workers=config.notification_workers,
        synchronous=synchronous,
    )
    manager = AlertManager(
        settings_store=settings_store,
        notifier=dispatcher,
        event_store=event_store,
        cooldown=config.alert_cooldown,
        history_retention=config.history_retention,
    )
    manager.load_thresholds()

    monitor = AlertMonitor(
        event_store,
        manager,
        availability_window_hours=config.availability_window_hours,
        performance_window_days=config.performance_window_days,
    )
    engine = AnalyticsEngine(thresholds=config.analytics_thresholds())

    return Service(
        event_store=event_store,
        settings_store=settings_store,
        dispatcher=dispatcher,
        manager=manager,
        monitor=monitor,
        engine=engine,
    )


def apply_runtime_settings(service: Service, config: "FleetwatchSettings") -> None:
    """Push reloadable settings into running components.

    Cooldown, history retention, monitor windows and fallback recipients take
    effect immediately. Sweep intervals, SMTP settings and the snapshot and
    settings paths are read once at startup and need a restart.
    """
    service.manager.cooldown = config.alert_cooldown
    service.manager.history_retention = config.history_retention
    service.monitor.availability_window_hours = config.availability_window_hours
    service.monitor.performance_window_days = config.performance_window_days
    service.dispatcher.default_recipients = config.get_alert_recipients()


def make_sighup_handler(service: Service) -> Callable[[int, Optional["FrameType"]], None]:
    """SIGHUP handler that reloads configuration, the event snapshot and thresholds.

    See apply_runtime_settings for which settings change without a restart.
    """

    def handle_sighup(signum: int, frame: Optional["FrameType"]) -> None:
        from fleetwatch.config.loader import reload_config
        from fleetwatch.logging import get_logger

        log = get_logger()
        log.info("received_sighup", action="reloading configuration and snapshot")
        try:
            config = reload_config()
            service.event_store.reload()
            service.manager.load_thresholds()
            apply_runtime_settings(service, config)
            log.info("config_reloaded", status="success", restart_required_for="sweep intervals, smtp, paths")
        except Exception as e:
            log.error("config_reload_failed", error=str(e))

    return handle_sighup


def print_banner(config: "FleetwatchSettings", service: Optional[Service] = None) -> None:
    """Print startup banner with version and configuration summary."""
    lines = [
        "",
        f"fleetwatch v{__version__}",
        "=" * 40,
    ]

    if service is not None:
        lines.append(f"Assets:        {len(service.event_store.get_all_assets())}")

    lines.extend([
        f"Snapshot:      {config.snapshot_path}",
        f"Email:         {'enabled' if config.email_enabled else 'disabled'}",
        f"Cooldown:      {config.alert_cooldown_minutes} min",
        f"Log Level:     {config.log_level}",
        f"Log Format:    {config.log_format}",
        "=" * 40,
        "",
    ])

    # Keep stdout clean for --report
    for line in lines:
        print(line, file=sys.stderr)


def write_report(config: "FleetwatchSettings", service: Service) -> None:
    """Print the predictive maintenance report for the configured timeframe."""
    assets = service.event_store.get_all_assets()
    events = service.event_store.get_archived_events(timeframe_days=config.analysis_timeframe_days)
    report = service.engine.generate_predictive_maintenance_report(
        assets, events, timeframe_days=config.analysis_timeframe_days
    )
    print(report.model_dump_json(indent=2))


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for fleetwatch.

    Returns:
        Exit code (0=success, 1=config error, 2=data source error)
    """
    args = parse_args(argv)

    # Import here to allow --help without dependencies
    from fleetwatch.config.loader import ConfigurationError, load_config
    from fleetwatch.logging import configure_logging, get_logger
    from fleetwatch.scheduler import MonitoringScheduler, SchedulerError
    from fleetwatch.store import StoreError

    # Load configuration
    try:
        config = load_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(log_format=config.log_format, log_level=config.log_level)
    log = get_logger()

    try:
        service = build_service(config, synchronous=args.run_once or args.test or args.report)
        if args.test:
            service.settings_store.get_notification_settings()
    except StoreError as e:
        log.error("data_source_failed", error=str(e))
        print(f"\nData source error: {e}", file=sys.stderr)
        return EXIT_DATA_SOURCE_ERROR

    # Test mode: config and stores already validated above
    if args.test:
        print_banner(config, service)
        print("Configuration and data sources: OK")
        return EXIT_SUCCESS

    if args.report:
        write_report(config, service)
        return EXIT_SUCCESS

    if args.run_once:
        print_banner(config, service)
        log.info("run_once_mode", message="Running every sweep once")
        results = service.monitor.run_all()
        active = service.manager.get_active_alerts()
        log.info("run_once_complete", checked=results, active_alerts=len(active))
        for alert in active:
            print(f"[{alert.severity.value.upper()}] {alert.message}")
        return EXIT_SUCCESS

    # Normal mode - print banner and start service
    print_banner(config, service)
    log.info("starting", version=__version__)

    scheduler = MonitoringScheduler(timezone=config.timezone)
    try:
        scheduler.schedule_monitor(service.monitor, config.sweep_intervals())
    except SchedulerError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    # Set up signal handlers (SIGHUP is Unix only)
    if hasattr(signal, "SIGHUP"):
        signal.signal(signal.SIGHUP, make_sighup_handler(service))

    def handle_sigterm(signum: int, frame: Optional["FrameType"]) -> Any:
        log.info("shutdown", reason="SIGTERM")
        scheduler.shutdown(wait=False)

    signal.signal(signal.SIGTERM, handle_sigterm)

    try:
        scheduler.start()
    except KeyboardInterrupt:
        log.info("shutdown", reason="keyboard interrupt")
        print("\nShutdown requested, exiting...")
    finally:
        scheduler.shutdown()
        service.dispatcher.shutdown(wait=True)

    return EXIT_SUCCESS


if __name__ == "__main__":
    sys.exit(main())
