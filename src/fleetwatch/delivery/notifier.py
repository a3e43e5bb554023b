"""Notification dispatch for triggered alerts.

Routes each alert through the channels enabled in the notification
settings (in-app, email, SMS). Dispatch runs on a bounded thread pool so a
slow SMTP server never holds up a monitoring sweep, and every channel and
recipient is isolated: one failure is logged and the rest still go out.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Dict, List, Optional, Protocol

import structlog

from fleetwatch.models.alert import Alert
from fleetwatch.models.notification import NotificationSettings

if TYPE_CHECKING:
    from fleetwatch.delivery.email import EmailDelivery
    from fleetwatch.store.base import SettingsStore

log = structlog.get_logger()

IN_APP = "in_app"
EMAIL = "email"
SMS = "sms"

_CHANNEL_ALIASES = {"inapp": IN_APP, "in_app": IN_APP, "email": EMAIL, "sms": SMS}


class SmsTransport(Protocol):
    """Anything that can send a text message."""

    def send_sms(self, to: str, body: str) -> None:
        ...


def normalize_channel(name: str) -> str:
    """Map stored channel names ('inApp', 'email') to channel constants."""
    return _CHANNEL_ALIASES.get(name.replace("-", "_").lower(), name.lower())


class NotificationDispatcher:
    """Dispatches alert notifications per the stored settings.

    Usage:
        dispatcher = NotificationDispatcher(settings_store, email=EmailDelivery(...))
        manager = AlertManager(notifier=dispatcher)
        ...
        dispatcher.shutdown()
    """

    def __init__(
        self,
        settings_store: Optional["SettingsStore"] = None,
        email: Optional["EmailDelivery"] = None,
        sms: Optional[SmsTransport] = None,
        default_recipients: Optional[List[str]] = None,
        max_workers: int = 4,
        synchronous: bool = False,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            settings_store: Source of notification settings; defaults apply without one
            email: Email transport (None disables the email channel)
            sms: SMS transport (None disables the SMS channel)
            default_recipients: Email recipients used when the settings list none
            max_workers: Size of the dispatch thread pool
            synchronous: Dispatch on the calling thread (CLI one-shot runs, tests)
        """
        self._settings_store = settings_store
        self._email = email
        self._sms = sms
        self.default_recipients = list(default_recipients or [])
        self.synchronous = synchronous
        self._executor: Optional[ThreadPoolExecutor] = None
        if not synchronous:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers, thread_name_prefix="fleetwatch-notify"
            )

    def notify(self, alert: Alert) -> Optional[Future]:
        """Queue notifications for an alert.

        Returns:
            The pending Future, or None when dispatched synchronously
        """
        if self._executor is None:
            self._dispatch_safely(alert)
            return None
        return self._executor.submit(self._dispatch_safely, alert)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work and optionally wait for queued notifications."""
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            log.info("notification_dispatcher_stopped", waited=wait)

    def _dispatch_safely(self, alert: Alert) -> Dict[str, int]:
        try:
            return self.dispatch(alert)
        except Exception as e:
            log.error("notification_failed", alert_id=alert.id, error=str(e), exc_info=True)
            return {}

    def _load_settings(self) -> NotificationSettings:
        if self._settings_store is None:
            return NotificationSettings()
        try:
            return self._settings_store.get_notification_settings()
        except Exception as e:
            log.warning("notification_settings_unavailable", error=str(e), action="using defaults")
            return NotificationSettings()

    def dispatch(self, alert: Alert) -> Dict[str, int]:
        """Send an alert over every enabled channel.

        Returns:
            Successful deliveries per channel
        """
        settings = self._load_settings()
        if not settings.enabled:
            log.debug("notifications_disabled", alert_id=alert.id)
            return {}

        event = settings.event_for(alert.type)
        if not event.enabled:
            log.debug("event_notifications_disabled", alert_id=alert.id, type=alert.type)
            return {}

        delivered: Dict[str, int] = {}
        for channel in dict.fromkeys(normalize_channel(c) for c in event.channels):
            if not getattr(settings.channels, channel, False):
                log.debug("channel_disabled", channel=channel, alert_id=alert.id)
                continue

            if channel == IN_APP:
                delivered[channel] = self._send_in_app(alert)
            elif channel == EMAIL:
                delivered[channel] = self._send_email(alert, event.recipients or self.default_recipients)
            elif channel == SMS:
                delivered[channel] = self._send_sms(alert, event.phone_numbers)
            else:
                log.warning("unknown_channel", channel=channel, alert_id=alert.id)

        log.info("notifications_dispatched", alert_id=alert.id, delivered=delivered)
        return delivered

    def _send_in_app(self, alert: Alert) -> int:
        log.info(
            "in_app_notification",
            alert_id=alert.id,
            severity=alert.severity.value,
            asset=alert.asset_name,
            message=alert.message,
        )
        return 1

    def _send_email(self, alert: Alert, recipients: List[str]) -> int:
        if self._email is None:
            log.debug("email_transport_unconfigured", alert_id=alert.id)
            return 0
        if not recipients:
            log.warning("email_skipped", reason="no recipients", alert_id=alert.id)
            return 0

        try:
            subject = self._email.build_subject(alert)
            html, text = self._email.render(alert)
        except Exception as e:
            log.error("notification_failed", channel=EMAIL, alert_id=alert.id, error=str(e))
            return 0

        sent = 0
        for recipient in recipients:
            try:
                self._email.send_email(recipient, subject, html, text)
                sent += 1
            except Exception as e:
                log.error(
                    "notification_failed",
                    channel=EMAIL,
                    recipient=recipient,
                    alert_id=alert.id,
                    error=str(e),
                )
        return sent

    def _send_sms(self, alert: Alert, numbers: List[str]) -> int:
        if self._sms is None:
            log.debug("sms_transport_unconfigured", alert_id=alert.id)
            return 0

        body = f"[{alert.severity.value.upper()}] {alert.message}"
        sent = 0
        for number in numbers:
            try:
                self._sms.send_sms(number, body)
                sent += 1
            except Exception as e:
                log.error(
                    "notification_failed",
                    channel=SMS,
                    recipient=number,
                    alert_id=alert.id,
                    error=str(e),
                )
        return sent
