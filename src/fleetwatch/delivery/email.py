"""SMTP email delivery for alert notifications."""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from email.utils import formatdate
from typing import Any, Callable, Dict, Optional, Tuple
from zoneinfo import ZoneInfo

import structlog
from jinja2 import Environment, PackageLoader, select_autoescape
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from fleetwatch.models.alert import Alert

log = structlog.get_logger()

# Failures worth another attempt; auth and recipient refusals are not
TRANSIENT_SMTP_ERRORS = (
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPConnectError,
    ConnectionError,
    TimeoutError,
)


class EmailDeliveryError(Exception):
    """Raised when email delivery fails."""

    pass


def create_retry_decorator(
    max_retries: int = 3,
    min_wait: float = 1,
    max_wait: float = 30,
    log_level: int = logging.WARNING,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Tenacity retry decorator for transient SMTP failures.

    Backoff sequence (with min=1, max=30):
        Attempt 1: immediate
        Attempt 2: wait 1-2 seconds
        Attempt 3: wait 2-4 seconds
    """
    stdlib_logger = logging.getLogger(__name__)

    return retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(TRANSIENT_SMTP_ERRORS),
        before_sleep=before_sleep_log(stdlib_logger, log_level),
        reraise=True,
    )


class EmailDelivery:
    """SMTP email transport for alerts.

    Each call to send_email delivers one multipart message (plaintext plus
    HTML alternative) to one recipient. Transient connection failures are
    retried with exponential backoff.

    Supports both:
    - Port 587 with STARTTLS (explicit TLS)
    - Port 465 with implicit TLS (SMTPS)
    """

    def __init__(
        self,
        smtp_host: str,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        use_tls: bool = True,
        from_addr: str = "fleetwatch@localhost",
        timezone: str = "UTC",
        max_retries: int = 3,
        retry_min_wait: float = 1,
        retry_max_wait: float = 30,
    ) -> None:
        """Initialize email delivery.

        Args:
            smtp_host: SMTP server hostname
            smtp_port: SMTP server port (587=STARTTLS, 465=implicit TLS)
            smtp_user: Authentication username
            smtp_password: Authentication password
            use_tls: Enable TLS encryption
            from_addr: Sender email address
            timezone: Timezone for timestamps in the message body
            max_retries: Attempts per message for transient failures
            retry_min_wait: Minimum backoff in seconds
            retry_max_wait: Maximum backoff in seconds
        """
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.smtp_user = smtp_user
        self.smtp_password = smtp_password
        self.use_tls = use_tls
        self.from_addr = from_addr
        self.timezone = timezone

        self._retry = create_retry_decorator(
            max_retries=max_retries,
            min_wait=retry_min_wait,
            max_wait=retry_max_wait,
        )
        self.env = Environment(
            loader=PackageLoader("fleetwatch.delivery", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def build_subject(self, alert: Alert) -> str:
        """Subject line, e.g. "CRITICAL Alert: Press 4"."""
        return f"{alert.severity.value.upper()} Alert: {alert.asset_name}"

    def _build_context(self, alert: Alert) -> Dict[str, Any]:
        tz = ZoneInfo(self.timezone)
        return {
            "alert": alert,
            "severity": alert.severity.value.upper(),
            "triggered_at": alert.timestamp.astimezone(tz).strftime("%Y-%m-%d %H:%M:%S %Z"),
            "unit": alert.unit,
        }

    def render(self, alert: Alert) -> Tuple[str, str]:
        """Render the HTML and plaintext bodies for an alert.

        Returns:
            (html, text)
        """
        context = self._build_context(alert)
        html = self.env.get_template("alert_email.html").render(**context)
        text = self.env.get_template("alert_email.txt").render(**context)
        return html, text

    def send_email(self, to: str, subject: str, html: str, text: str) -> None:
        """Send one multipart email to one recipient.

        Args:
            to: Recipient address
            subject: Email subject line
            html: HTML body
            text: Plaintext body

        Raises:
            EmailDeliveryError: If sending fails after retries
        """
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.from_addr
        msg["To"] = to
        msg["Date"] = formatdate(localtime=True)

        # Set plaintext first, then add HTML alternative
        msg.set_content(text)
        msg.add_alternative(html, subtype="html")

        try:
            self._retry(self._transmit)(to, msg)
            log.info("email_sent", to=to, subject=subject)
        except smtplib.SMTPAuthenticationError as e:
            log.error("email_auth_failed", error=str(e))
            raise EmailDeliveryError(f"SMTP authentication failed: {e}") from e
        except smtplib.SMTPException as e:
            log.error("email_send_failed", to=to, error=str(e))
            raise EmailDeliveryError(f"SMTP error: {e}") from e
        except Exception as e:
            log.error("email_delivery_error", to=to, error=str(e))
            raise EmailDeliveryError(f"Email delivery failed: {e}") from e

    def _transmit(self, to: str, msg: EmailMessage) -> None:
        context = ssl.create_default_context()

        if self.use_tls and self.smtp_port == 465:
            # Implicit TLS (SMTPS) - connection encrypted from start
            with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, context=context) as server:
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_addr, [to], msg.as_string())
        else:
            # Explicit TLS (STARTTLS) or no TLS
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls(context=context)
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.from_addr, [to], msg.as_string())
