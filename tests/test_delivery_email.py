"""Tests for email delivery."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from fleetwatch.delivery.email import EmailDelivery, EmailDeliveryError
from fleetwatch.models.enums import AlertSeverity


def mock_server_for(mock_smtp: MagicMock) -> MagicMock:
    """Wire a context-managed SMTP mock and return the server object."""
    mock_server = MagicMock()
    mock_smtp.return_value.__enter__ = MagicMock(return_value=mock_server)
    mock_smtp.return_value.__exit__ = MagicMock(return_value=False)
    return mock_server


class TestEmailDeliverySubject:
    """Test email subject line generation."""

    def test_critical_subject(self, make_alert) -> None:
        delivery = EmailDelivery(smtp_host="test")
        assert delivery.build_subject(make_alert()) == "CRITICAL Alert: Press 4"

    def test_warning_subject(self, make_alert) -> None:
        delivery = EmailDelivery(smtp_host="test")
        alert = make_alert(severity=AlertSeverity.WARNING, asset_name="Lathe")
        assert delivery.build_subject(alert) == "WARNING Alert: Lathe"


class TestEmailDeliveryRender:
    """Test template rendering."""

    def test_text_body(self, make_alert) -> None:
        delivery = EmailDelivery(smtp_host="test", timezone="UTC")

        _, text = delivery.render(make_alert())

        assert "CRITICAL ALERT" in text
        assert "Press 4 (4)" in text
        assert "Value:     65.0 %" in text
        assert "Threshold: 70.0 %" in text
        assert "2024-06-12 12:00:00 UTC" in text

    def test_html_body_is_escaped(self, make_alert) -> None:
        delivery = EmailDelivery(smtp_host="test")

        html, _ = delivery.render(make_alert(asset_name="<Press>"))

        assert "&lt;Press&gt;" in html
        assert "<Press>" not in html

    def test_timezone(self, make_alert) -> None:
        delivery = EmailDelivery(smtp_host="test", timezone="America/New_York")
        _, text = delivery.render(make_alert())
        # 12:00 UTC = 08:00 EDT
        assert "2024-06-12 08:00:00 EDT" in text


class TestEmailDeliverySend:
    """Test email sending functionality."""

    @patch("fleetwatch.delivery.email.smtplib.SMTP")
    def test_send_starttls(self, mock_smtp: MagicMock) -> None:
        """Send email via STARTTLS (port 587)."""
        mock_server = mock_server_for(mock_smtp)
        delivery = EmailDelivery(
            smtp_host="smtp.test.com",
            smtp_port=587,
            smtp_user="user",
            smtp_password="pass",
            use_tls=True,
        )

        delivery.send_email("ops@example.com", "Subject", "<p>HTML</p>", "Text")

        mock_smtp.assert_called_once_with("smtp.test.com", 587)
        mock_server.starttls.assert_called_once()
        mock_server.login.assert_called_once_with("user", "pass")
        mock_server.sendmail.assert_called_once()
        assert mock_server.sendmail.call_args[0][1] == ["ops@example.com"]

    @patch("fleetwatch.delivery.email.smtplib.SMTP_SSL")
    def test_send_implicit_tls(self, mock_smtp_ssl: MagicMock) -> None:
        """Send email via implicit TLS (port 465)."""
        mock_server = mock_server_for(mock_smtp_ssl)
        delivery = EmailDelivery(smtp_host="smtp.test.com", smtp_port=465, use_tls=True)

        delivery.send_email("ops@example.com", "Subject", "<p>HTML</p>", "Text")

        mock_smtp_ssl.assert_called_once()
        mock_server.login.assert_not_called()
        mock_server.sendmail.assert_called_once()

    @patch("fleetwatch.delivery.email.smtplib.SMTP")
    def test_multipart_message(self, mock_smtp: MagicMock) -> None:
        mock_server = mock_server_for(mock_smtp)
        delivery = EmailDelivery(smtp_host="test", use_tls=False, from_addr="fw@example.com")

        delivery.send_email("ops@example.com", "CRITICAL Alert: Press 4", "<p>HTML</p>", "Text")

        mock_server.starttls.assert_not_called()
        msg_string = mock_server.sendmail.call_args[0][2]
        assert "Subject: CRITICAL Alert: Press 4" in msg_string
        assert "From: fw@example.com" in msg_string
        assert "text/plain" in msg_string
        assert "text/html" in msg_string

    @patch("fleetwatch.delivery.email.smtplib.SMTP")
    def test_transient_failure_is_retried(self, mock_smtp: MagicMock) -> None:
        mock_server = mock_server_for(mock_smtp)
        mock_server.sendmail.side_effect = [
            smtplib.SMTPServerDisconnected("dropped"),
            None,
        ]
        delivery = EmailDelivery(smtp_host="test", use_tls=False, retry_min_wait=0, retry_max_wait=0)

        delivery.send_email("ops@example.com", "Subject", "<p>HTML</p>", "Text")

        assert mock_server.sendmail.call_count == 2

    @patch("fleetwatch.delivery.email.smtplib.SMTP")
    def test_retries_exhausted(self, mock_smtp: MagicMock) -> None:
        mock_server = mock_server_for(mock_smtp)
        mock_server.sendmail.side_effect = smtplib.SMTPServerDisconnected("dropped")
        delivery = EmailDelivery(
            smtp_host="test", use_tls=False, max_retries=2, retry_min_wait=0, retry_max_wait=0
        )

        with pytest.raises(EmailDeliveryError):
            delivery.send_email("ops@example.com", "Subject", "<p>HTML</p>", "Text")

        assert mock_server.sendmail.call_count == 2

    @patch("fleetwatch.delivery.email.smtplib.SMTP")
    def test_auth_failure_not_retried(self, mock_smtp: MagicMock) -> None:
        mock_server = mock_server_for(mock_smtp)
        mock_server.login.side_effect = smtplib.SMTPAuthenticationError(535, b"bad credentials")
        delivery = EmailDelivery(smtp_host="test", smtp_user="u", smtp_password="p", use_tls=False)

        with pytest.raises(EmailDeliveryError, match="authentication"):
            delivery.send_email("ops@example.com", "Subject", "<p>HTML</p>", "Text")

        assert mock_server.login.call_count == 1
