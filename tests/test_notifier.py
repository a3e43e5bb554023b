"""Tests for notification dispatch."""

from unittest.mock import MagicMock

import pytest

from fleetwatch.delivery.email import EmailDeliveryError
from fleetwatch.delivery.notifier import NotificationDispatcher, normalize_channel
from fleetwatch.models.enums import AlertSeverity
from fleetwatch.models.notification import (
    ChannelToggles,
    EventNotification,
    NotificationSettings,
)
from fleetwatch.store.base import StoreError


@pytest.fixture
def email() -> MagicMock:
    transport = MagicMock()
    transport.build_subject.return_value = "CRITICAL Alert: Press 4"
    transport.render.return_value = ("<p>html</p>", "text")
    return transport


def settings_store(settings: NotificationSettings) -> MagicMock:
    store = MagicMock()
    store.get_notification_settings.return_value = settings
    return store


def email_enabled(**event_kwargs) -> NotificationSettings:
    return NotificationSettings(
        channels=ChannelToggles(in_app=True, email=True, sms=True),
        event_notifications={
            "asset_stopped": EventNotification(**event_kwargs),
            "asset_warning": EventNotification(channels=["in_app"]),
        },
    )


class TestNormalizeChannel:
    """Test normalize_channel()."""

    @pytest.mark.parametrize(
        "name,expected",
        [("inApp", "in_app"), ("in_app", "in_app"), ("EMAIL", "email"), ("sms", "sms"), ("push", "push")],
    )
    def test_aliases(self, name: str, expected: str) -> None:
        assert normalize_channel(name) == expected


class TestDispatch:
    """Test NotificationDispatcher.dispatch()."""

    def test_defaults_are_in_app_only(self, make_alert, email) -> None:
        dispatcher = NotificationDispatcher(email=email, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {"in_app": 1}
        email.send_email.assert_not_called()

    def test_email_to_each_recipient(self, make_alert, email) -> None:
        settings = email_enabled(channels=["in_app", "email"], recipients=["a@x.com", "b@x.com"])
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        delivered = dispatcher.dispatch(make_alert())

        assert delivered == {"in_app": 1, "email": 2}
        assert [c[0][0] for c in email.send_email.call_args_list] == ["a@x.com", "b@x.com"]
        email.send_email.assert_any_call("a@x.com", "CRITICAL Alert: Press 4", "<p>html</p>", "text")

    def test_one_recipient_failure_does_not_block_others(self, make_alert, email) -> None:
        email.send_email.side_effect = [EmailDeliveryError("refused"), None]
        settings = email_enabled(channels=["email"], recipients=["a@x.com", "b@x.com"])
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {"email": 1}
        assert email.send_email.call_count == 2

    def test_default_recipients(self, make_alert, email) -> None:
        settings = email_enabled(channels=["email"])
        dispatcher = NotificationDispatcher(
            settings_store(settings), email=email, default_recipients=["ops@x.com"], synchronous=True
        )

        assert dispatcher.dispatch(make_alert()) == {"email": 1}
        assert email.send_email.call_args[0][0] == "ops@x.com"

    def test_email_without_transport(self, make_alert) -> None:
        settings = email_enabled(channels=["email"], recipients=["a@x.com"])
        dispatcher = NotificationDispatcher(settings_store(settings), synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {"email": 0}

    def test_sms(self, make_alert) -> None:
        sms = MagicMock()
        settings = email_enabled(channels=["sms"], phone_numbers=["+15550100"])
        dispatcher = NotificationDispatcher(settings_store(settings), sms=sms, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {"sms": 1}
        number, body = sms.send_sms.call_args[0]
        assert number == "+15550100"
        assert body.startswith("[CRITICAL] ")

    def test_global_channel_toggle_wins(self, make_alert, email) -> None:
        settings = email_enabled(channels=["in_app", "email"], recipients=["a@x.com"])
        settings.channels.email = False
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {"in_app": 1}

    def test_notifications_disabled(self, make_alert, email) -> None:
        settings = email_enabled(channels=["email"], recipients=["a@x.com"])
        settings.enabled = False
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {}

    def test_event_disabled(self, make_alert, email) -> None:
        settings = email_enabled(enabled=False, channels=["email"], recipients=["a@x.com"])
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {}

    def test_dashboard_event_names(self, make_alert, email) -> None:
        settings = NotificationSettings.model_validate(
            {
                "channels": {"inApp": True, "email": True},
                "eventNotifications": {"assetStopped": {"enabled": False, "channels": ["email"]}},
            }
        )
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {}
        email.send_email.assert_not_called()

    def test_performance_alerts_route_as_warnings(self, make_alert, email) -> None:
        settings = email_enabled(channels=["email"], recipients=["a@x.com"])
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        delivered = dispatcher.dispatch(make_alert(type="mttr", severity=AlertSeverity.WARNING))

        assert delivered == {"in_app": 1}

    def test_camel_case_channels(self, make_alert, email) -> None:
        settings = email_enabled(channels=["inApp"])
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {"in_app": 1}

    def test_unreadable_settings_use_defaults(self, make_alert) -> None:
        store = MagicMock()
        store.get_notification_settings.side_effect = StoreError("corrupt")
        dispatcher = NotificationDispatcher(store, synchronous=True)

        assert dispatcher.dispatch(make_alert()) == {"in_app": 1}


class TestNotify:
    """Test NotificationDispatcher.notify()."""

    def test_synchronous(self, make_alert, email) -> None:
        settings = email_enabled(channels=["email"], recipients=["a@x.com"])
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, synchronous=True)

        assert dispatcher.notify(make_alert()) is None
        email.send_email.assert_called_once()

    def test_thread_pool(self, make_alert, email) -> None:
        settings = email_enabled(channels=["email"], recipients=["a@x.com"])
        dispatcher = NotificationDispatcher(settings_store(settings), email=email, max_workers=1)

        try:
            future = dispatcher.notify(make_alert())
            assert future.result(timeout=5) == {"email": 1}
        finally:
            dispatcher.shutdown()

    def test_dispatch_errors_are_contained(self, make_alert) -> None:
        store = MagicMock()
        store.get_notification_settings.return_value = None
        dispatcher = NotificationDispatcher(store, synchronous=True)

        # A broken settings object must not escape notify()
        assert dispatcher.notify(make_alert()) is None
