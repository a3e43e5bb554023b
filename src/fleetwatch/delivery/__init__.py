"""Notification delivery: channel routing and the SMTP transport."""

from fleetwatch.delivery.email import EmailDelivery, EmailDeliveryError
from fleetwatch.delivery.notifier import NotificationDispatcher, SmsTransport, normalize_channel

__all__ = [
    "EmailDelivery",
    "EmailDeliveryError",
    "NotificationDispatcher",
    "SmsTransport",
    "normalize_channel",
]
