"""Real-time broadcast messages and publishers.

The alert manager publishes one of two tagged messages. The transport
(Socket.IO, websocket fan-out, message bus) lives outside this package and
is handed in as an ``AlertPublisher``.
"""

from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Protocol, Union

import structlog

from fleetwatch.models.alert import Alert

log = structlog.get_logger()


@dataclass(frozen=True)
class AlertTriggered:
    """An alert entered (or re-entered) the active map."""

    topic: ClassVar[str] = "alert"

    alert: Alert

    def payload(self) -> Dict[str, Any]:
        """JSON-ready message body."""
        return self.alert.model_dump(mode="json")


@dataclass(frozen=True)
class AlertCleared:
    """An alert left the active map."""

    topic: ClassVar[str] = "alert_cleared"

    key: str
    message: str

    def payload(self) -> Dict[str, Any]:
        """JSON-ready message body."""
        return {"key": self.key, "message": self.message}


AlertMessage = Union[AlertTriggered, AlertCleared]


class AlertPublisher(Protocol):
    """Anything that can broadcast alert messages."""

    def publish(self, message: AlertMessage) -> None:
        ...


class LoggingPublisher:
    """Publisher that only logs; the default when no broadcaster is wired."""

    def publish(self, message: AlertMessage) -> None:
        log.info("alert_broadcast", topic=message.topic, payload=message.payload())


class RecordingPublisher:
    """Publisher that keeps every message, for embedding and tests."""

    def __init__(self) -> None:
        self.messages: List[AlertMessage] = []

    def publish(self, message: AlertMessage) -> None:
        self.messages.append(message)

    def topics(self) -> List[str]:
        """Topics of the recorded messages, in order."""
        return [m.topic for m in self.messages]
