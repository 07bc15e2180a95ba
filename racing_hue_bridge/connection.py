"""Event transport connectivity tracking.

The tracker is the only writer of the connection state. Transport adapters
feed it lifecycle notifications; the status endpoint reads ``state``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Dict

LOGGER = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    """Connectivity of the event transport."""

    CONNECTED = "CONNECTED"
    DISCONNECTED = "DISCONNECTED"


class TransportNotification(str, Enum):
    """Lifecycle notifications emitted by event transports."""

    CONNECT = "connect"
    DISCONNECT = "disconnect"
    CONNECT_ERROR = "connect_error"
    CONNECT_TIMEOUT = "connect_timeout"
    RECONNECT = "reconnect"
    RECONNECT_ATTEMPT = "reconnect_attempt"
    RECONNECTING = "reconnecting"
    RECONNECT_ERROR = "reconnect_error"
    RECONNECT_FAILED = "reconnect_failed"
    PING = "ping"


_TRANSITIONS: Dict[TransportNotification, ConnectionState] = {
    TransportNotification.CONNECT: ConnectionState.CONNECTED,
    TransportNotification.RECONNECT: ConnectionState.CONNECTED,
    TransportNotification.DISCONNECT: ConnectionState.DISCONNECTED,
    TransportNotification.CONNECT_ERROR: ConnectionState.DISCONNECTED,
    TransportNotification.CONNECT_TIMEOUT: ConnectionState.DISCONNECTED,
    TransportNotification.RECONNECTING: ConnectionState.DISCONNECTED,
    TransportNotification.RECONNECT_ATTEMPT: ConnectionState.DISCONNECTED,
    TransportNotification.RECONNECT_ERROR: ConnectionState.DISCONNECTED,
    TransportNotification.RECONNECT_FAILED: ConnectionState.DISCONNECTED,
}


class ConnectionTracker:
    """Reflects transport lifecycle notifications as a two-state machine."""

    def __init__(self) -> None:
        self._state = ConnectionState.DISCONNECTED
        self._changed_at = datetime.now(timezone.utc)

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def changed_at(self) -> datetime:
        return self._changed_at

    def handle(self, notification: str) -> ConnectionState:
        """Apply a lifecycle notification and return the resulting state."""

        LOGGER.debug("[EVENT] %s", notification)

        try:
            kind = TransportNotification(notification)
        except ValueError:
            LOGGER.debug("Ignoring unknown transport notification %r", notification)
            return self._state

        target = _TRANSITIONS.get(kind)
        if target is None or target == self._state:
            return self._state

        previous = self._state
        self._state = target
        self._changed_at = datetime.now(timezone.utc)
        LOGGER.info(
            "Event transport %s -> %s (%s)", previous.value, target.value, kind.value
        )
        return self._state
