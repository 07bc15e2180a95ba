"""Shared plumbing for event transport adapters."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from ..core.protocols import EventHandler, LifecycleHandler

LOGGER = logging.getLogger(__name__)


class EventSourceError(RuntimeError):
    """Raised when an event source is misconfigured or misused."""


class BaseEventSource:
    """Keeps subscriptions and handlers; subclasses own the connection."""

    separator = ","

    def __init__(self, namespace: str = "") -> None:
        self.namespace = namespace
        self._events: List[str] = []
        self._event_handler: Optional[EventHandler] = None
        self._lifecycle_handler: Optional[LifecycleHandler] = None

    @property
    def subscriptions(self) -> List[str]:
        return list(self._events)

    def channel_name(self, event_name: str) -> str:
        """Qualify an event name with the deployment namespace, if any."""
        if not self.namespace:
            return event_name
        return f"{self.namespace}{self.separator}{event_name}"

    def subscribe(self, event_name: str) -> None:
        if event_name in self._events:
            return
        self._events.append(event_name)
        LOGGER.info("Subscribing to channel: %s", self.channel_name(event_name))

    def set_event_handler(self, handler: Optional[EventHandler]) -> None:
        self._event_handler = handler

    def set_lifecycle_handler(self, handler: Optional[LifecycleHandler]) -> None:
        self._lifecycle_handler = handler

    def _emit_event(self, event_name: str, message: Any) -> None:
        handler = self._event_handler
        if handler is None:
            return
        LOGGER.debug("Message received on %s: %r", event_name, message)
        try:
            handler(event_name, message)
        except Exception:
            LOGGER.exception("Event handler raised while processing %s", event_name)

    def _emit_lifecycle(self, notification: str) -> None:
        handler = self._lifecycle_handler
        if handler is None:
            return
        try:
            handler(notification)
        except Exception:
            LOGGER.exception("Lifecycle handler raised for %s", notification)
