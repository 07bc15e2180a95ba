"""Protocol definitions for event sources and actuator clients."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol

if TYPE_CHECKING:
    from .models import Command
    from ..adapters.actuator import DispatchOutcome


EventHandler = Callable[[str, Any], None]
"""Receives the unqualified event name and the raw message payload."""

LifecycleHandler = Callable[[str], None]
"""Receives a transport lifecycle notification name (``connect``, ``ping``...)."""


class EventSource(Protocol):
    """Minimal contract for components that deliver named race events."""

    def subscribe(self, event_name: str) -> None:
        """Register interest in an event; takes effect on the next connect."""
        ...

    def set_event_handler(self, handler: EventHandler) -> None:
        ...

    def set_lifecycle_handler(self, handler: LifecycleHandler) -> None:
        ...

    async def start(self) -> None:
        """Begin connecting in the background; must not block on the network."""
        ...

    async def stop(self) -> None:
        ...


class ActuatorClient(Protocol):
    """Contract used by the dispatch queue to reach the lighting service."""

    async def dispatch(self, command: Command) -> DispatchOutcome:
        """Issue one call for ``command``; failures are reported, not raised."""
        ...
