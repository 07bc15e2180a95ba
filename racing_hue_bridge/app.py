"""Main application entry-point for racing-hue-bridge."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from .adapters import HueActuatorClient, MQTTEventSource, SocketIOEventSource
from .config import BridgeConfig, ConfigurationError, EventsConfig, load_config
from .connection import ConnectionState, ConnectionTracker
from .core import ActuatorClient, EventSource
from .dispatch import DispatchQueue
from .logging import configure_logging
from .status import StatusServer
from .translator import EventTranslator, extract_records

LOGGER = logging.getLogger(__name__)


def create_event_source(config: EventsConfig) -> EventSource:
    if config.transport == "mqtt":
        return MQTTEventSource(config)
    if config.transport == "socketio":
        return SocketIOEventSource(config)
    raise ConfigurationError(f"Unsupported event transport: {config.transport}")


class RacingHueBridgeApp:
    """Coordinates application startup and shutdown.

    Wires the event source to the translator, the translator to the dispatch
    queue, and transport lifecycle notifications to the connection tracker.
    The event source, actuator client and translator can be injected for
    testing or to support other deployments.
    """

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        *,
        event_source: Optional[EventSource] = None,
        actuator: Optional[ActuatorClient] = None,
        translator: Optional[EventTranslator] = None,
    ) -> None:
        self._config = config or load_config()
        self._event_source = event_source
        self._actuator: Any = actuator or HueActuatorClient(self._config.actuator)
        self._translator = translator or EventTranslator()
        self._tracker = ConnectionTracker()
        self._queue = DispatchQueue(
            self._actuator, concurrency=self._config.dispatch.concurrency
        )
        self._status_server: Optional[StatusServer] = None
        self._shutdown_event: Optional[asyncio.Event] = None

    @property
    def connection_state(self) -> ConnectionState:
        return self._tracker.state

    @property
    def queue(self) -> DispatchQueue:
        return self._queue

    @property
    def tracker(self) -> ConnectionTracker:
        return self._tracker

    async def run(self) -> None:
        """Run until shutdown is requested or the task is cancelled."""

        loop = asyncio.get_running_loop()
        loop.set_exception_handler(self._handle_loop_exception)
        self._shutdown_event = asyncio.Event()

        LOGGER.info("racing-hue-bridge starting with config: %s", self._config.path)
        await self._start_services()

        try:
            await self._shutdown_event.wait()
        except asyncio.CancelledError:
            LOGGER.info("racing-hue-bridge received shutdown signal")
            raise
        finally:
            await self._stop_services()

    def request_shutdown(self) -> None:
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    @classmethod
    def start(cls, config: Optional[BridgeConfig] = None) -> None:
        instance = cls(config=config)
        configure_logging(
            instance._config.logging.level,
            log_path=instance._config.logging.path,
            log_network=instance._config.logging.log_network,
        )
        try:
            asyncio.run(instance.run())
        except KeyboardInterrupt:
            LOGGER.info("Caught interrupt signal, exiting")

    def _validate_channels(self) -> None:
        unknown = [
            name
            for name in self._config.events.channels
            if not self._translator.handles(name)
        ]
        if unknown:
            raise ConfigurationError(
                f"No translation rule for channel(s): {', '.join(unknown)}"
            )

    async def _start_services(self) -> None:
        self._validate_channels()

        start_actuator = getattr(self._actuator, "start", None)
        if start_actuator is not None:
            await start_actuator()
        self._queue.start()

        await self._start_status_server()

        if self._event_source is None:
            self._event_source = create_event_source(self._config.events)
        source = self._event_source
        source.set_event_handler(self._handle_event)
        source.set_lifecycle_handler(self._handle_lifecycle)
        for name in self._config.events.channels:
            source.subscribe(name)
        await source.start()

    async def _start_status_server(self) -> None:
        status = self._config.status
        if not status.enabled or status.port <= 0:
            return

        server = StatusServer(self._tracker, status.host, status.port)
        try:
            await server.start()
        except OSError as exc:
            LOGGER.error("Failed to start status endpoint: %s", exc)
        else:
            self._status_server = server

    async def _stop_services(self) -> None:
        if self._event_source is not None:
            try:
                await self._event_source.stop()
            except Exception:
                LOGGER.debug("Error stopping event source", exc_info=True)

        await self._queue.stop(drain_timeout=self._config.dispatch.drain_timeout_seconds)

        stop_actuator = getattr(self._actuator, "stop", None)
        if stop_actuator is not None:
            await stop_actuator()

        if self._status_server is not None:
            await self._status_server.stop()
            self._status_server = None

    # -------------------------------------------------------------------------
    # Event source callbacks
    # -------------------------------------------------------------------------

    def _handle_event(self, event_name: str, message: Any) -> None:
        records = extract_records(message)
        commands = self._translator.translate(event_name, records)
        for command in commands:
            self._queue.enqueue(command)

    def _handle_lifecycle(self, notification: str) -> None:
        self._tracker.handle(notification)

    def _handle_loop_exception(
        self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]
    ) -> None:
        exception = context.get("exception")
        message = context.get("message", "Unhandled exception in event loop")
        if exception is not None:
            LOGGER.error(
                "Uncaught exception: %s",
                message,
                exc_info=(type(exception), exception, exception.__traceback__),
            )
        else:
            LOGGER.error("Uncaught error: %s", message)
