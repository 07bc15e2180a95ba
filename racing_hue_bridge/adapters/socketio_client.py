"""Socket.IO adapter delivering race events from the event server."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import random
from typing import Any, Callable, Optional

import socketio
from socketio import exceptions as socketio_exceptions

from ..config import EventsConfig
from .base import BaseEventSource, EventSourceError

LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[], Any]


def build_server_url(server: str) -> str:
    if "://" in server:
        return server
    return f"http://{server}"


class SocketIOEventSource(BaseEventSource):
    """Listens to namespaced Socket.IO events such as ``madrid,lap``.

    Once connected, python-socketio handles reconnection by itself. The
    initial connection is retried here with jittered exponential backoff, since
    the client library gives up after the first failed attempt.
    """

    separator = ","

    def __init__(
        self,
        config: EventsConfig,
        *,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        super().__init__(config.namespace)
        if not config.server:
            raise EventSourceError("Event server address is not configured")

        self.config = config
        self.url = build_server_url(config.server)
        self._client_factory = client_factory or self._default_client
        self._client: Any = None
        self._task: Optional[asyncio.Task[None]] = None
        self._stop_event = asyncio.Event()

    def _default_client(self) -> socketio.AsyncClient:
        return socketio.AsyncClient(
            reconnection=True,
            reconnection_delay=self.config.reconnect_initial_seconds,
            reconnection_delay_max=self.config.reconnect_max_seconds,
            randomization_factor=self.config.reconnect_jitter_ratio,
            logger=False,
        )

    def subscribe(self, event_name: str) -> None:
        super().subscribe(event_name)
        if self._client is not None:
            self._register_event(event_name)

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            LOGGER.warning("Socket.IO event source already running")
            return

        client = self._client_factory()
        client.on("connect", self._on_connect)
        client.on("disconnect", self._on_disconnect)
        client.on("connect_error", self._on_connect_error)
        self._client = client
        for event_name in self._events:
            self._register_event(event_name)

        self._stop_event.clear()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        self._stop_event.set()

        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

        if self._client is not None:
            try:
                await self._client.disconnect()
            except Exception:
                LOGGER.debug("Error disconnecting Socket.IO client", exc_info=True)
            self._client = None

    def _register_event(self, event_name: str) -> None:
        def handler(*args: Any) -> None:
            self._emit_event(event_name, args[0] if args else None)

        self._client.on(self.channel_name(event_name), handler)

    async def _run(self) -> None:
        delay = self.config.reconnect_initial_seconds
        max_delay = max(delay, self.config.reconnect_max_seconds)
        jitter_ratio = self.config.reconnect_jitter_ratio
        attempt = 0

        while not self._stop_event.is_set():
            attempt += 1
            try:
                LOGGER.info("Connecting to event server %s (attempt %d)", self.url, attempt)
                await self._client.connect(self.url)
            except socketio_exceptions.ConnectionError as exc:
                LOGGER.warning(
                    "Event server connection failed: %s, retrying in %.1fs", exc, delay
                )
                self._emit_lifecycle("connect_error")
            else:
                attempt = 0
                delay = self.config.reconnect_initial_seconds
                await self._client.wait()
                if self._stop_event.is_set():
                    break
                LOGGER.warning("Event server connection ended; reconnecting")

            sleep_for = delay
            if jitter_ratio > 0.0:
                jitter = delay * jitter_ratio
                sleep_for = random.uniform(max(0.1, delay - jitter), delay + jitter)

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=sleep_for)
                break
            except asyncio.TimeoutError:
                pass

            self._emit_lifecycle("reconnect_attempt")
            delay = min(delay * 2, max_delay)

    # ------------------------------------------------------------------
    # python-socketio lifecycle callbacks
    # ------------------------------------------------------------------
    def _on_connect(self, *args: Any) -> None:
        LOGGER.info("Connected to event server %s", self.url)
        self._emit_lifecycle("connect")

    def _on_disconnect(self, *args: Any) -> None:
        LOGGER.info("Disconnected from event server %s", self.url)
        self._emit_lifecycle("disconnect")

    def _on_connect_error(self, *args: Any) -> None:
        LOGGER.debug("Event server connect_error: %r", args[0] if args else None)
        self._emit_lifecycle("connect_error")
