"""MQTT adapter delivering race events through paho-mqtt."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Callable, Dict, Optional, Tuple

import paho.mqtt.client as mqtt

from .. import constants
from ..config import EventsConfig
from .base import BaseEventSource, EventSourceError

LOGGER = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]


def parse_broker_address(server: str) -> Tuple[str, int]:
    """Split ``host[:port]`` into its parts, defaulting to the MQTT port."""

    value = server.strip()
    if "://" in value:
        value = value.split("://", 1)[1]
    if ":" in value:
        host, port_part = value.rsplit(":", 1)
        try:
            return host, int(port_part)
        except ValueError as exc:
            raise EventSourceError(f"Invalid MQTT broker port in {server!r}") from exc
    return value, constants.DEFAULT_MQTT_PORT


class MQTTEventSource(BaseEventSource):
    """Subscribes to ``{namespace}/{event}`` topics carrying JSON record arrays.

    paho-mqtt runs its network loop in a background thread and reconnects on
    its own. Every callback is marshalled onto the asyncio loop before any
    handler runs.
    """

    separator = "/"

    def __init__(
        self,
        config: EventsConfig,
        *,
        client_id: Optional[str] = None,
        keepalive: int = 60,
        qos: int = 1,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        super().__init__(config.namespace)
        if not config.server:
            raise EventSourceError("MQTT broker address is not configured")

        self.config = config
        self.host, self.port = parse_broker_address(config.server)
        self.client_id = client_id or f"{constants.APP_NAME}-{os.getpid()}"
        self.keepalive = keepalive
        self.qos = qos
        self._client_factory = client_factory or self._default_client
        self._client: Any = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._topics: Dict[str, str] = {}

    @staticmethod
    def _default_client(client_id: str) -> mqtt.Client:
        return mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)

    def subscribe(self, event_name: str) -> None:
        super().subscribe(event_name)
        topic = self.channel_name(event_name)
        self._topics[topic] = event_name
        if self._client is not None and self._client.is_connected():
            self._client.subscribe(topic, qos=self.qos)

    async def start(self) -> None:
        if self._client is not None:
            LOGGER.warning("MQTT event source already running")
            return

        self._loop = asyncio.get_running_loop()

        client = self._client_factory(self.client_id)
        client.enable_logger(LOGGER)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        client.on_connect_fail = self._on_connect_fail
        client.on_message = self._on_message
        client.reconnect_delay_set(
            min_delay=max(1, int(self.config.reconnect_initial_seconds)),
            max_delay=max(1, int(self.config.reconnect_max_seconds)),
        )
        self._client = client

        LOGGER.info("Connecting to MQTT broker %s:%s", self.host, self.port)
        client.connect_async(self.host, self.port, self.keepalive)
        client.loop_start()

    async def stop(self) -> None:
        client = self._client
        if client is None:
            return
        self._client = None
        try:
            client.disconnect()
        finally:
            client.loop_stop()

    # ------------------------------------------------------------------
    # Internal callbacks bridging the threaded paho callbacks into asyncio
    # ------------------------------------------------------------------
    def _call_in_loop(self, callback: Callable[..., None], *args: Any) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(callback, *args)

    def _on_connect(self, client: mqtt.Client, userdata, flags, reason_code, properties=None) -> None:
        if reason_code != 0:
            LOGGER.error("MQTT connection failed with rc=%s", reason_code)
            self._call_in_loop(self._emit_lifecycle, "connect_error")
            return

        LOGGER.info("Connected to MQTT broker")
        if self._topics:
            client.subscribe([(topic, self.qos) for topic in self._topics])
        self._call_in_loop(self._emit_lifecycle, "connect")

    def _on_disconnect(self, client: mqtt.Client, userdata, flags, reason_code, properties=None) -> None:
        LOGGER.info("Disconnected from MQTT broker (rc=%s)", reason_code)
        self._call_in_loop(self._emit_lifecycle, "disconnect")

    def _on_connect_fail(self, client: mqtt.Client, userdata) -> None:
        LOGGER.warning("Unable to reach MQTT broker %s:%s", self.host, self.port)
        self._call_in_loop(self._emit_lifecycle, "connect_error")

    def _on_message(self, client: mqtt.Client, userdata, message: mqtt.MQTTMessage) -> None:
        event_name = self._topics.get(message.topic)
        if event_name is None:
            LOGGER.debug("Ignoring message on unexpected topic %s", message.topic)
            return

        try:
            payload = json.loads(message.payload)
        except (TypeError, ValueError):
            LOGGER.warning("Discarding non-JSON message on %s", message.topic)
            return

        self._call_in_loop(self._emit_event, event_name, payload)
