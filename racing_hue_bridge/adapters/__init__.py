"""Adapter modules for external integrations."""

from .actuator import DispatchOutcome, HueActuatorClient, build_command_path
from .base import BaseEventSource, EventSourceError
from .mqtt import MQTTEventSource
from .socketio_client import SocketIOEventSource

__all__ = [
    "BaseEventSource",
    "DispatchOutcome",
    "EventSourceError",
    "HueActuatorClient",
    "MQTTEventSource",
    "SocketIOEventSource",
    "build_command_path",
]
