"""Core primitives for racing-hue-bridge."""

from .models import (
    ALL_LIGHTS,
    DRONE_LIGHT,
    Command,
    CommandValidationError,
    LightAction,
    LightColor,
)
from .protocols import ActuatorClient, EventHandler, EventSource, LifecycleHandler

__all__ = [
    "ALL_LIGHTS",
    "DRONE_LIGHT",
    "ActuatorClient",
    "Command",
    "CommandValidationError",
    "EventHandler",
    "EventSource",
    "LifecycleHandler",
    "LightAction",
    "LightColor",
]
