"""Constants used across the racing-hue-bridge package."""

from __future__ import annotations

from pathlib import Path

APP_NAME = "racing-hue-bridge"
DEFAULT_CONFIG_FILENAME = f"{APP_NAME}.cfg"
DEFAULT_CONFIG_PATH = Path.home() / ".config" / APP_NAME / DEFAULT_CONFIG_FILENAME

DEFAULT_ACTUATOR_URL = "http://192.168.1.101:3378"

DEFAULT_TRANSPORT = "socketio"
DEFAULT_MQTT_PORT = 1883

DEFAULT_CHANNELS = [
    "highspeed",
    "regularspeed",
    "lap",
    "offtrack",
    "race",
    "drone",
]

DEFAULT_STATUS_HOST = "0.0.0.0"
DEFAULT_STATUS_PORT = 8080
