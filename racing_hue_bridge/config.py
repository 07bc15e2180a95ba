"""Configuration loader for racing-hue-bridge."""

from __future__ import annotations

from configparser import ConfigParser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from . import constants

SUPPORTED_TRANSPORTS = ("socketio", "mqtt")


class ConfigurationError(RuntimeError):
    """Raised when the configuration cannot be used to start the bridge."""


@dataclass(slots=True)
class EventsConfig:
    server: str = ""
    namespace: str = ""
    transport: str = constants.DEFAULT_TRANSPORT
    channels: List[str] = field(default_factory=lambda: list(constants.DEFAULT_CHANNELS))
    reconnect_initial_seconds: float = 1.0
    reconnect_max_seconds: float = 30.0
    reconnect_jitter_ratio: float = 0.5


@dataclass(slots=True)
class ActuatorConfig:
    url: str = constants.DEFAULT_ACTUATOR_URL
    connect_timeout_seconds: float = 1.0
    request_timeout_seconds: float = 1.0


@dataclass(slots=True)
class DispatchConfig:
    concurrency: int = 1
    drain_timeout_seconds: float = 5.0


@dataclass(slots=True)
class StatusConfig:
    enabled: bool = True
    host: str = constants.DEFAULT_STATUS_HOST
    port: int = constants.DEFAULT_STATUS_PORT


@dataclass(slots=True)
class LoggingConfig:
    level: str = "INFO"
    path: Optional[Path] = None
    log_network: bool = False


@dataclass(slots=True)
class BridgeConfig:
    events: EventsConfig
    actuator: ActuatorConfig
    dispatch: DispatchConfig
    status: StatusConfig
    logging: LoggingConfig
    raw: ConfigParser
    path: Path

    def apply_overrides(
        self,
        *,
        server: Optional[str] = None,
        namespace: Optional[str] = None,
        transport: Optional[str] = None,
        verbose: bool = False,
    ) -> None:
        """Apply command-line overrides on top of the file values."""

        if server:
            self.events.server = server
            self.raw.set("events", "server", server)
        if namespace:
            self.events.namespace = namespace.lower()
            self.raw.set("events", "namespace", self.events.namespace)
        if transport:
            self.events.transport = _parse_transport(transport)
            self.raw.set("events", "transport", self.events.transport)
        if verbose:
            self.logging.level = "DEBUG"
            self.raw.set("logging", "level", "DEBUG")


def _parse_list(value: str, *, default: Iterable[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_transport(value: str) -> str:
    transport = value.strip().lower()
    if transport not in SUPPORTED_TRANSPORTS:
        raise ConfigurationError(
            f"Unsupported event transport {value!r} "
            f"(expected one of: {', '.join(SUPPORTED_TRANSPORTS)})"
        )
    return transport


def load_config(path: Optional[Path] = None) -> BridgeConfig:
    """Load configuration from disk, applying defaults where necessary."""

    config_path = path or constants.DEFAULT_CONFIG_PATH
    parser = ConfigParser()
    parser.read_dict(
        {
            "events": {
                "server": "",
                "namespace": "",
                "transport": constants.DEFAULT_TRANSPORT,
                "channels": ",".join(constants.DEFAULT_CHANNELS),
                "reconnect_initial_seconds": "1.0",
                "reconnect_max_seconds": "30.0",
                "reconnect_jitter_ratio": "0.5",
            },
            "actuator": {
                "url": constants.DEFAULT_ACTUATOR_URL,
                "connect_timeout_seconds": "1.0",
                "request_timeout_seconds": "1.0",
            },
            "dispatch": {
                "concurrency": "1",
                "drain_timeout_seconds": "5.0",
            },
            "status": {
                "enabled": "true",
                "host": constants.DEFAULT_STATUS_HOST,
                "port": str(constants.DEFAULT_STATUS_PORT),
            },
            "logging": {
                "level": "INFO",
                "path": "",
                "log_network": "false",
            },
        }
    )

    if config_path.exists():
        parser.read(config_path)

    events = EventsConfig(
        server=parser.get("events", "server").strip(),
        namespace=parser.get("events", "namespace").strip().lower(),
        transport=_parse_transport(parser.get("events", "transport")),
        channels=_parse_list(
            parser.get("events", "channels"), default=constants.DEFAULT_CHANNELS
        ),
        reconnect_initial_seconds=max(
            0.1, parser.getfloat("events", "reconnect_initial_seconds", fallback=1.0)
        ),
        reconnect_max_seconds=max(
            0.1, parser.getfloat("events", "reconnect_max_seconds", fallback=30.0)
        ),
        reconnect_jitter_ratio=max(
            0.0,
            min(1.0, parser.getfloat("events", "reconnect_jitter_ratio", fallback=0.5)),
        ),
    )

    actuator = ActuatorConfig(
        url=parser.get("actuator", "url").rstrip("/"),
        connect_timeout_seconds=parser.getfloat(
            "actuator", "connect_timeout_seconds", fallback=1.0
        ),
        request_timeout_seconds=parser.getfloat(
            "actuator", "request_timeout_seconds", fallback=1.0
        ),
    )

    dispatch = DispatchConfig(
        concurrency=max(1, parser.getint("dispatch", "concurrency", fallback=1)),
        drain_timeout_seconds=max(
            0.0, parser.getfloat("dispatch", "drain_timeout_seconds", fallback=5.0)
        ),
    )

    status = StatusConfig(
        enabled=parser.getboolean("status", "enabled", fallback=True),
        host=parser.get("status", "host", fallback=constants.DEFAULT_STATUS_HOST),
        port=parser.getint("status", "port", fallback=constants.DEFAULT_STATUS_PORT),
    )

    log_path_value = parser.get("logging", "path", fallback="").strip()
    logging_config = LoggingConfig(
        level=parser.get("logging", "level", fallback="INFO"),
        path=Path(log_path_value).expanduser() if log_path_value else None,
        log_network=parser.getboolean("logging", "log_network", fallback=False),
    )

    return BridgeConfig(
        events=events,
        actuator=actuator,
        dispatch=dispatch,
        status=status,
        logging=logging_config,
        raw=parser,
        path=config_path,
    )


def save_config(config: BridgeConfig) -> None:
    """Persist the current configuration to disk."""

    config_path = config.path
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as stream:
        config.raw.write(stream)
