"""Command-line interface for racing-hue-bridge."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from . import constants
from .app import RacingHueBridgeApp
from .config import ConfigurationError, load_config

LOGGER = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="racing-hue-bridge",
        description="Event listener turning IoT Racing events into light commands",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=constants.DEFAULT_CONFIG_PATH,
        help=f"Path to configuration file (default: {constants.DEFAULT_CONFIG_PATH})",
    )
    parser.add_argument(
        "-s",
        "--eventserver",
        metavar="HOST:PORT",
        help="Event server hostname or IP address and port",
    )
    parser.add_argument(
        "-d",
        "--demozone",
        help="Demo zone whose events are subscribed to",
    )
    parser.add_argument(
        "-t",
        "--transport",
        choices=["socketio", "mqtt"],
        help="Event transport (default: socketio)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("start", help="Start the bridge")
    subparsers.add_parser(
        "show-config", help="Print the resolved configuration and exit"
    )

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        config.apply_overrides(
            server=args.eventserver,
            namespace=args.demozone,
            transport=args.transport,
            verbose=args.verbose,
        )
    except ConfigurationError as exc:
        LOGGER.error("Invalid configuration: %s", exc)
        return 1

    if args.command == "start":
        if not config.events.server:
            parser.print_usage(sys.stderr)
            LOGGER.error("An event server address is required (--eventserver)")
            return 1
        try:
            RacingHueBridgeApp.start(config)
        except ConfigurationError as exc:
            LOGGER.error("Invalid configuration: %s", exc)
            return 1
        return 0

    if args.command == "show-config":
        print(f"Configuration loaded from {config.path!s}\n")
        for section in config.raw.sections():
            print(f"[{section}]")
            for key, value in config.raw[section].items():
                print(f"{key} = {value}")
            print()
        return 0

    LOGGER.error("Unknown command: %s", args.command)
    return 1


if __name__ == "__main__":
    sys.exit(main())
