"""HTTP client for the lighting (hue) control service."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import aiohttp

from ..config import ActuatorConfig
from ..core.models import Command

LOGGER = logging.getLogger(__name__)

_HEADERS = {"Content-Type": "application/json"}


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    command: Command
    success: bool
    message: str
    status: Optional[int] = None


def build_command_path(command: Command) -> str:
    """Return ``/hue/{target}/{action}[/{color}]`` with every segment escaped."""

    segments = [quote(segment, safe="") for segment in command.path_segments()]
    return "/hue/" + "/".join(segments)


class HueActuatorClient:
    """Issues one PUT per command against the lighting service.

    Calls are bounded by short connect and request timeouts and are never
    retried. Transport errors and non-2xx responses come back as failed
    outcomes instead of exceptions.
    """

    def __init__(
        self,
        config: ActuatorConfig,
        *,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.config = config
        self._base_url = config.url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(
            total=config.request_timeout_seconds,
            sock_connect=config.connect_timeout_seconds,
        )
        self._session: Optional[aiohttp.ClientSession] = session
        self._owns_session = session is None

    async def start(self) -> None:
        await self._ensure_session()

    async def stop(self) -> None:
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout, headers=_HEADERS)
            self._owns_session = True
        return self._session

    async def dispatch(self, command: Command) -> DispatchOutcome:
        session = await self._ensure_session()
        url = self._base_url + build_command_path(command)

        try:
            async with session.put(url, headers=_HEADERS, timeout=self._timeout) as response:
                if 200 <= response.status < 300:
                    LOGGER.debug("PUT %s -> %s", url, response.status)
                    return DispatchOutcome(
                        command=command,
                        success=True,
                        message=f"{response.status} {response.reason or 'OK'}",
                        status=response.status,
                    )
                body = (await response.text()).strip()
                detail = f"{response.status} {response.reason or ''}".strip()
                if body:
                    detail = f"{detail}: {body[:200]}"
                return DispatchOutcome(
                    command=command,
                    success=False,
                    message=f"Lighting service rejected {command}: {detail}",
                    status=response.status,
                )
        except asyncio.TimeoutError:
            return DispatchOutcome(
                command=command,
                success=False,
                message=(
                    f"Lighting service timed out after "
                    f"{self.config.request_timeout_seconds:.1f}s for {command}"
                ),
            )
        except aiohttp.ClientError as exc:
            return DispatchOutcome(
                command=command,
                success=False,
                message=f"Lighting service unreachable for {command}: {exc}",
            )
