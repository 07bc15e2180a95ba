"""Status reporting endpoint for racing-hue-bridge."""

from __future__ import annotations

import contextlib
import logging
from typing import Optional

from aiohttp import web

from .connection import ConnectionTracker

LOGGER = logging.getLogger(__name__)


class StatusServer:
    """Minimal HTTP server exposing `/status` with the transport state."""

    def __init__(self, tracker: ConnectionTracker, host: str, port: int) -> None:
        self._tracker = tracker
        self._host = host
        self._port = port
        self._runner: Optional[web.AppRunner] = None
        self._site: Optional[web.TCPSite] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/status", self._handle_status)
        return app

    async def start(self) -> None:
        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self._host, self._port)
        await self._site.start()
        LOGGER.info(
            "Status endpoint listening on http://%s:%s/status", self._host, self._port
        )

    async def stop(self) -> None:
        with contextlib.suppress(Exception):
            if self._site is not None:
                await self._site.stop()
        if self._runner is not None:
            await self._runner.cleanup()
        self._site = None
        self._runner = None

    async def _handle_status(self, request: web.Request) -> web.Response:
        return web.Response(text=self._tracker.state.value, status=200)
