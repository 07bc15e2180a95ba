"""Ordered, bounded-concurrency delivery of lighting commands."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .adapters.actuator import DispatchOutcome
from .core.models import Command
from .core.protocols import ActuatorClient

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class QueueTask:
    command: Command
    completed: asyncio.Future[DispatchOutcome] = field(repr=False)

    async def wait(self) -> DispatchOutcome:
        return await asyncio.shield(self.completed)


class DispatchQueue:
    """Feeds commands to the actuator client from a FIFO backlog.

    ``enqueue`` never blocks and never fails. Up to ``concurrency`` worker
    slots each take the head of the backlog and wait for the actuator call to
    finish before taking the next one. With a single slot, commands reach the
    lighting service strictly in enqueue order. A failed call is logged and the
    slot moves on.
    """

    def __init__(self, client: ActuatorClient, *, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ValueError("Dispatch concurrency must be at least 1")

        self._client = client
        self._concurrency = concurrency
        self._backlog: asyncio.Queue[QueueTask] = asyncio.Queue()
        self._workers: List[asyncio.Task[None]] = []
        self._in_flight = 0
        self._dispatched = 0
        self._failed = 0

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def pending(self) -> int:
        """Commands enqueued but not yet handed to the actuator client."""
        return self._backlog.qsize()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    @property
    def dispatched(self) -> int:
        return self._dispatched

    @property
    def failed(self) -> int:
        return self._failed

    @property
    def running(self) -> bool:
        return any(not worker.done() for worker in self._workers)

    def enqueue(self, command: Command) -> QueueTask:
        loop = asyncio.get_running_loop()
        task = QueueTask(command=command, completed=loop.create_future())
        self._backlog.put_nowait(task)
        LOGGER.debug("Queued %s (pending=%d)", command, self._backlog.qsize())
        return task

    def start(self) -> None:
        if self.running:
            LOGGER.warning("Dispatch queue already running")
            return

        if self._concurrency > 1:
            LOGGER.warning(
                "Dispatch concurrency is %d; commands may reach the lighting "
                "service out of order",
                self._concurrency,
            )

        self._workers = [
            asyncio.create_task(self._worker(slot), name=f"dispatch-slot-{slot}")
            for slot in range(self._concurrency)
        ]
        LOGGER.info("Dispatch queue started with %d slot(s)", self._concurrency)

    async def join(self) -> None:
        """Wait until every enqueued command has been dispatched."""
        await self._backlog.join()

    async def stop(self, drain_timeout: Optional[float] = None) -> None:
        """Stop the workers, optionally giving the backlog time to drain."""

        if drain_timeout and self.running and (self.pending or self._in_flight):
            try:
                await asyncio.wait_for(self._backlog.join(), timeout=drain_timeout)
            except asyncio.TimeoutError:
                LOGGER.warning(
                    "Dispatch backlog not drained after %.1fs", drain_timeout
                )

        for worker in self._workers:
            worker.cancel()
        for worker in self._workers:
            with contextlib.suppress(asyncio.CancelledError):
                await worker
        self._workers = []

        dropped = 0
        while not self._backlog.empty():
            task = self._backlog.get_nowait()
            self._backlog.task_done()
            task.completed.cancel()
            dropped += 1
        if dropped:
            LOGGER.warning("Dropped %d undelivered command(s) on shutdown", dropped)

    async def _worker(self, slot: int) -> None:
        while True:
            task = await self._backlog.get()
            self._in_flight += 1
            try:
                outcome = await self._run(task.command)
            except asyncio.CancelledError:
                task.completed.cancel()
                raise
            finally:
                self._in_flight -= 1
                self._backlog.task_done()

            if not task.completed.done():
                task.completed.set_result(outcome)

    async def _run(self, command: Command) -> DispatchOutcome:
        try:
            outcome = await self._client.dispatch(command)
        except Exception as exc:
            LOGGER.exception("Actuator client raised while dispatching %s", command)
            outcome = DispatchOutcome(command=command, success=False, message=str(exc))

        self._dispatched += 1
        if outcome.success:
            LOGGER.debug("Dispatched %s", command)
        else:
            self._failed += 1
            LOGGER.error(outcome.message)
        return outcome
