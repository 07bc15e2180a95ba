import asyncio
from typing import Iterable, List, Optional

import pytest

from racing_hue_bridge.adapters.actuator import DispatchOutcome
from racing_hue_bridge.core.models import Command


class RecordingActuator:
    """Fake actuator client recording the order of dispatch calls."""

    def __init__(
        self,
        *,
        delay: float = 0.0,
        failing_targets: Iterable[str] = (),
        raising_targets: Iterable[str] = (),
    ) -> None:
        self.delay = delay
        self.failing_targets = set(failing_targets)
        self.raising_targets = set(raising_targets)
        self.started: List[Command] = []
        self.finished: List[Command] = []
        self.active = 0
        self.max_active = 0
        self.start_calls = 0
        self.stop_calls = 0

    async def start(self) -> None:
        self.start_calls += 1

    async def stop(self) -> None:
        self.stop_calls += 1

    async def dispatch(self, command: Command) -> DispatchOutcome:
        self.started.append(command)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if command.target in self.raising_targets:
                raise RuntimeError(f"boom: {command.target}")
            if command.target in self.failing_targets:
                return DispatchOutcome(command, False, f"failed: {command.target}", 500)
            return DispatchOutcome(command, True, "200 OK", 200)
        finally:
            self.active -= 1
            self.finished.append(command)


class FakeEventSource:
    """In-memory event source used to drive the application wiring."""

    def __init__(self) -> None:
        self.subscriptions: List[str] = []
        self.event_handler = None
        self.lifecycle_handler = None
        self.started = False
        self.stopped = False

    def subscribe(self, event_name: str) -> None:
        self.subscriptions.append(event_name)

    def set_event_handler(self, handler) -> None:
        self.event_handler = handler

    def set_lifecycle_handler(self, handler) -> None:
        self.lifecycle_handler = handler

    async def start(self) -> None:
        self.started = True

    async def stop(self) -> None:
        self.stopped = True

    def emit(self, event_name: str, message) -> None:
        assert self.event_handler is not None
        self.event_handler(event_name, message)

    def notify(self, notification: str) -> None:
        assert self.lifecycle_handler is not None
        self.lifecycle_handler(notification)


@pytest.fixture
def actuator_factory():
    def _create(
        *,
        delay: float = 0.0,
        failing_targets: Iterable[str] = (),
        raising_targets: Optional[Iterable[str]] = None,
    ) -> RecordingActuator:
        return RecordingActuator(
            delay=delay,
            failing_targets=failing_targets,
            raising_targets=raising_targets or (),
        )

    return _create


@pytest.fixture
def fake_event_source() -> FakeEventSource:
    return FakeEventSource()
