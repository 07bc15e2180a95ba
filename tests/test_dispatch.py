"""Tests for the serialized dispatch queue."""

import asyncio

import pytest

from racing_hue_bridge.core.models import Command, LightAction, LightColor
from racing_hue_bridge.dispatch import DispatchQueue


def _command(target: str) -> Command:
    return Command(target, LightAction.ON, LightColor.GREEN)


@pytest.mark.asyncio
async def test_single_slot_dispatches_in_enqueue_order(actuator_factory):
    actuator = actuator_factory(delay=0.01)
    queue = DispatchQueue(actuator)
    queue.start()

    commands = [_command(name) for name in ("A", "B", "C")]
    for command in commands:
        queue.enqueue(command)

    await asyncio.wait_for(queue.join(), timeout=2.0)
    await queue.stop()

    assert actuator.started == commands
    assert actuator.finished == commands
    assert actuator.max_active == 1


@pytest.mark.asyncio
async def test_failed_call_does_not_block_later_commands(actuator_factory):
    actuator = actuator_factory(delay=0.01, failing_targets={"A", "B"})
    queue = DispatchQueue(actuator)
    queue.start()

    tasks = [queue.enqueue(_command(name)) for name in ("A", "B", "C")]
    outcomes = await asyncio.wait_for(
        asyncio.gather(*(task.wait() for task in tasks)), timeout=2.0
    )
    await queue.stop()

    assert [command.target for command in actuator.started] == ["A", "B", "C"]
    assert [outcome.success for outcome in outcomes] == [False, False, True]
    assert queue.dispatched == 3
    assert queue.failed == 2


@pytest.mark.asyncio
async def test_queue_survives_client_exceptions(actuator_factory, caplog):
    actuator = actuator_factory(raising_targets={"A"})
    queue = DispatchQueue(actuator)
    queue.start()

    first = queue.enqueue(_command("A"))
    second = queue.enqueue(_command("B"))

    outcome = await asyncio.wait_for(first.wait(), timeout=1.0)
    assert outcome.success is False
    assert "boom" in outcome.message
    assert (await asyncio.wait_for(second.wait(), timeout=1.0)).success is True
    assert queue.running
    assert "Actuator client raised" in caplog.text

    await queue.stop()


@pytest.mark.asyncio
async def test_queue_survives_many_consecutive_failures(actuator_factory):
    targets = [f"car-{index}" for index in range(25)]
    actuator = actuator_factory(failing_targets=targets)
    queue = DispatchQueue(actuator)
    queue.start()

    for target in targets:
        queue.enqueue(_command(target))
    last = queue.enqueue(_command("survivor"))

    outcome = await asyncio.wait_for(last.wait(), timeout=2.0)
    await queue.stop()

    assert outcome.success is True
    assert queue.failed == len(targets)
    assert len(actuator.started) == len(targets) + 1


@pytest.mark.asyncio
async def test_enqueue_returns_before_dispatch(actuator_factory):
    actuator = actuator_factory(delay=0.05)
    queue = DispatchQueue(actuator)
    queue.start()

    task = queue.enqueue(_command("A"))

    assert not task.completed.done()
    assert actuator.started == []
    assert queue.pending == 1

    await asyncio.wait_for(task.wait(), timeout=1.0)
    await queue.stop()


@pytest.mark.asyncio
async def test_commands_enqueued_before_start_are_kept(actuator_factory):
    actuator = actuator_factory()
    queue = DispatchQueue(actuator)

    queue.enqueue(_command("A"))
    queue.enqueue(_command("A"))
    await asyncio.sleep(0)
    assert actuator.started == []

    queue.start()
    await asyncio.wait_for(queue.join(), timeout=1.0)
    await queue.stop()

    assert [command.target for command in actuator.started] == ["A", "A"]


@pytest.mark.asyncio
async def test_concurrency_bound_is_respected(actuator_factory):
    actuator = actuator_factory(delay=0.02)
    queue = DispatchQueue(actuator, concurrency=2)
    queue.start()

    for index in range(6):
        queue.enqueue(_command(f"car-{index}"))

    await asyncio.wait_for(queue.join(), timeout=2.0)
    await queue.stop()

    assert actuator.max_active == 2
    assert len(actuator.finished) == 6


def test_concurrency_must_be_positive(actuator_factory):
    with pytest.raises(ValueError):
        DispatchQueue(actuator_factory(), concurrency=0)


@pytest.mark.asyncio
async def test_stop_drains_backlog_within_timeout(actuator_factory):
    actuator = actuator_factory(delay=0.01)
    queue = DispatchQueue(actuator)
    queue.start()

    for name in ("A", "B", "C"):
        queue.enqueue(_command(name))

    await queue.stop(drain_timeout=1.0)

    assert len(actuator.finished) == 3
    assert not queue.running


@pytest.mark.asyncio
async def test_stop_drops_remaining_commands(actuator_factory, caplog):
    actuator = actuator_factory(delay=0.5)
    queue = DispatchQueue(actuator)
    queue.start()

    first = queue.enqueue(_command("A"))
    pending = queue.enqueue(_command("B"))
    await asyncio.sleep(0.01)

    await queue.stop(drain_timeout=0.01)

    assert first.completed.cancelled()
    assert pending.completed.cancelled()
    assert queue.pending == 0
    assert "Dropped 1 undelivered command" in caplog.text
