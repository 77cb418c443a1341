"""Tests for loop-count driven reloads."""

import asyncio

import pytest

from mediakeeper.config.limits import LifecycleLimits
from mediakeeper.media.lifecycle_manager import MediaLifecycleManager
from mediakeeper.media.simulated import SimulatedVideoElement

RELOAD_DELAY = 0.01


@pytest.fixture
def manager(clock, probe):
    limits = LifecycleLimits(reload_delay=RELOAD_DELAY)
    manager = MediaLifecycleManager(limits=limits, probe=probe, clock=clock)
    yield manager
    manager.destroy()


async def wait_for_reload():
    await asyncio.sleep(RELOAD_DELAY * 5)


@pytest.mark.asyncio
async def test_reload_after_max_loops(manager, clock):
    element = SimulatedVideoElement("hero.mp4")
    manager.register(element)
    await element.play()

    for _ in range(9):
        element.complete_loop()
    assert manager.get_stats(element).loop_count == 9
    assert "detach" not in element.history

    clock.advance(2)
    element.complete_loop()

    stats = manager.get_stats(element)
    assert stats.loop_count == 0
    assert stats.reloading
    assert element.src is None

    await wait_for_reload()

    assert stats.loop_count == 0
    assert not stats.reloading
    assert element.src == "hero.mp4"
    assert not element.paused
    detach = element.history.index("detach")
    attach = element.history.index("attach:hero.mp4")
    assert detach < attach
    assert element.history[attach + 1] == "load"
    assert element.history[-1] == "play"


@pytest.mark.asyncio
async def test_loop_count_stays_below_bound(manager):
    element = SimulatedVideoElement("loop.mp4")
    manager.register(element)
    await element.play()

    for _ in range(35):
        element.complete_loop()
        stats = manager.get_stats(element)
        assert 0 <= stats.loop_count < manager.limits.max_loops_before_reload
        if stats.reloading:
            await wait_for_reload()

    assert element.history.count("detach") == 3


@pytest.mark.asyncio
async def test_update_loop_count_returns_zero_on_reload(manager):
    element = SimulatedVideoElement("clip.mp4")
    manager.register(element)

    results = [manager.update_loop_count(element) for _ in range(10)]

    assert results == [1, 2, 3, 4, 5, 6, 7, 8, 9, 0]
    await wait_for_reload()


@pytest.mark.asyncio
async def test_paused_resource_is_not_resumed(manager):
    element = SimulatedVideoElement("clip.mp4")
    manager.register(element)

    for _ in range(10):
        element.complete_loop()
    await wait_for_reload()

    assert element.src == "clip.mp4"
    assert element.paused
    assert "play" not in element.history


@pytest.mark.asyncio
async def test_denied_resume_is_logged_and_kept(manager, caplog):
    element = SimulatedVideoElement("clip.mp4")
    manager.register(element)
    await element.play()
    element.autoplay_allowed = False

    for _ in range(10):
        element.complete_loop()
    await wait_for_reload()

    assert manager.get_stats(element) is not None
    assert element.paused
    assert "Failed to resume media" in caplog.text


@pytest.mark.asyncio
async def test_unregister_cancels_pending_reload(manager):
    element = SimulatedVideoElement("clip.mp4")
    manager.register(element)
    await element.play()

    for _ in range(10):
        element.complete_loop()
    manager.unregister(element)
    await wait_for_reload()

    assert element.src is None
    assert not any(op.startswith("attach:") for op in element.history)
    assert element.paused


@pytest.mark.asyncio
async def test_loops_during_reload_are_ignored(manager):
    element = SimulatedVideoElement("clip.mp4")
    manager.register(element)

    for _ in range(10):
        element.complete_loop()
    assert manager.update_loop_count(element) == 0
    await wait_for_reload()

    assert manager.get_stats(element).loop_count == 0


def test_bound_without_event_loop_resets_count_and_keeps_source(manager, caplog):
    element = SimulatedVideoElement("sync.mp4")
    manager.register(element)

    for _ in range(10):
        element.complete_loop()

    stats = manager.get_stats(element)
    assert stats.loop_count == 0
    assert not stats.reloading
    assert element.src == "sync.mp4"
    assert "detach" not in element.history
    assert "skipping reload" in caplog.text

    assert manager.update_loop_count(element) == 1
