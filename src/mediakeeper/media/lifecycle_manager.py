"""
Media resource lifecycle manager.

MediaLifecycleManager tracks every active playable media resource in the
process and keeps their aggregate cost bounded:

- Capacity: at most ``max_active_resources`` entries; registering beyond the
  cap evicts the least-recently-active entries.
- Memory: when the injected MemoryProbe reports used memory above
  ``max_memory_threshold_mb``, resources idle longer than
  ``inactivity_threshold`` are paused (soft throttle, nothing is removed).
- Loop recycling: a resource that completes ``max_loops_before_reload`` loops
  has its source detached and reattached after ``reload_delay`` to flush
  decoded buffers.
- Staleness: a periodic sweep removes paused resources idle longer than
  ``stale_threshold``.

Everything runs on one asyncio event loop. Media events, the maintenance task
and the deferred reload timers all mutate the registry from that loop, so no
locking is needed; iterations that can remove entries walk a snapshot.

Example:
    async with MediaLifecycleManager(probe=ProcessMemoryProbe()) as manager:
        identity = manager.register(element)
        ...
        manager.unregister(element)
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable
from uuid import uuid4

from mediakeeper.config.limits import LifecycleLimits
from mediakeeper.config.logging_config import get_logger
from mediakeeper.media.footprint import estimate_footprint_bytes
from mediakeeper.media.handle import MediaEvent, MediaHandle, MediaListener
from mediakeeper.media.memory_probe import (
    HeapUsage,
    MemoryProbe,
    NullMemoryProbe,
    ProcessMemoryProbe,
    get_memory_info,
)

log = get_logger(__name__)


@dataclass(eq=False)
class TrackedResource:
    """Bookkeeping for one registered media handle.

    Attributes:
        identity: Unique token assigned at registration.
        handle: The caller-owned playable element.
        last_activity: Clock reading of the last play, pause or loop completion.
        loop_count: Loop completions since registration or the last reload.
        footprint_bytes: Estimated decoded memory, computed at registration.
        registered_at: Clock reading at registration.
        reloading: True while a threshold reload is in flight.
    """

    identity: str
    handle: MediaHandle
    last_activity: float
    footprint_bytes: int
    registered_at: float
    loop_count: int = 0
    reloading: bool = False
    listeners: dict[MediaEvent, MediaListener] = field(default_factory=dict, repr=False)

    def idle_for(self, now: float) -> float:
        return now - self.last_activity


@dataclass
class MediaMemoryStats:
    active_resources: int
    total_estimated_bytes: int
    heap: HeapUsage | None


class MediaLifecycleManager:
    """Registry that bounds the number and memory cost of active media resources."""

    def __init__(
        self,
        limits: LifecycleLimits | None = None,
        probe: MemoryProbe | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.limits = limits or LifecycleLimits()
        self.probe = probe or NullMemoryProbe()
        self._clock = clock
        self._resources: dict[str, TrackedResource] = {}
        self._pending_reloads: dict[str, asyncio.TimerHandle] = {}
        self._resume_tasks: set[asyncio.Task] = set()
        self._maintenance_task: asyncio.Task | None = None
        self._destroyed = False

    async def __aenter__(self) -> "MediaLifecycleManager":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def active_count(self) -> int:
        return len(self._resources)

    @property
    def max_active(self) -> int:
        return self.limits.max_active_resources

    @property
    def running(self) -> bool:
        return self._maintenance_task is not None and not self._maintenance_task.done()

    def now(self) -> float:
        return self._clock()

    def get_stats(self, handle: MediaHandle) -> TrackedResource | None:
        for entry in self._resources.values():
            if entry.handle is handle:
                return entry
        return None

    def all_stats(self) -> list[TrackedResource]:
        return list(self._resources.values())

    def memory_stats(self) -> MediaMemoryStats:
        return MediaMemoryStats(
            active_resources=len(self._resources),
            total_estimated_bytes=sum(e.footprint_bytes for e in self._resources.values()),
            heap=self.probe.heap_usage(),
        )

    def memory_snapshot(self) -> dict[str, str] | None:
        return get_memory_info(self.probe)

    # ------------------------------------------------------------------
    # Registry operations
    # ------------------------------------------------------------------

    def register(self, handle: MediaHandle, identity: str | None = None) -> str:
        """Start tracking ``handle`` and enforce capacity and memory limits.

        Registering may evict other entries. Registering the same handle twice
        creates a second entry; callers pair every register with one unregister.

        Returns:
            The identity of the new entry.
        """
        identity = identity or self._generate_identity()
        previous = self._resources.get(identity)
        if previous is not None:
            self._remove(previous)
        now = self._clock()
        entry = TrackedResource(
            identity=identity,
            handle=handle,
            last_activity=now,
            registered_at=now,
            footprint_bytes=estimate_footprint_bytes(
                handle.video_width,
                handle.video_height,
                handle.duration,
                min_mb=self.limits.min_footprint_mb,
            ),
        )
        self._resources[identity] = entry
        self._attach_listeners(entry)
        self.enforce_limits()

        log.info(f"Media registered: {identity}, active resources: {len(self._resources)}")
        return identity

    def unregister(self, handle: MediaHandle, force: bool = False) -> None:
        """Tear down and drop every entry tracking ``handle``. No-op when untracked."""
        for entry in [e for e in self._resources.values() if e.handle is handle]:
            self._remove(entry, force=force)

    def force_cleanup(self) -> None:
        """Forcefully tear down every entry and hint the host to collect garbage."""
        log.info("Forcing media memory cleanup...")
        for entry in list(self._resources.values()):
            self._remove(entry, force=True)
        self.probe.request_gc()

    def destroy(self) -> None:
        """Stop maintenance and release every resource. Safe to call repeatedly.

        Every call ends with an empty registry, including entries registered
        after an earlier destroy.
        """
        if not self._destroyed:
            log.info("Destroying MediaLifecycleManager...")
            self._destroyed = True
        if self._maintenance_task is not None:
            self._maintenance_task.cancel()
            self._maintenance_task = None
        if self._resources:
            self.force_cleanup()
        self._resources.clear()

    def update_loop_count(self, handle: MediaHandle) -> int:
        """Record a loop completion for ``handle``.

        Returns:
            The new loop count, or 0 if a reload was triggered or the handle
            is not tracked.
        """
        entry = self.get_stats(handle)
        if entry is None:
            return 0
        return self._on_loop_completed(entry)

    def dispatch(self, entry: TrackedResource, event: MediaEvent) -> None:
        """Apply a media event to the entry it was raised for."""
        if event in (MediaEvent.PLAYED, MediaEvent.PAUSED):
            entry.last_activity = self._clock()
        elif event is MediaEvent.ENDED:
            self._on_loop_completed(entry)
        elif event is MediaEvent.ERRORED:
            log.error(f"Media error for {entry.identity}")
            if self._resources.get(entry.identity) is entry:
                self._remove(entry)

    # ------------------------------------------------------------------
    # Host environment events
    # ------------------------------------------------------------------

    def on_visibility_change(self, hidden: bool) -> None:
        if not hidden:
            return
        for entry in list(self._resources.values()):
            if not entry.handle.paused:
                entry.handle.pause()
                log.info(f"Paused media {entry.identity} due to page visibility change")

    def on_unload(self) -> None:
        self.destroy()

    # ------------------------------------------------------------------
    # Enforcement and maintenance
    # ------------------------------------------------------------------

    def enforce_limits(self) -> None:
        self._enforce_capacity()

        usage = self.probe.heap_usage()
        if usage is not None and usage.used_mb > self.limits.max_memory_threshold_mb:
            self._throttle_idle()

    def run_maintenance(self) -> None:
        """One maintenance tick: capacity and memory checks, then the staleness sweep."""
        self._enforce_capacity()
        usage = self.probe.heap_usage()
        if usage is not None and usage.used_mb > self.limits.max_memory_threshold_mb:
            log.warning(f"High memory usage detected: {usage.used_mb:.2f}MB, performing cleanup...")
            self._throttle_idle()
        self._sweep_stale()

    def start(self) -> None:
        """Start periodic maintenance on the running event loop."""
        if self.running:
            return
        self._destroyed = False
        interval = self.limits.maintenance_interval

        async def maintenance_loop():
            while True:
                try:
                    await asyncio.sleep(interval)
                    self.run_maintenance()
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    log.error(f"Error in media maintenance task: {e}")

        self._maintenance_task = asyncio.get_running_loop().create_task(maintenance_loop())
        log.info("Started media maintenance task")

    def _enforce_capacity(self) -> None:
        overflow = len(self._resources) - self.limits.max_active_resources
        if overflow > 0:
            self._evict_oldest(overflow)

    def _evict_oldest(self, count: int) -> None:
        # sorted() is stable, so equal timestamps keep insertion order
        ordered = sorted(self._resources.values(), key=lambda e: e.last_activity)
        for entry in ordered[:count]:
            log.info(f"Removing old media: {entry.identity}")
            self._remove(entry)

    def _throttle_idle(self) -> None:
        log.info("Performing memory optimization...")
        now = self._clock()
        for entry in list(self._resources.values()):
            if entry.idle_for(now) > self.limits.inactivity_threshold and not entry.handle.paused:
                log.info(f"Pausing inactive media: {entry.identity}")
                entry.handle.pause()
        self.probe.request_gc()

    def _sweep_stale(self) -> None:
        now = self._clock()
        for entry in list(self._resources.values()):
            if entry.idle_for(now) > self.limits.stale_threshold and entry.handle.paused:
                log.info(f"Removing stale media: {entry.identity}")
                self._remove(entry)

    # ------------------------------------------------------------------
    # Loop recycling
    # ------------------------------------------------------------------

    def _on_loop_completed(self, entry: TrackedResource) -> int:
        if entry.reloading:
            return 0
        entry.loop_count += 1
        entry.last_activity = self._clock()
        if entry.loop_count >= self.limits.max_loops_before_reload:
            log.info(f"Reloading media {entry.identity} after {entry.loop_count} loops")
            self._reload(entry)
            return 0
        return entry.loop_count

    def _reload(self, entry: TrackedResource) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # the deferred reattach needs a loop; keep the source attached
            log.warning(f"No running event loop, skipping reload of media {entry.identity}")
            entry.loop_count = 0
            return

        handle = entry.handle
        source = handle.src
        was_playing = not handle.paused

        entry.reloading = True
        entry.loop_count = 0
        handle.pause()
        handle.detach_source()
        handle.load()

        self._pending_reloads[entry.identity] = loop.call_later(
            self.limits.reload_delay, self._finish_reload, entry, source, was_playing
        )

    def _finish_reload(self, entry: TrackedResource, source: str | None, was_playing: bool) -> None:
        self._pending_reloads.pop(entry.identity, None)
        if self._resources.get(entry.identity) is not entry:
            return

        handle = entry.handle
        if source is not None:
            handle.attach_source(source)
        handle.load()
        entry.loop_count = 0
        entry.last_activity = self._clock()
        entry.reloading = False

        if was_playing:
            task = asyncio.get_running_loop().create_task(self._resume(entry))
            self._resume_tasks.add(task)
            task.add_done_callback(self._resume_tasks.discard)

    async def _resume(self, entry: TrackedResource) -> None:
        try:
            await entry.handle.play()
        except Exception as e:
            log.error(f"Failed to resume media {entry.identity} after reload: {e}")

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------

    def _remove(self, entry: TrackedResource, force: bool = False) -> None:
        self._teardown(entry, force=force)
        if self._resources.get(entry.identity) is entry:
            del self._resources[entry.identity]
        log.info(f"Media removed: {entry.identity}, active resources: {len(self._resources)}")

    def _teardown(self, entry: TrackedResource, force: bool = False) -> None:
        pending = self._pending_reloads.pop(entry.identity, None)
        if pending is not None:
            pending.cancel()
        entry.reloading = False
        entry.loop_count = 0

        handle = entry.handle
        try:
            self._detach_listeners(entry)
            handle.pause()
            if force:
                handle.detach_source()
                handle.load()
                handle.release()
        except Exception as e:
            log.error(f"Error during media cleanup for {entry.identity}: {e}")

    def _attach_listeners(self, entry: TrackedResource) -> None:
        for event in MediaEvent:
            listener = self._make_listener(entry)
            entry.listeners[event] = listener
            entry.handle.add_listener(event, listener)

    def _make_listener(self, entry: TrackedResource) -> MediaListener:
        def listener(event: MediaEvent) -> None:
            self.dispatch(entry, event)

        return listener

    def _detach_listeners(self, entry: TrackedResource) -> None:
        for event, listener in entry.listeners.items():
            entry.handle.remove_listener(event, listener)
        entry.listeners.clear()

    @staticmethod
    def _generate_identity() -> str:
        return f"video_{int(time.time() * 1000)}_{uuid4().hex[:9]}"


_shared_manager: MediaLifecycleManager | None = None


def get_lifecycle_manager() -> MediaLifecycleManager:
    """Return the process-wide manager, creating it from the environment on first use."""
    global _shared_manager
    if _shared_manager is None:
        _shared_manager = MediaLifecycleManager(
            limits=LifecycleLimits.from_environment(),
            probe=ProcessMemoryProbe(),
        )
    return _shared_manager


def reset_lifecycle_manager() -> None:
    """Destroy and forget the process-wide manager."""
    global _shared_manager
    if _shared_manager is not None:
        _shared_manager.destroy()
        _shared_manager = None
