"""
In-memory media handle.

SimulatedVideoElement behaves like a looping video element without decoding
anything: it keeps a playback flag, a source, a listener table and a history of
the operations performed on it. The `simulate` CLI command and the test-suite
drive the lifecycle manager with it.
"""

from __future__ import annotations

from collections import defaultdict

from mediakeeper.media.handle import (
    MediaEvent,
    MediaHandle,
    MediaListener,
    PlaybackDeniedError,
)


class SimulatedVideoElement(MediaHandle):
    def __init__(
        self,
        src: str | None = None,
        *,
        width: int = 0,
        height: int = 0,
        duration: float | None = None,
        autoplay_allowed: bool = True,
    ):
        self._src = src
        self._paused = True
        self._width = width
        self._height = height
        self._duration = duration
        self.autoplay_allowed = autoplay_allowed
        self.history: list[str] = []
        self._listeners: dict[MediaEvent, list[MediaListener]] = defaultdict(list)

    def __repr__(self) -> str:
        state = "paused" if self._paused else "playing"
        return f"SimulatedVideoElement(src={self._src!r}, {state})"

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def src(self) -> str | None:
        return self._src

    @property
    def video_width(self) -> int:
        return self._width

    @property
    def video_height(self) -> int:
        return self._height

    @property
    def duration(self) -> float | None:
        return self._duration

    @property
    def listener_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())

    def pause(self) -> None:
        self.history.append("pause")
        if not self._paused:
            self._paused = True
            self.emit(MediaEvent.PAUSED)

    async def play(self) -> None:
        if not self.autoplay_allowed:
            raise PlaybackDeniedError(f"playback of {self._src!r} was denied")
        self.history.append("play")
        if self._paused:
            self._paused = False
            self.emit(MediaEvent.PLAYED)

    def load(self) -> None:
        self.history.append("load")
        self._paused = True

    def detach_source(self) -> None:
        self.history.append("detach")
        self._src = None

    def attach_source(self, src: str) -> None:
        self.history.append(f"attach:{src}")
        self._src = src

    def add_listener(self, event: MediaEvent, listener: MediaListener) -> None:
        self._listeners[event].append(listener)

    def remove_listener(self, event: MediaEvent, listener: MediaListener) -> None:
        listeners = self._listeners.get(event)
        if listeners and listener in listeners:
            listeners.remove(listener)

    def release(self) -> None:
        self.history.append("release")
        self._listeners.clear()

    def emit(self, event: MediaEvent) -> None:
        for listener in list(self._listeners.get(event, ())):
            listener(event)

    def complete_loop(self) -> None:
        """Reach the end of the clip; looping playback carries on."""
        self.emit(MediaEvent.ENDED)

    def fail(self) -> None:
        """Simulate a load or decode failure."""
        self.history.append("error")
        self._paused = True
        self.emit(MediaEvent.ERRORED)
