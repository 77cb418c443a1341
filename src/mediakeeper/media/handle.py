"""
Abstract playable media handle.

A MediaHandle is the manager's view of a playable element owned by someone
else (a page component, a player widget, a decoder session). The manager only
drives its playback and loading state and listens to its events; it never
creates or disposes of the underlying element.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable


class MediaEvent(str, Enum):
    """Events a media handle delivers to its listeners."""

    PLAYED = "play"
    PAUSED = "pause"
    ENDED = "ended"
    ERRORED = "error"


MediaListener = Callable[[MediaEvent], None]


class MediaError(Exception):
    """Base exception for media handle failures."""


class PlaybackDeniedError(MediaError):
    """Raised when the host refuses to start playback (e.g. autoplay policy)."""


class MediaHandle(ABC):
    """Interface of a playable element as seen by the lifecycle manager."""

    @property
    @abstractmethod
    def paused(self) -> bool: ...

    @property
    @abstractmethod
    def src(self) -> str | None: ...

    @property
    def video_width(self) -> int:
        """Decoded width in pixels, 0 when not known yet."""
        return 0

    @property
    def video_height(self) -> int:
        """Decoded height in pixels, 0 when not known yet."""
        return 0

    @property
    def duration(self) -> float | None:
        """Duration in seconds, None when not known yet."""
        return None

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    async def play(self) -> None:
        """Start playback.

        Raises:
            PlaybackDeniedError: If the host refuses to play.
        """

    @abstractmethod
    def load(self) -> None:
        """Reset the element and (re)load its current source."""

    @abstractmethod
    def detach_source(self) -> None: ...

    @abstractmethod
    def attach_source(self, src: str) -> None: ...

    @abstractmethod
    def add_listener(self, event: MediaEvent, listener: MediaListener) -> None: ...

    @abstractmethod
    def remove_listener(self, event: MediaEvent, listener: MediaListener) -> None: ...

    @abstractmethod
    def release(self) -> None:
        """Drop every attached listener so the element holds no references back."""
