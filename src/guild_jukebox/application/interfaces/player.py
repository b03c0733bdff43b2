"""Port interface for the per-session audio player."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from guild_jukebox.domain.playback.value_objects import PlayerEventKind

if TYPE_CHECKING:
    from ...domain.playback.entities import Track


@dataclass(frozen=True)
class PlayerEvent:
    """A notification about the playback identified by ``handle``."""

    kind: PlayerEventKind
    handle: Hashable | None = None
    reason: str | None = None

    @classmethod
    def idle(cls, handle: Hashable | None) -> PlayerEvent:
        return cls(PlayerEventKind.IDLE, handle)

    @classmethod
    def playing(cls, handle: Hashable | None) -> PlayerEvent:
        return cls(PlayerEventKind.PLAYING, handle)

    @classmethod
    def error(cls, handle: Hashable | None, reason: str) -> PlayerEvent:
        return cls(PlayerEventKind.ERROR, handle, reason)


PlayerEventCallback = Callable[[PlayerEvent], None]
"""Called on the event loop thread; must not block."""


class Player(ABC):
    """Interface for the audio player bound to one guild session.

    Implementations report progress through the callback they were built
    with. ``stop()`` on a loaded track must eventually produce an idle
    notification for that track's handle.
    """

    @abstractmethod
    async def start(self, track: "Track", *, volume: float) -> Hashable:
        """Start streaming ``track`` and return a handle identifying this playback.

        Raises:
            PlaybackFailedError: if the track cannot be started.
        """
        ...

    @abstractmethod
    async def pause(self) -> None:
        ...

    @abstractmethod
    async def resume(self) -> None:
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Force-stop the current track."""
        ...

    @abstractmethod
    async def set_volume(self, volume: float) -> None:
        ...

    @abstractmethod
    async def close(self) -> None:
        """Stop and release the player; no notifications follow."""
        ...


PlayerFactory = Callable[[int, Any, PlayerEventCallback], Player]
"""Builds a player from ``(guild_id, voice connection, callback)``."""
