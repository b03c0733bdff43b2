"""Port interface for the guild -> session registry."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..services.playback_session import PlaybackSession


class SessionStore(ABC):
    """Holds at most one live session per guild.

    All methods are synchronous so that create and destroy are single
    atomic steps on the event loop.
    """

    @abstractmethod
    def get(self, guild_id: int) -> "PlaybackSession | None":
        ...

    @abstractmethod
    def add(self, session: "PlaybackSession") -> None:
        """Register a session.

        Raises:
            BusinessRuleViolationError: if the guild already has a session.
        """
        ...

    @abstractmethod
    def remove(self, guild_id: int, session: "PlaybackSession") -> bool:
        """Remove ``session`` only if it is still the one registered for the guild."""
        ...

    @abstractmethod
    def values(self) -> list["PlaybackSession"]:
        ...

    @abstractmethod
    def __len__(self) -> int:
        ...

    @abstractmethod
    def __contains__(self, guild_id: object) -> bool:
        ...

    def __iter__(self) -> Iterator["PlaybackSession"]:
        return iter(self.values())
