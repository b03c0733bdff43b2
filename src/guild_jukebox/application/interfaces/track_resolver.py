"""Port interface for resolving track queries and URLs."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from guild_jukebox.domain.shared.types import NonEmptyStr

if TYPE_CHECKING:
    from ...domain.playback.entities import Track


class TrackResolver(ABC):
    """Interface for resolving URLs and search queries to playable tracks."""

    @abstractmethod
    async def resolve(self, query: NonEmptyStr) -> "Track | None":
        """Resolve a query or URL to a playable track.

        Returns None when nothing matches; may raise TrackResolutionError
        with a reason.
        """
        ...
