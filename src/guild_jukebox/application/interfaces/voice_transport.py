"""Port interface for joining and leaving voice channels."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from guild_jukebox.domain.shared.types import ChannelIdField, DiscordSnowflake


class VoiceTransport(ABC):
    """Interface for voice channel connections."""

    @abstractmethod
    async def connect(self, guild_id: DiscordSnowflake, channel_id: ChannelIdField) -> Any | None:
        """Connect to a voice channel, returning an opaque connection or None on failure."""
        ...

    @abstractmethod
    async def disconnect(self, connection: Any) -> None:
        """Drop a connection returned by :meth:`connect`."""
        ...
