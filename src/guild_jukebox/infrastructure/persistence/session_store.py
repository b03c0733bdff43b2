"""In-memory implementation of the guild -> session store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from guild_jukebox.application.interfaces.session_store import SessionStore
from guild_jukebox.domain.shared.exceptions import BusinessRuleViolationError
from guild_jukebox.domain.shared.messages import ErrorMessages

if TYPE_CHECKING:
    from guild_jukebox.application.services.playback_session import PlaybackSession

logger = logging.getLogger(__name__)


class InMemorySessionStore(SessionStore):
    """Process-local store; sessions do not survive a restart."""

    def __init__(self) -> None:
        self._sessions: dict[int, PlaybackSession] = {}

    def get(self, guild_id: int) -> PlaybackSession | None:
        return self._sessions.get(guild_id)

    def add(self, session: PlaybackSession) -> None:
        if session.guild_id in self._sessions:
            raise BusinessRuleViolationError(
                rule="ONE_SESSION_PER_GUILD",
                message=ErrorMessages.SESSION_ALREADY_EXISTS.format(guild_id=session.guild_id),
            )
        self._sessions[session.guild_id] = session
        logger.debug("Registered session for guild %s", session.guild_id)

    def remove(self, guild_id: int, session: PlaybackSession) -> bool:
        if self._sessions.get(guild_id) is not session:
            return False
        del self._sessions[guild_id]
        logger.debug("Removed session for guild %s", guild_id)
        return True

    def values(self) -> list[PlaybackSession]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, guild_id: object) -> bool:
        return guild_id in self._sessions
