"""Session Manager - single source of truth for which guild has a session."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from ...domain.playback.value_objects import ControlOp, SessionDestroyReason
from ...domain.shared.exceptions import TrackResolutionError
from ...domain.shared.messages import ErrorMessages
from ...domain.shared.types import VolumeFloat
from .playback_session import PlaybackSession
from .results import (
    ChannelConflict,
    InvalidVolume,
    NoActiveSession,
    NotConnectedToVoice,
    SessionError,
    SessionResult,
    SessionSnapshot,
    TrackResolutionFailure,
)

if TYPE_CHECKING:
    from ...domain.playback.entities import Track
    from ...domain.shared.events import EventBus
    from ..interfaces.player import PlayerFactory
    from ..interfaces.session_store import SessionStore
    from ..interfaces.track_resolver import TrackResolver
    from ..interfaces.voice_transport import VoiceTransport

_VOLUME = TypeAdapter(VolumeFloat)


class SessionManager:
    """Creates, routes to and destroys per-guild playback sessions.

    Every operation returns a :class:`SessionResult`; rejected operations
    come back as :class:`SessionError` values and never mutate a session.
    """

    def __init__(
        self,
        *,
        store: SessionStore,
        player_factory: PlayerFactory,
        voice_transport: VoiceTransport,
        track_resolver: TrackResolver,
        event_bus: EventBus,
        teardown_delay_seconds: float = 0.2,
        max_queue_size: int = 50,
        default_volume: float = 0.5,
        status_message_ttl_seconds: float | None = None,
    ) -> None:
        self._store = store
        self._player_factory = player_factory
        self._voice_transport = voice_transport
        self._track_resolver = track_resolver
        self._event_bus = event_bus
        self._teardown_delay = teardown_delay_seconds
        self._max_queue_size = max_queue_size
        self._default_volume = default_volume
        self._status_ttl = status_message_ttl_seconds

        # Serializes session creation per guild across the connect await.
        # An entry lives only while some enqueue holds or waits for it.
        self._creation_locks: dict[int, asyncio.Lock] = {}
        self._creation_users: dict[int, int] = {}

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    async def enqueue(
        self,
        guild_id: int,
        query: str,
        request_channel_id: int,
        voice_channel_id: int | None,
        *,
        requested_by_id: int | None = None,
    ) -> SessionResult:
        """Queue ``query`` for the guild, creating and starting a session if needed."""
        if voice_channel_id is None:
            return NotConnectedToVoice()

        existing = self._store.get(guild_id)
        if existing is not None and existing.bound_channel_id != request_channel_id:
            return ChannelConflict(bound_channel_id=existing.bound_channel_id)

        resolved = await self._resolve(query)
        if isinstance(resolved, TrackResolutionFailure):
            return resolved
        track = resolved.with_requester(requested_by_id) if requested_by_id else resolved

        async with self._creating(guild_id):
            # The store may have changed while the track was resolving.
            existing = self._store.get(guild_id)
            if existing is not None:
                if existing.bound_channel_id != request_channel_id:
                    return ChannelConflict(bound_channel_id=existing.bound_channel_id)
                return await existing.enqueue(track)

            connection = await self._voice_transport.connect(guild_id, voice_channel_id)
            if connection is None:
                return NotConnectedToVoice()

            session = PlaybackSession(
                guild_id=guild_id,
                bound_channel_id=request_channel_id,
                voice_channel_id=voice_channel_id,
                connection=connection,
                player_factory=self._player_factory,
                voice_transport=self._voice_transport,
                store=self._store,
                event_bus=self._event_bus,
                teardown_delay_seconds=self._teardown_delay,
                max_queue_size=self._max_queue_size,
                default_volume=self._default_volume,
                status_message_ttl_seconds=self._status_ttl,
            )
            self._store.add(session)
            return await session.open(track)

    async def control(
        self,
        guild_id: int,
        request_channel_id: int,
        op: ControlOp,
        *,
        voice_channel_id: int | None,
    ) -> SessionResult:
        """Route a control operation to the guild's session."""
        session = self._authorize(guild_id, request_channel_id, voice_channel_id)
        if isinstance(session, SessionError):
            return session

        handlers = {
            ControlOp.SKIP: session.skip,
            ControlOp.STOP: session.stop,
            ControlOp.LEAVE: session.leave,
            ControlOp.PAUSE: session.pause,
            ControlOp.RESUME: session.resume,
            ControlOp.TOGGLE_LOOP: session.toggle_loop,
        }
        return await handlers[op]()

    async def set_volume(
        self,
        guild_id: int,
        request_channel_id: int,
        volume: float,
        *,
        voice_channel_id: int | None,
    ) -> SessionResult:
        """Set the playback volume multiplier (0.0 - 2.0) for the guild."""
        session = self._authorize(guild_id, request_channel_id, voice_channel_id)
        if isinstance(session, SessionError):
            return session

        try:
            validated = _VOLUME.validate_python(volume)
        except ValidationError:
            return InvalidVolume(volume=volume)
        return await session.set_volume(validated)

    def snapshot(self, guild_id: int) -> SessionSnapshot | None:
        session = self._store.get(guild_id)
        return session.snapshot() if session is not None else None

    def get_session(self, guild_id: int) -> PlaybackSession | None:
        return self._store.get(guild_id)

    def active_guild_ids(self) -> list[int]:
        return [session.guild_id for session in self._store.values()]

    async def shutdown(self) -> None:
        """Destroy every live session, releasing players and voice connections."""
        for session in self._store.values():
            await session.close(SessionDestroyReason.SHUTDOWN)

    @property
    def pending_creations(self) -> int:
        """Number of guilds with an enqueue holding or awaiting the creation lock."""
        return len(self._creation_locks)

    @asynccontextmanager
    async def _creating(self, guild_id: int) -> AsyncIterator[None]:
        lock = self._creation_locks.setdefault(guild_id, asyncio.Lock())
        self._creation_users[guild_id] = self._creation_users.get(guild_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._creation_users[guild_id] - 1
            if remaining:
                self._creation_users[guild_id] = remaining
            else:
                del self._creation_users[guild_id]
                del self._creation_locks[guild_id]

    def _authorize(
        self, guild_id: int, request_channel_id: int, voice_channel_id: int | None
    ) -> PlaybackSession | SessionError:
        if voice_channel_id is None:
            return NotConnectedToVoice()

        session = self._store.get(guild_id)
        if session is None:
            return NoActiveSession(guild_id=guild_id)
        if session.bound_channel_id != request_channel_id:
            return ChannelConflict(bound_channel_id=session.bound_channel_id)
        return session

    async def _resolve(self, query: str) -> Track | TrackResolutionFailure:
        try:
            track = await self._track_resolver.resolve(query)
        except TrackResolutionError as exc:
            return TrackResolutionFailure(query=query, reason=exc.reason)
        except Exception as exc:
            return TrackResolutionFailure(query=query, reason=str(exc) or type(exc).__name__)

        if track is None:
            return TrackResolutionFailure(query=query, reason=ErrorMessages.NO_RESULTS)
        return track
