"""Playback Session - the per-guild playback state machine.

A session owns the guild's queue aggregate, its player, its voice connection
and the teardown timer. Player notifications are posted to an inbox that a
single worker task consumes; the worker and every control call serialize on
one lock, so transitions of a session never interleave.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ...domain.playback.entities import GuildPlaybackSession, Track
from ...domain.playback.value_objects import (
    PlayerEventKind,
    SessionDestroyReason,
    SessionState,
)
from ...domain.shared.events import (
    DomainEvent,
    QueueExhausted,
    SessionCreated,
    SessionDestroyed,
    TrackAddedToQueue,
    TrackSkipped,
    TrackStartedPlaying,
)
from ...domain.shared.exceptions import BusinessRuleViolationError, PlaybackFailedError
from ...domain.shared.messages import LogTemplates
from ..interfaces.player import PlayerEvent
from .results import (
    EmptyQueue,
    InvalidTransition,
    Left,
    LoopToggled,
    NoActiveSession,
    Paused,
    PlayerFailure,
    QueueFull,
    Queued,
    Resumed,
    SessionResult,
    SessionSnapshot,
    Skipped,
    Started,
    Stopped,
    VolumeChanged,
)
from .teardown_timer import TeardownTimer

if TYPE_CHECKING:
    from ...domain.shared.events import EventBus
    from ..interfaces.player import PlayerFactory
    from ..interfaces.session_store import SessionStore
    from ..interfaces.voice_transport import VoiceTransport

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TeardownDue:
    timer: TeardownTimer


_STOP = object()


class PlaybackSession:
    """Live playback session for one guild."""

    def __init__(
        self,
        *,
        guild_id: int,
        bound_channel_id: int,
        voice_channel_id: int,
        connection: Any,
        player_factory: PlayerFactory,
        voice_transport: VoiceTransport,
        store: SessionStore,
        event_bus: EventBus,
        teardown_delay_seconds: float = 0.2,
        max_queue_size: int = 50,
        default_volume: float = 0.5,
        status_message_ttl_seconds: float | None = None,
    ) -> None:
        self._aggregate = GuildPlaybackSession(
            guild_id=guild_id,
            bound_channel_id=bound_channel_id,
            voice_channel_id=voice_channel_id,
            volume=float(default_volume),
            max_queue_size=max_queue_size,
        )
        self._connection = connection
        self._voice_transport = voice_transport
        self._store = store
        self._event_bus = event_bus
        self._teardown_delay = teardown_delay_seconds
        self._status_ttl = status_message_ttl_seconds

        self._player = player_factory(guild_id, connection, self.on_player_event)
        self._handle: Hashable | None = None
        self._timer: TeardownTimer | None = None

        self._lock = asyncio.Lock()
        self._inbox: asyncio.Queue[object] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._outbox: list[DomainEvent] = []
        self._closed = False

    # === Read-only state ===

    @property
    def guild_id(self) -> int:
        return self._aggregate.guild_id

    @property
    def bound_channel_id(self) -> int:
        return self._aggregate.bound_channel_id

    @property
    def state(self) -> SessionState:
        return self._aggregate.state

    @property
    def now_playing(self) -> Track | None:
        return self._aggregate.now_playing

    @property
    def queue(self) -> list[Track]:
        return self._aggregate.upcoming

    @property
    def loop_enabled(self) -> bool:
        return self._aggregate.loop_enabled

    @property
    def volume(self) -> float:
        return self._aggregate.volume

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def teardown_timer(self) -> TeardownTimer | None:
        return self._timer

    @property
    def teardown_pending(self) -> bool:
        return self._timer is not None and self._timer.active

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            guild_id=self.guild_id,
            bound_channel_id=self.bound_channel_id,
            voice_channel_id=self._aggregate.voice_channel_id,
            state=self.state,
            now_playing=self.now_playing,
            upcoming=self.queue,
            loop_enabled=self.loop_enabled,
            volume=self.volume,
            teardown_pending=self.teardown_pending,
        )

    # === Lifecycle ===

    async def open(self, track: Track) -> SessionResult:
        """Start the inbox worker and play the first track.

        If the first track cannot be started the session is destroyed
        straight away and the failure is returned.
        """
        self._worker = asyncio.create_task(
            self._run_inbox(), name=f"playback-session-{self.guild_id}"
        )

        async with self._lock:
            self._outbox.append(
                SessionCreated(
                    guild_id=self.guild_id,
                    channel_id=self.bound_channel_id,
                    voice_channel_id=self._aggregate.voice_channel_id,
                )
            )
            logger.info(LogTemplates.SESSION_CREATED, self.guild_id, self.bound_channel_id)
            self._aggregate.enqueue(track)
            result = await self._advance()
            if isinstance(result, PlayerFailure):
                await self._close_locked(SessionDestroyReason.PLAYER_FAILURE)

        await self._flush_events()
        return result

    async def close(self, reason: SessionDestroyReason) -> None:
        async with self._lock:
            await self._close_locked(reason)
        await self._flush_events()

    async def wait_until_settled(self) -> None:
        """Wait until every queued player notification has been handled."""
        await self._inbox.join()

    # === Control operations ===

    async def enqueue(self, track: Track) -> SessionResult:
        return await self._run(lambda: self._enqueue(track))

    async def skip(self) -> SessionResult:
        return await self._run(self._skip)

    async def stop(self) -> SessionResult:
        return await self._run(self._stop)

    async def leave(self) -> SessionResult:
        return await self._run(self._leave)

    async def pause(self) -> SessionResult:
        return await self._run(self._pause)

    async def resume(self) -> SessionResult:
        return await self._run(self._resume)

    async def toggle_loop(self) -> SessionResult:
        return await self._run(self._toggle_loop)

    async def set_volume(self, volume: float) -> SessionResult:
        return await self._run(lambda: self._set_volume(volume))

    async def _run(self, operation: Callable[[], Awaitable[SessionResult]]) -> SessionResult:
        async with self._lock:
            if self._closed:
                result: SessionResult = NoActiveSession(guild_id=self.guild_id)
            else:
                result = await operation()
        await self._flush_events()
        return result

    async def _enqueue(self, track: Track) -> SessionResult:
        try:
            position = self._aggregate.enqueue(track)
        except BusinessRuleViolationError:
            return QueueFull(limit=self._aggregate.max_queue_size)

        logger.info(LogTemplates.QUEUE_ENQUEUED, track.title, position, self.guild_id)
        self._outbox.append(
            TrackAddedToQueue(
                guild_id=self.guild_id,
                track_ref=track.ref,
                track_title=track.title,
                queue_position=position,
            )
        )

        if self._aggregate.is_draining:
            return await self._advance()
        return Queued(track=track, position=position)

    async def _skip(self) -> SessionResult:
        skipped = self._aggregate.now_playing
        if skipped is None or not self.state.is_active:
            await self._close_locked(SessionDestroyReason.EMPTY_QUEUE)
            return EmptyQueue()

        await self._player.stop()
        # The idle notification for the stopped track is stale from here on.
        self._handle = None

        logger.info(LogTemplates.TRACK_SKIPPED, skipped.title, self.guild_id)
        self._outbox.append(
            TrackSkipped(guild_id=self.guild_id, track_ref=skipped.ref, track_title=skipped.title)
        )
        result = await self._advance(suppress_loop=True)

        if isinstance(result, PlayerFailure):
            return result
        return Skipped(skipped=skipped, next_track=self._aggregate.now_playing)

    async def _stop(self) -> SessionResult:
        await self._close_locked(SessionDestroyReason.STOPPED)
        return Stopped()

    async def _leave(self) -> SessionResult:
        await self._close_locked(SessionDestroyReason.LEFT)
        return Left()

    async def _pause(self) -> SessionResult:
        track = self._aggregate.now_playing
        if track is None or not self._aggregate.is_playing:
            return InvalidTransition(operation="pause", state=self.state)

        await self._player.pause()
        self._aggregate.pause()
        logger.debug(LogTemplates.PLAYBACK_PAUSED, self.guild_id)
        return Paused(track=track)

    async def _resume(self) -> SessionResult:
        track = self._aggregate.now_playing
        if track is None or not self._aggregate.is_paused:
            return InvalidTransition(operation="resume", state=self.state)

        await self._player.resume()
        self._aggregate.resume()
        logger.debug(LogTemplates.PLAYBACK_RESUMED, self.guild_id)
        return Resumed(track=track)

    async def _toggle_loop(self) -> SessionResult:
        enabled = self._aggregate.toggle_loop()
        logger.info(LogTemplates.LOOP_TOGGLED, "enabled" if enabled else "disabled", self.guild_id)
        return LoopToggled(enabled=enabled)

    async def _set_volume(self, volume: float) -> SessionResult:
        self._aggregate.set_volume(volume)
        if self.state.is_active:
            await self._player.set_volume(volume)
        logger.info(LogTemplates.PLAYBACK_VOLUME_SET, volume, self.guild_id)
        return VolumeChanged(volume=volume)

    # === Transitions (lock held) ===

    async def _advance(self, *, suppress_loop: bool = False) -> SessionResult:
        """Play whatever follows the current track, or start draining."""
        replay = (
            self._aggregate.loop_enabled
            and not suppress_loop
            and self._aggregate.now_playing is not None
        )
        track = self._aggregate.next_track(suppress_loop=suppress_loop)
        if track is None:
            self._enter_draining()
            return EmptyQueue()
        return await self._start(track, announce=not replay)

    async def _start(self, track: Track, *, announce: bool) -> SessionResult:
        try:
            handle = await self._player.start(track, volume=self._aggregate.volume)
        except PlaybackFailedError as exc:
            reason = exc.reason
        except Exception as exc:
            logger.exception(LogTemplates.PLAYBACK_ERROR, self.guild_id, exc)
            reason = str(exc) or type(exc).__name__
        else:
            self._handle = handle
            self._cancel_teardown()
            self._aggregate.begin_playback(track)
            if announce:
                logger.info(LogTemplates.PLAYBACK_STARTED, track.title, self.guild_id)
            else:
                logger.debug(LogTemplates.PLAYBACK_REPLAYING, track.title, self.guild_id)
            self._outbox.append(
                TrackStartedPlaying(
                    guild_id=self.guild_id,
                    channel_id=self.bound_channel_id,
                    track_ref=track.ref,
                    track_title=track.title,
                    thumbnail_ref=track.thumbnail_ref,
                    announce=announce,
                    delete_after_seconds=self._status_ttl,
                )
            )
            return Started(track=track)

        logger.warning(LogTemplates.PLAYBACK_FAILED_START, track.title, self.guild_id, reason)
        dropped = self._aggregate.clear_queue()
        if dropped:
            logger.warning(LogTemplates.QUEUE_DROPPED, dropped, self.guild_id)
        self._enter_draining()
        return PlayerFailure(reason=reason)

    def _enter_draining(self) -> None:
        self._handle = None
        last = None
        if not self._aggregate.is_draining:
            last = self._aggregate.drain()

        if self._timer is None:
            self._timer = TeardownTimer(self._teardown_delay, self._on_teardown_due)
            logger.debug(LogTemplates.SESSION_DRAINING, self.guild_id, self._teardown_delay)

        # Only a session that actually played something announces the queue end.
        if last is None:
            return
        self._outbox.append(
            QueueExhausted(
                guild_id=self.guild_id,
                channel_id=self.bound_channel_id,
                last_track_ref=last.ref,
                last_track_title=last.title,
                delete_after_seconds=self._status_ttl,
            )
        )

    def _cancel_teardown(self) -> None:
        if self._timer is None:
            return
        if self._timer.cancel():
            logger.debug(LogTemplates.SESSION_TEARDOWN_CANCELLED, self.guild_id)
        self._timer = None

    async def _close_locked(self, reason: SessionDestroyReason) -> None:
        if self._closed:
            return
        self._closed = True
        self._store.remove(self.guild_id, self)
        self._cancel_teardown()
        self._handle = None

        try:
            await self._player.close()
        except Exception:
            logger.exception(LogTemplates.PLAYER_CLOSE_FAILED, self.guild_id)

        if reason.releases_voice:
            try:
                await self._voice_transport.disconnect(self._connection)
            except Exception:
                logger.exception(LogTemplates.VOICE_CLEANUP_ERROR, self.guild_id)

        self._inbox.put_nowait(_STOP)
        self._outbox.append(
            SessionDestroyed(
                guild_id=self.guild_id,
                channel_id=self.bound_channel_id,
                reason=reason.value,
            )
        )
        logger.info(LogTemplates.SESSION_DESTROYED, self.guild_id, reason.value)

    # === Player notifications ===

    def on_player_event(self, event: PlayerEvent) -> None:
        """Player callback; queues the notification for the worker."""
        if self._closed:
            return
        self._inbox.put_nowait(event)

    def _on_teardown_due(self, timer: TeardownTimer) -> None:
        if self._closed:
            return
        self._inbox.put_nowait(_TeardownDue(timer))

    async def _run_inbox(self) -> None:
        while True:
            message = await self._inbox.get()
            try:
                if message is _STOP:
                    return
                if self._closed:
                    continue
                async with self._lock:
                    await self._dispatch(message)
                await self._flush_events()
            except Exception:
                logger.exception(LogTemplates.SESSION_EVENT_FAILED, message, self.guild_id)
            finally:
                self._inbox.task_done()

    async def _dispatch(self, message: object) -> None:
        if self._closed:
            return

        if isinstance(message, _TeardownDue):
            if message.timer is not self._timer or not self._aggregate.is_draining:
                logger.debug(LogTemplates.SESSION_STALE_TIMER, self.guild_id)
                return
            self._timer = None
            await self._close_locked(SessionDestroyReason.IDLE_TIMEOUT)
            return

        if not isinstance(message, PlayerEvent):
            return

        if self._handle is None or message.handle != self._handle:
            logger.debug(LogTemplates.PLAYER_EVENT_STALE, message.kind.value, self.guild_id)
            return

        if message.kind is PlayerEventKind.IDLE:
            await self._advance()
        elif message.kind is PlayerEventKind.PLAYING:
            self._cancel_teardown()
        elif message.kind is PlayerEventKind.ERROR:
            logger.error(LogTemplates.PLAYER_FATAL, self.guild_id, message.reason)
            await self._close_locked(SessionDestroyReason.PLAYER_FAILURE)

    async def _flush_events(self) -> None:
        events, self._outbox = self._outbox, []
        for event in events:
            await self._event_bus.publish(event)
