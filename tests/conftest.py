from __future__ import annotations

import itertools
from collections.abc import Hashable
from typing import Any

import pytest
import pytest_asyncio

from guild_jukebox.application.interfaces.player import (
    Player,
    PlayerEvent,
    PlayerEventCallback,
)
from guild_jukebox.application.interfaces.track_resolver import TrackResolver
from guild_jukebox.application.interfaces.voice_transport import VoiceTransport
from guild_jukebox.domain.playback.entities import Track
from guild_jukebox.domain.shared.exceptions import PlaybackFailedError

GUILD_ID = 111111111111111111
TEXT_CHANNEL_ID = 222222222222222222
OTHER_TEXT_CHANNEL_ID = 333333333333333333
VOICE_CHANNEL_ID = 444444444444444444
USER_ID = 555555555555555555

# Tests that need the teardown timer to fire sleep for TEARDOWN_WAIT
TEARDOWN_DELAY = 0.2
TEARDOWN_WAIT = 0.35


def make_track(name: str = "track-a", **overrides: Any) -> Track:
    data: dict[str, Any] = {
        "ref": f"https://example.com/watch?v={name}",
        "title": name.replace("-", " ").title(),
        "stream_ref": f"https://cdn.example.com/{name}.webm",
        "duration_seconds": 180,
    }
    data.update(overrides)
    return Track(**data)


# ============================================================================
# Port Fakes
# ============================================================================


class FakePlayer(Player):
    """Records calls and lets tests drive idle/playing/error notifications."""

    def __init__(self, guild_id: int, connection: Any, on_event: PlayerEventCallback) -> None:
        self.guild_id = guild_id
        self.connection = connection
        self.on_event = on_event
        self.started: list[Track] = []
        self.volumes: list[float] = []
        self.current_handle: Hashable | None = None
        self.paused = False
        self.closed = False
        self.stop_calls = 0
        self.fail_with: str | None = None
        self._handles = itertools.count(1)

    async def start(self, track: Track, *, volume: float) -> Hashable:
        if self.fail_with is not None:
            raise PlaybackFailedError(self.fail_with)
        self.started.append(track)
        self.volumes.append(volume)
        self.paused = False
        self.current_handle = next(self._handles)
        self.on_event(PlayerEvent.playing(self.current_handle))
        return self.current_handle

    async def pause(self) -> None:
        self.paused = True

    async def resume(self) -> None:
        self.paused = False

    async def stop(self) -> None:
        self.stop_calls += 1
        if self.current_handle is not None:
            # A forced stop reports idle just like a natural end
            self.on_event(PlayerEvent.idle(self.current_handle))
            self.current_handle = None

    async def set_volume(self, volume: float) -> None:
        self.volumes.append(volume)

    async def close(self) -> None:
        self.closed = True
        self.current_handle = None

    def finish(self) -> None:
        """Simulate the current track reaching its end."""
        handle, self.current_handle = self.current_handle, None
        self.on_event(PlayerEvent.idle(handle))

    def crash(self, reason: str = "ffmpeg died") -> None:
        self.on_event(PlayerEvent.error(self.current_handle, reason))


class FakePlayerFactory:
    def __init__(self) -> None:
        self.players: list[FakePlayer] = []
        self.fail_with: str | None = None

    def __call__(self, guild_id: int, connection: Any, on_event: PlayerEventCallback) -> Player:
        player = FakePlayer(guild_id, connection, on_event)
        player.fail_with = self.fail_with
        self.players.append(player)
        return player

    @property
    def last(self) -> FakePlayer:
        return self.players[-1]


class FakeVoiceTransport(VoiceTransport):
    def __init__(self) -> None:
        self.connected: list[tuple[int, int]] = []
        self.disconnected: list[Any] = []
        self.refuse = False

    async def connect(self, guild_id: int, channel_id: int) -> Any | None:
        if self.refuse:
            return None
        self.connected.append((guild_id, channel_id))
        return f"voice-connection-{guild_id}"

    async def disconnect(self, connection: Any) -> None:
        self.disconnected.append(connection)


class FakeTrackResolver(TrackResolver):
    """Resolves ``name`` to :func:`make_track` unless registered as missing."""

    def __init__(self) -> None:
        self.missing: set[str] = set()
        self.queries: list[str] = []

    async def resolve(self, query: str) -> Track | None:
        self.queries.append(query)
        if query in self.missing:
            return None
        return make_track(query)


# ============================================================================
# Wiring Fixtures
# ============================================================================


@pytest.fixture
def player_factory():
    return FakePlayerFactory()


@pytest.fixture
def voice_transport():
    return FakeVoiceTransport()


@pytest.fixture
def track_resolver():
    return FakeTrackResolver()


@pytest.fixture
def session_store():
    from guild_jukebox.infrastructure.persistence.session_store import InMemorySessionStore

    return InMemorySessionStore()


@pytest.fixture
def event_bus():
    from guild_jukebox.domain.shared.events import EventBus

    return EventBus()


@pytest_asyncio.fixture
async def manager(session_store, player_factory, voice_transport, track_resolver, event_bus):
    """Session manager wired to fakes; live sessions are shut down afterwards."""
    from guild_jukebox.application.services.session_manager import SessionManager

    mgr = SessionManager(
        store=session_store,
        player_factory=player_factory,
        voice_transport=voice_transport,
        track_resolver=track_resolver,
        event_bus=event_bus,
        teardown_delay_seconds=TEARDOWN_DELAY,
        max_queue_size=3,
        default_volume=0.5,
        status_message_ttl_seconds=30.0,
    )
    yield mgr
    await mgr.shutdown()


@pytest.fixture
def sample_track():
    return make_track("track-a")
