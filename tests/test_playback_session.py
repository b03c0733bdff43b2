"""Tests for PlaybackSession used directly, without the manager."""

from unittest.mock import AsyncMock

import pytest
from conftest import (
    GUILD_ID,
    TEARDOWN_DELAY,
    TEXT_CHANNEL_ID,
    VOICE_CHANNEL_ID,
    make_track,
)

from guild_jukebox.application.services.playback_session import PlaybackSession
from guild_jukebox.application.services.results import NoActiveSession, Started
from guild_jukebox.domain.playback.value_objects import SessionDestroyReason, SessionState
from guild_jukebox.domain.shared.events import SessionDestroyed


@pytest.fixture
def session(player_factory, voice_transport, session_store, event_bus):
    session = PlaybackSession(
        guild_id=GUILD_ID,
        bound_channel_id=TEXT_CHANNEL_ID,
        voice_channel_id=VOICE_CHANNEL_ID,
        connection="voice-connection",
        player_factory=player_factory,
        voice_transport=voice_transport,
        store=session_store,
        event_bus=event_bus,
        teardown_delay_seconds=TEARDOWN_DELAY,
        max_queue_size=5,
        default_volume=0.75,
    )
    session_store.add(session)
    return session


class TestPlaybackSession:
    """Tests for session lifecycle details."""

    def test_player_built_for_session(self, session, player_factory):
        """Should hand the connection and callback to the player factory."""
        player = player_factory.last

        assert player.guild_id == GUILD_ID
        assert player.connection == "voice-connection"
        assert player.on_event == session.on_player_event
        assert session.state == SessionState.IDLE

    @pytest.mark.asyncio
    async def test_open_uses_default_volume(self, session, player_factory):
        result = await session.open(make_track())

        assert result == Started(track=make_track())
        assert player_factory.last.volumes == [0.75]
        await session.close(SessionDestroyReason.SHUTDOWN)

    @pytest.mark.asyncio
    async def test_snapshot(self, session):
        await session.open(make_track("a"))
        await session.enqueue(make_track("b"))

        snapshot = session.snapshot()

        assert snapshot.guild_id == GUILD_ID
        assert snapshot.voice_channel_id == VOICE_CHANNEL_ID
        assert snapshot.now_playing == make_track("a")
        assert snapshot.upcoming == [make_track("b")]
        assert snapshot.volume == 0.75
        assert snapshot.teardown_pending is False
        await session.close(SessionDestroyReason.SHUTDOWN)

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, session, event_bus, voice_transport, session_store):
        """Should release resources and publish only once."""
        destroyed = AsyncMock()
        event_bus.subscribe(SessionDestroyed, destroyed)
        await session.open(make_track())

        await session.close(SessionDestroyReason.LEFT)
        await session.close(SessionDestroyReason.LEFT)

        assert session.closed is True
        assert GUILD_ID not in session_store
        assert voice_transport.disconnected == ["voice-connection"]
        destroyed.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_operations_after_close(self, session):
        await session.open(make_track())
        await session.close(SessionDestroyReason.STOPPED)

        assert await session.skip() == NoActiveSession(guild_id=GUILD_ID)
        assert await session.enqueue(make_track("b")) == NoActiveSession(guild_id=GUILD_ID)

    @pytest.mark.asyncio
    async def test_player_close_failure_does_not_block_teardown(
        self, session, player_factory, voice_transport
    ):
        """Should still disconnect when closing the player raises."""
        await session.open(make_track())
        player_factory.last.close = AsyncMock(side_effect=RuntimeError("already gone"))

        await session.close(SessionDestroyReason.LEFT)

        assert session.closed is True
        assert voice_transport.disconnected == ["voice-connection"]

    @pytest.mark.asyncio
    async def test_events_after_close_are_dropped(self, session, player_factory):
        await session.open(make_track())
        player = player_factory.last
        await session.close(SessionDestroyReason.STOPPED)

        player.finish()
        await session.wait_until_settled()

        assert player.started == [make_track()]
        assert session.now_playing == make_track()
