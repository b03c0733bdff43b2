"""Tests for domain events and the EventBus."""

from datetime import UTC
from unittest.mock import AsyncMock

import pytest
from conftest import GUILD_ID, TEXT_CHANNEL_ID

from guild_jukebox.domain.shared.events import (
    EventBus,
    QueueExhausted,
    SessionDestroyed,
    TrackSkipped,
)


def _exhausted() -> QueueExhausted:
    return QueueExhausted(guild_id=GUILD_ID, channel_id=TEXT_CHANNEL_ID)


class TestDomainEvents:
    def test_metadata_defaults(self):
        a, b = _exhausted(), _exhausted()

        assert a.event_id != b.event_id
        assert a.occurred_at.tzinfo == UTC
        assert a.last_track_ref is None

    def test_events_are_frozen(self):
        event = _exhausted()

        with pytest.raises(ValueError):
            event.guild_id = 1


class TestEventBus:
    """Tests for subscribe/publish behaviour."""

    @pytest.mark.asyncio
    async def test_publish_to_matching_handlers(self):
        bus = EventBus()
        exhausted_handler = AsyncMock()
        destroyed_handler = AsyncMock()
        bus.subscribe(QueueExhausted, exhausted_handler)
        bus.subscribe(SessionDestroyed, destroyed_handler)
        event = _exhausted()

        await bus.publish(event)

        exhausted_handler.assert_awaited_once_with(event)
        destroyed_handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self):
        bus = EventBus()
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = AsyncMock()
        bus.subscribe(QueueExhausted, failing)
        bus.subscribe(QueueExhausted, healthy)

        await bus.publish(_exhausted())

        healthy.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        handler = AsyncMock()
        bus.subscribe(TrackSkipped, handler)
        bus.unsubscribe(TrackSkipped, handler)

        await bus.publish(TrackSkipped(guild_id=GUILD_ID, track_ref="ref", track_title="t"))

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_clear(self):
        bus = EventBus()
        handler = AsyncMock()
        bus.subscribe(QueueExhausted, handler)
        bus.clear()

        await bus.publish(_exhausted())

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_publish_without_handlers(self):
        await EventBus().publish(_exhausted())
