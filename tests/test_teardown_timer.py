"""Tests for TeardownTimer."""

import asyncio

import pytest

from guild_jukebox.application.services.teardown_timer import TeardownTimer


class TestTeardownTimer:
    """Tests for the one-shot debounce timer."""

    @pytest.mark.asyncio
    async def test_fires_once_after_delay(self):
        calls = []
        timer = TeardownTimer(0.01, calls.append)

        await asyncio.sleep(0.05)

        assert calls == [timer]
        assert timer.fired is True
        assert timer.active is False

    @pytest.mark.asyncio
    async def test_cancel_prevents_fire(self):
        calls = []
        timer = TeardownTimer(0.01, calls.append)

        assert timer.cancel() is True
        await asyncio.sleep(0.05)

        assert calls == []
        assert timer.cancelled is True

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self):
        """Should report True only for the first effective cancel."""
        timer = TeardownTimer(10, lambda t: None)

        assert timer.cancel() is True
        assert timer.cancel() is False

    @pytest.mark.asyncio
    async def test_cancel_after_fire(self):
        timer = TeardownTimer(0.01, lambda t: None)
        await asyncio.sleep(0.05)

        assert timer.cancel() is False
        assert timer.cancelled is False

    @pytest.mark.asyncio
    async def test_delay_exposed(self):
        timer = TeardownTimer(0.2, lambda t: None)

        assert timer.delay == 0.2
        assert timer.active is True
        timer.cancel()
