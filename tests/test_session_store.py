"""Tests for InMemorySessionStore."""

from unittest.mock import MagicMock

import pytest

from guild_jukebox.domain.shared.exceptions import BusinessRuleViolationError
from guild_jukebox.infrastructure.persistence.session_store import InMemorySessionStore


def _session(guild_id: int) -> MagicMock:
    session = MagicMock()
    session.guild_id = guild_id
    return session


class TestInMemorySessionStore:
    """Tests for the guild -> session map."""

    def test_add_and_get(self):
        store = InMemorySessionStore()
        session = _session(1)

        store.add(session)

        assert store.get(1) is session
        assert 1 in store
        assert len(store) == 1

    def test_get_missing(self):
        assert InMemorySessionStore().get(1) is None

    def test_one_session_per_guild(self):
        store = InMemorySessionStore()
        store.add(_session(1))

        with pytest.raises(BusinessRuleViolationError) as exc_info:
            store.add(_session(1))

        assert exc_info.value.rule == "ONE_SESSION_PER_GUILD"

    def test_remove_only_matching_session(self):
        """Should not remove a newer session registered for the same guild."""
        store = InMemorySessionStore()
        current = _session(1)
        store.add(current)

        assert store.remove(1, _session(1)) is False
        assert store.get(1) is current

        assert store.remove(1, current) is True
        assert 1 not in store

    def test_values_is_a_snapshot(self):
        store = InMemorySessionStore()
        a, b = _session(1), _session(2)
        store.add(a)
        store.add(b)

        values = store.values()
        store.remove(1, a)

        assert values == [a, b]
        assert list(store) == [b]
