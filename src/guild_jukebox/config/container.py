"""Dependency Injection Container

Wires the session store, event bus, discord.py and yt-dlp adapters and the
session manager from settings. Components are created on first access and
cached for reuse.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages, LogTemplates

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord import Client

    from ..application.interfaces.player import PlayerFactory
    from ..application.interfaces.session_store import SessionStore
    from ..application.interfaces.track_resolver import TrackResolver
    from ..application.interfaces.voice_transport import VoiceTransport
    from ..application.services.session_manager import SessionManager
    from ..domain.shared.events import EventBus
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Adapters that talk to Discord need the client, so :meth:`set_bot` must be
    called before :attr:`voice_transport` or :attr:`session_manager` is used.
    """

    settings: Settings
    _bot: Client | None = None

    _session_store: SessionStore | None = None
    _event_bus: EventBus | None = None
    _voice_transport: VoiceTransport | None = None
    _track_resolver: TrackResolver | None = None
    _player_factory: PlayerFactory | None = None
    _session_manager: SessionManager | None = None

    def set_bot(self, bot: Client) -> None:
        """Set the Discord client instance."""
        self._bot = bot

    @property
    def bot(self) -> Client:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    @property
    def session_store(self) -> SessionStore:
        if self._session_store is None:
            from ..infrastructure.persistence.session_store import InMemorySessionStore

            self._session_store = InMemorySessionStore()
        return self._session_store

    @property
    def event_bus(self) -> EventBus:
        if self._event_bus is None:
            from ..domain.shared.events import EventBus

            self._event_bus = EventBus()
        return self._event_bus

    @property
    def voice_transport(self) -> VoiceTransport:
        if self._voice_transport is None:
            from ..infrastructure.discord.voice_transport import DiscordVoiceTransport

            self._voice_transport = DiscordVoiceTransport(self.bot, self.settings.audio)
        return self._voice_transport

    @property
    def track_resolver(self) -> TrackResolver:
        if self._track_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpTrackResolver

            self._track_resolver = YtDlpTrackResolver(self.settings.audio)
        return self._track_resolver

    @property
    def player_factory(self) -> PlayerFactory:
        if self._player_factory is None:
            from ..infrastructure.discord.player import create_player_factory

            self._player_factory = create_player_factory(self.settings.audio)
        return self._player_factory

    @property
    def session_manager(self) -> SessionManager:
        if self._session_manager is None:
            from ..application.services.session_manager import SessionManager

            self._session_manager = SessionManager(
                store=self.session_store,
                player_factory=self.player_factory,
                voice_transport=self.voice_transport,
                track_resolver=self.track_resolver,
                event_bus=self.event_bus,
                teardown_delay_seconds=self.settings.session.teardown_delay_seconds,
                max_queue_size=self.settings.session.max_queue_size,
                default_volume=self.settings.audio.default_volume,
                status_message_ttl_seconds=self.settings.session.status_message_ttl_seconds,
            )
        return self._session_manager

    async def shutdown(self) -> None:
        """Destroy live sessions and drop event subscriptions."""
        logger.info(LogTemplates.SHUTDOWN_STARTED, len(self._session_store or ()))
        if self._session_manager is not None:
            await self._session_manager.shutdown()
        if self._event_bus is not None:
            self._event_bus.clear()


def create_container(settings: Settings) -> Container:
    """Create a new dependency injection container."""
    return Container(settings)
