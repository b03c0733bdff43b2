"""Player implementation streaming through a discord.py voice client with FFmpeg."""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import TYPE_CHECKING

import discord

from guild_jukebox.application.interfaces.player import (
    Player,
    PlayerEvent,
    PlayerEventCallback,
    PlayerFactory,
)
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.shared.exceptions import PlaybackFailedError
from guild_jukebox.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from guild_jukebox.domain.playback.entities import Track

logger = logging.getLogger(__name__)

FADE_IN_SECONDS: float = 0.5

# Matches yt-dlp's Android client user-agent to avoid YouTube 403 responses
ANDROID_USER_AGENT = "com.google.android.youtube/19.44.38 (Linux; U; Android 14) gzip"


class DiscordPlayer(Player):
    """One player per guild session, bound to that guild's voice client.

    discord.py runs the ``after`` callback on its audio thread; it is hopped
    onto the event loop before the session callback sees it.
    """

    def __init__(
        self,
        guild_id: int,
        voice_client: discord.VoiceClient,
        on_event: PlayerEventCallback,
        *,
        settings: AudioSettings | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._guild_id = guild_id
        self._vc = voice_client
        self._on_event = on_event
        self._settings = settings or AudioSettings()
        self._loop = loop or asyncio.get_running_loop()
        self._handles = itertools.count(1)
        self._closed = False

    def _build_source(self, track: Track, volume: float) -> discord.PCMVolumeTransformer:
        ffmpeg_options = self._settings.ffmpeg_options
        # User-Agent must match yt-dlp's Android client to prevent YouTube 403
        base_before_opts = ffmpeg_options.get("before_options", "")
        before_opts = f'{base_before_opts} -headers "User-Agent: {ANDROID_USER_AGENT}"'
        base_opts = ffmpeg_options.get("options", "")
        fade_opts = f'{base_opts} -af "afade=t=in:ss=0:d={FADE_IN_SECONDS}"'

        source = discord.FFmpegPCMAudio(
            track.stream_ref,
            before_options=before_opts,
            options=fade_opts,
        )
        return discord.PCMVolumeTransformer(source, volume=volume)

    async def start(self, track: Track, *, volume: float) -> int:
        if self._closed:
            raise PlaybackFailedError(ErrorMessages.PLAYER_CLOSED)
        if not self._vc.is_connected():
            raise PlaybackFailedError(ErrorMessages.VOICE_NOT_CONNECTED)

        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

        handle = next(self._handles)

        def after_callback(error: Exception | None = None) -> None:
            logger.info(LogTemplates.TRACK_ENDED, self._guild_id, error)
            self._loop.call_soon_threadsafe(self._emit_end, handle, error)

        try:
            self._vc.play(self._build_source(track, volume), after=after_callback)
        except discord.ClientException as e:
            raise PlaybackFailedError(str(e)) from e

        self._loop.call_soon(self._emit, PlayerEvent.playing(handle))
        return handle

    def _emit(self, event: PlayerEvent) -> None:
        if not self._closed:
            self._on_event(event)

    def _emit_end(self, handle: int, error: Exception | None) -> None:
        if error is not None:
            logger.warning(LogTemplates.PLAYBACK_ERROR, self._guild_id, error)
            self._emit(PlayerEvent.error(handle, str(error)))
        else:
            self._emit(PlayerEvent.idle(handle))

    async def pause(self) -> None:
        if self._vc.is_playing():
            self._vc.pause()

    async def resume(self) -> None:
        if self._vc.is_paused():
            self._vc.resume()

    async def stop(self) -> None:
        if self._vc.is_playing() or self._vc.is_paused():
            self._vc.stop()

    async def set_volume(self, volume: float) -> None:
        source = self._vc.source
        if isinstance(source, discord.PCMVolumeTransformer):
            source.volume = max(0.0, min(2.0, volume))

    async def close(self) -> None:
        self._closed = True
        await self.stop()


def create_player_factory(settings: AudioSettings | None = None) -> PlayerFactory:
    """Return a factory building a :class:`DiscordPlayer` per session."""

    def factory(
        guild_id: int, connection: discord.VoiceClient, on_event: PlayerEventCallback
    ) -> Player:
        return DiscordPlayer(guild_id, connection, on_event, settings=settings)

    return factory
