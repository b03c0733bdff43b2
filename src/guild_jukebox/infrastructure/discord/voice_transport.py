"""Discord voice transport implementing VoiceTransport with discord.py voice clients."""

from __future__ import annotations

import asyncio
import logging

import discord

from guild_jukebox.application.interfaces.voice_transport import VoiceTransport
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class DiscordVoiceTransport(VoiceTransport):
    def __init__(self, bot: discord.Client, settings: AudioSettings | None = None) -> None:
        self._bot = bot
        self._settings = settings or AudioSettings()

    def _get_voice_client(self, guild: discord.Guild) -> discord.VoiceClient | None:
        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def connect(self, guild_id: int, channel_id: int) -> discord.VoiceClient | None:
        """Join ``channel_id``, reusing or moving an existing voice client in the guild."""
        guild = self._bot.get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            return None

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            return None

        try:
            async with asyncio.timeout(self._settings.connect_timeout_seconds):
                vc = self._get_voice_client(guild)
                if vc is not None and vc.is_connected():
                    if vc.channel is None or vc.channel.id != channel_id:
                        await vc.move_to(channel)
                else:
                    if vc is not None:
                        await vc.disconnect(force=True)
                    vc = await channel.connect(self_deaf=True)
            await self._ensure_self_deaf(guild, channel)
            logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
            return vc
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            return None
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            return None
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return None
        except Exception:
            logger.exception(LogTemplates.VOICE_CONNECT_FAILED, channel_id)
            return None

    async def _ensure_self_deaf(
        self,
        guild: discord.Guild,
        channel: discord.VoiceChannel | discord.StageChannel,
    ) -> None:
        """Ensure the bot is self-deafened in the guild's current voice connection."""
        try:
            await guild.change_voice_state(channel=channel, self_deaf=True)
        except discord.DiscordException as exc:
            logger.debug(LogTemplates.VOICE_SELF_DEAFEN_FAILED, guild.id, exc)

    async def disconnect(self, connection: discord.VoiceClient | None) -> None:
        if connection is None or not connection.is_connected():
            return
        guild_id = connection.guild.id if connection.guild else None
        await connection.disconnect(force=True)
        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
