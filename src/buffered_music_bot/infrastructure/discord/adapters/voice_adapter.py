"""Discord voice adapter implementing VoiceAdapter for connection and raw PCM playback."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import discord

from buffered_music_bot.application.interfaces.voice_adapter import AfterPlayback, VoiceAdapter
from buffered_music_bot.domain.shared.messages import LogTemplates
from buffered_music_bot.infrastructure.audio.pcm_source import PcmAudioSource

if TYPE_CHECKING:
    from buffered_music_bot.application.interfaces.audio_stream import PcmReader

logger = logging.getLogger(__name__)

CONNECT_TIMEOUT: float = 10.0


class DiscordVoiceAdapter(VoiceAdapter):
    def __init__(self, bot: discord.Client) -> None:
        self._bot = bot

    def _get_voice_client(self, guild_id: int) -> discord.VoiceClient | None:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            return None

        vc = guild.voice_client
        return vc if isinstance(vc, discord.VoiceClient) else None

    async def connect(self, guild_id: int, channel_id: int) -> bool:
        guild = self._bot.get_guild(guild_id)
        if not guild:
            logger.warning(LogTemplates.GUILD_NOT_FOUND, guild_id)
            return False

        channel = guild.get_channel(channel_id)
        if not isinstance(channel, discord.VoiceChannel | discord.StageChannel):
            logger.warning(LogTemplates.CHANNEL_NOT_VOICE, channel_id)
            return False

        vc = self._get_voice_client(guild_id)
        if vc is not None and not vc.is_connected():
            await self.disconnect(guild_id)
            vc = None

        try:
            async with asyncio.timeout(CONNECT_TIMEOUT):
                if vc is None:
                    await channel.connect(self_deaf=True)
                    logger.info(LogTemplates.VOICE_CONNECTED, channel.name, guild.name)
                elif vc.channel is None or vc.channel.id != channel_id:
                    await vc.move_to(channel)
                    logger.info(LogTemplates.VOICE_MOVED, channel.name)
            return True
        except TimeoutError:
            logger.error(LogTemplates.VOICE_CONNECTION_TIMEOUT, channel_id)
            return False
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False
        except discord.Forbidden:
            logger.error(LogTemplates.VOICE_NO_PERMISSION, channel_id)
            return False
        except discord.HTTPException as e:
            logger.error(LogTemplates.VOICE_CLIENT_ERROR, e)
            return False

    async def disconnect(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return True  # Not connected

        try:
            await vc.disconnect(force=True)
        except discord.HTTPException:
            logger.exception(LogTemplates.VOICE_DISCONNECT_FAILED, guild_id)
            return False

        logger.info(LogTemplates.VOICE_DISCONNECTED, guild_id)
        return True

    async def play(self, guild_id: int, pcm: PcmReader, *, after: AfterPlayback) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            logger.warning(LogTemplates.VOICE_NOT_CONNECTED, guild_id)
            return False

        if vc.is_playing() or vc.is_paused():
            vc.stop()

        loop = asyncio.get_running_loop()

        def after_callback(error: Exception | None) -> None:
            # Runs on discord.py's audio thread.
            if loop.is_closed():
                logger.warning(LogTemplates.VOICE_AFTER_DROPPED, guild_id)
                return
            try:
                loop.call_soon_threadsafe(after, error)
            except RuntimeError:
                logger.warning(LogTemplates.VOICE_AFTER_DROPPED, guild_id)

        try:
            vc.play(PcmAudioSource(pcm), after=after_callback)
        except discord.ClientException as e:
            logger.error(LogTemplates.VOICE_PLAY_FAILED, guild_id, e)
            return False
        return True

    async def stop(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_playing() or vc.is_paused():
            vc.stop()
            return True

        return False

    async def pause(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_playing():
            vc.pause()
            return True

        return False

    async def resume(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        if not vc:
            return False

        if vc.is_paused():
            vc.resume()
            return True

        return False

    def is_connected(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_connected()

    def is_playing(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_playing()

    def is_paused(self, guild_id: int) -> bool:
        vc = self._get_voice_client(guild_id)
        return vc is not None and vc.is_paused()
