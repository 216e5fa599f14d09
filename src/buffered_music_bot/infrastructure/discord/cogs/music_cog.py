"""Slash-command ``/music`` group delegating to the playback queue manager."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from buffered_music_bot.domain.music.entities import Song
from buffered_music_bot.domain.shared.exceptions import (
    NoResultsError,
    ResolutionError,
    VoiceJoinError,
)
from buffered_music_bot.domain.shared.messages import (
    DiscordUIMessages,
    ErrorMessages,
    LogTemplates,
)
from buffered_music_bot.utils.reply import truncate

from ..guards.voice_guards import get_member, get_user_voice_channel, send_ephemeral

if TYPE_CHECKING:
    from ....config.container import Container

logger = logging.getLogger(__name__)

QUEUE_DISPLAY_LIMIT = 10


class MusicCog(commands.Cog):
    music = app_commands.Group(name="music", description="Music player (yt-dlp + ffmpeg)")

    def __init__(self, bot: commands.Bot, container: Container) -> None:
        self.bot = bot
        self.container = container

    @music.command(name="play", description="Play music (YouTube link or search)")
    @app_commands.describe(query="Link or search term")
    async def play(self, interaction: discord.Interaction, query: str) -> None:
        channel = await get_user_voice_channel(interaction)
        if channel is None:
            return
        assert interaction.guild is not None

        # Resolution and voice connection can exceed the 3-second interaction deadline
        await interaction.response.defer()

        user = interaction.user
        logger.info(LogTemplates.COG_PLAY_REQUEST, query, user.id, interaction.guild.id)

        try:
            media = await self.container.audio_resolver.resolve(query)
        except NoResultsError:
            await interaction.followup.send(DiscordUIMessages.ERROR_NO_RESULTS)
            return
        except ResolutionError:
            await interaction.followup.send(DiscordUIMessages.ERROR_RESOLVE_FAILED)
            return

        song = Song(
            title=media.title,
            url=media.url,
            requested_by_id=user.id,
            requested_by_name=getattr(user, "display_name", user.name),
        )

        try:
            result = await self.container.playback_manager.enqueue(
                interaction.guild.id, song, channel.id
            )
        except VoiceJoinError:
            await interaction.followup.send(DiscordUIMessages.ERROR_COULD_NOT_JOIN_VOICE)
            return

        if result.started_session:
            await interaction.followup.send(DiscordUIMessages.NOW_PLAYING.format(title=song.title))
        else:
            await interaction.followup.send(
                DiscordUIMessages.ADDED_TO_QUEUE.format(title=song.title)
            )

    @music.command(name="skip", description="Skip the current song")
    async def skip(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        skipped = await self.container.playback_manager.skip(interaction.guild.id)
        if skipped is None:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING)
            return

        await interaction.response.send_message(
            DiscordUIMessages.ACTION_SKIPPED.format(title=skipped.title)
        )

    @music.command(name="stop", description="Stop playback and clear the queue")
    async def stop(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        # Killing the pipelines may take a moment
        await interaction.response.defer()
        stopped = await self.container.playback_manager.stop(interaction.guild.id)
        if stopped:
            await interaction.followup.send(DiscordUIMessages.ACTION_STOPPED)
        else:
            await interaction.followup.send(DiscordUIMessages.STATE_NOTHING_PLAYING, ephemeral=True)

    @music.command(name="pause", description="Pause playback")
    async def pause(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        if await self.container.playback_manager.pause(interaction.guild.id):
            await interaction.response.send_message(DiscordUIMessages.ACTION_PAUSED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PLAYING)

    @music.command(name="resume", description="Resume playback")
    async def resume(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        if await self.container.playback_manager.resume(interaction.guild.id):
            await interaction.response.send_message(DiscordUIMessages.ACTION_RESUMED)
        else:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_NOTHING_PAUSED)

    @music.command(name="queue", description="Show the queue")
    async def queue(self, interaction: discord.Interaction) -> None:
        if await get_member(interaction) is None:
            return
        assert interaction.guild is not None

        snapshot = self.container.playback_manager.get_queue(interaction.guild.id)
        if snapshot.is_empty:
            await send_ephemeral(interaction, DiscordUIMessages.STATE_QUEUE_EMPTY)
            return

        embed = discord.Embed(
            title=DiscordUIMessages.EMBED_QUEUE.format(total=snapshot.total),
            color=discord.Color.blurple(),
        )

        if snapshot.now_playing is not None:
            name = DiscordUIMessages.EMBED_QUEUE_NOW_PLAYING
            if snapshot.is_paused:
                name += DiscordUIMessages.EMBED_QUEUE_PAUSED_SUFFIX
            embed.add_field(
                name=name, value=f"**{truncate(snapshot.now_playing.title)}**", inline=False
            )

        shown = snapshot.upcoming[:QUEUE_DISPLAY_LIMIT]
        if shown:
            lines = [f"{idx}. {truncate(song.title)}" for idx, song in enumerate(shown, start=1)]
            hidden = len(snapshot.upcoming) - len(shown)
            if hidden > 0:
                lines.append(DiscordUIMessages.EMBED_QUEUE_MORE.format(count=hidden))
            embed.add_field(
                name=DiscordUIMessages.EMBED_QUEUE_UP_NEXT, value="\n".join(lines), inline=False
            )

        await interaction.response.send_message(embed=embed)


async def setup(bot: commands.Bot) -> None:
    container = getattr(bot, "container", None)
    if container is None:
        raise RuntimeError(ErrorMessages.CONTAINER_NOT_FOUND)

    await bot.add_cog(MusicCog(bot, container))
