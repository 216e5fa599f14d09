"""Small standalone slash commands."""

from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from buffered_music_bot.domain.shared.messages import DiscordUIMessages


class GeneralCog(commands.Cog):
    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @app_commands.command(name="ping", description="Replies with Pong!")
    async def ping(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(DiscordUIMessages.SUCCESS_PONG)

    @app_commands.command(name="hello", description="Say hello")
    async def hello(self, interaction: discord.Interaction) -> None:
        await interaction.response.send_message(DiscordUIMessages.SUCCESS_HELLO)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(GeneralCog(bot))
