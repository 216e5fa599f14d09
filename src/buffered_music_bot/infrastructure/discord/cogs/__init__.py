"""Discord cogs - command handlers."""

from buffered_music_bot.infrastructure.discord.cogs.general_cog import GeneralCog
from buffered_music_bot.infrastructure.discord.cogs.music_cog import MusicCog

__all__ = [
    "MusicCog",
    "GeneralCog",
]
