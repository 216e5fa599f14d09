"""Voice channel guard functions for Discord cogs."""

from buffered_music_bot.infrastructure.discord.guards.voice_guards import (
    get_member,
    get_user_voice_channel,
    send_ephemeral,
)

__all__ = [
    "get_member",
    "get_user_voice_channel",
    "send_ephemeral",
]
