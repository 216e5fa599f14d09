"""Tests for the voice-channel guard helpers."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from buffered_music_bot.domain.shared.messages import DiscordUIMessages
from buffered_music_bot.infrastructure.discord.guards.voice_guards import (
    get_member,
    get_user_voice_channel,
    send_ephemeral,
)


def _make_interaction(
    *,
    in_guild: bool = True,
    user_is_member: bool = True,
    in_voice: bool = True,
    responded: bool = False,
) -> MagicMock:
    interaction = MagicMock(spec=discord.Interaction)
    interaction.guild = MagicMock() if in_guild else None
    interaction.response = MagicMock()
    interaction.response.is_done = MagicMock(return_value=responded)
    interaction.response.send_message = AsyncMock()
    interaction.followup = MagicMock()
    interaction.followup.send = AsyncMock()

    if user_is_member:
        user = MagicMock(spec=discord.Member)
        if in_voice:
            user.voice = MagicMock()
            user.voice.channel = MagicMock()
            user.voice.channel.id = 100
        else:
            user.voice = None
    else:
        user = MagicMock(spec=discord.User)

    interaction.user = user
    return interaction


# =============================================================================
# send_ephemeral
# =============================================================================


@pytest.mark.asyncio
async def test_send_ephemeral_fresh_interaction():
    interaction = _make_interaction()

    await send_ephemeral(interaction, "hi")

    interaction.response.send_message.assert_awaited_once_with("hi", ephemeral=True)
    interaction.followup.send.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_ephemeral_after_defer_uses_followup():
    interaction = _make_interaction(responded=True)

    await send_ephemeral(interaction, "hi")

    interaction.followup.send.assert_awaited_once_with("hi", ephemeral=True)


# =============================================================================
# get_member / get_user_voice_channel
# =============================================================================


@pytest.mark.asyncio
async def test_get_member_outside_guild():
    interaction = _make_interaction(in_guild=False)

    assert await get_member(interaction) is None
    interaction.response.send_message.assert_awaited_once_with(
        DiscordUIMessages.STATE_SERVER_ONLY, ephemeral=True
    )


@pytest.mark.asyncio
async def test_get_member_rejects_plain_user():
    interaction = _make_interaction(user_is_member=False)

    assert await get_member(interaction) is None


@pytest.mark.asyncio
async def test_get_member_returns_member():
    interaction = _make_interaction()

    assert await get_member(interaction) is interaction.user


@pytest.mark.asyncio
async def test_user_not_in_voice_rejects():
    interaction = _make_interaction(in_voice=False)

    assert await get_user_voice_channel(interaction) is None
    interaction.response.send_message.assert_awaited_once_with(
        DiscordUIMessages.ERROR_MUST_BE_IN_VOICE, ephemeral=True
    )


@pytest.mark.asyncio
async def test_user_in_voice_returns_channel():
    interaction = _make_interaction()

    channel = await get_user_voice_channel(interaction)

    assert channel is interaction.user.voice.channel
    interaction.response.send_message.assert_not_awaited()
