"""
Tests for DiscordVoiceAdapter

Tests connection handling, raw PCM playback and the thread-safe completion
callback against mocked discord.py guilds, channels and voice clients.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from buffered_music_bot.infrastructure.audio.pcm_buffer import PcmBuffer
from buffered_music_bot.infrastructure.audio.pcm_source import PcmAudioSource
from buffered_music_bot.infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

GUILD_ID = 123
CHANNEL_ID = 456


@pytest.fixture
def mock_bot():
    """Create a mock Discord bot."""
    return MagicMock()


@pytest.fixture
def adapter(mock_bot):
    """Create a voice adapter instance."""
    return DiscordVoiceAdapter(mock_bot)


@pytest.fixture
def voice_channel():
    channel = MagicMock(spec=discord.VoiceChannel)
    channel.id = CHANNEL_ID
    channel.name = "General"
    channel.connect = AsyncMock()
    return channel


@pytest.fixture
def guild(mock_bot, voice_channel):
    guild = MagicMock()
    guild.id = GUILD_ID
    guild.name = "Test Guild"
    guild.voice_client = None
    guild.get_channel.return_value = voice_channel
    mock_bot.get_guild.return_value = guild
    return guild


@pytest.fixture
def voice_client(guild):
    vc = MagicMock(spec=discord.VoiceClient)
    vc.is_connected.return_value = True
    vc.is_playing.return_value = False
    vc.is_paused.return_value = False
    vc.channel = MagicMock()
    vc.channel.id = CHANNEL_ID
    vc.disconnect = AsyncMock()
    vc.move_to = AsyncMock()
    guild.voice_client = vc
    return vc


# =============================================================================
# Connection
# =============================================================================


class TestConnect:
    """Tests for joining and moving between voice channels."""

    @pytest.mark.asyncio
    async def test_connect_joins_deafened(self, adapter, guild, voice_channel):
        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is True
        voice_channel.connect.assert_awaited_once_with(self_deaf=True)

    @pytest.mark.asyncio
    async def test_already_in_channel(self, adapter, guild, voice_channel, voice_client):
        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is True
        voice_channel.connect.assert_not_awaited()
        voice_client.move_to.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_moves_from_other_channel(self, adapter, guild, voice_channel, voice_client):
        voice_client.channel.id = 999

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is True
        voice_client.move_to.assert_awaited_once_with(voice_channel)

    @pytest.mark.asyncio
    async def test_stale_client_is_replaced(self, adapter, guild, voice_channel, voice_client):
        voice_client.is_connected.return_value = False

        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is True
        voice_client.disconnect.assert_awaited_once_with(force=True)
        voice_channel.connect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unknown_guild(self, adapter, mock_bot):
        mock_bot.get_guild.return_value = None
        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

    @pytest.mark.asyncio
    async def test_text_channel_rejected(self, adapter, guild):
        guild.get_channel.return_value = MagicMock(spec=discord.TextChannel)
        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            TimeoutError(),
            discord.ClientException("Already connected"),
            discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "No permission"),
        ],
    )
    async def test_connect_errors_return_false(self, adapter, guild, voice_channel, error):
        voice_channel.connect.side_effect = error
        assert await adapter.connect(GUILD_ID, CHANNEL_ID) is False

    @pytest.mark.asyncio
    async def test_disconnect_without_client(self, adapter, guild):
        assert await adapter.disconnect(GUILD_ID) is True

    @pytest.mark.asyncio
    async def test_disconnect(self, adapter, voice_client):
        assert await adapter.disconnect(GUILD_ID) is True
        voice_client.disconnect.assert_awaited_once_with(force=True)


# =============================================================================
# Playback
# =============================================================================


class TestPlay:
    """Tests for raw PCM playback."""

    @pytest.mark.asyncio
    async def test_play_wraps_reader_in_pcm_source(self, adapter, voice_client):
        buf = PcmBuffer()

        assert await adapter.play(GUILD_ID, buf, after=lambda e: None) is True

        source = voice_client.play.call_args.args[0]
        assert isinstance(source, PcmAudioSource)
        assert source.is_opus() is False

    @pytest.mark.asyncio
    async def test_after_callback_runs_on_event_loop(self, adapter, voice_client):
        """The player's thread-side callback is handed back to the loop."""
        loop = asyncio.get_running_loop()
        done = asyncio.Event()
        seen: list[tuple[BaseException | None, asyncio.AbstractEventLoop]] = []

        def after(error):
            seen.append((error, asyncio.get_running_loop()))
            done.set()

        await adapter.play(GUILD_ID, PcmBuffer(), after=after)
        thread_callback = voice_client.play.call_args.kwargs["after"]

        error = RuntimeError("player crashed")
        await asyncio.to_thread(thread_callback, error)
        await asyncio.wait_for(done.wait(), timeout=1.0)

        assert seen == [(error, loop)]

    @pytest.mark.asyncio
    async def test_play_stops_current_audio_first(self, adapter, voice_client):
        voice_client.is_playing.return_value = True

        await adapter.play(GUILD_ID, PcmBuffer(), after=lambda e: None)

        voice_client.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_play_refused(self, adapter, voice_client):
        voice_client.play.side_effect = discord.ClientException("Not connected to voice.")
        assert await adapter.play(GUILD_ID, PcmBuffer(), after=lambda e: None) is False

    @pytest.mark.asyncio
    async def test_play_without_connection(self, adapter, guild):
        assert await adapter.play(GUILD_ID, PcmBuffer(), after=lambda e: None) is False


# =============================================================================
# Transport Controls
# =============================================================================


class TestControls:
    """Tests for stop, pause, resume and state queries."""

    @pytest.mark.asyncio
    async def test_stop_when_playing(self, adapter, voice_client):
        voice_client.is_playing.return_value = True

        assert await adapter.stop(GUILD_ID) is True
        voice_client.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_stop_when_idle(self, adapter, voice_client):
        assert await adapter.stop(GUILD_ID) is False

    @pytest.mark.asyncio
    async def test_pause_and_resume(self, adapter, voice_client):
        voice_client.is_playing.return_value = True
        assert await adapter.pause(GUILD_ID) is True
        voice_client.pause.assert_called_once()

        voice_client.is_playing.return_value = False
        voice_client.is_paused.return_value = True
        assert await adapter.resume(GUILD_ID) is True
        voice_client.resume.assert_called_once()

    @pytest.mark.asyncio
    async def test_resume_when_not_paused(self, adapter, voice_client):
        assert await adapter.resume(GUILD_ID) is False

    @pytest.mark.asyncio
    async def test_controls_without_guild(self, adapter, mock_bot):
        mock_bot.get_guild.return_value = None

        assert await adapter.stop(GUILD_ID) is False
        assert await adapter.pause(GUILD_ID) is False
        assert await adapter.resume(GUILD_ID) is False
        assert adapter.is_connected(GUILD_ID) is False
        assert adapter.is_playing(GUILD_ID) is False
        assert adapter.is_paused(GUILD_ID) is False

    def test_state_queries(self, adapter, voice_client):
        voice_client.is_paused.return_value = True

        assert adapter.is_connected(GUILD_ID) is True
        assert adapter.is_playing(GUILD_ID) is False
        assert adapter.is_paused(GUILD_ID) is True
