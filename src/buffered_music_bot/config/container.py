"""Dependency Injection Container

Manages the application's dependency graph, providing lazy initialization
and lifecycle management for the resolver, voice adapter, stream pipeline
factory and playback queue manager.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..domain.shared.messages import ErrorMessages

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..application.interfaces.audio_resolver import AudioResolver
    from ..application.interfaces.audio_stream import AudioStream
    from ..application.interfaces.voice_adapter import VoiceAdapter
    from ..application.services.playback_service import PlaybackQueueManager, StreamFactory
    from ..application.services.session_registry import SessionRegistry
    from ..infrastructure.audio.models import PipelineConfig
    from .settings import Settings


@dataclass
class Container:
    """Dependency injection container.

    Components are lazily initialized when first accessed.
    """

    settings: Settings
    _bot: Bot | None = None

    _session_registry: SessionRegistry | None = None
    _audio_resolver: AudioResolver | None = None
    _voice_adapter: VoiceAdapter | None = None
    _pipeline_config: PipelineConfig | None = None
    _playback_manager: PlaybackQueueManager | None = None

    def set_bot(self, bot: Bot) -> None:
        """Set the Discord bot instance."""
        self._bot = bot

    @property
    def bot(self) -> Bot:
        if self._bot is None:
            raise RuntimeError(ErrorMessages.BOT_NOT_INITIALIZED)
        return self._bot

    # === Core ===

    @property
    def session_registry(self) -> SessionRegistry:
        if self._session_registry is None:
            from ..application.services.session_registry import SessionRegistry

            self._session_registry = SessionRegistry()
        return self._session_registry

    @property
    def pipeline_config(self) -> PipelineConfig:
        if self._pipeline_config is None:
            from ..infrastructure.audio.models import PipelineConfig

            self._pipeline_config = PipelineConfig.from_settings(self.settings.audio)
        return self._pipeline_config

    @property
    def stream_factory(self) -> StreamFactory:
        """Builds unstarted ``StreamPipeline`` instances for the queue manager."""
        from ..infrastructure.audio.stream_pipeline import StreamPipeline

        config = self.pipeline_config

        def create_stream(url: str, target_buffer_bytes: int) -> AudioStream:
            return StreamPipeline(url, config.with_target(target_buffer_bytes))

        return create_stream

    # === Infrastructure Adapters ===

    @property
    def audio_resolver(self) -> AudioResolver:
        if self._audio_resolver is None:
            from ..infrastructure.audio.ytdlp_resolver import YtDlpResolver

            self._audio_resolver = YtDlpResolver(self.settings.audio)
        return self._audio_resolver

    @property
    def voice_adapter(self) -> VoiceAdapter:
        if self._voice_adapter is None:
            from ..infrastructure.discord.adapters.voice_adapter import DiscordVoiceAdapter

            self._voice_adapter = DiscordVoiceAdapter(self.bot)
        return self._voice_adapter

    # === Application Services ===

    @property
    def playback_manager(self) -> PlaybackQueueManager:
        if self._playback_manager is None:
            from ..application.services.playback_service import PlaybackQueueManager

            self._playback_manager = PlaybackQueueManager(
                registry=self.session_registry,
                voice_adapter=self.voice_adapter,
                stream_factory=self.stream_factory,
                settings=self.settings.audio,
            )
        return self._playback_manager

    # === Lifecycle ===

    async def shutdown(self) -> None:
        """Stop every playback session, killing any running pipelines."""
        if self._playback_manager is not None:
            await self._playback_manager.shutdown()


def create_container(settings: Settings | None = None) -> Container:
    if settings is None:
        from .settings import get_settings

        settings = get_settings()
    return Container(settings=settings)
