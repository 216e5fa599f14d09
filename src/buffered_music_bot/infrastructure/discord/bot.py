"""Main Discord bot class integrating the DI container, cog lifecycle, and fault logging."""

from __future__ import annotations

import asyncio
import logging
import signal
import threading
from typing import TYPE_CHECKING, Any

import discord
from discord.ext import commands

from buffered_music_bot.domain.shared.messages import DiscordUIMessages, LogTemplates

from .guards.voice_guards import send_ephemeral

if TYPE_CHECKING:
    from ...config.container import Container
    from ...config.settings import Settings

logger = logging.getLogger(__name__)

COGS: tuple[str, ...] = (
    "buffered_music_bot.infrastructure.discord.cogs.music_cog",
    "buffered_music_bot.infrastructure.discord.cogs.general_cog",
)


class MusicBot(commands.Bot):
    def __init__(
        self,
        container: Container,
        settings: Settings,
        **kwargs: Any,
    ) -> None:
        intents = discord.Intents.default()
        intents.voice_states = True
        intents.guilds = True

        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
            application_id=settings.discord.application_id,
            **kwargs,
        )

        self.container = container
        self.settings = settings
        container.set_bot(self)

    async def setup_hook(self) -> None:
        logger.info(LogTemplates.BOT_SETUP)

        self._install_fault_handlers()
        await self._load_cogs()
        self.tree.on_error = self._on_app_command_error

        if self.settings.discord.sync_on_startup:
            await self._sync_commands()

        logger.info(LogTemplates.BOT_SETUP_COMPLETE)

    def _install_fault_handlers(self) -> None:
        """Log unhandled task and thread errors instead of letting them pass silently."""
        loop = asyncio.get_running_loop()

        def handle_loop_exception(_loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
            exc = context.get("exception")
            logger.error(
                LogTemplates.BOT_UNHANDLED_LOOP_ERROR,
                context.get("message", "<no message>"),
                exc_info=exc,
            )

        def handle_thread_exception(args: threading.ExceptHookArgs) -> None:
            name = args.thread.name if args.thread is not None else "<unknown>"
            logger.error(
                LogTemplates.BOT_UNHANDLED_THREAD_ERROR,
                name,
                exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
            )

        loop.set_exception_handler(handle_loop_exception)
        threading.excepthook = handle_thread_exception

    async def _load_cogs(self) -> None:
        loaded = 0
        failed = 0

        for cog in COGS:
            try:
                await self.load_extension(cog)
                logger.info(LogTemplates.BOT_COG_LOADED, cog)
                loaded += 1
            except commands.ExtensionError as e:
                logger.exception(LogTemplates.BOT_COG_LOAD_FAILED, cog, e)
                failed += 1

        logger.info(LogTemplates.BOT_COGS_LOADED_SUMMARY, loaded, failed)

    async def _on_app_command_error(
        self, interaction: discord.Interaction, error: discord.app_commands.AppCommandError
    ) -> None:
        """Global slash-command error handler; sends ephemeral messages to avoid channel spam."""
        original = getattr(error, "original", error)

        logger.error(
            LogTemplates.BOT_SLASH_COMMAND_ERROR,
            getattr(interaction.command, "name", "<unknown>"),
            original,
            exc_info=original,
        )

        try:
            await send_ephemeral(interaction, DiscordUIMessages.ERROR_COMMAND_FAILED_SEE_LOGS)
        except discord.HTTPException:
            logger.warning(LogTemplates.BOT_ERROR_MESSAGE_SEND_FAILED)

    async def _sync_commands(self) -> None:
        """Register the command tree to the configured guild (instant, unlike global sync)."""
        guild_id = self.settings.discord.guild_id
        if guild_id is None:
            return

        guild = discord.Object(id=guild_id)
        self.tree.copy_global_to(guild=guild)
        try:
            synced = await self.tree.sync(guild=guild)
            logger.info(LogTemplates.BOT_SYNCED_GUILD, len(synced), guild_id)
        except discord.HTTPException as e:
            logger.warning(LogTemplates.BOT_SYNC_GUILD_FAILED, guild_id, e)

    async def on_ready(self) -> None:
        logger.info(
            LogTemplates.BOT_READY,
            self.user,  # type: ignore
            self.user.id,  # type: ignore
        )
        logger.info(LogTemplates.BOT_CONNECTED_GUILDS, len(self.guilds))

    async def close(self) -> None:
        logger.info(LogTemplates.BOT_SHUTTING_DOWN)

        try:
            await self.container.shutdown()
        finally:
            await super().close()
        logger.info(LogTemplates.BOT_SHUTDOWN_COMPLETE)

    def run_with_graceful_shutdown(self, token: str, *, shutdown_timeout: float = 30.0) -> None:
        async def runner() -> None:
            async with self:
                loop = asyncio.get_running_loop()

                async def _graceful_close() -> None:
                    try:
                        await asyncio.wait_for(self.close(), timeout=shutdown_timeout)
                    except TimeoutError:
                        logger.warning(LogTemplates.BOT_SHUTDOWN_TIMEOUT, shutdown_timeout)

                for sig in (signal.SIGINT, signal.SIGTERM):
                    loop.add_signal_handler(sig, lambda: asyncio.create_task(_graceful_close()))
                await self.start(token)

        asyncio.run(runner())


def create_bot(container: Container, settings: Settings) -> MusicBot:
    return MusicBot(container=container, settings=settings)
