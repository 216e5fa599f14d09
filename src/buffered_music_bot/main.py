#!/usr/bin/env python3
"""Main entry point for the buffered music bot."""

from __future__ import annotations

import json
import logging
import logging.config
import sys
from pathlib import Path

from buffered_music_bot.domain.shared.messages import LogTemplates

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"


def setup_logging(log_level: str = "INFO", config_path: Path | None = None) -> None:
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)
    path = config_path or _LOGGING_CONFIG_PATH

    try:
        with open(path) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(
            level=resolved_level,
            format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.warning("Could not load %s, falling back to basic config", path)

    logging.getLogger().setLevel(resolved_level)


def main() -> int:
    from buffered_music_bot.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    logger = logging.getLogger(__name__)

    missing = settings.discord.missing_required()
    if missing:
        logger.error(LogTemplates.BOT_CONFIG_MISSING, ", ".join(missing))
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))

    from buffered_music_bot.config.container import create_container
    from buffered_music_bot.infrastructure.discord.bot import create_bot

    container = create_container(settings)
    bot = create_bot(container, settings)

    try:
        bot.run_with_graceful_shutdown(settings.discord.token.get_secret_value())
        logger.info(LogTemplates.BOT_STOPPED)
        return 0
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
        return 0
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1


def cli() -> None:
    """Console script entry point (used by pyproject.toml [project.scripts])."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
