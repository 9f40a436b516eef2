#!/usr/bin/env python3
"""Entry point: load settings, configure logging, check FFmpeg and run the bot."""

from __future__ import annotations

import json
import logging
import logging.config
import shutil
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from discord_queue_player.domain.shared.messages import ErrorMessages, LogTemplates

if TYPE_CHECKING:
    from discord_queue_player.config.settings import Settings

_LOGGING_CONFIG_PATH = Path(__file__).resolve().parents[2] / "logging_config.json"
_FALLBACK_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO", config_path: Path = _LOGGING_CONFIG_PATH) -> None:
    """Apply ``logging_config.json``, or a plain console format when it cannot be read.

    *log_level* always wins over the root level in the file.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        with open(config_path) as f:
            logging.config.dictConfig(json.load(f))
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        logging.basicConfig(level=level, format=_FALLBACK_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        logging.warning("Could not load %s, falling back to basic config", config_path)

    logging.getLogger().setLevel(level)


def _check_ffmpeg(settings: Settings) -> bool:
    executable = settings.audio.ffmpeg_executable
    if shutil.which(executable) is None:
        logger.error(ErrorMessages.FFMPEG_NOT_FOUND.format(executable=executable))
        return False
    return True


def main() -> int:
    from discord_queue_player.config.settings import get_settings

    settings = get_settings()
    setup_logging(settings.log_level)

    token = settings.discord.token.get_secret_value()
    if not token:
        logger.error(ErrorMessages.DISCORD_TOKEN_REQUIRED)
        return 1
    if not _check_ffmpeg(settings):
        return 1

    logger.info(LogTemplates.BOT_STARTING.format(environment=settings.environment))
    logger.info(
        LogTemplates.BOT_PLAYER_CONFIG,
        settings.player.search_songs,
        settings.player.save_previous_songs,
        settings.player.leave_on_finish,
        len(settings.audio.filters),
    )

    from discord_queue_player.config.container import create_container
    from discord_queue_player.infrastructure.discord.bot import create_bot

    bot = create_bot(create_container(settings), settings)

    try:
        bot.run_with_graceful_shutdown(token)
    except KeyboardInterrupt:
        logger.info(LogTemplates.BOT_KEYBOARD_INTERRUPT)
    except Exception as e:
        logger.exception(LogTemplates.BOT_FATAL_ERROR, e)
        return 1
    return 0


def cli() -> None:
    """Console script entry point (``discord-queue-player``)."""
    sys.exit(main())


if __name__ == "__main__":
    cli()  # pragma: no cover
