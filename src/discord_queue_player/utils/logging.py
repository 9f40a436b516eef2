"""Colored logging formatter for console output."""

from __future__ import annotations

import logging
import os
import sys
from typing import IO, Any

PACKAGE_LOGGER = "discord_queue_player"


class ColoredFormatter(logging.Formatter):
    """Logging formatter that applies ANSI color codes to the level and logger name.

    Records from third-party loggers (discord.py, yt-dlp) get a dimmed name so
    the player's own lines stand out. Colors are disabled when the ``NO_COLOR``
    environment variable is set or when the output stream is not a TTY.
    """

    COLORS: dict[int, str] = {
        logging.DEBUG: "\033[36m",     # cyan
        logging.INFO: "\033[32m",      # green
        logging.WARNING: "\033[33m",   # yellow
        logging.ERROR: "\033[31m",     # red
        logging.CRITICAL: "\033[1;31m",  # bold red
    }
    DIM = "\033[2m"
    RESET = "\033[0m"

    def __init__(self, *args: Any, stream: IO[str] | None = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._stream = stream

    def _use_color(self) -> bool:
        if os.environ.get("NO_COLOR") is not None:
            return False
        stream = self._stream or sys.stdout
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self._use_color():
            color = self.COLORS.get(record.levelno, "")
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
            if not record.name.startswith(PACKAGE_LOGGER):
                record.name = f"{self.DIM}{record.name}{self.RESET}"
        return super().format(record)
