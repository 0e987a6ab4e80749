"""Logging setup and a colored console formatter."""

from __future__ import annotations

import json
import logging
import logging.config
import os
import sys
from pathlib import Path
from typing import TextIO

from chat_jukebox.domain.shared.messages import LogTemplates

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name and dims the logger name.

    Colors are disabled when ``NO_COLOR`` is set, when ``use_color`` is
    False, or when the target stream is not a TTY.
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

    def __init__(
        self,
        fmt: str | None = DEFAULT_FORMAT,
        datefmt: str | None = DEFAULT_DATEFMT,
        *,
        use_color: bool = True,
        stream: TextIO | None = None,
    ) -> None:
        super().__init__(fmt, datefmt)
        self._use_color_opt = use_color
        self._stream = stream

    def _use_color(self) -> bool:
        if not self._use_color_opt or os.environ.get("NO_COLOR") is not None:
            return False
        stream = self._stream or sys.stderr
        return hasattr(stream, "isatty") and stream.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self._use_color():
            color = self.COLORS.get(record.levelno, "")
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
            record.name = f"{self.DIM}{record.name}{self.RESET}"
        return super().format(record)


def configure_logging(log_level: str = "INFO", config_path: Path | None = None) -> None:
    """Apply the dictConfig file at *config_path*, or a basic console setup."""
    resolved_level = getattr(logging, log_level.upper(), logging.INFO)

    try:
        if config_path is None:
            raise FileNotFoundError
        with open(config_path) as f:
            config = json.load(f)
        logging.config.dictConfig(config)
    except (FileNotFoundError, json.JSONDecodeError, ValueError):
        handler = logging.StreamHandler()
        handler.setFormatter(ColoredFormatter(stream=handler.stream))
        logging.basicConfig(level=resolved_level, handlers=[handler])
        if config_path is not None:
            logging.warning(LogTemplates.LOGGING_CONFIG_FALLBACK, config_path)

    logging.getLogger().setLevel(resolved_level)
