"""Logging setup for the client and the ``wellnest`` command"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import IO, Optional

from .config import LoggingConfig, get_settings

ROOT_LOGGER_NAME = "wellnest_client"

# httpx logs every request line (URL included) at INFO
TRANSPORT_LOGGERS = ("httpx", "httpcore")


class ColoredFormatter(logging.Formatter):
    """Console formatter that tints the level name"""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # Tint a copy; other handlers share the record
        tinted = logging.makeLogRecord(record.__dict__)
        tinted.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(tinted)


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    return level if isinstance(level, int) else logging.WARNING


def _console_handler(config: LoggingConfig, level: int, stream: IO) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    isatty = getattr(stream, "isatty", None)
    formatter_class = ColoredFormatter if isatty and isatty() else logging.Formatter
    handler.setFormatter(formatter_class(config.format))
    return handler


def _file_handler(config: LoggingConfig, level: int) -> logging.Handler:
    path = Path(config.file_path).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=config.max_file_size,
        backupCount=config.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(config.format))
    return handler


def setup_logging(config: Optional[LoggingConfig] = None,
                  stream: Optional[IO] = None) -> logging.Logger:
    """Configure the ``wellnest_client`` logger tree.

    Console output goes to stderr so command output on stdout stays clean.
    Transport loggers stay at WARNING unless DEBUG is requested, so bearer
    requests are not echoed at INFO.
    """
    if config is None:
        config = get_settings().logging
    level = _resolve_level(config.level)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.addHandler(_console_handler(config, level, stream or sys.stderr))
    if config.file_path:
        logger.addHandler(_file_handler(config, level))
    logger.propagate = False

    transport_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(transport_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger under ``wellnest_client``"""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
