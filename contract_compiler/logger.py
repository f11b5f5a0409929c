"""
Console logging for the contract compiler.

Compiled descriptors are usually written to stdout, so log records go to
stderr. Level names are colored only when stderr is a terminal.

Usage:
    from contract_compiler.logger import get_logger

    logger = get_logger(__name__)
    logger.info("compiled %d transactions", count)
"""

import logging
import sys

from contract_compiler.config import settings

LOG_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Loggers handed out by get_logger, by name
_loggers: dict[str, logging.Logger] = {}


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name"""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.COLORS.get(record.levelname)
        if color is None:
            return super().format(record)
        # other handlers may share the record
        colored = logging.makeLogRecord(record.__dict__)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def _formatter(stream) -> logging.Formatter:
    isatty = getattr(stream, "isatty", None)
    cls = ColoredFormatter if isatty is not None and isatty() else logging.Formatter
    return cls(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)


def get_logger(name: str, level: int | str | None = None) -> logging.Logger:
    """
    Get a compiler logger writing to stderr.

    Args:
        name: Logger name (typically __name__)
        level: Logging level (defaults to ``settings.log_level``)
    """
    if name in _loggers:
        return _loggers[name]

    if level is None:
        level = settings.log_level.upper()

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_formatter(sys.stderr))
    logger.addHandler(handler)

    _loggers[name] = logger
    return logger


def set_log_level(level: int | str) -> None:
    """Apply `level` to every compiler logger created so far."""
    if isinstance(level, str):
        level = level.upper()
    for logger in _loggers.values():
        logger.setLevel(level)
