from __future__ import annotations

import logging
import sys

from colorlog import ColoredFormatter

TRACE_LEVEL = 5
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_LEVELS = {
    "TRACE": TRACE_LEVEL,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_LOG_COLORS = {
    "TRACE": "cyan",
    "DEBUG": "blue",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


def _trace(self: logging.Logger, message: str, *args: object, **kwargs: object) -> None:
    if self.isEnabledFor(TRACE_LEVEL):
        self._log(TRACE_LEVEL, message, args, **kwargs)


def _build_formatter(color: bool) -> logging.Formatter:
    if color:
        return ColoredFormatter("%(log_color)s" + LOG_FORMAT, log_colors=_LOG_COLORS)
    return logging.Formatter(LOG_FORMAT)


def configure_logging(level: int, color: bool | None = None) -> None:
    """Install a single stderr handler; colors default to on for a TTY."""
    logging.addLevelName(TRACE_LEVEL, "TRACE")
    setattr(logging.Logger, "trace", _trace)
    if color is None:
        color = sys.stderr.isatty()
    handler = logging.StreamHandler()
    handler.setFormatter(_build_formatter(color))
    logging.basicConfig(level=level, handlers=[handler], force=True)


def resolve_log_level(verbosity: int, fallback: str) -> int:
    if verbosity >= 2:
        return TRACE_LEVEL
    if verbosity == 1:
        return logging.DEBUG
    return _LEVELS.get(fallback.upper(), logging.INFO)
