"""Logging helpers.

Components take an explicit logger handle instead of touching global logger
state. ``bind_logger`` attaches key=value context to every message, and
``configure_logging`` is called once by the CLI entry point.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping, MutableMapping
from typing import Any

from archivist.exceptions import ConfigValidationError

LoggerLike = logging.Logger | logging.LoggerAdapter

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that appends bound fields as ``key=value`` pairs."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        if not self.extra:
            return msg, kwargs
        fields = " ".join(f"{key}={value}" for key, value in self.extra.items())
        return f"{msg} [{fields}]", kwargs


def bind_logger(logger: LoggerLike, **fields: Any) -> ContextLogger:
    """Return a logger that adds ``fields`` to every record.

    Binding an already bound logger merges the fields, newer values winning.
    """
    if isinstance(logger, ContextLogger):
        merged: dict[str, Any] = dict(logger.extra or {})
        merged.update(fields)
        return ContextLogger(logger.logger, merged)
    if isinstance(logger, logging.LoggerAdapter):
        base: Mapping[str, Any] = logger.extra or {}
        return ContextLogger(logger.logger, {**base, **fields})
    return ContextLogger(logger, fields)


def parse_level(level: str) -> int:
    """Map a level name to a logging level.

    Raises:
        ConfigValidationError: if the name is unknown.
    """
    try:
        return _LEVELS[level.strip().lower()]
    except (KeyError, AttributeError):
        raise ConfigValidationError(f"unknown log level: {level!r}") from None


def configure_logging(level: str = "info", stream: Any = None) -> logging.Logger:
    """Install a stdout handler on the ``archivist`` logger."""
    root = logging.getLogger("archivist")
    root.setLevel(parse_level(level))
    for handler in list(root.handlers):
        root.removeHandler(handler)
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.propagate = False
    return root


__all__ = [
    "LOG_FORMAT",
    "ContextLogger",
    "LoggerLike",
    "bind_logger",
    "configure_logging",
    "parse_level",
]
