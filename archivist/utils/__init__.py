"""Utility helpers for archivist."""

from archivist.utils.log import bind_logger, configure_logging

__all__ = [
    "bind_logger",
    "configure_logging",
]
