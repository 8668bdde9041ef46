"""Archiver collaborator interface.

Exporting a namespace's contents is done outside this package. The monitor
only hands over namespace names through this interface.
"""

from __future__ import annotations

import logging
from typing import Protocol, runtime_checkable

from archivist.utils.log import LoggerLike

logger = logging.getLogger(__name__)


@runtime_checkable
class Archiver(Protocol):
    """Archives a namespace on behalf of a requesting identity."""

    def archive(self, namespace: str, requester: str) -> None:
        """Archive ``namespace``.

        Raises:
            NamespaceNotFoundError: if the namespace does not exist.
        """
        ...


class LoggingArchiver:
    """Archiver stand-in that records requests and only logs them."""

    def __init__(self, logger: LoggerLike | None = None) -> None:
        self._log = logger or logging.getLogger(__name__)
        self.requests: list[tuple[str, str]] = []

    def archive(self, namespace: str, requester: str) -> None:
        self.requests.append((namespace, requester))
        self._log.info("archive requested: namespace=%s requester=%s", namespace, requester)


__all__ = [
    "Archiver",
    "LoggingArchiver",
]
