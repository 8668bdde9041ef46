"""List/watch abstraction for remote resource collections."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from typing import Any

from archivist.constants.enums import WatchEventType
from archivist.exceptions import ListWatchError, WatchExpiredError

HTTP_GONE = 410


@dataclass
class ListResult:
    """Full snapshot of a collection and the version it was taken at."""

    items: list[dict[str, Any]] = field(default_factory=list)
    resource_version: str = ""


@dataclass
class WatchEvent:
    """One event from a watch stream."""

    type: WatchEventType
    object: dict[str, Any] = field(default_factory=dict)

    @property
    def resource_version(self) -> str:
        return str((self.object.get("metadata") or {}).get("resourceVersion", ""))

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> WatchEvent:
        """Build an event from a decoded watch line.

        Raises:
            ListWatchError: if the payload is not a watch event.
        """
        raw_type = payload.get("type")
        try:
            event_type = WatchEventType(raw_type)
        except ValueError:
            raise ListWatchError(f"unknown watch event type: {raw_type!r}") from None
        obj = payload.get("object")
        if not isinstance(obj, dict):
            raise ListWatchError("watch event has no object")
        return cls(type=event_type, object=obj)

    def raise_for_error(self) -> None:
        """Raise the matching exception if this is an ERROR event."""
        if self.type is not WatchEventType.ERROR:
            return
        code = self.object.get("code")
        message = self.object.get("message") or self.object.get("reason") or "watch error"
        if code == HTTP_GONE:
            raise WatchExpiredError(message)
        raise ListWatchError(f"watch error (code={code}): {message}")


class ListWatch(ABC):
    """Lists a remote collection and streams subsequent changes.

    Implementations return raw API objects; parsing into models is the
    informer's job.
    """

    @abstractmethod
    async def list(self) -> ListResult:
        """Fetch the full collection.

        Raises:
            ListWatchError: if the collection cannot be listed.
        """
        ...

    @abstractmethod
    def watch(self, resource_version: str) -> AsyncIterator[WatchEvent]:
        """Stream events that happened after ``resource_version``.

        The iterator ends when the server closes the stream. ERROR events are
        raised, not yielded: ``WatchExpiredError`` when a relist is required,
        ``ListWatchError`` otherwise.
        """
        ...


__all__ = [
    "ListResult",
    "ListWatch",
    "WatchEvent",
]
