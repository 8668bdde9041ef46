"""In-memory list/watch used by tests and dry runs.

Objects are raw API dicts. Every change bumps a collection-wide resource
version and is recorded, so a watch started from an older version replays the
changes it missed, as the API server does.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import AsyncIterator
from typing import Any

from archivist.constants.enums import WatchEventType
from archivist.exceptions import ListWatchError
from archivist.sources.base import HTTP_GONE, ListResult, ListWatch, WatchEvent

# Sentinel telling open watches to end their stream.
_CLOSE = None


def _object_key(obj: dict[str, Any]) -> str:
    meta = obj.get("metadata") or {}
    namespace = meta.get("namespace")
    name = meta.get("name", "")
    return f"{namespace}/{name}" if namespace else name


class FakeListWatch(ListWatch):
    """List/watch over objects held in memory."""

    def __init__(self, items: list[dict[str, Any]] | None = None) -> None:
        self._objects: dict[str, dict[str, Any]] = {}
        self._history: list[tuple[int, WatchEvent]] = []
        self._resource_version = 0
        self._queues: list[asyncio.Queue[WatchEvent | None]] = []
        self._list_errors: list[Exception] = []
        self.list_calls = 0
        self.watch_calls = 0
        for item in items or []:
            self._apply(WatchEventType.ADDED, item)

    @property
    def resource_version(self) -> str:
        return str(self._resource_version)

    @property
    def active_watches(self) -> int:
        return len(self._queues)

    # =========================================================================
    # Mutations
    # =========================================================================

    def add(self, obj: dict[str, Any]) -> None:
        self._apply(WatchEventType.ADDED, obj)

    def modify(self, obj: dict[str, Any]) -> None:
        self._apply(WatchEventType.MODIFIED, obj)

    def delete(self, obj: dict[str, Any]) -> None:
        self._apply(WatchEventType.DELETED, obj)

    def _apply(self, event_type: WatchEventType, obj: dict[str, Any]) -> None:
        self._resource_version += 1
        stored = copy.deepcopy(obj)
        stored.setdefault("metadata", {})["resourceVersion"] = str(self._resource_version)
        key = _object_key(stored)
        if event_type is WatchEventType.DELETED:
            self._objects.pop(key, None)
        else:
            self._objects[key] = stored
        event = WatchEvent(type=event_type, object=stored)
        self._history.append((self._resource_version, event))
        self._broadcast(event)

    def expire(self) -> None:
        """Send a 410 Gone error to open watches and drop the event history."""
        self._history.clear()
        self._broadcast(
            WatchEvent(
                type=WatchEventType.ERROR,
                object={"kind": "Status", "code": HTTP_GONE, "reason": "Expired"},
            )
        )

    def fail_next_list(self, error: Exception | None = None) -> None:
        """Make the next ``list`` call raise ``error``."""
        self._list_errors.append(error or ListWatchError("injected list failure"))

    def close_watches(self) -> None:
        """End all open watch streams, as a server-side timeout would."""
        for queue in list(self._queues):
            queue.put_nowait(_CLOSE)

    def _broadcast(self, event: WatchEvent) -> None:
        for queue in list(self._queues):
            queue.put_nowait(event)

    # =========================================================================
    # ListWatch
    # =========================================================================

    async def list(self) -> ListResult:
        self.list_calls += 1
        if self._list_errors:
            raise self._list_errors.pop(0)
        return ListResult(
            items=[copy.deepcopy(obj) for obj in self._objects.values()],
            resource_version=self.resource_version,
        )

    async def watch(self, resource_version: str) -> AsyncIterator[WatchEvent]:
        self.watch_calls += 1
        since = int(resource_version or 0)
        queue: asyncio.Queue[WatchEvent | None] = asyncio.Queue()
        # Replay and subscribe without yielding in between so nothing is missed.
        for version, event in self._history:
            if version > since:
                queue.put_nowait(event)
        self._queues.append(queue)
        try:
            while True:
                event = await queue.get()
                if event is _CLOSE:
                    return
                event.raise_for_error()
                yield event
        finally:
            self._queues.remove(queue)


def namespace_object(name: str, created: str | None = None) -> dict[str, Any]:
    """Raw Namespace object."""
    meta: dict[str, Any] = {"name": name}
    if created:
        meta["creationTimestamp"] = created
    return {"kind": "Namespace", "apiVersion": "v1", "metadata": meta}


def build_object(namespace: str, name: str, started: str | None = None) -> dict[str, Any]:
    """Raw OpenShift Build object."""
    status: dict[str, Any] = {"phase": "New"}
    if started:
        status = {"phase": "Complete", "startTimestamp": started}
    return {
        "kind": "Build",
        "apiVersion": "build.openshift.io/v1",
        "metadata": {"namespace": namespace, "name": name},
        "status": status,
    }


def replication_controller_object(
    namespace: str, name: str, created: str | None = None
) -> dict[str, Any]:
    """Raw ReplicationController object."""
    meta: dict[str, Any] = {"namespace": namespace, "name": name}
    if created:
        meta["creationTimestamp"] = created
    return {"kind": "ReplicationController", "apiVersion": "v1", "metadata": meta}


__all__ = [
    "FakeListWatch",
    "build_object",
    "namespace_object",
    "replication_controller_object",
]
