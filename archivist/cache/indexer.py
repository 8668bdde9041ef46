"""Thread-safe local object store with a namespace index.

One ``Indexer`` mirrors one resource kind. Its owning informer is the only
writer; the activity calculator and capacity evaluator read from it.

Performance notes:
- All operations take the same re-entrant lock, so readers never observe a
  half-applied update even when they run on another thread.
- List operations return new lists; callers may keep them as snapshots.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from archivist.exceptions import IndexLookupError

T = TypeVar("T")

KeyFunc = Callable[[Any], str]
NamespaceFunc = Callable[[Any], "str | None"]


def namespace_of(obj: Any) -> str | None:
    """Return the namespace of a namespaced object, or None."""
    namespace = getattr(obj, "namespace", None)
    return namespace or None


def meta_namespace_key(obj: Any) -> str:
    """Key objects as ``namespace/name``, or ``name`` when cluster scoped."""
    namespace = namespace_of(obj)
    name = getattr(obj, "name", "")
    if namespace:
        return f"{namespace}/{name}"
    return name


class Indexer(Generic[T]):
    """Key to object mapping with an optional secondary index by namespace."""

    def __init__(
        self,
        key_func: KeyFunc = meta_namespace_key,
        namespace_func: NamespaceFunc | None = namespace_of,
    ) -> None:
        self._key_func = key_func
        self._namespace_func = namespace_func
        self._items: dict[str, T] = {}
        self._by_namespace: dict[str, set[str]] = {}
        self._lock = threading.RLock()

    @property
    def has_namespace_index(self) -> bool:
        return self._namespace_func is not None

    def key_for(self, obj: T) -> str:
        return self._key_func(obj)

    # =========================================================================
    # Writes
    # =========================================================================

    def upsert(self, obj: T) -> None:
        """Insert or replace ``obj`` under its key."""
        key = self._key_func(obj)
        with self._lock:
            old = self._items.get(key)
            if old is not None:
                self._unindex(key, old)
            self._items[key] = obj
            self._index(key, obj)

    def remove(self, key: str) -> T | None:
        """Remove the object stored under ``key``; returns it if present."""
        with self._lock:
            old = self._items.pop(key, None)
            if old is not None:
                self._unindex(key, old)
            return old

    def delete(self, obj: T) -> T | None:
        """Remove the object with the same key as ``obj``."""
        return self.remove(self._key_func(obj))

    def replace(self, objs: Iterable[T]) -> None:
        """Swap the whole content for ``objs`` in one step."""
        items: dict[str, T] = {}
        for obj in objs:
            items[self._key_func(obj)] = obj
        with self._lock:
            self._items = items
            self._by_namespace = {}
            for key, obj in items.items():
                self._index(key, obj)

    def _index(self, key: str, obj: T) -> None:
        if self._namespace_func is None:
            return
        namespace = self._namespace_func(obj)
        if namespace:
            self._by_namespace.setdefault(namespace, set()).add(key)

    def _unindex(self, key: str, obj: T) -> None:
        if self._namespace_func is None:
            return
        namespace = self._namespace_func(obj)
        if not namespace:
            return
        keys = self._by_namespace.get(namespace)
        if keys is None:
            return
        keys.discard(key)
        if not keys:
            del self._by_namespace[namespace]

    # =========================================================================
    # Reads
    # =========================================================================

    def list(self) -> list[T]:
        """Return all stored objects."""
        with self._lock:
            return list(self._items.values())

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._items)

    def get_by_key(self, key: str) -> T | None:
        with self._lock:
            return self._items.get(key)

    def by_namespace(self, namespace: str) -> list[T]:
        """Return the objects indexed under ``namespace``.

        Raises:
            IndexLookupError: if this indexer was built without a namespace index.
        """
        if self._namespace_func is None:
            raise IndexLookupError("indexer has no namespace index")
        with self._lock:
            keys = self._by_namespace.get(namespace, ())
            return [self._items[key] for key in keys]

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._items


__all__ = [
    "Indexer",
    "meta_namespace_key",
    "namespace_of",
]
