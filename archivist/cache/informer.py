"""Keeps an Indexer in sync with a remote collection.

The informer lists the collection, replaces the indexer content, then applies
watch events until the stream ends. It then watches again from the last seen
resource version. An expired watch triggers a relist. Other failures are
logged and retried with exponential backoff. Objects that fail to parse are
logged and dropped. Consumers of the indexer never see these errors; a long
outage only makes the mirror stale.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any, Generic, TypeVar

from archivist.cache.indexer import Indexer
from archivist.constants.enums import WatchEventType
from archivist.constants.timeouts import WATCH_BACKOFF_INITIAL, WATCH_BACKOFF_MAX
from archivist.exceptions import ListWatchError, WatchExpiredError
from archivist.sources.base import ListWatch, WatchEvent
from archivist.utils.log import LoggerLike, bind_logger

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_until_stopped(
    coro: Coroutine[Any, Any, Any],
    stop_event: asyncio.Event,
    timeout: float | None = None,
) -> bool:
    """Run ``coro`` until it finishes, ``stop_event`` is set, or ``timeout`` elapses.

    Returns True if the coroutine finished on its own. Exceptions raised by
    the coroutine propagate.
    """
    work = asyncio.ensure_future(coro)
    stopper = asyncio.ensure_future(stop_event.wait())
    try:
        done, _ = await asyncio.wait(
            {work, stopper},
            timeout=timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
    except asyncio.CancelledError:
        work.cancel()
        raise
    finally:
        stopper.cancel()
    if work in done:
        work.result()
        return True
    work.cancel()
    try:
        await work
    except asyncio.CancelledError:
        pass
    return False


async def sleep_until_stopped(seconds: float, stop_event: asyncio.Event) -> bool:
    """Sleep for ``seconds``; returns True if woken by ``stop_event``."""
    if stop_event.is_set():
        return True
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        return False
    return True


class Informer(Generic[T]):
    """Drives one ListWatch into one Indexer."""

    def __init__(
        self,
        name: str,
        list_watch: ListWatch,
        indexer: Indexer[T],
        parse: Callable[[dict[str, Any]], T],
        *,
        resync_period: float = 0.0,
        backoff_initial: float = WATCH_BACKOFF_INITIAL,
        backoff_max: float = WATCH_BACKOFF_MAX,
        logger: LoggerLike | None = None,
    ) -> None:
        self.name = name
        self.indexer = indexer
        self._list_watch = list_watch
        self._parse = parse
        self._resync_period = resync_period
        self._backoff_initial = backoff_initial
        self._backoff_max = backoff_max
        self._log = bind_logger(logger or logging.getLogger(__name__), informer=name)
        self._synced = asyncio.Event()
        self._resource_version = ""

    @property
    def has_synced(self) -> bool:
        """True once the first list has been applied to the indexer."""
        return self._synced.is_set()

    @property
    def resource_version(self) -> str:
        return self._resource_version

    async def wait_for_sync(self) -> None:
        await self._synced.wait()

    async def run(self, stop_event: asyncio.Event) -> None:
        """List and watch until ``stop_event`` is set."""
        backoff = self._backoff_initial
        self._log.info("informer starting")
        while not stop_event.is_set():
            try:
                await self._list()
                backoff = self._backoff_initial
                # A resync period bounds how long one list+watch cycle lasts.
                timeout = self._resync_period if self._resync_period > 0 else None
                finished = await run_until_stopped(self._watch(), stop_event, timeout)
                if not finished and not stop_event.is_set():
                    self._log.debug("resync period elapsed, relisting")
            except WatchExpiredError as exc:
                self._log.info("watch expired, relisting: %s", exc)
            except ListWatchError as exc:
                self._log.warning("list/watch failed, retrying in %.1fs: %s", backoff, exc)
                await sleep_until_stopped(backoff, stop_event)
                backoff = min(backoff * 2, self._backoff_max)
            except Exception:
                self._log.exception("informer cycle failed, retrying in %.1fs", backoff)
                await sleep_until_stopped(backoff, stop_event)
                backoff = min(backoff * 2, self._backoff_max)
        self._log.info("informer stopped")

    async def _list(self) -> None:
        result = await self._list_watch.list()
        objects = [obj for obj in map(self._parse_or_skip, result.items) if obj is not None]
        self.indexer.replace(objects)
        self._resource_version = result.resource_version
        if not self._synced.is_set():
            self._log.info("initial list complete: %d objects", len(objects))
        self._synced.set()

    async def _watch(self) -> None:
        """Apply watch events, re-opening the stream whenever it closes cleanly."""
        while True:
            async for event in self._list_watch.watch(self._resource_version):
                self.apply(event)

    def _parse_or_skip(self, raw: dict[str, Any]) -> T | None:
        """Parse one raw object; malformed objects are logged and dropped."""
        try:
            return self._parse(raw)
        except ValueError as exc:
            meta = raw.get("metadata") if isinstance(raw, dict) else None
            self._log.warning("dropping malformed object %s: %s", meta, exc)
            return None

    def apply(self, event: WatchEvent) -> None:
        """Apply one watch event to the indexer."""
        if event.resource_version:
            self._resource_version = event.resource_version
        if event.type is WatchEventType.BOOKMARK:
            return
        event.raise_for_error()
        obj = self._parse_or_skip(event.object)
        if obj is None:
            return
        if event.type is WatchEventType.DELETED:
            self.indexer.delete(obj)
        else:
            self.indexer.upsert(obj)
        self._log.debug("applied %s %s", event.type.value, self.indexer.key_for(obj))


__all__ = [
    "Informer",
    "run_until_stopped",
    "sleep_until_stopped",
]
