"""Tests for the list/watch informer."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from archivist.cache.indexer import Indexer
from archivist.cache.informer import Informer, run_until_stopped, sleep_until_stopped
from archivist.constants.enums import WatchEventType
from archivist.models.resources import Build
from archivist.sources.base import WatchEvent
from archivist.sources.fake import FakeListWatch, build_object


async def _eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.01)


def _informer(
    source: FakeListWatch, indexer: Indexer[Build], **kwargs: float
) -> Informer[Build]:
    return Informer("builds", source, indexer, Build.from_api, **kwargs)


class TestHelpers:
    """Tests for stop-aware helpers."""

    @pytest.mark.asyncio
    async def test_sleep_until_stopped_times_out(self) -> None:
        assert await sleep_until_stopped(0.01, asyncio.Event()) is False

    @pytest.mark.asyncio
    async def test_sleep_until_stopped_returns_early_on_stop(self) -> None:
        stop = asyncio.Event()
        stop.set()
        assert await sleep_until_stopped(60, stop) is True

    @pytest.mark.asyncio
    async def test_run_until_stopped_cancels_work(self) -> None:
        stop = asyncio.Event()
        cancelled = asyncio.Event()

        async def forever() -> None:
            try:
                await asyncio.sleep(60)
            except asyncio.CancelledError:
                cancelled.set()
                raise

        asyncio.get_running_loop().call_later(0.01, stop.set)
        assert await run_until_stopped(forever(), stop) is False
        assert cancelled.is_set()

    @pytest.mark.asyncio
    async def test_run_until_stopped_propagates_errors(self) -> None:
        async def boom() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await run_until_stopped(boom(), asyncio.Event())


class TestInformerApply:
    """Tests for applying single events."""

    def test_apply_added_and_deleted(self, build_indexer: Indexer[Build]) -> None:
        informer = _informer(FakeListWatch(), build_indexer)
        obj = build_object("team-a", "build-1", "2017-05-01T00:00:00Z")
        obj["metadata"]["resourceVersion"] = "12"

        informer.apply(WatchEvent(WatchEventType.ADDED, obj))
        assert "team-a/build-1" in build_indexer
        assert informer.resource_version == "12"

        informer.apply(WatchEvent(WatchEventType.DELETED, obj))
        assert "team-a/build-1" not in build_indexer

    def test_apply_bookmark_only_moves_version(self, build_indexer: Indexer[Build]) -> None:
        informer = _informer(FakeListWatch(), build_indexer)
        bookmark = {"kind": "Build", "metadata": {"resourceVersion": "40"}}

        informer.apply(WatchEvent(WatchEventType.BOOKMARK, bookmark))

        assert len(build_indexer) == 0
        assert informer.resource_version == "40"

    def test_apply_drops_malformed_object(self, build_indexer: Indexer[Build]) -> None:
        informer = _informer(FakeListWatch(), build_indexer)
        malformed = {"metadata": {"namespace": "team-a", "name": None, "resourceVersion": "7"}}

        informer.apply(WatchEvent(WatchEventType.ADDED, malformed))

        assert len(build_indexer) == 0
        assert informer.resource_version == "7"


class TestInformerRun:
    """Tests for the list/watch loop."""

    @pytest.mark.asyncio
    async def test_initial_list_and_watch_events(self, build_indexer: Indexer[Build]) -> None:
        source = FakeListWatch([build_object("team-a", "build-1", "2017-05-01T00:00:00Z")])
        informer = _informer(source, build_indexer)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))

        await asyncio.wait_for(informer.wait_for_sync(), timeout=2)
        assert informer.has_synced
        assert build_indexer.keys() == ["team-a/build-1"]

        source.add(build_object("team-a", "build-2", "2017-05-02T00:00:00Z"))
        source.delete(build_object("team-a", "build-1"))
        await _eventually(lambda: build_indexer.keys() == ["team-a/build-2"])

        stop.set()
        await asyncio.wait_for(task, timeout=2)
        assert source.active_watches == 0

    @pytest.mark.asyncio
    async def test_modified_event_updates_object(self, build_indexer: Indexer[Build]) -> None:
        source = FakeListWatch([build_object("team-a", "build-1")])
        informer = _informer(source, build_indexer)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))
        await asyncio.wait_for(informer.wait_for_sync(), timeout=2)

        source.modify(build_object("team-a", "build-1", "2017-05-03T00:00:00Z"))
        await _eventually(
            lambda: build_indexer.get_by_key("team-a/build-1").start_timestamp is not None
        )

        stop.set()
        await asyncio.wait_for(task, timeout=2)

    @pytest.mark.asyncio
    async def test_expired_watch_relists(self, build_indexer: Indexer[Build]) -> None:
        source = FakeListWatch([build_object("team-a", "build-1")])
        informer = _informer(source, build_indexer)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))
        await asyncio.wait_for(informer.wait_for_sync(), timeout=2)
        await _eventually(lambda: source.active_watches == 1)

        source.expire()
        await _eventually(lambda: source.list_calls == 2)

        stop.set()
        await asyncio.wait_for(task, timeout=2)

    @pytest.mark.asyncio
    async def test_closed_watch_resumes_without_relist(
        self, build_indexer: Indexer[Build]
    ) -> None:
        source = FakeListWatch()
        informer = _informer(source, build_indexer)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))
        await _eventually(lambda: source.active_watches == 1)

        source.close_watches()
        await _eventually(lambda: source.watch_calls == 2 and source.active_watches == 1)
        source.add(build_object("team-a", "build-1"))
        await _eventually(lambda: "team-a/build-1" in build_indexer)

        assert source.list_calls == 1
        stop.set()
        await asyncio.wait_for(task, timeout=2)

    @pytest.mark.asyncio
    async def test_list_failure_backs_off_and_retries(
        self, build_indexer: Indexer[Build]
    ) -> None:
        source = FakeListWatch([build_object("team-a", "build-1")])
        source.fail_next_list()
        informer = _informer(source, build_indexer, backoff_initial=0.01)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))

        await asyncio.wait_for(informer.wait_for_sync(), timeout=2)

        assert source.list_calls == 2
        assert "team-a/build-1" in build_indexer
        stop.set()
        await asyncio.wait_for(task, timeout=2)

    @pytest.mark.asyncio
    async def test_resync_period_relists(self, build_indexer: Indexer[Build]) -> None:
        source = FakeListWatch()
        informer = _informer(source, build_indexer, resync_period=0.05)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))

        await _eventually(lambda: source.list_calls >= 3)

        stop.set()
        await asyncio.wait_for(task, timeout=2)

    @pytest.mark.asyncio
    async def test_malformed_objects_do_not_stop_informer(
        self, build_indexer: Indexer[Build]
    ) -> None:
        source = FakeListWatch(
            [
                build_object("team-a", "build-1"),
                {"metadata": {"namespace": "team-a", "name": None}},
            ]
        )
        informer = _informer(source, build_indexer)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))
        await asyncio.wait_for(informer.wait_for_sync(), timeout=2)
        assert build_indexer.keys() == ["team-a/build-1"]

        source.add({"metadata": {"namespace": "team-b", "name": None}})
        source.add(build_object("team-a", "build-2"))
        await _eventually(lambda: "team-a/build-2" in build_indexer)

        assert not task.done()
        assert source.list_calls == 1
        stop.set()
        await asyncio.wait_for(task, timeout=2)

    @pytest.mark.asyncio
    async def test_unexpected_error_backs_off_and_relists(
        self, build_indexer: Indexer[Build]
    ) -> None:
        source = FakeListWatch([build_object("team-a", "build-1")])
        source.fail_next_list(RuntimeError("decoder crashed"))
        informer = _informer(source, build_indexer, backoff_initial=0.01)
        stop = asyncio.Event()
        task = asyncio.create_task(informer.run(stop))

        await asyncio.wait_for(informer.wait_for_sync(), timeout=2)

        assert source.list_calls == 2
        assert "team-a/build-1" in build_indexer
        assert not task.done()
        stop.set()
        await asyncio.wait_for(task, timeout=2)
