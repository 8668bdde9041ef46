"""Cluster monitor: mirrors cluster state and periodically runs the capacity check.

The monitor owns three informers (namespaces, builds, replication
controllers). Once started it waits briefly for the initial lists to land,
runs one capacity check, and then runs one every ``check_interval`` seconds
until the shared stop event is set.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from datetime import datetime, timezone

from archivist.cache.indexer import Indexer, meta_namespace_key, namespace_of
from archivist.cache.informer import Informer, sleep_until_stopped
from archivist.constants.defaults import (
    ARCHIVE_REQUESTER_DEFAULT,
    CHECK_INTERVAL_SECONDS_DEFAULT,
    RESYNC_SECONDS_DEFAULT,
    WARMUP_SECONDS_DEFAULT,
)
from archivist.constants.enums import MonitorState, ResourceKind
from archivist.controllers.clustermonitor.activity import ActivityCalculator
from archivist.controllers.clustermonitor.archiver import Archiver
from archivist.controllers.clustermonitor.capacity import CapacityEvaluator
from archivist.exceptions import ArchivistError, NamespaceNotFoundError
from archivist.models.activity import LastActivity
from archivist.models.config import ArchivistConfig, CapacityPolicy, ClusterConfig
from archivist.models.resources import Build, Namespace, ReplicationController
from archivist.sources.base import ListWatch
from archivist.sources.kubectl import KubectlListWatch
from archivist.utils.log import LoggerLike, bind_logger

logger = logging.getLogger(__name__)


def _namespace_key(namespace: Namespace) -> str:
    return namespace.name


class ClusterMonitor:
    """Monitors cluster state and determines which namespaces should be archived."""

    def __init__(
        self,
        policy: CapacityPolicy,
        *,
        namespace_source: ListWatch,
        build_source: ListWatch,
        rc_source: ListWatch,
        archiver: Archiver | None = None,
        check_interval: float = CHECK_INTERVAL_SECONDS_DEFAULT,
        warmup: float = WARMUP_SECONDS_DEFAULT,
        resync_period: float = RESYNC_SECONDS_DEFAULT,
        requester: str = ARCHIVE_REQUESTER_DEFAULT,
        logger: LoggerLike | None = None,
    ) -> None:
        self.policy = policy
        self.archiver = archiver
        self.check_interval = check_interval
        self.warmup = warmup
        self.requester = requester
        self._log = bind_logger(logger or logging.getLogger(__name__), component="clustermonitor")

        # Namespaces are cluster scoped and have no namespace index.
        self.namespace_indexer: Indexer[Namespace] = Indexer(_namespace_key, None)
        self.build_indexer: Indexer[Build] = Indexer(meta_namespace_key, namespace_of)
        self.rc_indexer: Indexer[ReplicationController] = Indexer(
            meta_namespace_key, namespace_of
        )

        # Avoid use outside run() and wait_for_sync(); the indexers are more testable.
        self._informers: list[Informer] = [
            Informer(
                "namespaces",
                namespace_source,
                self.namespace_indexer,
                Namespace.from_api,
                resync_period=resync_period,
                logger=self._log,
            ),
            Informer(
                "builds",
                build_source,
                self.build_indexer,
                Build.from_api,
                resync_period=resync_period,
                logger=self._log,
            ),
            Informer(
                "replicationcontrollers",
                rc_source,
                self.rc_indexer,
                ReplicationController.from_api,
                resync_period=resync_period,
                logger=self._log,
            ),
        ]

        self.calculator = ActivityCalculator(
            self.build_indexer,
            self.rc_indexer,
            protected_namespaces=policy.protected_namespaces,
            logger=self._log,
        )
        self.evaluator = CapacityEvaluator(policy, self.calculator, logger=self._log)

        self._state = MonitorState.STOPPED
        self._stop_event: asyncio.Event | None = None

    @classmethod
    def for_cluster(
        cls,
        config: ArchivistConfig,
        cluster: ClusterConfig,
        *,
        archiver: Archiver | None = None,
        kubectl: str = "kubectl",
        logger: LoggerLike | None = None,
    ) -> ClusterMonitor:
        """Build a monitor that watches ``cluster`` through kubectl."""
        log = bind_logger(logger or logging.getLogger(__name__), cluster=cluster.name)

        def source(kind: ResourceKind) -> KubectlListWatch:
            return KubectlListWatch(
                kind.api_path, context=cluster.context, kubectl=kubectl, logger=log
            )

        return cls(
            cluster.policy,
            namespace_source=source(ResourceKind.NAMESPACE),
            build_source=source(ResourceKind.BUILD),
            rc_source=source(ResourceKind.REPLICATION_CONTROLLER),
            archiver=archiver,
            check_interval=config.check_interval_seconds,
            warmup=config.warmup_seconds,
            resync_period=config.resync_seconds,
            logger=log,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def has_synced(self) -> bool:
        return all(informer.has_synced for informer in self._informers)

    async def run(self, stop_event: asyncio.Event | None = None) -> None:
        """Run informers and periodic capacity checks until ``stop_event`` is set.

        A capacity check that has started always completes before shutdown.
        """
        if self._state is not MonitorState.STOPPED:
            raise RuntimeError(f"cluster monitor cannot start while {self._state.value}")

        stop = stop_event or asyncio.Event()
        self._stop_event = stop
        self._state = MonitorState.STARTING
        tasks = [
            asyncio.create_task(informer.run(stop), name=f"informer-{informer.name}")
            for informer in self._informers
        ]
        self._state = MonitorState.RUNNING
        self._log.info("clustermonitor is running")

        try:
            # Rather than wait a complete interval, give the informers some time
            # to receive their initial lists, then do a capacity check.
            if not await sleep_until_stopped(self.warmup, stop):
                self.check_capacity()
                while not await sleep_until_stopped(self.check_interval, stop):
                    self.check_capacity()
        finally:
            self._state = MonitorState.STOPPING
            self._log.info("clustermonitor stopping")
            stop.set()
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for informer, result in zip(self._informers, results):
                if isinstance(result, Exception):
                    self._log.error("informer %s failed: %s", informer.name, result)
            self._stop_event = None
            self._state = MonitorState.STOPPED
            self._log.info("clustermonitor stopped")

    def stop(self) -> None:
        """Ask a running monitor to stop."""
        if self._stop_event is not None:
            self._stop_event.set()

    async def run_informers(self, stop_event: asyncio.Event) -> None:
        """Keep the caches in sync until ``stop_event`` is set, without capacity checks."""
        await asyncio.gather(*(informer.run(stop_event) for informer in self._informers))

    async def wait_for_sync(self, timeout: float | None = None) -> bool:
        """Wait until every informer has applied its initial list."""
        try:
            await asyncio.wait_for(
                asyncio.gather(*(informer.wait_for_sync() for informer in self._informers)),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            return False
        return True

    # =========================================================================
    # Capacity checks
    # =========================================================================

    def check_capacity(self, check_time: datetime | None = None) -> list[LastActivity]:
        """Run one capacity check and hand the results to the archiver.

        Errors are logged, not raised; the next scheduled check runs as usual.
        """
        check_time = check_time or datetime.now(timezone.utc)
        try:
            to_archive = self.get_namespaces_to_archive(check_time)
        except Exception:
            self._log.exception("capacity check failed")
            return []

        if self.archiver is not None:
            self._hand_off(self.archiver, to_archive)
        return to_archive

    def _hand_off(self, archiver: Archiver, to_archive: Sequence[LastActivity]) -> None:
        for candidate in to_archive:
            try:
                archiver.archive(candidate.name, self.requester)
            except NamespaceNotFoundError:
                self._log.warning("namespace disappeared before archival: %s", candidate.name)
            except ArchivistError as exc:
                self._log.error("archival of %s failed: %s", candidate.name, exc)
            except Exception:
                self._log.exception("archival of %s failed", candidate.name)

    def get_namespaces_to_archive(self, check_time: datetime) -> list[LastActivity]:
        """Evaluate the current cache snapshot.

        Raises:
            IndexLookupError: if the cache cannot be read.
        """
        return self.evaluator.evaluate(check_time, self.namespace_indexer.list())

    def get_last_activity(self, namespace: str) -> datetime | None:
        """Return the last activity time for ``namespace``.

        Returns None when the namespace has no builds or replication
        controllers with timestamps.

        Raises:
            NamespaceNotFoundError: if the namespace is not in the cache.
        """
        if self.namespace_indexer.get_by_key(namespace) is None:
            raise NamespaceNotFoundError(namespace)
        return self.calculator.compute_last_activity(namespace)


__all__ = ["ClusterMonitor"]
