"""Per-namespace last activity calculation."""

from __future__ import annotations

import logging
from collections.abc import Collection
from datetime import datetime

from archivist.cache.indexer import Indexer
from archivist.models.resources import Build, ReplicationController
from archivist.utils.log import LoggerLike, bind_logger

logger = logging.getLogger(__name__)


class ActivityCalculator:
    """Derive a namespace's last activity from its builds and replication controllers.

    The last activity is the latest build start time or replication
    controller creation time found in the namespace. Builds that have not
    started yet and controllers without a creation time are ignored.
    """

    def __init__(
        self,
        build_indexer: Indexer[Build],
        rc_indexer: Indexer[ReplicationController],
        protected_namespaces: Collection[str] = (),
        logger: LoggerLike | None = None,
    ) -> None:
        self._build_indexer = build_indexer
        self._rc_indexer = rc_indexer
        self._protected = frozenset(protected_namespaces)
        self._log = bind_logger(logger or logging.getLogger(__name__), component="activity")

    def compute_last_activity(self, namespace: str) -> datetime | None:
        """Return the last activity time for ``namespace``, or None if there is none.

        Raises:
            IndexLookupError: if the namespace index cannot be read.
        """
        ns_log = bind_logger(self._log, namespace=namespace)

        # Not necessarily a problem, but worth warning about.
        if namespace in self._protected:
            ns_log.warning("computing last activity for protected namespace")

        builds = self._build_indexer.by_namespace(namespace)
        rcs = self._rc_indexer.by_namespace(namespace)
        ns_log.debug("calculating last activity time: builds=%d rcs=%d", len(builds), len(rcs))

        last_activity: datetime | None = None

        for build in builds:
            # A build may briefly have no start timestamp.
            if build.start_timestamp is None:
                ns_log.debug("skipping build with no start time: %s", build.name)
                continue
            if last_activity is None or build.start_timestamp > last_activity:
                last_activity = build.start_timestamp
                ns_log.debug("last activity now %s from build %s", last_activity, build.name)

        for rc in rcs:
            if rc.creation_timestamp is None:
                ns_log.debug("skipping replication controller with no creation time: %s", rc.name)
                continue
            if last_activity is None or rc.creation_timestamp > last_activity:
                last_activity = rc.creation_timestamp
                ns_log.debug(
                    "last activity now %s from replication controller %s",
                    last_activity,
                    rc.name,
                )

        ns_log.debug("calculated last activity: %s", last_activity)
        return last_activity


__all__ = ["ActivityCalculator"]
