"""Capacity evaluation: which namespaces to archive.

Namespaces are bucketed by how long they have been inactive:

- older than ``max_inactive_days``: very inactive, always archived;
- between ``min_inactive_days`` and ``max_inactive_days``: somewhat inactive,
  archived only when the namespace count is at or above the high watermark,
  and only as many as needed to get down to the low watermark, oldest first;
- anything more recent is active and left alone.

Protected namespaces and namespaces without any recorded activity are never
candidates.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, timezone

from archivist.controllers.clustermonitor.activity import ActivityCalculator
from archivist.models.activity import LastActivity
from archivist.models.config import CapacityPolicy
from archivist.models.resources import Namespace
from archivist.utils.log import LoggerLike, bind_logger

logger = logging.getLogger(__name__)


class CapacityEvaluator:
    """Turns namespace activity and a capacity policy into archival candidates."""

    def __init__(
        self,
        policy: CapacityPolicy,
        calculator: ActivityCalculator,
        logger: LoggerLike | None = None,
    ) -> None:
        self.policy = policy
        self._calculator = calculator
        self._log = bind_logger(logger or logging.getLogger(__name__), component="capacitycheck")

    def cutoffs(self, check_time: datetime) -> tuple[datetime, datetime]:
        """Return ``(min_inactive_cutoff, max_inactive_cutoff)`` for ``check_time``."""
        min_cutoff = check_time - timedelta(days=self.policy.min_inactive_days)
        max_cutoff = check_time - timedelta(days=self.policy.max_inactive_days)
        return min_cutoff, max_cutoff

    def evaluate(
        self, check_time: datetime, namespaces: Sequence[Namespace]
    ) -> list[LastActivity]:
        """Return the namespaces to archive at ``check_time``.

        Raises:
            IndexLookupError: if activity lookup fails; the whole evaluation
                is aborted.
        """
        if check_time.tzinfo is None:
            check_time = check_time.replace(tzinfo=timezone.utc)

        policy = self.policy
        if policy.high_watermark == 0:
            self._log.warning("no namespace capacity high watermark defined, skipping")
            return []
        if policy.low_watermark == 0:
            self._log.warning("no namespace capacity low watermark defined, skipping")
            return []

        min_cutoff, max_cutoff = self.cutoffs(check_time)
        self._log.info(
            "calculating namespaces to be archived: check_time=%s min_inactive=%s "
            "max_inactive=%s high_watermark=%d low_watermark=%d",
            check_time,
            min_cutoff,
            max_cutoff,
            policy.high_watermark,
            policy.low_watermark,
        )

        very_inactive: list[LastActivity] = []  # will definitely be archived
        somewhat_inactive: list[LastActivity] = []  # archived only if room is needed

        for namespace in namespaces:
            if policy.is_protected(namespace.name):
                self._log.debug("skipping protected namespace %s", namespace.name)
                continue
            last_activity = self._calculator.compute_last_activity(namespace.name)
            if last_activity is None:
                self._log.warning(
                    "no last activity time calculated for namespace %s", namespace.name
                )
                continue
            if last_activity < max_cutoff:
                self._log.info(
                    "found namespace over max inactive time: namespace=%s last_activity=%s",
                    namespace.name,
                    last_activity,
                )
                very_inactive.append(LastActivity(namespace=namespace, time=last_activity))
            elif last_activity < min_cutoff:
                self._log.info(
                    "found namespace between max/min inactive times: namespace=%s last_activity=%s",
                    namespace.name,
                    last_activity,
                )
                somewhat_inactive.append(LastActivity(namespace=namespace, time=last_activity))

        total = len(namespaces)
        self._log.info(
            "last activity totals: total=%d very_inactive=%d somewhat_inactive=%d",
            total,
            len(very_inactive),
            len(somewhat_inactive),
        )

        to_archive = list(very_inactive)
        to_archive.extend(
            self._select_somewhat_inactive(total, len(to_archive), somewhat_inactive)
        )

        self._log.info("found %d namespaces to archive", len(to_archive))
        for candidate in to_archive:
            self._log.info("archiving: %s", candidate.name)

        remaining = total - len(to_archive)
        if remaining > policy.low_watermark:
            self._log.warning(
                "unable to reach namespace capacity low watermark: low_watermark=%d new_count=%d",
                policy.low_watermark,
                remaining,
            )
        return to_archive

    def _select_somewhat_inactive(
        self,
        total: int,
        already_selected: int,
        somewhat_inactive: list[LastActivity],
    ) -> list[LastActivity]:
        """Pick the somewhat inactive namespaces needed to reach the low watermark.

        Only applies when ``total`` is at or above the high watermark. If the
        pool is too small to reach the target it is taken whole, unsorted.
        Otherwise the pool is sorted oldest first and just enough of it is
        taken, so the most recently active namespaces remain.
        """
        policy = self.policy
        new_count = total - already_selected
        if total < policy.high_watermark or new_count < policy.low_watermark:
            return []

        target = new_count - policy.low_watermark
        self._log.debug("looking for %d semi-inactive namespaces to archive", target)
        if target >= len(somewhat_inactive):
            return list(somewhat_inactive)

        # Only now is a sort needed, and only over the eligible namespaces.
        ordered = sorted(somewhat_inactive, key=lambda activity: activity.time)
        return ordered[:target]


__all__ = ["CapacityEvaluator"]
