"""Cluster monitor: namespace activity tracking and capacity checks."""

from archivist.controllers.clustermonitor.activity import ActivityCalculator
from archivist.controllers.clustermonitor.archiver import Archiver, LoggingArchiver
from archivist.controllers.clustermonitor.capacity import CapacityEvaluator
from archivist.controllers.clustermonitor.monitor import ClusterMonitor

__all__ = [
    "ActivityCalculator",
    "Archiver",
    "CapacityEvaluator",
    "ClusterMonitor",
    "LoggingArchiver",
]
