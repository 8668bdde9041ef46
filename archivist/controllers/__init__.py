"""Controllers for archivist."""

from archivist.controllers.clustermonitor import (
    ActivityCalculator,
    CapacityEvaluator,
    ClusterMonitor,
)

__all__ = [
    "ActivityCalculator",
    "CapacityEvaluator",
    "ClusterMonitor",
]
