"""Constants module for archivist.

Centralized constants organized by domain:
- enums.py: All Enum class definitions
- timeouts.py: Timeout and backoff values (seconds)
- defaults.py: Default values for configuration
"""

from archivist.constants.defaults import (
    CHECK_INTERVAL_SECONDS_DEFAULT,
    LOG_LEVEL_DEFAULT,
    PROTECTED_NAMESPACES_DEFAULT,
    RESYNC_SECONDS_DEFAULT,
    WARMUP_SECONDS_DEFAULT,
)
from archivist.constants.enums import MonitorState, ResourceKind, WatchEventType
from archivist.constants.timeouts import (
    CLUSTER_REQUEST_TIMEOUT,
    WATCH_BACKOFF_INITIAL,
    WATCH_BACKOFF_MAX,
)

__all__ = [
    # Defaults
    "CHECK_INTERVAL_SECONDS_DEFAULT",
    # Timeouts
    "CLUSTER_REQUEST_TIMEOUT",
    "LOG_LEVEL_DEFAULT",
    "PROTECTED_NAMESPACES_DEFAULT",
    "RESYNC_SECONDS_DEFAULT",
    "WARMUP_SECONDS_DEFAULT",
    "WATCH_BACKOFF_INITIAL",
    "WATCH_BACKOFF_MAX",
    # Enums
    "MonitorState",
    "ResourceKind",
    "WatchEventType",
]
