"""Timeout and backoff constants.

Values for kubectl requests and watch reconnection.
"""

from typing import Final

# ============================================================================
# API/Cluster timeouts (string format for kubectl)
# ============================================================================

CLUSTER_REQUEST_TIMEOUT: Final = "30s"

# Process-level command timeout for list calls (must be greater than request timeout)
KUBECTL_COMMAND_TIMEOUT: Final = 45

# ============================================================================
# Watch reconnection (float, in seconds)
# ============================================================================

WATCH_BACKOFF_INITIAL: Final = 1.0
WATCH_BACKOFF_MAX: Final = 30.0

# ============================================================================
# Startup
# ============================================================================

CLUSTER_CHECK_TIMEOUT: Final = 12.0
CACHE_SYNC_TIMEOUT: Final = 60.0

__all__ = [
    "CACHE_SYNC_TIMEOUT",
    "CLUSTER_CHECK_TIMEOUT",
    "CLUSTER_REQUEST_TIMEOUT",
    "KUBECTL_COMMAND_TIMEOUT",
    "WATCH_BACKOFF_INITIAL",
    "WATCH_BACKOFF_MAX",
]
