"""Default values for configuration.

All default values used by the configuration models and the cluster monitor.
"""

from typing import Final

# ============================================================================
# Logging defaults
# ============================================================================

LOG_LEVEL_DEFAULT: Final = "info"

# ============================================================================
# Monitor loop defaults
# ============================================================================

CHECK_INTERVAL_SECONDS_DEFAULT: Final = 300.0
WARMUP_SECONDS_DEFAULT: Final = 0.5
RESYNC_SECONDS_DEFAULT: Final = 0.0  # 0 disables periodic relisting

# ============================================================================
# Capacity policy defaults
# ============================================================================

CLUSTER_NAME_DEFAULT: Final = "default"
HIGH_WATERMARK_DEFAULT: Final = 0  # 0 means unset, capacity checks are skipped
LOW_WATERMARK_DEFAULT: Final = 0
MIN_INACTIVE_DAYS_DEFAULT: Final = 30
MAX_INACTIVE_DAYS_DEFAULT: Final = 60
PROTECTED_NAMESPACES_DEFAULT: Final = (
    "default",
    "kube-public",
    "kube-system",
    "logging",
    "management-infra",
    "openshift",
    "openshift-infra",
)

# Identity recorded with archive requests made by the monitor.
ARCHIVE_REQUESTER_DEFAULT: Final = "system:archivist"

__all__ = [
    "ARCHIVE_REQUESTER_DEFAULT",
    "CHECK_INTERVAL_SECONDS_DEFAULT",
    "CLUSTER_NAME_DEFAULT",
    "HIGH_WATERMARK_DEFAULT",
    "LOG_LEVEL_DEFAULT",
    "LOW_WATERMARK_DEFAULT",
    "MAX_INACTIVE_DAYS_DEFAULT",
    "MIN_INACTIVE_DAYS_DEFAULT",
    "PROTECTED_NAMESPACES_DEFAULT",
    "RESYNC_SECONDS_DEFAULT",
    "WARMUP_SECONDS_DEFAULT",
]
