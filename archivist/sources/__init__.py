"""Remote resource list/watch sources."""

from archivist.sources.base import ListResult, ListWatch, WatchEvent
from archivist.sources.fake import FakeListWatch
from archivist.sources.kubectl import KubectlListWatch, check_cluster_connection

__all__ = [
    "FakeListWatch",
    "KubectlListWatch",
    "ListResult",
    "ListWatch",
    "WatchEvent",
    "check_cluster_connection",
]
