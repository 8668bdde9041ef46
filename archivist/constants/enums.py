"""All enum definitions for archivist."""

from enum import Enum


class MonitorState(Enum):
    """Lifecycle states of the cluster monitor."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"


class WatchEventType(Enum):
    """Event types emitted by a Kubernetes watch stream."""

    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"
    BOOKMARK = "BOOKMARK"
    ERROR = "ERROR"


class ResourceKind(Enum):
    """Resource kinds mirrored by the monitor, with their list API paths."""

    NAMESPACE = "/api/v1/namespaces"
    BUILD = "/apis/build.openshift.io/v1/builds"
    REPLICATION_CONTROLLER = "/api/v1/replicationcontrollers"

    @property
    def api_path(self) -> str:
        return self.value


__all__ = [
    "MonitorState",
    "ResourceKind",
    "WatchEventType",
]
