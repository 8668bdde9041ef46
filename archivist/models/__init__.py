"""Data models for archivist."""

from archivist.models.activity import LastActivity
from archivist.models.config import (
    ArchivistConfig,
    CapacityPolicy,
    ClusterConfig,
    NamespaceCapacity,
    default_config,
    load_config,
)
from archivist.models.resources import Build, Namespace, ReplicationController

__all__ = [
    "ArchivistConfig",
    "Build",
    "CapacityPolicy",
    "ClusterConfig",
    "LastActivity",
    "Namespace",
    "NamespaceCapacity",
    "ReplicationController",
    "default_config",
    "load_config",
]
