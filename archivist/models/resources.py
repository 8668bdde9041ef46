"""Mirrored Kubernetes/OpenShift resource models.

Only the fields the capacity check needs are kept. Each model is built from
the raw API JSON with ``from_api``.
"""

from __future__ import annotations

from contextlib import suppress
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict


def parse_timestamp(timestamp: Any) -> datetime | None:
    """Parse kubernetes RFC3339 timestamp strings into aware datetimes."""
    if isinstance(timestamp, datetime):
        return timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)
    if not isinstance(timestamp, str) or not timestamp:
        return None
    with suppress(ValueError, TypeError):
        parsed = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _metadata(obj: dict[str, Any]) -> dict[str, Any]:
    return obj.get("metadata") or {}


class Namespace(BaseModel):
    """Cluster-scoped tenant namespace (OpenShift project)."""

    model_config = ConfigDict(frozen=True)

    name: str
    creation_timestamp: datetime | None = None
    resource_version: str = ""

    @classmethod
    def from_api(cls, obj: dict[str, Any]) -> Namespace:
        meta = _metadata(obj)
        return cls(
            name=meta.get("name", ""),
            creation_timestamp=parse_timestamp(meta.get("creationTimestamp")),
            resource_version=str(meta.get("resourceVersion", "")),
        )


class Build(BaseModel):
    """OpenShift build; its start time is an activity signal."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    # None while the build has not started yet
    start_timestamp: datetime | None = None
    resource_version: str = ""

    @classmethod
    def from_api(cls, obj: dict[str, Any]) -> Build:
        meta = _metadata(obj)
        status = obj.get("status") or {}
        return cls(
            namespace=meta.get("namespace", ""),
            name=meta.get("name", ""),
            start_timestamp=parse_timestamp(status.get("startTimestamp")),
            resource_version=str(meta.get("resourceVersion", "")),
        )


class ReplicationController(BaseModel):
    """Replication controller; its creation time is an activity signal."""

    model_config = ConfigDict(frozen=True)

    namespace: str
    name: str
    creation_timestamp: datetime | None = None
    resource_version: str = ""

    @classmethod
    def from_api(cls, obj: dict[str, Any]) -> ReplicationController:
        meta = _metadata(obj)
        return cls(
            namespace=meta.get("namespace", ""),
            name=meta.get("name", ""),
            creation_timestamp=parse_timestamp(meta.get("creationTimestamp")),
            resource_version=str(meta.get("resourceVersion", "")),
        )


__all__ = [
    "Build",
    "Namespace",
    "ReplicationController",
    "parse_timestamp",
]
