"""Last activity records produced by the capacity check."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from archivist.models.resources import Namespace


class LastActivity(BaseModel):
    """A namespace paired with its computed last activity time."""

    model_config = ConfigDict(frozen=True)

    namespace: Namespace
    time: datetime

    @property
    def name(self) -> str:
        return self.namespace.name
