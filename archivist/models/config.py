"""Archivist configuration models and loader.

Configuration files are YAML with camelCase keys (snake_case is accepted too).
Values are validated once at load time and are immutable afterwards.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic.alias_generators import to_camel

from archivist.constants.defaults import (
    CHECK_INTERVAL_SECONDS_DEFAULT,
    CLUSTER_NAME_DEFAULT,
    HIGH_WATERMARK_DEFAULT,
    LOG_LEVEL_DEFAULT,
    LOW_WATERMARK_DEFAULT,
    MAX_INACTIVE_DAYS_DEFAULT,
    MIN_INACTIVE_DAYS_DEFAULT,
    PROTECTED_NAMESPACES_DEFAULT,
    RESYNC_SECONDS_DEFAULT,
    WARMUP_SECONDS_DEFAULT,
)
from archivist.exceptions import ConfigLoadError, ConfigValidationError

logger = logging.getLogger(__name__)

LOG_LEVELS = ("debug", "info", "warning", "error")


class _ConfigModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="forbid",
    )


class CapacityPolicy(_ConfigModel):
    """Watermarks and inactivity windows used to pick namespaces to archive.

    A watermark of 0 means unset; capacity checks are skipped until both are
    configured. ``max_inactive_days`` is the older cutoff and may not be
    smaller than ``min_inactive_days``.
    """

    high_watermark: int = Field(default=HIGH_WATERMARK_DEFAULT, ge=0)
    low_watermark: int = Field(default=LOW_WATERMARK_DEFAULT, ge=0)
    min_inactive_days: int = Field(default=MIN_INACTIVE_DAYS_DEFAULT, ge=0)
    max_inactive_days: int = Field(default=MAX_INACTIVE_DAYS_DEFAULT, ge=0)
    protected_namespaces: frozenset[str] = frozenset(PROTECTED_NAMESPACES_DEFAULT)

    @model_validator(mode="after")
    def _validate_inactive_window(self) -> CapacityPolicy:
        if self.max_inactive_days < self.min_inactive_days:
            raise ValueError(
                f"maxInactiveDays ({self.max_inactive_days}) must be >= "
                f"minInactiveDays ({self.min_inactive_days})"
            )
        return self

    @property
    def watermarks_inverted(self) -> bool:
        """True when both watermarks are set and low is above high."""
        return (
            self.high_watermark > 0
            and self.low_watermark > 0
            and self.high_watermark < self.low_watermark
        )

    def is_protected(self, namespace: str) -> bool:
        return namespace in self.protected_namespaces


class NamespaceCapacity(_ConfigModel):
    """Namespace count thresholds for one cluster."""

    high_watermark: int = Field(default=HIGH_WATERMARK_DEFAULT, ge=0)
    low_watermark: int = Field(default=LOW_WATERMARK_DEFAULT, ge=0)


class ClusterConfig(_ConfigModel):
    """Settings for one monitored cluster."""

    name: str = CLUSTER_NAME_DEFAULT
    context: str | None = None
    namespace_capacity: NamespaceCapacity = Field(default_factory=NamespaceCapacity)
    min_inactive_days: int = Field(default=MIN_INACTIVE_DAYS_DEFAULT, ge=0)
    max_inactive_days: int = Field(default=MAX_INACTIVE_DAYS_DEFAULT, ge=0)
    protected_namespaces: list[str] = Field(
        default_factory=lambda: list(PROTECTED_NAMESPACES_DEFAULT)
    )

    @property
    def policy(self) -> CapacityPolicy:
        return CapacityPolicy(
            high_watermark=self.namespace_capacity.high_watermark,
            low_watermark=self.namespace_capacity.low_watermark,
            min_inactive_days=self.min_inactive_days,
            max_inactive_days=self.max_inactive_days,
            protected_namespaces=frozenset(self.protected_namespaces),
        )

    @model_validator(mode="after")
    def _validate_inactive_window(self) -> ClusterConfig:
        if self.max_inactive_days < self.min_inactive_days:
            raise ValueError(
                f"cluster {self.name}: maxInactiveDays ({self.max_inactive_days}) "
                f"must be >= minInactiveDays ({self.min_inactive_days})"
            )
        return self


class ArchivistConfig(_ConfigModel):
    """Top-level archivist configuration."""

    log_level: str = LOG_LEVEL_DEFAULT
    check_interval_seconds: float = Field(default=CHECK_INTERVAL_SECONDS_DEFAULT, gt=0)
    warmup_seconds: float = Field(default=WARMUP_SECONDS_DEFAULT, ge=0)
    resync_seconds: float = Field(default=RESYNC_SECONDS_DEFAULT, ge=0)
    clusters: list[ClusterConfig] = Field(default_factory=lambda: [ClusterConfig()])

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = str(value).strip().lower()
        if normalized not in LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}, expected one of {LOG_LEVELS}")
        return normalized

    @field_validator("clusters")
    @classmethod
    def _validate_clusters(cls, value: list[ClusterConfig]) -> list[ClusterConfig]:
        if not value:
            raise ValueError("at least one cluster must be configured")
        return value


def default_config() -> ArchivistConfig:
    """Return the built-in configuration used when no file is given."""
    return ArchivistConfig()


def parse_config(data: dict[str, Any]) -> ArchivistConfig:
    """Validate a configuration mapping.

    Raises:
        ConfigValidationError: if any value is invalid.
    """
    try:
        config = ArchivistConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigValidationError(f"invalid configuration: {exc}") from exc

    for cluster in config.clusters:
        if cluster.policy.watermarks_inverted:
            # Accepted as given; the capacity check handles it without special casing.
            logger.warning(
                "cluster %s: highWatermark (%d) is below lowWatermark (%d)",
                cluster.name,
                cluster.namespace_capacity.high_watermark,
                cluster.namespace_capacity.low_watermark,
            )
    return config


def load_config(path: str | Path) -> ArchivistConfig:
    """Load and validate a YAML configuration file.

    Raises:
        ConfigLoadError: if the file cannot be read or is not a YAML mapping.
        ConfigValidationError: if any value is invalid.
    """
    config_path = Path(path)
    try:
        with open(config_path, encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigLoadError(f"cannot read configuration {config_path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigLoadError(f"cannot parse configuration {config_path}: {exc}") from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigLoadError(f"configuration {config_path} must be a mapping")
    return parse_config(data)


__all__ = [
    "LOG_LEVELS",
    "ArchivistConfig",
    "CapacityPolicy",
    "ClusterConfig",
    "NamespaceCapacity",
    "default_config",
    "load_config",
    "parse_config",
]
