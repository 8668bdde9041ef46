"""Exception hierarchy for archivist."""

from __future__ import annotations


class ArchivistError(Exception):
    """Base exception for all archivist errors."""


class ConfigError(ArchivistError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when a configuration file cannot be read or parsed."""


class ConfigValidationError(ConfigError):
    """Raised when configuration values are semantically invalid."""


class IndexLookupError(ArchivistError):
    """Raised when an indexer cannot answer a lookup."""


class NamespaceNotFoundError(ArchivistError):
    """Raised when a namespace is not present in the local cache."""

    def __init__(self, namespace: str) -> None:
        super().__init__(f"namespace does not exist in cache: {namespace}")
        self.namespace = namespace


class ListWatchError(ArchivistError):
    """Raised when listing or watching a remote resource fails."""


class WatchExpiredError(ListWatchError):
    """Raised when the watch resource version is too old and a relist is needed."""


__all__ = [
    "ArchivistError",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "IndexLookupError",
    "ListWatchError",
    "NamespaceNotFoundError",
    "WatchExpiredError",
]
