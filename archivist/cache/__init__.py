"""Local mirrors of remote resource collections."""

from archivist.cache.indexer import Indexer, meta_namespace_key, namespace_of
from archivist.cache.informer import Informer

__all__ = [
    "Indexer",
    "Informer",
    "meta_namespace_key",
    "namespace_of",
]
