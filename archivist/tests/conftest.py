"""Shared fixtures for archivist tests."""

from __future__ import annotations

import pytest

from archivist.cache.indexer import Indexer, meta_namespace_key, namespace_of
from archivist.models.resources import Build, Namespace, ReplicationController


@pytest.fixture
def namespace_indexer() -> Indexer[Namespace]:
    return Indexer(lambda namespace: namespace.name, None)


@pytest.fixture
def build_indexer() -> Indexer[Build]:
    return Indexer(meta_namespace_key, namespace_of)


@pytest.fixture
def rc_indexer() -> Indexer[ReplicationController]:
    return Indexer(meta_namespace_key, namespace_of)
