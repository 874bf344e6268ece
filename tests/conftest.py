"""Shared fixtures for shardfs tests."""

import pytest

from shardfs.core import tree_store
from shardfs.core.database import ShardRegistry
from shardfs.core.fs import FileSystem


@pytest.fixture
def registry():
    """Registry whose shards each get a private in-memory database."""
    registry = ShardRegistry("sqlite://")
    yield registry
    registry.close()


@pytest.fixture
def fs(registry):
    """FileSystem over the in-memory registry."""
    return FileSystem(registry)


@pytest.fixture
def shard(registry):
    """Handle of the default shard, for exercising tree operations directly."""
    return registry.get("default")


@pytest.fixture
def file_registry_url(tmp_path):
    """URL template putting each shard in its own sqlite file under tmp_path."""
    return f"sqlite:///{tmp_path}/shards/{{shard}}.db"


@pytest.fixture
def clock(monkeypatch):
    """Controllable clock for timestamp assertions.

    Set ``clock.now`` to the unix time the store should see next.
    """
    class Clock:
        now = 1_000

    c = Clock()
    monkeypatch.setattr(tree_store, "_now", lambda: c.now)
    return c
