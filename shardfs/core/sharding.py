"""Mapping of paths to the shard that owns them.

``/Users/<name>/...`` belongs to shard ``<name>``; everything else lives in
the default shard. The mapping is a pure function of the normalized path.
"""

from shardfs.core import paths
from shardfs.core.config import DEFAULT_SHARD, USERS_PREFIX
from shardfs.core.database import ShardHandle, ShardRegistry


def shard_of(path: str, default: str = DEFAULT_SHARD) -> str:
    """Shard id owning ``path``.

    Examples:
        shard_of("/Users/alice/notes.txt") -> "alice"
        shard_of("/Users/alice") -> "alice"
        shard_of("/tmp/x") -> "default"
        shard_of("/Users") -> "default"
    """
    path = paths.normalize(path)
    if not path.startswith(USERS_PREFIX):
        return default
    return path[len(USERS_PREFIX):].split("/", 1)[0]


class ShardRouter:
    """Resolves paths to shard handles from an explicit registry."""

    def __init__(self, registry: ShardRegistry, default_shard: str = DEFAULT_SHARD):
        self.registry = registry
        self.default_shard = default_shard

    def shard_of(self, path: str) -> str:
        return shard_of(path, self.default_shard)

    def handle(self, shard_id: str) -> ShardHandle:
        return self.registry.get(shard_id)

    def handle_for(self, path: str) -> ShardHandle:
        return self.handle(self.shard_of(path))

    def same_shard(self, path_a: str, path_b: str) -> bool:
        return self.shard_of(path_a) == self.shard_of(path_b)
