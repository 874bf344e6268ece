"""Path-oriented file API over the sharded store.

:class:`FileSystem` resolves the owning shard of every path and either calls
that shard directly or, for two-path operations spanning shards, goes
through the :class:`CrossShardOrchestrator`. Text payloads are encoded and
decoded here; the shards only ever see bytes.

The module-level functions forward to a process-wide instance built from
configuration on first use.
"""

import codecs
import logging
import threading
from typing import List, Optional, Union

from shardfs.core import paths
from shardfs.core.config import DATABASE_URL, DEFAULT_ENCODING, DEFAULT_SHARD
from shardfs.core.database import ShardRegistry
from shardfs.core.errors import UnsupportedDataTypeError
from shardfs.core.orchestrator import CrossShardOrchestrator
from shardfs.core.sharding import ShardRouter
from shardfs.core.tree_store import CopyFilter
from shardfs.schemas.fs import Dirent, Stats

logger = logging.getLogger(__name__)

Data = Union[str, bytes, bytearray, memoryview]


def _check_encoding(encoding: str) -> None:
    try:
        codecs.lookup(encoding)
    except LookupError:
        raise UnsupportedDataTypeError(f"Unknown encoding {encoding!r}")


def encode(data: Data, encoding: Optional[str] = DEFAULT_ENCODING) -> bytes:
    """Bytes to store for a write payload."""
    if isinstance(data, str):
        encoding = encoding or DEFAULT_ENCODING
        _check_encoding(encoding)
        try:
            return data.encode(encoding)
        except UnicodeError as e:
            raise UnsupportedDataTypeError(f"Cannot encode data as {encoding}: {e}")
    if isinstance(data, (bytes, bytearray, memoryview)):
        return bytes(data)
    raise UnsupportedDataTypeError(f"Unsupported data type {type(data).__name__}")


def decode(content: bytes, encoding: Optional[str]) -> Union[bytes, str]:
    if not encoding:
        return content
    _check_encoding(encoding)
    try:
        return content.decode(encoding)
    except UnicodeError as e:
        raise UnsupportedDataTypeError(f"Cannot decode data as {encoding}: {e}")


class FileSystem:
    """Sharded file store with a file-system style API.

    Example:
        >>> fs = FileSystem(ShardRegistry("sqlite://"))
        >>> fs.mkdir("/Users/alice/docs", recursive=True)
        '/Users'
        >>> fs.write_file("/Users/alice/docs/a.txt", "hi")
        >>> fs.read_file("/Users/alice/docs/a.txt", "utf8")
        'hi'
    """

    def __init__(self, registry: Optional[ShardRegistry] = None, default_shard: str = DEFAULT_SHARD):
        self.registry = registry if registry is not None else ShardRegistry()
        self.router = ShardRouter(self.registry, default_shard)
        self.orchestrator = CrossShardOrchestrator(self.router)

    # Single-path operations

    def mkdir(self, path: str, recursive: bool = False, mode: Optional[int] = None) -> Optional[str]:
        path = paths.normalize(path)
        return self.router.handle_for(path).mkdir(path, recursive=recursive, mode=mode)

    def readdir(self, path: str, with_file_types: bool = False) -> Union[List[str], List[Dirent]]:
        path = paths.normalize(path)
        return self.router.handle_for(path).readdir(path, with_types=with_file_types)

    def stat(self, path: str) -> Stats:
        path = paths.normalize(path)
        return self.router.handle_for(path).stat(path)

    def exists(self, path: str) -> bool:
        path = paths.normalize(path)
        return self.router.handle_for(path).exists(path)

    def read_file(self, path: str, encoding: Optional[str] = None) -> Union[bytes, str]:
        """File content as bytes, or as text when ``encoding`` is given."""
        path = paths.normalize(path)
        content = self.router.handle_for(path).read_file_bytes(path)
        return decode(content, encoding)

    def write_file(
        self,
        path: str,
        data: Data,
        encoding: Optional[str] = DEFAULT_ENCODING,
        mode: Optional[int] = None,
    ) -> None:
        path = paths.normalize(path)
        content = encode(data, encoding)
        self.router.handle_for(path).write_file_bytes(path, content, mode=mode)

    def rm(self, path: str, recursive: bool = False, force: bool = False) -> None:
        path = paths.normalize(path)
        self.router.handle_for(path).remove(path, recursive=recursive, force=force)

    # Two-path operations

    def copy_file(self, src: str, dest: str, mode: int = 0) -> None:
        self.orchestrator.copy_file(src, dest, mode=mode)

    def cp(
        self,
        src: str,
        dest: str,
        recursive: bool = False,
        force: bool = True,
        filter: Optional[CopyFilter] = None,
    ) -> None:
        self.orchestrator.copy_tree(src, dest, recursive=recursive, force=force, filter=filter)

    def rename(self, old_path: str, new_path: str) -> None:
        self.orchestrator.rename(old_path, new_path)

    def close(self) -> None:
        self.registry.close()


_default_fs: Optional[FileSystem] = None
_default_lock = threading.Lock()


def get_fs() -> FileSystem:
    """Process-wide FileSystem; also the FastAPI dependency."""
    global _default_fs
    with _default_lock:
        if _default_fs is None:
            _default_fs = FileSystem(ShardRegistry(DATABASE_URL))
            logger.info(f"Initialized file system with database template {DATABASE_URL}")
        return _default_fs


def shutdown() -> None:
    global _default_fs
    with _default_lock:
        if _default_fs is not None:
            _default_fs.close()
            _default_fs = None


def mkdir(path: str, recursive: bool = False, mode: Optional[int] = None) -> Optional[str]:
    return get_fs().mkdir(path, recursive=recursive, mode=mode)


def readdir(path: str, with_file_types: bool = False) -> Union[List[str], List[Dirent]]:
    return get_fs().readdir(path, with_file_types=with_file_types)


def stat(path: str) -> Stats:
    return get_fs().stat(path)


def exists(path: str) -> bool:
    return get_fs().exists(path)


def read_file(path: str, encoding: Optional[str] = None) -> Union[bytes, str]:
    return get_fs().read_file(path, encoding=encoding)


def write_file(path: str, data: Data, encoding: Optional[str] = DEFAULT_ENCODING, mode: Optional[int] = None) -> None:
    get_fs().write_file(path, data, encoding=encoding, mode=mode)


def copy_file(src: str, dest: str, mode: int = 0) -> None:
    get_fs().copy_file(src, dest, mode=mode)


def cp(src: str, dest: str, recursive: bool = False, force: bool = True, filter: Optional[CopyFilter] = None) -> None:
    get_fs().cp(src, dest, recursive=recursive, force=force, filter=filter)


def rename(old_path: str, new_path: str) -> None:
    get_fs().rename(old_path, new_path)


def rm(path: str, recursive: bool = False, force: bool = False) -> None:
    get_fs().rm(path, recursive=recursive, force=force)
