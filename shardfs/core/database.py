# shardfs/core/database.py

import logging
import os
import threading
from typing import Callable, Dict, List, Optional, TypeVar, Union
from urllib.parse import quote

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shardfs.core.config import DATABASE_URL, SQL_ECHO
from shardfs.core.tree_store import CopyFilter, TreeStore
from shardfs.models.base import Base
from shardfs.schemas.fs import Dirent, Stats

logger = logging.getLogger(__name__)

T = TypeVar("T")


def shard_url(url_template: str, shard_id: str) -> str:
    """Database URL of one shard."""
    return url_template.replace("{shard}", quote(shard_id, safe=""))


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def create_shard_engine(url: str, echo: bool = SQL_ECHO) -> Engine:
    """Engine for one shard store, creating the sqlite directory when needed."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return create_engine(url, echo=echo)

    if _is_memory_sqlite(url):
        # One shared connection keeps the in-memory database alive
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    directory = os.path.dirname(os.path.abspath(parsed.database))
    os.makedirs(directory, exist_ok=True)
    return create_engine(
        url,
        echo=echo,
        connect_args={"check_same_thread": False}  # only needed for SQLite
    )


class ShardHandle:
    """Entry point to one shard's store.

    Each call runs one tree operation in its own transaction, and calls are
    serialized so a shard processes one operation at a time.
    """

    def __init__(self, shard_id: str, engine: Engine):
        self.shard_id = shard_id
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
        self._lock = threading.RLock()

    def init_db(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def run(self, operation: Callable[[TreeStore], T]) -> T:
        """Run ``operation`` against this shard inside one transaction."""
        with self._lock:
            with self._session_factory.begin() as session:
                return operation(TreeStore(session))

    def exists(self, path: str) -> bool:
        return self.run(lambda store: store.exists(path))

    def mkdir(self, path: str, recursive: bool = False, mode: Optional[int] = None) -> Optional[str]:
        return self.run(lambda store: store.mkdir(path, recursive=recursive, mode=mode))

    def readdir(self, path: str, with_types: bool = False) -> Union[List[str], List[Dirent]]:
        return self.run(lambda store: store.readdir(path, with_types=with_types))

    def stat(self, path: str) -> Stats:
        return self.run(lambda store: store.stat(path))

    def read_file_bytes(self, path: str) -> bytes:
        return self.run(lambda store: store.read_file_bytes(path))

    def write_file_bytes(self, path: str, data: bytes, mode: Optional[int] = None) -> None:
        self.run(lambda store: store.write_file_bytes(path, data, mode=mode))

    def copy_file(self, src: str, dest: str, mode: int = 0) -> None:
        self.run(lambda store: store.copy_file(src, dest, mode=mode))

    def copy_tree(
        self,
        src: str,
        dest: str,
        recursive: bool = False,
        force: bool = True,
        filter: Optional[CopyFilter] = None,
    ) -> None:
        self.run(lambda store: store.copy_tree(src, dest, recursive=recursive, force=force, filter=filter))

    def rename(self, old_path: str, new_path: str) -> None:
        self.run(lambda store: store.rename(old_path, new_path))

    def remove(self, path: str, recursive: bool = False, force: bool = False) -> None:
        self.run(lambda store: store.remove(path, recursive=recursive, force=force))

    def close(self) -> None:
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"<ShardHandle {self.shard_id!r}>"


class ShardRegistry:
    """Handle table keyed by shard id.

    Handles are created on first use and live until :meth:`close`. The same
    shard id always maps to the same store.
    """

    def __init__(self, url_template: str = DATABASE_URL, echo: bool = SQL_ECHO):
        if "{shard}" not in url_template and not _is_memory_sqlite(url_template):
            raise ValueError(f"Database URL must contain a {{shard}} placeholder: {url_template}")
        self.url_template = url_template
        self.echo = echo
        self._handles: Dict[str, ShardHandle] = {}
        self._lock = threading.Lock()

    def get(self, shard_id: str) -> ShardHandle:
        with self._lock:
            handle = self._handles.get(shard_id)
            if handle is None:
                url = shard_url(self.url_template, shard_id)
                handle = ShardHandle(shard_id, create_shard_engine(url, echo=self.echo))
                handle.init_db()
                self._handles[shard_id] = handle
                logger.info(f"Opened shard {shard_id!r} at {make_url(url).render_as_string(hide_password=True)}")
            return handle

    def shard_ids(self) -> List[str]:
        with self._lock:
            return sorted(self._handles)

    def close(self) -> None:
        with self._lock:
            for handle in self._handles.values():
                handle.close()
            count = len(self._handles)
            self._handles.clear()
        logger.info(f"Closed {count} shard handle(s)")

    def __enter__(self) -> "ShardRegistry":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
