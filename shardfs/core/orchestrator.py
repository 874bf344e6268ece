"""Copy and move between shards.

Shards share no transaction, so these operations are sequences of
independent per-shard calls. A failure leaves whatever the completed steps
produced: a move that fails after its copy leaves the entry in both shards,
and a recursive copy that fails midway leaves a partial destination subtree.
Nothing is rolled back.
"""

import logging
from typing import Optional

from shardfs.core import paths
from shardfs.core.config import COPYFILE_EXCL
from shardfs.core.database import ShardHandle
from shardfs.core.errors import (
    AlreadyExistsError,
    InvalidPathError,
    NotADirError,
    NotAFileError,
    NotEmptyError,
    RecursionRequiredError,
)
from shardfs.core.sharding import ShardRouter
from shardfs.core.tree_store import CopyFilter
from shardfs.schemas.fs import Stats

logger = logging.getLogger(__name__)


class CrossShardOrchestrator:
    """Emulates copy, recursive copy and move across shard handles."""

    def __init__(self, router: ShardRouter):
        self.router = router

    def _ensure_parent(self, handle: ShardHandle, path: str) -> None:
        parent_path = paths.parent(path)
        if parent_path is None or handle.exists(parent_path):
            return
        handle.mkdir(parent_path, recursive=True)

    def _transfer(self, src_handle: ShardHandle, src: str, stats: Stats, dest_handle: ShardHandle, dest: str) -> None:
        content = src_handle.read_file_bytes(src)
        self._ensure_parent(dest_handle, dest)
        dest_handle.write_file_bytes(dest, content, mode=stats.mode)

    def _clear_move_target(self, stats: Stats, handle: ShardHandle, target: str) -> None:
        if not handle.exists(target):
            return
        existing = handle.stat(target)
        if existing.is_directory and not stats.is_directory:
            raise NotAFileError("Destination is a directory", target)
        if stats.is_directory and not existing.is_directory:
            raise NotADirError("Destination is not a directory", target)
        if existing.is_directory and handle.readdir(target):
            raise NotEmptyError("Destination directory not empty", target)
        handle.remove(target)

    def copy_file(self, src: str, dest: str, mode: int = 0) -> None:
        src = paths.normalize(src)
        dest = paths.normalize(dest)
        src_handle = self.router.handle_for(src)
        if self.router.same_shard(src, dest):
            src_handle.copy_file(src, dest, mode=mode)
            return

        dest_handle = self.router.handle_for(dest)
        stats = src_handle.stat(src)
        if stats.is_directory:
            raise NotAFileError("Source is not a file", src)
        if mode & COPYFILE_EXCL and dest_handle.exists(dest):
            raise AlreadyExistsError("Destination already exists", dest)
        self._transfer(src_handle, src, stats, dest_handle, dest)
        logger.debug(f"Copied {src} ({src_handle.shard_id}) to {dest} ({dest_handle.shard_id})")

    def copy_tree(
        self,
        src: str,
        dest: str,
        recursive: bool = False,
        force: bool = True,
        filter: Optional[CopyFilter] = None,
    ) -> None:
        """Copy a file or directory, dispatching every child to its own shard pair.

        Directories are created before their children, children are copied
        depth-first in name order.
        """
        src = paths.normalize(src)
        dest = paths.normalize(dest)
        src_handle = self.router.handle_for(src)
        if self.router.same_shard(src, dest):
            src_handle.copy_tree(src, dest, recursive=recursive, force=force, filter=filter)
            return

        dest_handle = self.router.handle_for(dest)
        stats = src_handle.stat(src)
        if filter is not None and not filter(src, dest):
            return

        if not stats.is_directory:
            if not force and dest_handle.exists(dest):
                return
            self._transfer(src_handle, src, stats, dest_handle, dest)
            return

        if not recursive:
            raise RecursionRequiredError("Cannot copy directory without recursive option", src)
        if paths.is_within(dest, src):
            raise InvalidPathError(f"Cannot copy {src} into itself", dest)

        dest_handle.mkdir(dest, recursive=True, mode=stats.mode)
        for child in src_handle.readdir(src):
            self.copy_tree(paths.join(src, child), paths.join(dest, child), recursive, force, filter)

    def rename(self, old_path: str, new_path: str) -> None:
        """Move by copying into the destination shard, then removing the source."""
        old_path = paths.normalize(old_path)
        new_path = paths.normalize(new_path)
        old_handle = self.router.handle_for(old_path)
        if self.router.same_shard(old_path, new_path):
            old_handle.rename(old_path, new_path)
            return
        if paths.ROOT in (old_path, new_path):
            raise InvalidPathError("Cannot rename the root directory", old_path)
        if paths.is_within(new_path, old_path):
            raise InvalidPathError(f"Cannot move {old_path} into itself", new_path)

        stats = old_handle.stat(old_path)
        self._clear_move_target(stats, self.router.handle_for(new_path), new_path)
        logger.info(f"Moving {old_path} ({old_handle.shard_id}) to {new_path} ({self.router.shard_of(new_path)})")
        self.copy_tree(old_path, new_path, recursive=True)
        try:
            old_handle.remove(old_path, recursive=True)
        except Exception:
            logger.warning(f"Copied {old_path} to {new_path} but could not remove the source; both now exist")
            raise
        logger.info(f"Moved {old_path} to {new_path}")
