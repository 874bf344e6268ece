"""Directory tree kept in a single ``files`` table.

A :class:`TreeStore` wraps one SQLAlchemy session of one shard. The caller
owns the transaction: every public method is meant to run inside a single
``session.begin()`` block so a failed operation commits nothing.

Parent/child integrity is checked procedurally. Subtree scans use an escaped
prefix match on ``<path>/`` so that ``/a/b`` never captures ``/a/b2``.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from sqlalchemy import delete, func, literal, select, update, String
from sqlalchemy.orm import Session

from shardfs.core import paths
from shardfs.core.config import COPYFILE_EXCL, DEFAULT_DIR_MODE, DEFAULT_FILE_MODE
from shardfs.core.errors import (
    AlreadyExistsError,
    InvalidPathError,
    NotADirError,
    NotAFileError,
    NotEmptyError,
    NotFoundError,
    ParentMissingError,
    RecursionRequiredError,
)
from shardfs.models.entry import DIRECTORY, FILE, Entry
from shardfs.schemas.fs import Dirent, Stats

logger = logging.getLogger(__name__)

CopyFilter = Callable[[str, str], bool]


def _now() -> int:
    return int(time.time())


def _timestamp(seconds: int) -> datetime:
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


class TreeStore:
    """Tree operations for the entries of one shard."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _get(self, path: str) -> Optional[Entry]:
        return self.session.get(Entry, path)

    def _children(self, path: str) -> List[Entry]:
        stmt = select(Entry).where(Entry.parent_path == path).order_by(Entry.name)
        return list(self.session.scalars(stmt))

    def _has_children(self, path: str) -> bool:
        stmt = select(func.count()).select_from(Entry).where(Entry.parent_path == path)
        return self.session.scalar(stmt) > 0

    def _descendants_clause(self, path: str):
        return Entry.path.startswith(paths.descendant_prefix(path), autoescape=True)

    def _require_parent_dir(self, path: str) -> str:
        """Return the parent of ``path``, failing unless it is an existing directory."""
        parent_path = paths.parent(path)
        if parent_path is None:
            raise InvalidPathError("Root has no parent", path)
        if parent_path == paths.ROOT:
            return parent_path
        parent = self._get(parent_path)
        if parent is None or not parent.is_directory:
            raise ParentMissingError("Parent directory does not exist", parent_path)
        return parent_path

    def _delete_descendants(self, path: str) -> int:
        result = self.session.execute(
            delete(Entry)
            .where(self._descendants_clause(path))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def exists(self, path: str) -> bool:
        path = paths.normalize(path)
        if path == paths.ROOT:
            return True
        return self._get(path) is not None

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def mkdir(self, path: str, recursive: bool = False, mode: Optional[int] = None) -> Optional[str]:
        """Create a directory.

        Returns the shallowest directory actually created, or None when the
        directory was already there.
        """
        path = paths.normalize(path)
        if path == paths.ROOT:
            return None

        existing = self._get(path)
        if existing is not None:
            if existing.is_directory:
                return None
            raise AlreadyExistsError("File exists and is not a directory", path)

        parent_path = paths.parent(path)
        first_created = None
        if parent_path != paths.ROOT:
            parent = self._get(parent_path)
            if parent is None:
                if not recursive:
                    raise ParentMissingError("Parent directory does not exist", parent_path)
                first_created = self.mkdir(parent_path, recursive=True, mode=mode)
            elif not parent.is_directory:
                raise NotADirError("Parent is not a directory", parent_path)

        now = _now()
        self.session.add(Entry(
            path=path,
            parent_path=parent_path,
            name=paths.name(path),
            kind=DIRECTORY,
            content=None,
            size=0,
            mode=DEFAULT_DIR_MODE if mode is None else mode,
            uid=0,
            gid=0,
            mtime=now,
            ctime=now,
            atime=now,
        ))
        self.session.flush()
        logger.debug(f"Created directory {path}")
        return first_created or path

    def readdir(self, path: str, with_types: bool = False) -> Union[List[str], List[Dirent]]:
        """Direct children of a directory, sorted by name."""
        path = paths.normalize(path)
        if path != paths.ROOT:
            directory = self._get(path)
            if directory is None:
                raise NotFoundError("Directory does not exist", path)
            if not directory.is_directory:
                raise NotADirError("Not a directory", path)

        children = self._children(path)
        if with_types:
            return [
                Dirent(name=child.name, is_file=child.is_file, is_directory=child.is_directory)
                for child in children
            ]
        return [child.name for child in children]

    # ------------------------------------------------------------------
    # Metadata and content
    # ------------------------------------------------------------------

    def stat(self, path: str) -> Stats:
        path = paths.normalize(path)
        if path == paths.ROOT:
            epoch = _timestamp(0)
            return Stats(
                is_file=False,
                is_directory=True,
                size=0,
                mode=DEFAULT_DIR_MODE,
                mtime=epoch,
                ctime=epoch,
                atime=epoch,
            )

        entry = self._get(path)
        if entry is None:
            raise NotFoundError("File does not exist", path)
        return Stats(
            is_file=entry.is_file,
            is_directory=entry.is_directory,
            size=entry.size,
            mode=entry.mode,
            uid=entry.uid,
            gid=entry.gid,
            mtime=_timestamp(entry.mtime),
            ctime=_timestamp(entry.ctime),
            atime=_timestamp(entry.atime),
        )

    def read_file_bytes(self, path: str) -> bytes:
        """File content. Touches atime."""
        path = paths.normalize(path)
        if path == paths.ROOT:
            raise NotAFileError("Not a file", path)

        entry = self._get(path)
        if entry is None:
            raise NotFoundError("File does not exist", path)
        if not entry.is_file:
            raise NotAFileError("Not a file", path)

        entry.atime = _now()
        self.session.flush()
        return bytes(entry.content or b"")

    def write_file_bytes(self, path: str, data: bytes, mode: Optional[int] = None) -> None:
        """Create or overwrite a file. An overwrite keeps ctime, uid and gid."""
        path = paths.normalize(path)
        if path == paths.ROOT:
            raise NotAFileError("Cannot write to a directory", path)
        parent_path = self._require_parent_dir(path)

        data = bytes(data)
        now = _now()
        existing = self._get(path)
        if existing is not None:
            if existing.is_directory:
                raise NotAFileError("Cannot write to a directory", path)
            existing.content = data
            existing.size = len(data)
            if mode is not None:
                existing.mode = mode
            existing.mtime = now
            existing.atime = now
        else:
            self.session.add(Entry(
                path=path,
                parent_path=parent_path,
                name=paths.name(path),
                kind=FILE,
                content=data,
                size=len(data),
                mode=DEFAULT_FILE_MODE if mode is None else mode,
                uid=0,
                gid=0,
                mtime=now,
                ctime=now,
                atime=now,
            ))
        self.session.flush()
        logger.debug(f"Wrote {len(data)} bytes to {path}")

    # ------------------------------------------------------------------
    # Copy
    # ------------------------------------------------------------------

    def copy_file(self, src: str, dest: str, mode: int = 0) -> None:
        """Copy one file, replacing ``dest`` if it is a file."""
        src = paths.normalize(src)
        dest = paths.normalize(dest)

        source = None if src == paths.ROOT else self._get(src)
        if source is None:
            raise NotFoundError("Source file not found", src)
        if not source.is_file:
            raise NotAFileError("Source is not a file", src)
        if dest == paths.ROOT:
            raise NotAFileError("Destination is a directory", dest)

        parent_path = self._require_parent_dir(dest)
        target = self._get(dest)
        if target is not None:
            if target.is_directory:
                raise NotAFileError("Destination is a directory", dest)
            if mode & COPYFILE_EXCL:
                raise AlreadyExistsError("Destination already exists", dest)
        if src == dest:
            return

        now = _now()
        if target is None:
            target = Entry(path=dest, parent_path=parent_path, name=paths.name(dest), kind=FILE)
            self.session.add(target)
        target.content = source.content
        target.size = source.size
        target.mode = source.mode
        target.uid = source.uid
        target.gid = source.gid
        target.mtime = now
        target.ctime = now
        target.atime = now
        self.session.flush()
        logger.debug(f"Copied {src} to {dest}")

    def copy_tree(
        self,
        src: str,
        dest: str,
        recursive: bool = False,
        force: bool = True,
        filter: Optional[CopyFilter] = None,
    ) -> None:
        """Copy a file, or a directory with everything below it.

        ``force=False`` leaves files that already exist at the destination
        untouched. ``filter(src, dest)`` returning False skips that entry and,
        for directories, its whole subtree.
        """
        src = paths.normalize(src)
        dest = paths.normalize(dest)

        if src == paths.ROOT:
            is_directory = True
        else:
            source = self._get(src)
            if source is None:
                raise NotFoundError("Source does not exist", src)
            is_directory = source.is_directory

        if filter is not None and not filter(src, dest):
            return

        if not is_directory:
            if not force and self.exists(dest):
                return
            self.copy_file(src, dest)
            return

        if not recursive:
            raise RecursionRequiredError("Cannot copy directory without recursive option", src)
        if paths.is_within(dest, src):
            raise InvalidPathError(f"Cannot copy {src} into itself", dest)

        self.mkdir(dest, recursive=True, mode=self.stat(src).mode)
        for child in self._children(src):
            self.copy_tree(child.path, paths.join(dest, child.name), recursive, force, filter)

    # ------------------------------------------------------------------
    # Rename / remove
    # ------------------------------------------------------------------

    def _clear_rename_target(self, entry: Entry, target: Entry) -> None:
        if entry.is_file and target.is_directory:
            raise NotAFileError("Destination is a directory", target.path)
        if entry.is_directory and target.is_file:
            raise NotADirError("Destination is not a directory", target.path)
        if target.is_directory and self._has_children(target.path):
            raise NotEmptyError("Destination directory not empty", target.path)
        self.session.delete(target)
        self.session.flush()

    def rename(self, old_path: str, new_path: str) -> None:
        """Move an entry and, for directories, retarget every descendant."""
        old_path = paths.normalize(old_path)
        new_path = paths.normalize(new_path)
        if paths.ROOT in (old_path, new_path):
            raise InvalidPathError("Cannot rename the root directory", old_path)

        entry = self._get(old_path)
        if entry is None:
            raise NotFoundError("Source does not exist", old_path)
        if old_path == new_path:
            return
        if paths.is_within(new_path, old_path):
            raise InvalidPathError(f"Cannot move {old_path} into itself", new_path)

        new_parent = self._require_parent_dir(new_path)
        target = self._get(new_path)
        if target is not None:
            self._clear_rename_target(entry, target)

        was_directory = entry.is_directory
        self.session.expunge(entry)
        self.session.execute(
            update(Entry)
            .where(Entry.path == old_path)
            .values(path=new_path, parent_path=new_parent, name=paths.name(new_path), mtime=_now())
            .execution_options(synchronize_session=False)
        )

        moved = 0
        if was_directory:
            # Every descendant's parent_path is old_path or lies below it, so the
            # same prefix substitution applies to both columns.
            offset = len(old_path) + 1
            result = self.session.execute(
                update(Entry)
                .where(self._descendants_clause(old_path))
                .values(
                    path=literal(new_path, String) + func.substr(Entry.path, offset, type_=String),
                    parent_path=literal(new_path, String) + func.substr(Entry.parent_path, offset, type_=String),
                )
                .execution_options(synchronize_session=False)
            )
            moved = result.rowcount
        logger.debug(f"Renamed {old_path} to {new_path} ({moved} descendants)")

    def remove(self, path: str, recursive: bool = False, force: bool = False) -> None:
        path = paths.normalize(path)
        if path == paths.ROOT:
            if self._has_children(path) and not recursive:
                raise NotEmptyError("Directory not empty", path)
            self.session.expunge_all()
            removed = self._delete_descendants(path)
            logger.debug(f"Cleared shard root ({removed} entries)")
            return

        entry = self._get(path)
        if entry is None:
            if force:
                return
            raise NotFoundError("File does not exist", path)

        removed = 0
        if entry.is_directory:
            if not recursive:
                if self._has_children(path):
                    raise NotEmptyError("Directory not empty", path)
            else:
                removed = self._delete_descendants(path)

        self.session.delete(entry)
        self.session.flush()
        logger.debug(f"Removed {path} ({removed} descendants)")
