"""Path helpers.

Every path handled by the store is absolute and ``/``-separated. Anything
that looks up or mutates an entry goes through :func:`normalize` first so a
given location has exactly one spelling.
"""

from typing import List, Optional

from shardfs.core.config import SEPARATOR
from shardfs.core.errors import InvalidPathError

ROOT = SEPARATOR


def _segments(path: str) -> List[str]:
    if not isinstance(path, str) or not path.startswith(SEPARATOR):
        raise InvalidPathError("Path must be an absolute string", path)

    parts: List[str] = []
    for segment in path.split(SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if parts:
                parts.pop()
            continue
        parts.append(segment)
    return parts


def normalize(path: str) -> str:
    """Collapse repeated separators, drop trailing ones and resolve dot segments.

    Examples:
        normalize("//a///b/") -> "/a/b"
        normalize("/a/./b/../c") -> "/a/c"
        normalize("/") -> "/"
    """
    return SEPARATOR + SEPARATOR.join(_segments(path))


def parent(path: str) -> Optional[str]:
    """Containing directory, or None for the root."""
    parts = _segments(path)
    if not parts:
        return None
    return SEPARATOR + SEPARATOR.join(parts[:-1])


def name(path: str) -> str:
    """Final path segment; empty for the root."""
    parts = _segments(path)
    return parts[-1] if parts else ""


def join(directory: str, child: str) -> str:
    if directory == ROOT:
        return ROOT + child
    return directory + SEPARATOR + child


def descendant_prefix(path: str) -> str:
    """Prefix shared by every path strictly below ``path``."""
    return ROOT if path == ROOT else path + SEPARATOR


def is_within(path: str, ancestor: str) -> bool:
    """True when ``path`` equals ``ancestor`` or lies below it."""
    path = normalize(path)
    ancestor = normalize(ancestor)
    return path == ancestor or path.startswith(descendant_prefix(ancestor))


__all__ = ["ROOT", "normalize", "parent", "name", "join", "descendant_prefix", "is_within"]
