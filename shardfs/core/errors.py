"""Error kinds raised by the file store.

Every error carries the logical ``kind`` name, the offending ``path`` and the
HTTP status the API layer answers with.
"""

from typing import Optional


class FSError(Exception):
    """Base exception for file store errors."""

    kind = "FSError"
    status_code = 500

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path is None:
            return self.message
        return f"{self.message}: {self.path}"


class NotFoundError(FSError):
    """No entry exists at the path."""
    kind = "NotFound"
    status_code = 404


class AlreadyExistsError(FSError):
    """An entry of the wrong kind already occupies the path."""
    kind = "AlreadyExists"
    status_code = 409


class NotAFileError(FSError):
    """The path is a directory where a file was required."""
    kind = "NotAFile"
    status_code = 400


class NotADirError(FSError):
    """The path is a file where a directory was required."""
    kind = "NotADirectory"
    status_code = 400


class NotEmptyError(FSError):
    """Directory still has children."""
    kind = "NotEmpty"
    status_code = 409


class ParentMissingError(FSError):
    """Parent path is absent or not a directory."""
    kind = "ParentMissing"
    status_code = 409


class RecursionRequiredError(FSError):
    """Directory operation needs the recursive option."""
    kind = "RecursionRequired"
    status_code = 400


class UnsupportedDataTypeError(FSError):
    """Payload cannot be turned into bytes."""
    kind = "UnsupportedDataType"
    status_code = 415


class InvalidPathError(FSError):
    """Path is malformed or the operation would corrupt the tree."""
    kind = "InvalidPath"
    status_code = 400


__all__ = [
    "FSError",
    "NotFoundError",
    "AlreadyExistsError",
    "NotAFileError",
    "NotADirError",
    "NotEmptyError",
    "ParentMissingError",
    "RecursionRequiredError",
    "UnsupportedDataTypeError",
    "InvalidPathError",
]
