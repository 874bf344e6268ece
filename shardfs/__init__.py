"""Hierarchical file store on flat relational tables, sharded by path."""

from shardfs.core.errors import (
    FSError,
    NotFoundError,
    AlreadyExistsError,
    NotAFileError,
    NotADirError,
    NotEmptyError,
    ParentMissingError,
    RecursionRequiredError,
    UnsupportedDataTypeError,
    InvalidPathError,
)
from shardfs.core.database import ShardRegistry
from shardfs.core.fs import FileSystem

__version__ = "0.1.0"

__all__ = [
    "FileSystem",
    "ShardRegistry",
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
