# shardfs/routers/fs.py
import base64
import binascii
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from shardfs.core import paths
from shardfs.core.fs import FileSystem, get_fs
from shardfs.schemas.fs import (
    CopyFileRequest,
    CpRequest,
    DetailResponse,
    ExistsResponse,
    MkdirRequest,
    MkdirResponse,
    ReaddirResponse,
    ReadFileResponse,
    RenameRequest,
    Stats,
    WriteFileRequest,
)

router = APIRouter()

# Pseudo-encoding for binary payloads carried in JSON.
BASE64 = "base64"


@router.post("/mkdir", response_model=MkdirResponse)
def make_directory(payload: MkdirRequest, fs: FileSystem = Depends(get_fs)):
    """
    Create a directory.

    - **recursive**: also create missing parents.
    - **mode**: permission bits for every directory created.

    Returns the shallowest directory actually created, or null when it already existed.
    """
    created = fs.mkdir(payload.path, recursive=payload.recursive, mode=payload.mode)
    return MkdirResponse(created=created)


@router.get("/readdir", response_model=ReaddirResponse)
def read_directory(path: str, with_file_types: bool = False, fs: FileSystem = Depends(get_fs)):
    """
    List the direct children of a directory, sorted by name.
    With **with_file_types** each entry carries its kind flags.
    """
    path = paths.normalize(path)
    entries = fs.readdir(path, with_file_types=with_file_types)
    return ReaddirResponse(path=path, entries=entries)


@router.get("/stat", response_model=Stats)
def stat_entry(path: str, fs: FileSystem = Depends(get_fs)):
    return fs.stat(path)


@router.get("/exists", response_model=ExistsResponse)
def entry_exists(path: str, fs: FileSystem = Depends(get_fs)):
    path = paths.normalize(path)
    return ExistsResponse(path=path, exists=fs.exists(path))


@router.get("/read", response_model=ReadFileResponse)
def read_file(path: str, encoding: Optional[str] = None, fs: FileSystem = Depends(get_fs)):
    """
    Read a file.

    Without **encoding** (or with `base64`) the raw bytes come back base64-encoded;
    otherwise the content is decoded with the named text encoding.
    """
    path = paths.normalize(path)
    if not encoding or encoding == BASE64:
        content = fs.read_file(path)
        return ReadFileResponse(path=path, encoding=BASE64, data=base64.b64encode(content).decode("ascii"))
    return ReadFileResponse(path=path, encoding=encoding, data=fs.read_file(path, encoding=encoding))


@router.put("/write", response_model=DetailResponse)
def write_file(payload: WriteFileRequest, fs: FileSystem = Depends(get_fs)):
    """
    Create or overwrite a file.

    - **data**: text, or base64 of the raw bytes when **encoding** is `base64`.
    - **mode**: permission bits; an overwrite keeps the stored mode when omitted.
    """
    if payload.encoding == BASE64:
        try:
            data = base64.b64decode(payload.data, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="Invalid base64 data.")
        fs.write_file(payload.path, data, mode=payload.mode)
    else:
        fs.write_file(payload.path, payload.data, encoding=payload.encoding, mode=payload.mode)
    return DetailResponse(detail="File written successfully.")


@router.post("/copy-file", response_model=DetailResponse)
def copy_file(payload: CopyFileRequest, fs: FileSystem = Depends(get_fs)):
    """
    Copy a single file. **mode** `1` refuses to overwrite an existing destination.
    """
    fs.copy_file(payload.src, payload.dest, mode=payload.mode)
    return DetailResponse(detail="File copied successfully.")


@router.post("/cp", response_model=DetailResponse)
def copy_tree(payload: CpRequest, fs: FileSystem = Depends(get_fs)):
    """
    Copy a file or directory.

    - **recursive**: required to copy directories.
    - **force**: overwrite existing files; when false they are left untouched.
    """
    fs.cp(payload.src, payload.dest, recursive=payload.recursive, force=payload.force)
    return DetailResponse(detail="Copied successfully.")


@router.post("/rename", response_model=DetailResponse)
def rename_entry(payload: RenameRequest, fs: FileSystem = Depends(get_fs)):
    """
    Move a file or directory. Moves between shards copy first and then remove the source.
    """
    fs.rename(payload.old_path, payload.new_path)
    return DetailResponse(detail="Renamed successfully.")


@router.delete("/rm", response_model=DetailResponse)
def remove_entry(path: str, recursive: bool = False, force: bool = False, fs: FileSystem = Depends(get_fs)):
    """
    Remove a file or directory.

    - **recursive**: remove non-empty directories with everything below them.
    - **force**: succeed silently when the path does not exist.
    """
    fs.rm(path, recursive=recursive, force=force)
    return DetailResponse(detail="Removed successfully.")
