# shardfs/schemas/fs.py
from datetime import datetime
from pydantic import BaseModel
from typing import List, Optional, Union

class Stats(BaseModel):
    is_file: bool
    is_directory: bool
    is_symbolic_link: bool = False
    size: int
    mode: int
    uid: int = 0
    gid: int = 0
    mtime: datetime
    ctime: datetime
    atime: datetime

class Dirent(BaseModel):
    name: str
    is_file: bool
    is_directory: bool
    is_symbolic_link: bool = False

# ---- request bodies ----

class MkdirRequest(BaseModel):
    path: str
    recursive: bool = False
    mode: Optional[int] = None

class WriteFileRequest(BaseModel):
    path: str
    data: str
    encoding: str = "utf8"  # "base64" means data carries raw bytes
    mode: Optional[int] = None

class CopyFileRequest(BaseModel):
    src: str
    dest: str
    mode: int = 0

class CpRequest(BaseModel):
    src: str
    dest: str
    recursive: bool = False
    force: bool = True

class RenameRequest(BaseModel):
    old_path: str
    new_path: str

# ---- responses ----

class MkdirResponse(BaseModel):
    created: Optional[str] = None  # Shallowest directory actually created

class ReaddirResponse(BaseModel):
    path: str
    entries: Union[List[Dirent], List[str]]

class ExistsResponse(BaseModel):
    path: str
    exists: bool

class ReadFileResponse(BaseModel):
    path: str
    encoding: str
    data: str

class DetailResponse(BaseModel):
    detail: str
