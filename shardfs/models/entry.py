# shardfs/models/entry.py
from sqlalchemy import Column, String, Integer, LargeBinary, CheckConstraint
from shardfs.models.base import Base

FILE = "file"
DIRECTORY = "directory"


class Entry(Base):
    __tablename__ = "files"
    __table_args__ = (
        CheckConstraint("kind IN ('file', 'directory')", name="ck_files_kind"),
    )

    path = Column(String, primary_key=True)  # Normalized absolute path
    parent_path = Column(String, nullable=True, index=True)  # "/" for top-level entries
    name = Column(String, nullable=False, index=True)
    kind = Column(String, nullable=False, index=True)
    content = Column(LargeBinary, nullable=True)  # Always NULL for directories
    size = Column(Integer, nullable=False, default=0)
    mode = Column(Integer, nullable=False)
    uid = Column(Integer, nullable=False, default=0)
    gid = Column(Integer, nullable=False, default=0)
    mtime = Column(Integer, nullable=False)  # Unix seconds
    ctime = Column(Integer, nullable=False)
    atime = Column(Integer, nullable=False)

    @property
    def is_file(self) -> bool:
        return self.kind == FILE

    @property
    def is_directory(self) -> bool:
        return self.kind == DIRECTORY

    def __repr__(self) -> str:
        return f"<Entry {self.kind} {self.path!r}>"
