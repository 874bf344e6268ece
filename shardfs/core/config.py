# shardfs/core/config.py
import os

# SQLAlchemy URL template for a shard's store. "{shard}" is replaced with the
# quoted shard id; an in-memory sqlite URL gives every shard its own database.
DATABASE_URL = os.getenv("SHARDFS_DATABASE_URL", "sqlite:///./data/shards/{shard}.db")

SQL_ECHO = os.getenv("SHARDFS_SQL_ECHO", "false").lower() == "true"

DEFAULT_SHARD = os.getenv("SHARDFS_DEFAULT_SHARD", "default")

LOG_LEVEL = os.getenv("SHARDFS_LOG_LEVEL", "INFO").upper()

# Paths under /Users/<name>/ belong to shard <name>. Not configurable.
USERS_PREFIX = "/Users/"

SEPARATOR = "/"

DEFAULT_FILE_MODE = 0o644
DEFAULT_DIR_MODE = 0o777

DEFAULT_ENCODING = "utf8"

# copyFile flag: fail if the destination already exists
COPYFILE_EXCL = 1
