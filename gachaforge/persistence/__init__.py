"""Save storage and schema migration."""
from .migration import MigrationReport, detect_version, migrate
from .storage import (
    FileStorageBackend,
    LoadResult,
    MemoryStorageBackend,
    SaveStore,
    StorageBackend,
    StorageResult,
    dump_save,
    load_save,
)

__all__ = [
    "MigrationReport",
    "detect_version",
    "migrate",
    "FileStorageBackend",
    "LoadResult",
    "MemoryStorageBackend",
    "SaveStore",
    "StorageBackend",
    "StorageResult",
    "dump_save",
    "load_save",
]
