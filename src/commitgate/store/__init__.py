"""Object store access for commit validation."""

from commitgate.store.git import GitObjectStore, GitRepositoryManager
from commitgate.store.types import (
    BlobStream,
    CommitInfo,
    FileMode,
    ObjectStore,
    RepositoryManager,
    StoreAccessError,
    TreeEntry,
)

__all__ = [
    "BlobStream",
    "CommitInfo",
    "FileMode",
    "GitObjectStore",
    "GitRepositoryManager",
    "ObjectStore",
    "RepositoryManager",
    "StoreAccessError",
    "TreeEntry",
]
