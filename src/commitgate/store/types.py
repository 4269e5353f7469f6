"""Types for the object store consumed by the diff walker and rules."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from contextlib import AbstractContextManager

STORE_ACCESS = "STORE_ACCESS"

_TYPE_MASK = 0o170000
_TYPE_TREE = 0o040000
_TYPE_FILE = 0o100000
_TYPE_SYMLINK = 0o120000
_TYPE_GITLINK = 0o160000


class StoreAccessError(RuntimeError):
    """Raised when a commit, tree or blob cannot be resolved."""

    reason_code = STORE_ACCESS


class FileMode(Enum):
    """Kind of a tree entry on one side of a change."""

    REGULAR_FILE = "regular"
    EXECUTABLE_FILE = "executable"
    SYMLINK = "symlink"
    GITLINK = "gitlink"
    TREE = "tree"
    MISSING = "missing"

    @classmethod
    def from_raw(cls, raw_mode: int) -> FileMode:
        """Classify an octal git tree mode by its type bits."""
        kind = raw_mode & _TYPE_MASK
        if kind == _TYPE_TREE:
            return cls.TREE
        if kind == _TYPE_FILE:
            return cls.EXECUTABLE_FILE if raw_mode & 0o111 else cls.REGULAR_FILE
        if kind == _TYPE_SYMLINK:
            return cls.SYMLINK
        if kind == _TYPE_GITLINK:
            return cls.GITLINK
        raise StoreAccessError(f"unknown tree entry mode {raw_mode:o}")

    @property
    def is_blob(self) -> bool:
        return self in (FileMode.REGULAR_FILE, FileMode.EXECUTABLE_FILE, FileMode.SYMLINK)


@dataclass(frozen=True)
class TreeEntry:
    """One named child of a tree object."""

    name: str
    raw_mode: int
    object_id: str

    @property
    def mode(self) -> FileMode:
        return FileMode.from_raw(self.raw_mode)


@dataclass(frozen=True)
class CommitInfo:
    """The parts of a commit object the diff walker needs."""

    id: str
    tree_id: str
    parents: tuple[str, ...]


class BlobStream(Protocol):
    """Readable byte stream over one blob."""

    size: int

    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...


class ObjectStore(Protocol):
    """Read access to one opened repository."""

    def resolve_commit(self, commit_id: str) -> CommitInfo: ...

    def read_tree(self, tree_id: str) -> tuple[TreeEntry, ...]: ...

    def open_blob(self, blob_id: str) -> BlobStream: ...

    def close(self) -> None: ...


class RepositoryManager(Protocol):
    """Opens repositories by project name."""

    def open_repository(self, name: str) -> AbstractContextManager[ObjectStore]: ...
