"""Git object store backed by a long-running ``git cat-file --batch`` process."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path, PurePosixPath
from typing import IO

from commitgate.store.exec import ExecError, run_git
from commitgate.store.types import CommitInfo, StoreAccessError, TreeEntry

logger = logging.getLogger(__name__)

# Unread blob tails above this size are dropped by restarting the batch
# process instead of being read and discarded.
DRAIN_LIMIT_BYTES = 1024 * 1024

_CHUNK_SIZE = 64 * 1024


class BatchBlobStream:
    """Incremental reader over one blob in the batch output."""

    def __init__(self, store: GitObjectStore, source: IO[bytes], size: int) -> None:
        self.size = size
        self.closed = False
        self._store = store
        self._source = source
        self._remaining = size

    @property
    def remaining(self) -> int:
        return self._remaining

    def read(self, size: int = -1) -> bytes:
        if self.closed:
            raise ValueError("read from closed blob stream")
        if self._remaining == 0:
            return b""
        count = self._remaining if size is None or size < 0 else min(size, self._remaining)
        data = self._source.read(count)
        if len(data) != count:
            raise self._store._broken("blob content truncated")
        self._remaining -= count
        return data

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._store._release(self)

    def _drain(self) -> None:
        while self._remaining:
            count = min(self._remaining, _CHUNK_SIZE)
            if len(self._source.read(count)) != count:
                raise self._store._broken("blob content truncated")
            self._remaining -= count
        self._source.read(1)

    def __enter__(self) -> BatchBlobStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class GitObjectStore:
    """Read-only view of one repository's objects.

    A store owns a single batch process and must not be shared between
    threads. Use it as a context manager so the process is always reaped.
    """

    def __init__(self, git_dir: Path) -> None:
        self.git_dir = git_dir
        self._process: subprocess.Popen[bytes] | None = None
        self._pending: BatchBlobStream | None = None
        self._closed = False

    def __enter__(self) -> GitObjectStore:
        self._ensure_started()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def resolve_commit(self, commit_id: str) -> CommitInfo:
        """Read a commit's tree and parent ids."""
        object_id, size = self._request(commit_id, b"commit")
        body = self._read_object(size)
        tree_id: str | None = None
        parents: list[str] = []
        for line in body.split(b"\n"):
            if not line:
                break
            key, _, value = line.partition(b" ")
            if key == b"tree":
                tree_id = value.decode("ascii")
            elif key == b"parent":
                parents.append(value.decode("ascii"))
        if tree_id is None:
            raise StoreAccessError(f"commit {object_id} has no tree")
        return CommitInfo(id=object_id, tree_id=tree_id, parents=tuple(parents))

    def read_tree(self, tree_id: str) -> tuple[TreeEntry, ...]:
        """Parse the binary tree format into entries, in stored order."""
        object_id, size = self._request(tree_id, b"tree")
        data = self._read_object(size)
        hash_len = len(object_id) // 2
        entries: list[TreeEntry] = []
        pos = 0
        try:
            while pos < len(data):
                space = data.index(b" ", pos)
                nul = data.index(b"\0", space)
                raw_id = data[nul + 1 : nul + 1 + hash_len]
                if len(raw_id) != hash_len:
                    raise ValueError("short object id")
                entries.append(
                    TreeEntry(
                        name=data[space + 1 : nul].decode("utf-8", "surrogateescape"),
                        raw_mode=int(data[pos:space], 8),
                        object_id=raw_id.hex(),
                    )
                )
                pos = nul + 1 + hash_len
        except ValueError as exc:
            raise StoreAccessError(f"corrupt tree {object_id}: {exc}") from exc
        return tuple(entries)

    def open_blob(self, blob_id: str) -> BatchBlobStream:
        """Open a blob for incremental reading.

        The stream must be closed (or left for the next request to finish)
        before another object can be read.
        """
        _, size = self._request(blob_id, b"blob")
        stream = BatchBlobStream(self, self._stdout(), size)
        self._pending = stream
        return stream

    def close(self) -> None:
        """Stop the batch process. Safe to call more than once."""
        self._closed = True
        self._stop()

    def _ensure_started(self) -> subprocess.Popen[bytes]:
        if self._closed:
            raise StoreAccessError(f"object store for {self.git_dir} is closed")
        if self._process is None:
            try:
                self._process = subprocess.Popen(
                    ["git", "--git-dir", str(self.git_dir), "cat-file", "--batch"],
                    stdin=subprocess.PIPE,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                )
            except OSError as exc:
                raise StoreAccessError(f"cannot start git for {self.git_dir}: {exc}") from exc
            logger.debug("started object store process for %s", self.git_dir)
        return self._process

    def _stdout(self) -> IO[bytes]:
        process = self._ensure_started()
        assert process.stdout is not None
        return process.stdout

    def _request(self, object_id: str, expected_type: bytes) -> tuple[str, int]:
        if self._pending is not None:
            self._pending.close()
        process = self._ensure_started()
        if not object_id or any(ch.isspace() for ch in object_id):
            raise StoreAccessError(f"invalid object name {object_id!r}")
        assert process.stdin is not None
        try:
            process.stdin.write(object_id.encode("utf-8") + b"\n")
            process.stdin.flush()
            header = self._stdout().readline()
        except OSError as exc:
            raise self._broken(f"lost object store process while reading {object_id}") from exc
        if not header:
            raise self._broken(f"object store process exited while reading {object_id}")

        fields = header.split()
        if len(fields) != 3:
            status = header.decode("utf-8", "replace").strip()
            raise StoreAccessError(f"cannot resolve object {object_id}: {status}")
        found_id, kind, size_text = fields
        size = int(size_text)
        if kind != expected_type:
            self._read_object(size)
            raise StoreAccessError(
                f"object {object_id} is a {kind.decode()}, expected {expected_type.decode()}"
            )
        return found_id.decode("ascii"), size

    def _read_object(self, size: int) -> bytes:
        data = self._stdout().read(size + 1)
        if len(data) != size + 1:
            raise self._broken("object content truncated")
        return data[:-1]

    def _release(self, stream: BatchBlobStream) -> None:
        if self._pending is not stream:
            return
        self._pending = None
        if stream.remaining > DRAIN_LIMIT_BYTES:
            logger.debug("restarting object store process to skip %d unread bytes", stream.remaining)
            self._stop()
            return
        stream._drain()

    def _broken(self, message: str) -> StoreAccessError:
        detail = ""
        process = self._process
        if process is not None and process.poll() is not None and process.stderr is not None:
            detail = process.stderr.read().decode("utf-8", "replace").strip()
        self._stop()
        return StoreAccessError(f"{message}: {detail}" if detail else message)

    def _stop(self) -> None:
        if self._pending is not None:
            self._pending.closed = True
            self._pending = None
        process = self._process
        self._process = None
        if process is None:
            return
        for pipe in (process.stdin, process.stdout, process.stderr):
            if pipe is not None:
                try:
                    pipe.close()
                except OSError:
                    pass
        try:
            process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()


class GitRepositoryManager:
    """Open repositories stored under a base directory by project name."""

    def __init__(self, base_path: Path, *, fixed_git_dir: Path | None = None) -> None:
        self.base_path = base_path
        self.fixed_git_dir = fixed_git_dir

    @classmethod
    def for_path(cls, repo: Path) -> GitRepositoryManager:
        """Manager that serves the single repository at ``repo``."""
        git_dir = resolve_git_dir(repo)
        return cls(git_dir.parent, fixed_git_dir=git_dir)

    def resolve(self, name: str) -> Path:
        """Return the git directory for project ``name``."""
        if self.fixed_git_dir is not None:
            return self.fixed_git_dir
        relative = PurePosixPath(name)
        if not name or relative.is_absolute() or ".." in relative.parts:
            raise StoreAccessError(f"no such project: {name!r}")
        for candidate in (self.base_path / f"{name}.git", self.base_path / name):
            if candidate.is_dir():
                return resolve_git_dir(candidate)
        raise StoreAccessError(f"no such project: {name}")

    def open_repository(self, name: str) -> GitObjectStore:
        return GitObjectStore(self.resolve(name))


def resolve_git_dir(repo: Path) -> Path:
    """Resolve a bare repository or worktree path to its git directory."""
    root = repo.resolve()
    try:
        out = run_git(["rev-parse", "--absolute-git-dir"], repo_root=root)
    except ExecError as exc:
        raise StoreAccessError(f"not a git repository: {root}") from exc
    git_dir = Path(out.stdout.strip()).resolve()
    # rev-parse walks upwards; refuse a repository that merely encloses root.
    if git_dir not in (root, root / ".git"):
        raise StoreAccessError(f"not a git repository: {root}")
    return git_dir


def list_new_commits(git_dir: Path, new_id: str) -> list[str]:
    """List commits reachable from ``new_id`` but from no existing ref, oldest first."""
    try:
        out = run_git(
            ["--git-dir", str(git_dir), "rev-list", "--reverse", new_id, "--not", "--all"],
            repo_root=git_dir,
        )
    except ExecError as exc:
        raise StoreAccessError(f"cannot list new commits for {new_id}: {exc}") from exc
    return [line for line in out.stdout.splitlines() if line]
