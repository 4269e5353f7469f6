"""Pytest configuration and fixtures for commitgate tests."""

from __future__ import annotations

import os
import subprocess
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path

import pytest

from commitgate.store.git import GitObjectStore

_GIT_IDENTITY = {
    "GIT_AUTHOR_NAME": "Test User",
    "GIT_AUTHOR_EMAIL": "test@example.com",
    "GIT_AUTHOR_DATE": "2016-01-01T00:00:00+0000",
    "GIT_COMMITTER_NAME": "Test User",
    "GIT_COMMITTER_EMAIL": "test@example.com",
    "GIT_COMMITTER_DATE": "2016-01-01T00:00:00+0000",
}


class RepoBuilder:
    """Create commits directly with git plumbing.

    ``commit`` takes a mapping of path to content: ``bytes`` for a regular
    file, ``(mode, payload)`` for other modes (``"100755"``, ``"120000"``
    with bytes, ``"160000"`` with a commit id), or ``None`` to delete the
    path. The tree starts from the first parent's tree.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.git_dir = root / ".git"
        self._env = {**os.environ, **_GIT_IDENTITY}
        self.git("init", "-q")
        self._env["GIT_INDEX_FILE"] = str(self.git_dir / "builder-index")

    def git(self, *args: str, input: bytes | None = None) -> str:
        completed = subprocess.run(
            ["git", *args],
            cwd=self.root,
            input=input,
            capture_output=True,
            check=True,
            env=self._env,
        )
        return completed.stdout.decode("utf-8").strip()

    def blob(self, content: bytes) -> str:
        return self.git("hash-object", "-w", "--stdin", input=content)

    def blob_id(self, commit: str, path: str) -> str:
        return self.git("rev-parse", f"{commit}:{path}")

    def commit(
        self,
        files: Mapping[str, object],
        parents: Sequence[str] = (),
        message: str = "Commit with test files.",
    ) -> str:
        if parents:
            self.git("read-tree", f"{parents[0]}^{{tree}}")
        else:
            self.git("read-tree", "--empty")

        for path, value in files.items():
            if value is None:
                self.git("update-index", "--force-remove", path)
                continue
            if isinstance(value, bytes):
                mode, object_id = "100644", self.blob(value)
            else:
                mode, payload = value  # type: ignore[misc]
                object_id = payload if mode == "160000" else self.blob(payload)
            self.git("update-index", "--add", "--replace", "--cacheinfo", f"{mode},{object_id},{path}")

        tree = self.git("write-tree")
        args = ["commit-tree", tree, "-m", message]
        for parent in parents:
            args.extend(["-p", parent])
        return self.git(*args)

    def update_ref(self, ref: str, commit: str) -> None:
        self.git("update-ref", ref, commit)


@pytest.fixture
def repo(tmp_path: Path) -> RepoBuilder:
    """Empty non-bare repository driven through plumbing commands."""
    return RepoBuilder(tmp_path / "test_repo")


@pytest.fixture
def store(repo: RepoBuilder) -> Iterator[GitObjectStore]:
    """Opened object store for ``repo``; closed after the test."""
    with GitObjectStore(repo.git_dir) as opened:
        yield opened
