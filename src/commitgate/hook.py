"""Validate the commits introduced by a push (pre-receive hook input)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from commitgate.config import GateConfig
from commitgate.store.git import list_new_commits
from commitgate.store.types import RepositoryManager, StoreAccessError
from commitgate.validation.coordinator import ValidationAborted, ValidationOutcome, check_commit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefUpdate:
    """One ``<old> <new> <ref>`` line; ids are None for creation/deletion."""

    old_id: str | None
    new_id: str | None
    ref: str


def _object_id(value: str) -> str | None:
    return None if set(value) == {"0"} else value


def read_updates(lines: Iterable[str]) -> Iterator[RefUpdate]:
    """Parse pre-receive input.

    Raises:
        ValueError: If a line is not three space-separated fields
    """
    for line in lines:
        stripped = line.strip()
        if not stripped:
            continue
        parts = stripped.split(" ", 2)
        if len(parts) != 3:
            raise ValueError(f"malformed ref update line: {stripped!r}")
        old_id, new_id, ref = parts
        yield RefUpdate(old_id=_object_id(old_id), new_id=_object_id(new_id), ref=ref)


def project_name_for(git_dir: Path) -> str:
    """Project name derived from a repository's git directory."""
    path = git_dir.parent if git_dir.name == ".git" else git_dir
    name = path.name
    return name[: -len(".git")] if name.endswith(".git") else name


def check_push(
    repositories: RepositoryManager,
    config: GateConfig,
    *,
    git_dir: Path,
    project: str,
    updates: Iterable[RefUpdate],
    user: str | None = None,
) -> list[ValidationOutcome]:
    """Validate every commit that an update makes newly reachable.

    Raises:
        ValidationAborted: On configuration or object store failures
    """
    outcomes: list[ValidationOutcome] = []
    for update in updates:
        if update.new_id is None:
            logger.debug("skipping deletion of %s", update.ref)
            continue
        try:
            commit_ids = list_new_commits(git_dir, update.new_id)
        except StoreAccessError as exc:
            raise ValidationAborted(str(exc), exc.reason_code) from exc
        logger.info("%s: %d new commits", update.ref, len(commit_ids))
        for commit_id in commit_ids:
            outcomes.append(
                check_commit(
                    repositories,
                    config,
                    project=project,
                    commit_id=commit_id,
                    ref=update.ref,
                    user=user,
                )
            )
    return outcomes
