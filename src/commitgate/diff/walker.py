"""Lazy tree diff of a commit against its parents."""

from __future__ import annotations

import logging
from collections.abc import Iterator

from commitgate.diff.types import ChangedEntry
from commitgate.store.types import CommitInfo, FileMode, ObjectStore, TreeEntry

logger = logging.getLogger(__name__)


def changed_entries(store: ObjectStore, commit: CommitInfo) -> Iterator[ChangedEntry]:
    """Yield every leaf entry changed by ``commit``.

    Root commits are compared with the empty tree. Merge commits report the
    union of the per-parent diffs, each path once; the new side always
    describes the merge commit's own tree and the old side comes from the
    first parent (in parent order) that differs at that path.

    Raises:
        StoreAccessError: If a parent commit or a tree cannot be read
    """
    if not commit.parents:
        logger.debug("diffing root commit %s against the empty tree", commit.id)
        yield from _diff_trees(store, None, commit.tree_id, "")
        return

    if len(commit.parents) == 1:
        parent = store.resolve_commit(commit.parents[0])
        yield from _diff_trees(store, parent.tree_id, commit.tree_id, "")
        return

    logger.debug("diffing merge commit %s against %d parents", commit.id, len(commit.parents))
    seen: set[str] = set()
    for parent_id in commit.parents:
        parent = store.resolve_commit(parent_id)
        for entry in _diff_trees(store, parent.tree_id, commit.tree_id, ""):
            if entry.path in seen:
                continue
            seen.add(entry.path)
            yield entry


def _diff_trees(
    store: ObjectStore,
    old_tree_id: str | None,
    new_tree_id: str | None,
    prefix: str,
) -> Iterator[ChangedEntry]:
    # Identical subtrees are never read.
    if old_tree_id == new_tree_id:
        return
    old = _read_entries(store, old_tree_id)
    new = _read_entries(store, new_tree_id)

    for name in sorted(old.keys() | new.keys(), key=_name_order):
        before = old.get(name)
        after = new.get(name)
        if (
            before is not None
            and after is not None
            and before.raw_mode == after.raw_mode
            and before.object_id == after.object_id
        ):
            continue

        path = prefix + name
        before_tree = before if before is not None and before.mode is FileMode.TREE else None
        after_tree = after if after is not None and after.mode is FileMode.TREE else None
        if before_tree is not None or after_tree is not None:
            yield from _diff_trees(
                store,
                before_tree.object_id if before_tree is not None else None,
                after_tree.object_id if after_tree is not None else None,
                path + "/",
            )

        before_leaf = before if before is not None and before_tree is None else None
        after_leaf = after if after is not None and after_tree is None else None
        if before_leaf is None and after_leaf is None:
            continue
        yield ChangedEntry(
            path=path,
            new_mode=after_leaf.mode if after_leaf is not None else FileMode.MISSING,
            old_mode=before_leaf.mode if before_leaf is not None else FileMode.MISSING,
            blob_id=after_leaf.object_id if after_leaf is not None else None,
        )


def _read_entries(store: ObjectStore, tree_id: str | None) -> dict[str, TreeEntry]:
    if tree_id is None:
        return {}
    return {entry.name: entry for entry in store.read_tree(tree_id)}


def _name_order(name: str) -> bytes:
    return name.encode("utf-8", "surrogateescape")
