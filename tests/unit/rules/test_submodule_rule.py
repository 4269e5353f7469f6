"""Tests for the submodule rule."""

from __future__ import annotations

from commitgate.diff import ChangedEntry, changed_entries
from commitgate.rules.submodule import KEY_CHECK_SUBMODULE, SubmoduleRule
from commitgate.store.types import FileMode


def _entry(path, new_mode, old_mode=FileMode.MISSING, blob_id="3" * 40):
    return ChangedEntry(path=path, new_mode=new_mode, old_mode=old_mode, blob_id=blob_id)


def _evaluate(store, commit_id):
    entries = tuple(changed_entries(store, store.resolve_commit(commit_id)))
    return SubmoduleRule().evaluate(entries, store.open_blob)


def test_rule_metadata():
    rule = SubmoduleRule()

    assert rule.spec.key == KEY_CHECK_SUBMODULE == "rejectSubmodule"
    assert rule.spec.label == "Reject Submodules"


def test_added_submodule_is_rejected(repo, store):
    commit_id = repo.commit({"README.md": b"readme\n", "lib/sub": ("160000", "4" * 40)})

    messages = _evaluate(store, commit_id)

    assert [str(message) for message in messages] == ["ERROR: submodules are not allowed: lib/sub"]


def test_updated_submodule_pointer_is_rejected(repo, store):
    base = repo.commit({"sub": ("160000", "4" * 40)})
    child = repo.commit({"sub": ("160000", "5" * 40)}, parents=[base])

    assert len(_evaluate(store, child)) == 1


def test_removed_submodule_is_allowed(repo, store):
    base = repo.commit({"sub": ("160000", "4" * 40), "a.txt": b"a"})
    child = repo.commit({"sub": None}, parents=[base])

    assert _evaluate(store, child) == []


def test_plain_files_are_allowed(repo, store):
    commit_id = repo.commit({"a.txt": b"a", "link": ("120000", b"a.txt")})

    assert _evaluate(store, commit_id) == []


def test_file_replaced_by_submodule_is_rejected():
    entries = [
        _entry("a.txt", FileMode.REGULAR_FILE),
        _entry("vendor", FileMode.GITLINK, old_mode=FileMode.REGULAR_FILE),
        _entry("old", FileMode.MISSING, old_mode=FileMode.GITLINK, blob_id=None),
    ]

    messages = SubmoduleRule().evaluate(entries)

    assert [message.text for message in messages] == ["submodules are not allowed: vendor"]
    assert all(message.is_error for message in messages)
