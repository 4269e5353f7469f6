"""Reject commits that add or move submodule (gitlink) entries."""

from __future__ import annotations

from collections.abc import Sequence

from commitgate.diff.types import ChangedEntry
from commitgate.rules.types import BlobFetcher, DiagnosticMessage, RuleSpec
from commitgate.store.types import FileMode

KEY_CHECK_SUBMODULE = "rejectSubmodule"

SUBMODULE_RULE = RuleSpec(
    key=KEY_CHECK_SUBMODULE,
    label="Reject Submodules",
    description="Pushes of commits that include submodules will be rejected.",
)


class SubmoduleRule:
    """Flags every changed entry that is a gitlink on the new side."""

    spec = SUBMODULE_RULE

    def evaluate(
        self,
        entries: Sequence[ChangedEntry],
        fetch_blob: BlobFetcher | None = None,
    ) -> list[DiagnosticMessage]:
        return [
            DiagnosticMessage.error(f"submodules are not allowed: {entry.path}")
            for entry in entries
            if entry.new_mode is FileMode.GITLINK
        ]
