"""Diff walker types."""

from __future__ import annotations

from dataclasses import dataclass

from commitgate.store.types import FileMode


@dataclass(frozen=True)
class ChangedEntry:
    """A leaf path whose state differs between the compared trees."""

    path: str
    new_mode: FileMode
    old_mode: FileMode
    blob_id: str | None  # None when the path was deleted

    def __post_init__(self) -> None:
        if self.new_mode is FileMode.MISSING and self.old_mode is FileMode.MISSING:
            raise ValueError(f"changed entry {self.path!r} is missing on both sides")

    @property
    def is_deletion(self) -> bool:
        return self.new_mode is FileMode.MISSING

    @property
    def content_available(self) -> bool:
        """True when ``blob_id`` names a blob in this repository."""
        return self.blob_id is not None and self.new_mode.is_blob
