"""Changed-entry computation for commits."""

from commitgate.diff.types import ChangedEntry
from commitgate.diff.walker import changed_entries

__all__ = ["ChangedEntry", "changed_entries"]
