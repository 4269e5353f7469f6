"""Rule and diagnostic types."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from commitgate.diff.types import ChangedEntry
    from commitgate.store.types import BlobStream


class Severity(Enum):
    """How a diagnostic affects the push."""

    ERROR = "ERROR"
    WARNING = "WARNING"


@dataclass(frozen=True)
class DiagnosticMessage:
    """Single finding reported by a rule."""

    text: str
    severity: Severity = Severity.ERROR

    def __post_init__(self) -> None:
        if not self.text:
            raise ValueError("diagnostic message text must not be empty")

    @classmethod
    def error(cls, text: str) -> DiagnosticMessage:
        return cls(text=text, severity=Severity.ERROR)

    @classmethod
    def warning(cls, text: str) -> DiagnosticMessage:
        return cls(text=text, severity=Severity.WARNING)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        return f"{self.severity.value}: {self.text}"


@dataclass(frozen=True)
class RuleSpec:
    """Registration metadata: configuration key and UI text."""

    key: str
    label: str
    description: str


BlobFetcher = Callable[[str], "BlobStream"]


class ContentRule(Protocol):
    """A unit of push policy evaluated over one commit's changed entries."""

    spec: RuleSpec

    def evaluate(
        self,
        entries: Sequence[ChangedEntry],
        fetch_blob: BlobFetcher,
    ) -> list[DiagnosticMessage]: ...
