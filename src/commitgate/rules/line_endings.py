"""Reject text files that contain carriage return characters."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from contextlib import closing

from commitgate.content.classifier import sniff_stream
from commitgate.diff.types import ChangedEntry
from commitgate.rules.types import BlobFetcher, DiagnosticMessage, RuleSpec
from commitgate.store.types import BlobStream, FileMode

logger = logging.getLogger(__name__)

KEY_CHECK_REJECT_WINDOWS_LINE_ENDINGS = "rejectWindowsLineEndings"
KEY_IGNORE_FILES = "ignoreFilesWhenCheckingLineEndings"

LINE_ENDING_RULE = RuleSpec(
    key=KEY_CHECK_REJECT_WINDOWS_LINE_ENDINGS,
    label="Reject Windows Line Endings",
    description="Pushes of commits that include files containing carriage return (CR) characters will be rejected.",
)

_SCANNED_MODES = (FileMode.REGULAR_FILE, FileMode.EXECUTABLE_FILE)
_SCAN_CHUNK_BYTES = 64 * 1024


def file_extension(path: str) -> str:
    """Lower-cased text after the last dot of the file name, or ``""``."""
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def normalize_extension(value: str) -> str:
    return value.strip().lower().lstrip(".")


class LineEndingRule:
    """Flags each added or modified text file containing a CR byte.

    Binary blobs and files whose extension is ignored are skipped. A blob is
    read in chunks and abandoned at the first CR, so one message is reported
    per file however many CRs it holds.
    """

    spec = LINE_ENDING_RULE

    def __init__(self, ignored_extensions: Iterable[str] = ()) -> None:
        normalized = (normalize_extension(ext) for ext in ignored_extensions)
        self.ignored_extensions = frozenset(ext for ext in normalized if ext)

    def evaluate(
        self,
        entries: Sequence[ChangedEntry],
        fetch_blob: BlobFetcher,
    ) -> list[DiagnosticMessage]:
        messages: list[DiagnosticMessage] = []
        for entry in entries:
            if entry.new_mode not in _SCANNED_MODES or entry.blob_id is None:
                continue
            if file_extension(entry.path) in self.ignored_extensions:
                logger.debug("skipping %s: extension is ignored", entry.path)
                continue
            if _contains_carriage_return(fetch_blob(entry.blob_id), entry.path):
                messages.append(
                    DiagnosticMessage.error(f"found carriage return (CR) character in file: {entry.path}")
                )
        return messages


def _contains_carriage_return(stream: BlobStream, path: str) -> bool:
    with closing(stream):
        binary, prefix = sniff_stream(stream)
        if binary:
            logger.debug("skipping %s: binary content", path)
            return False
        if b"\r" in prefix:
            return True
        while True:
            chunk = stream.read(_SCAN_CHUNK_BYTES)
            if not chunk:
                return False
            if b"\r" in chunk:
                return True
