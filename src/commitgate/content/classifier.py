"""Binary/text classification from a bounded content prefix."""

from __future__ import annotations

from commitgate.store.types import BlobStream

# Same window git uses for its own binary detection.
BINARY_SNIFF_BYTES = 8000


def is_binary(prefix: bytes, *, empty_is_binary: bool = False) -> bool:
    """Return True when ``prefix`` looks like binary content.

    Only the first ``BINARY_SNIFF_BYTES`` bytes are inspected; content is
    binary when that window contains a NUL byte.
    """
    if not prefix:
        return empty_is_binary
    return b"\x00" in prefix[:BINARY_SNIFF_BYTES]


def sniff_stream(stream: BlobStream, *, empty_is_binary: bool = False) -> tuple[bool, bytes]:
    """Read the classification window from ``stream``.

    Returns the verdict together with the bytes consumed so callers can keep
    scanning without re-reading them.
    """
    chunks: list[bytes] = []
    wanted = BINARY_SNIFF_BYTES
    while wanted > 0:
        chunk = stream.read(wanted)
        if not chunk:
            break
        chunks.append(chunk)
        wanted -= len(chunk)
    prefix = b"".join(chunks)
    return is_binary(prefix, empty_is_binary=empty_is_binary), prefix
