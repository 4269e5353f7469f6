"""Content classification helpers."""

from commitgate.content.classifier import BINARY_SNIFF_BYTES, is_binary, sniff_stream

__all__ = ["BINARY_SNIFF_BYTES", "is_binary", "sniff_stream"]
