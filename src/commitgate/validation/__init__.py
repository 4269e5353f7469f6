"""Commit validation entry points."""

from commitgate.validation.coordinator import (
    ValidationAborted,
    ValidationOutcome,
    check_commit,
    validate,
)

__all__ = ["ValidationAborted", "ValidationOutcome", "check_commit", "validate"]
