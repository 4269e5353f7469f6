"""Run active content rules over one commit and decide accept/reject."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from commitgate.config import ConfigurationError, GateConfig
from commitgate.diff.walker import changed_entries
from commitgate.rules.registry import resolve_active_rules, rule_order
from commitgate.rules.types import ContentRule, DiagnosticMessage
from commitgate.store.types import CommitInfo, ObjectStore, RepositoryManager, StoreAccessError

logger = logging.getLogger(__name__)


class ValidationAborted(RuntimeError):
    """Compliance could not be determined; distinct from a rejection."""

    reason_code: str

    def __init__(self, message: str, reason_code: str) -> None:
        super().__init__(message)
        self.reason_code = reason_code


@dataclass(frozen=True)
class ValidationOutcome:
    """Aggregated messages for one commit."""

    messages: tuple[DiagnosticMessage, ...] = ()
    commit_id: str | None = None

    @property
    def rejected(self) -> bool:
        return any(message.is_error for message in self.messages)

    def to_dict(self) -> dict[str, Any]:
        return {
            "commit": self.commit_id,
            "rejected": self.rejected,
            "messages": [
                {"severity": message.severity.value, "text": message.text}
                for message in self.messages
            ],
        }


def validate(
    store: ObjectStore,
    commit: CommitInfo,
    active_rules: Sequence[ContentRule],
    *,
    fail_fast: bool = False,
) -> ValidationOutcome:
    """Evaluate ``active_rules`` against the entries changed by ``commit``.

    The diff is walked once and shared by every rule. Rules run in the
    registry's declared order; with ``fail_fast`` the run stops after the
    first rule that reported an error.

    Raises:
        ValidationAborted: If the store cannot resolve an object
    """
    if not active_rules:
        return ValidationOutcome(commit_id=commit.id)

    ordered = sorted(active_rules, key=lambda rule: rule_order(rule.spec.key))
    messages: list[DiagnosticMessage] = []
    try:
        entries = tuple(changed_entries(store, commit))
        logger.debug("commit %s changes %d entries", commit.id, len(entries))
        for rule in ordered:
            found = rule.evaluate(entries, store.open_blob)
            logger.debug("rule %s reported %d messages", rule.spec.key, len(found))
            messages.extend(found)
            if fail_fast and any(message.is_error for message in found):
                logger.info("stopping after %s: fail-fast is enabled", rule.spec.key)
                break
    except StoreAccessError as exc:
        raise ValidationAborted(f"failed to validate commit {commit.id}: {exc}", exc.reason_code) from exc

    outcome = ValidationOutcome(messages=tuple(messages), commit_id=commit.id)
    logger.info(
        "commit %s %s (%d messages)",
        commit.id,
        "rejected" if outcome.rejected else "accepted",
        len(outcome.messages),
    )
    return outcome


def check_commit(
    repositories: RepositoryManager,
    config: GateConfig,
    *,
    project: str,
    commit_id: str,
    ref: str,
    user: str | None = None,
) -> ValidationOutcome:
    """Resolve configuration, open the repository and validate one commit.

    Raises:
        ValidationAborted: On configuration or object store failures
    """
    try:
        rules = resolve_active_rules(config, project=project, ref=ref, user=user)
        fail_fast = config.fail_fast(project)
    except ConfigurationError as exc:
        raise ValidationAborted(f"invalid configuration for {project}: {exc}", exc.reason_code) from exc

    if not rules:
        logger.debug("no active rules for %s on %s", project, ref)
        return ValidationOutcome(commit_id=commit_id)

    try:
        with repositories.open_repository(project) as store:
            commit = store.resolve_commit(commit_id)
            return validate(store, commit, rules, fail_fast=fail_fast)
    except StoreAccessError as exc:
        raise ValidationAborted(f"failed to validate commit {commit_id}: {exc}", exc.reason_code) from exc
