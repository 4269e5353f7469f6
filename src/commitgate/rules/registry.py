"""Registered rules, their declared order and activation lookup."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from commitgate.config import GateConfig
from commitgate.rules.line_endings import KEY_IGNORE_FILES, LINE_ENDING_RULE, LineEndingRule
from commitgate.rules.submodule import SUBMODULE_RULE, SubmoduleRule
from commitgate.rules.types import ContentRule, RuleSpec

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RuleRegistration:
    """A rule's metadata plus how to build it from project configuration."""

    spec: RuleSpec
    build: Callable[[GateConfig, str], ContentRule]


def _build_line_endings(config: GateConfig, project: str) -> ContentRule:
    return LineEndingRule(ignored_extensions=config.get_string_list(project, KEY_IGNORE_FILES))


# Metadata-only rules run before rules that read blob content.
RULES: tuple[RuleRegistration, ...] = (
    RuleRegistration(spec=SUBMODULE_RULE, build=lambda config, project: SubmoduleRule()),
    RuleRegistration(spec=LINE_ENDING_RULE, build=_build_line_endings),
)

_ORDER = {registration.spec.key: index for index, registration in enumerate(RULES)}


def rule_order(key: str) -> int:
    """Position of ``key`` in the declared order; unknown keys sort last."""
    return _ORDER.get(key, len(RULES))


def resolve_active_rules(
    config: GateConfig,
    *,
    project: str,
    ref: str,
    user: str | None,
) -> list[ContentRule]:
    """Build the rules that apply to a push of ``ref`` by ``user``.

    Raises:
        ConfigurationError: If the project configuration cannot be resolved
    """
    active: list[ContentRule] = []
    for registration in RULES:
        key = registration.spec.key
        if not config.is_rule_active(project, key):
            continue
        if not config.is_enabled_for_ref(user, project, ref, key):
            logger.info("rule %s skipped for %s on %s", key, user or "<unknown user>", ref)
            continue
        active.append(registration.build(config, project))
    return active
