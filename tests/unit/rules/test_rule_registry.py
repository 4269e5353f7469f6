"""Tests for rule registration and activation."""

from __future__ import annotations

from commitgate.config import GateConfig
from commitgate.rules import RULES, LineEndingRule, SubmoduleRule, resolve_active_rules, rule_order


def _config(**settings):
    return GateConfig.from_dict({"projects": {"app": settings}})


def test_declared_order():
    assert [registration.spec.key for registration in RULES] == [
        "rejectSubmodule",
        "rejectWindowsLineEndings",
    ]
    assert rule_order("rejectSubmodule") < rule_order("rejectWindowsLineEndings")
    assert rule_order("somethingElse") == len(RULES)


def test_no_rules_active_by_default():
    assert resolve_active_rules(GateConfig(), project="app", ref="refs/heads/main", user=None) == []


def test_active_rules_are_built_from_config():
    config = _config(
        rejectSubmodule=True,
        rejectWindowsLineEndings=True,
        ignoreFilesWhenCheckingLineEndings=["ISO", "jpeg"],
    )

    rules = resolve_active_rules(config, project="app", ref="refs/heads/main", user="alice")

    assert [type(rule) for rule in rules] == [SubmoduleRule, LineEndingRule]
    assert rules[1].ignored_extensions == frozenset({"iso", "jpeg"})


def test_skipped_rules_are_not_built():
    config = _config(
        rejectSubmodule=True,
        rejectWindowsLineEndings=True,
        skipValidation="rejectWindowsLineEndings",
        skipUser="bot",
    )

    rules = resolve_active_rules(config, project="app", ref="refs/heads/main", user="bot")

    assert [rule.spec.key for rule in rules] == ["rejectSubmodule"]


def test_rules_outside_ref_scope_are_not_built():
    config = _config(rejectSubmodule=True, ref="refs/heads/main")

    assert resolve_active_rules(config, project="app", ref="refs/heads/dev", user=None) == []
