"""Content rules and their registry."""

from commitgate.rules.line_endings import LineEndingRule
from commitgate.rules.registry import RULES, RuleRegistration, resolve_active_rules, rule_order
from commitgate.rules.submodule import SubmoduleRule
from commitgate.rules.types import ContentRule, DiagnosticMessage, RuleSpec, Severity

__all__ = [
    "RULES",
    "ContentRule",
    "DiagnosticMessage",
    "LineEndingRule",
    "RuleRegistration",
    "RuleSpec",
    "Severity",
    "SubmoduleRule",
    "resolve_active_rules",
    "rule_order",
]
