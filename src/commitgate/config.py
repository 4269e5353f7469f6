"""Project configuration for commit validation.

Configuration lives in a single YAML file mapping project names to settings.
Every project inherits unset keys from its ``parent`` (``All-Projects`` when
no parent is named), so rules can be switched on for a whole host and
overridden per project.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from jsonschema.validators import Draft202012Validator

from commitgate.schemas import load_schema

logger = logging.getLogger(__name__)

CONFIGURATION = "CONFIGURATION"
ROOT_PROJECT = "All-Projects"
DEFAULT_CONFIG_FILENAME = "commitgate.yaml"
CONFIG_ENV_VAR = "COMMITGATE_CONFIG"

KEY_PARENT = "parent"
KEY_FAIL_FAST = "failFast"
KEY_REF = "ref"
KEY_SKIP_VALIDATION = "skipValidation"
KEY_SKIP_REF = "skipRef"
KEY_SKIP_USER = "skipUser"

_TRUE_VALUES = frozenset({"true", "yes", "on", "1"})
_FALSE_VALUES = frozenset({"false", "no", "off", "0"})


class ConfigurationError(ValueError):
    """Configuration that cannot be interpreted safely."""

    reason_code = CONFIGURATION


@dataclass(frozen=True)
class GateConfig:
    """Read-only view over per-project rule settings."""

    projects: dict[str, dict[str, Any]] = field(default_factory=dict)
    path: Path | None = None

    @classmethod
    def from_dict(cls, data: Any, path: Path | None = None) -> GateConfig:
        """Validate a parsed document and build the configuration.

        Raises:
            ConfigurationError: If the document violates the schema
        """
        if data is None:
            data = {}
        source = str(path) if path is not None else "configuration"
        validator = Draft202012Validator(load_schema("gate_config"))
        errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            rendered = [
                f"{'.'.join(str(p) for p in e.path)}: {e.message}" if e.path else e.message
                for e in errors
            ]
            raise ConfigurationError(
                f"Invalid {source}:\n" + "\n".join(f"  - {msg}" for msg in rendered)
            )
        projects = {
            str(name): dict(settings or {})
            for name, settings in (data.get("projects") or {}).items()
        }
        return cls(projects=projects, path=path)

    def is_rule_active(self, project: str, key: str) -> bool:
        """Return the inherited activation flag for ``key``.

        Values that are not booleans are reported and treated as inactive.
        """
        return self.get_boolean(project, key, default=False)

    def get_boolean(self, project: str, key: str, default: bool = False) -> bool:
        value = self._lookup(project, key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
        logger.warning(
            "ignoring non-boolean value %r for %s in project %s; using %s",
            value,
            key,
            project,
            default,
        )
        return default

    def get_string_list(self, project: str, key: str) -> list[str]:
        value = self._lookup(project, key)
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if isinstance(value, list) and all(isinstance(item, str) for item in value):
            return list(value)
        raise ConfigurationError(f"{key} in project {project} must be a string list, got {value!r}")

    def fail_fast(self, project: str) -> bool:
        return self.get_boolean(project, KEY_FAIL_FAST, default=False)

    def is_enabled_for_ref(self, user: str | None, project: str, ref: str, key: str) -> bool:
        """Apply ``ref`` scoping and the ``skip*`` exemptions to rule ``key``."""
        refs = self.get_string_list(project, KEY_REF)
        if refs and not any(ref_matches(ref, pattern) for pattern in refs):
            return False

        if key not in self.get_string_list(project, KEY_SKIP_VALIDATION):
            return True
        if user is not None and user in self.get_string_list(project, KEY_SKIP_USER):
            return False
        return not any(ref_matches(ref, pattern) for pattern in self.get_string_list(project, KEY_SKIP_REF))

    def _lookup(self, project: str, key: str) -> Any:
        for settings in self._lineage(project):
            if key in settings:
                return settings[key]
        return None

    def _lineage(self, project: str) -> list[dict[str, Any]]:
        """Settings from ``project`` up to the root, nearest first."""
        chain: list[dict[str, Any]] = []
        seen: set[str] = set()
        name: str | None = project
        while name is not None:
            if name in seen:
                raise ConfigurationError(f"project inheritance cycle at {name}")
            seen.add(name)
            settings = self.projects.get(name)
            if settings is None:
                if name == ROOT_PROJECT:
                    break
                if name != project:
                    raise ConfigurationError(f"project {project} inherits from unknown project {name}")
                # Unconfigured projects still inherit from the root.
                name = ROOT_PROJECT
                continue
            chain.append(settings)
            parent = settings.get(KEY_PARENT)
            if parent is None and name != ROOT_PROJECT:
                parent = ROOT_PROJECT
            name = parent
        return chain


def ref_matches(ref: str, pattern: str) -> bool:
    """Match ``ref`` against a ``^regex`` or an fnmatch glob."""
    if pattern.startswith("^"):
        try:
            return re.match(pattern, ref) is not None
        except re.error as exc:
            raise ConfigurationError(f"invalid ref pattern {pattern!r}: {exc}") from exc
    return fnmatchcase(ref, pattern)


def default_config_path(git_dir: Path) -> Path:
    """Configuration path from ``COMMITGATE_CONFIG`` or beside the repository."""
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return git_dir / DEFAULT_CONFIG_FILENAME


def load_gate_config(path: Path) -> GateConfig:
    """Load configuration from YAML; a missing file means every rule is off.

    Raises:
        ConfigurationError: If the file is unreadable or malformed
    """
    if not path.exists():
        logger.info("no configuration at %s; all rules inactive", path)
        return GateConfig(path=path)

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"{path} parse error: {exc}") from exc
    except OSError as exc:
        raise ConfigurationError(f"cannot read {path}: {exc}") from exc
    if raw is not None and not isinstance(raw, dict):
        raise ConfigurationError(f"{path} parse error: expected mapping at top level")
    return GateConfig.from_dict(raw, path=path)
