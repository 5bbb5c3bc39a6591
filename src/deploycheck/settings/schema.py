"""
deploycheck — tool settings schema

File: src/deploycheck/settings/schema.py

Purpose
- Define the shape, defaults and validation of ``deploycheck.toml``.

What should be included in this file
- Typed settings sections and deterministic defaults.
- Structured validation issues (dotted path + message).
- Deterministic deep-merge used by the precedence chain.

Functional requirements
- Unknown sections and keys are reported, not silently accepted.
- Validation never raises for a bad value; ``assert_valid_settings`` does.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, TypedDict

from deploycheck.constants import DEFAULT_CONFIG_PATH, DEFAULT_SPEC_PATH
from deploycheck.errors import DeploycheckError

if TYPE_CHECKING:
    from collections.abc import Sequence

LOG_LEVELS: Final[tuple[str, ...]] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
LOG_FORMATS: Final[tuple[str, ...]] = ("text", "json")
PATH_FIELDS: Final[tuple[tuple[str, ...], ...]] = (("paths", "spec"), ("paths", "config"))


class PathsSettings(TypedDict):
    spec: str
    config: str


class ObservabilitySettings(TypedDict):
    log_level: str
    log_format: str


class OutputSettings(TypedDict):
    color: bool


class DeploycheckSettings(TypedDict):
    paths: PathsSettings
    observability: ObservabilitySettings
    output: OutputSettings


DEFAULT_SETTINGS: Final[DeploycheckSettings] = {
    "paths": {
        "spec": DEFAULT_SPEC_PATH.as_posix(),
        "config": DEFAULT_CONFIG_PATH.as_posix(),
    },
    "observability": {
        "log_level": "WARNING",
        "log_format": "text",
    },
    "output": {
        "color": True,
    },
}


@dataclass(frozen=True, slots=True)
class SettingsValidationIssue:
    """Single structured validation failure."""

    path: str
    message: str


@dataclass(frozen=True, slots=True)
class SettingsValidationResult:
    settings: dict[str, Any] | None
    issues: tuple[SettingsValidationIssue, ...]

    @property
    def is_valid(self) -> bool:
        return self.settings is not None and not self.issues


class SettingsValidationError(DeploycheckError, ValueError):
    """Raised when strict settings validation fails."""

    def __init__(self, issues: Sequence[SettingsValidationIssue]) -> None:
        self.issues = tuple(issues)
        if not self.issues:
            rendered = "unknown validation failure"
        else:
            rendered = "\n".join(f"- {item.path}: {item.message}" for item in self.issues)
        super().__init__(f"invalid settings:\n{rendered}")


class _IssueCollector:
    __slots__ = ("_items",)

    def __init__(self) -> None:
        self._items: list[SettingsValidationIssue] = []

    def add(self, path: str, message: str) -> None:
        self._items.append(SettingsValidationIssue(path=path, message=message))

    def items(self) -> tuple[SettingsValidationIssue, ...]:
        return tuple(self._items)

    @property
    def has_issues(self) -> bool:
        return bool(self._items)


def default_settings() -> dict[str, Any]:
    """Return a deep copy of the built-in defaults."""

    return copy.deepcopy(dict(DEFAULT_SETTINGS))


def merge_settings(base: Mapping[str, object], overlay: Mapping[str, object]) -> dict[str, Any]:
    """Deterministically deep-merge ``overlay`` onto ``base``."""

    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key in sorted(overlay):
        value = overlay[key]
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_settings(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def validate_settings(settings: Mapping[str, object] | object) -> SettingsValidationResult:
    """Validate a fully merged settings mapping."""

    issues = _IssueCollector()
    if not isinstance(settings, Mapping):
        issues.add("<root>", "settings must be a table")
        return SettingsValidationResult(settings=None, issues=issues.items())

    for key in sorted(settings):
        if key not in DEFAULT_SETTINGS:
            issues.add(str(key), "unknown settings section")

    paths = _section(settings, "paths", issues)
    if paths is not None:
        _check_keys(paths, "paths", ("spec", "config"), issues)
        for name in ("spec", "config"):
            value = paths.get(name)
            if not isinstance(value, str) or not value.strip():
                issues.add(f"paths.{name}", "must be a non-empty string")

    observability = _section(settings, "observability", issues)
    if observability is not None:
        _check_keys(observability, "observability", ("log_level", "log_format"), issues)
        level = observability.get("log_level")
        if not isinstance(level, str) or level.upper() not in LOG_LEVELS:
            issues.add("observability.log_level", f"must be one of {', '.join(LOG_LEVELS)}")
        log_format = observability.get("log_format")
        if log_format not in LOG_FORMATS:
            issues.add("observability.log_format", f"must be one of {', '.join(LOG_FORMATS)}")

    output = _section(settings, "output", issues)
    if output is not None:
        _check_keys(output, "output", ("color",), issues)
        if not isinstance(output.get("color"), bool):
            issues.add("output.color", "must be a boolean")

    if issues.has_issues:
        return SettingsValidationResult(settings=None, issues=issues.items())

    normalized = merge_settings({}, settings)
    normalized["observability"]["log_level"] = str(normalized["observability"]["log_level"]).upper()
    return SettingsValidationResult(settings=normalized, issues=())


def assert_valid_settings(settings: Mapping[str, object] | object) -> dict[str, Any]:
    """Validate settings and raise ``SettingsValidationError`` on failure."""

    result = validate_settings(settings)
    if result.settings is None:
        raise SettingsValidationError(result.issues)
    return result.settings


def _section(
    settings: Mapping[str, object], name: str, issues: _IssueCollector
) -> Mapping[str, object] | None:
    value = settings.get(name)
    if not isinstance(value, Mapping):
        issues.add(name, "section must be a table")
        return None
    return value


def _check_keys(
    section: Mapping[str, object],
    prefix: str,
    allowed: tuple[str, ...],
    issues: _IssueCollector,
) -> None:
    for key in sorted(section):
        if key not in allowed:
            issues.add(f"{prefix}.{key}", "unknown setting")


__all__ = [
    "DEFAULT_SETTINGS",
    "LOG_FORMATS",
    "LOG_LEVELS",
    "PATH_FIELDS",
    "DeploycheckSettings",
    "SettingsValidationError",
    "SettingsValidationIssue",
    "SettingsValidationResult",
    "assert_valid_settings",
    "default_settings",
    "merge_settings",
    "validate_settings",
]
