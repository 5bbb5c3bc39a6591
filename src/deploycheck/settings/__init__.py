"""Tool settings: defaults, ``deploycheck.toml``, environment and CLI overrides."""

from __future__ import annotations

from deploycheck.settings.loader import (
    SettingsLoadError,
    dump_settings,
    load_settings,
    normalize_paths,
)
from deploycheck.settings.schema import (
    DEFAULT_SETTINGS,
    DeploycheckSettings,
    SettingsValidationError,
    SettingsValidationIssue,
    SettingsValidationResult,
    assert_valid_settings,
    default_settings,
    merge_settings,
    validate_settings,
)

__all__ = [
    "DEFAULT_SETTINGS",
    "DeploycheckSettings",
    "SettingsLoadError",
    "SettingsValidationError",
    "SettingsValidationIssue",
    "SettingsValidationResult",
    "assert_valid_settings",
    "default_settings",
    "dump_settings",
    "load_settings",
    "merge_settings",
    "normalize_paths",
    "validate_settings",
]
