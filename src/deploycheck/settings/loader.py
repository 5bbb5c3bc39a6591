"""
deploycheck — tool settings loader

File: src/deploycheck/settings/loader.py

Purpose
- Load effective tool settings from defaults, ``deploycheck.toml``, ``DEPLOYCHECK_*``
  environment variables and CLI overrides.

What should be included in this file
- Precedence logic: CLI > env > file > defaults.
- TOML loading via ``tomllib``.
- Deterministic environment variable mapping and coercion.
- Path normalization relative to the settings file location.

Functional requirements
- An explicitly named settings file must exist; the default one is optional.
- Invalid values are rejected through ``assert_valid_settings``.
"""

from __future__ import annotations

import json
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Final, Literal

from deploycheck.constants import ENV_PREFIX, SETTINGS_FILENAME
from deploycheck.errors import DeploycheckError
from deploycheck.settings.schema import (
    PATH_FIELDS,
    assert_valid_settings,
    default_settings,
    merge_settings,
)

_BOOLEAN_TRUE: Final[frozenset[str]] = frozenset({"1", "true", "t", "yes", "y", "on"})
_BOOLEAN_FALSE: Final[frozenset[str]] = frozenset({"0", "false", "f", "no", "n", "off"})


@dataclass(frozen=True, slots=True)
class _Binding:
    path: tuple[str, ...]
    value_type: Literal["str", "bool"]


_ENV_BINDINGS: Final[tuple[_Binding, ...]] = (
    _Binding(("paths", "spec"), "str"),
    _Binding(("paths", "config"), "str"),
    _Binding(("observability", "log_level"), "str"),
    _Binding(("observability", "log_format"), "str"),
    _Binding(("output", "color"), "bool"),
)


class SettingsLoadError(DeploycheckError, ValueError):
    """Raised when settings cannot be loaded or overrides cannot be coerced."""


def load_settings(
    settings_path: str | Path | None = None,
    *,
    cli_overrides: Mapping[str, object] | None = None,
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Load effective settings with precedence CLI > env > file > defaults.

    ``cli_overrides`` uses dotted keys (``"paths.spec"``); ``None`` values are ignored
    so unset argparse options fall through to lower layers.
    """

    resolved_path = _resolve_settings_path(settings_path)
    env_map = dict(os.environ if environ is None else environ)

    file_payload = _load_toml_file(resolved_path, required=settings_path is not None)
    merged = merge_settings(default_settings(), file_payload)
    merged = assert_valid_settings(merged)

    # File paths are relative to the settings file; env and CLI paths to the cwd.
    merged = normalize_paths(merged, base_dir=resolved_path.parent)

    env_overrides = normalize_paths(_collect_env_overrides(env_map), base_dir=Path.cwd())
    cli_payload = normalize_paths(
        _materialize_cli_overrides(cli_overrides or {}), base_dir=Path.cwd()
    )

    merged = merge_settings(merged, env_overrides)
    merged = merge_settings(merged, cli_payload)
    return assert_valid_settings(merged)


def normalize_paths(settings: Mapping[str, object], *, base_dir: Path) -> dict[str, Any]:
    """Normalize configured document paths relative to ``base_dir``."""

    materialized = merge_settings({}, settings)
    for field_path in PATH_FIELDS:
        value = _get_nested(materialized, field_path)
        if isinstance(value, str) and value.strip():
            _set_nested(materialized, field_path, _normalize_one_path(value, base_dir))
    return materialized


def dump_settings(settings: Mapping[str, object]) -> str:
    """Return a deterministic JSON dump of effective settings."""

    return json.dumps(settings, sort_keys=True, indent=2, ensure_ascii=False)


def _resolve_settings_path(settings_path: str | Path | None) -> Path:
    if settings_path is None:
        return (Path.cwd() / SETTINGS_FILENAME).resolve()
    return Path(settings_path).expanduser().resolve()


def _load_toml_file(path: Path, *, required: bool) -> dict[str, Any]:
    if not path.exists():
        if required:
            raise SettingsLoadError(f"settings file not found: {path}")
        return {}

    try:
        with path.open("rb") as handle:
            parsed = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise SettingsLoadError(f"invalid TOML in {path}: {exc}") from exc
    except OSError as exc:
        raise SettingsLoadError(f"unable to read settings file {path}: {exc}") from exc

    return parsed


def _collect_env_overrides(environ: Mapping[str, str]) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    for binding in _ENV_BINDINGS:
        env_name = _env_name_for_path(binding.path)
        raw = environ.get(env_name)
        if raw is None:
            continue
        _set_nested(overrides, binding.path, _coerce_env(raw, binding, env_name))
    return overrides


def _coerce_env(raw: str, binding: _Binding, env_name: str) -> object:
    value = raw.strip()
    if binding.value_type == "str":
        return value

    lowered = value.lower()
    if lowered in _BOOLEAN_TRUE:
        return True
    if lowered in _BOOLEAN_FALSE:
        return False
    raise SettingsLoadError(
        f"{env_name} -> {'.'.join(binding.path)} must be a boolean "
        "(true/false/1/0/yes/no/on/off)"
    )


def _materialize_cli_overrides(cli_overrides: Mapping[str, object]) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key in sorted(cli_overrides):
        value = cli_overrides[key]
        if value is None:
            continue
        path = tuple(part for part in key.split(".") if part)
        if not path:
            raise SettingsLoadError(f"invalid CLI override key {key!r}")
        _set_nested(payload, path, value)
    return payload


def _set_nested(target: dict[str, Any], path: tuple[str, ...], value: object) -> None:
    cursor = target
    for part in path[:-1]:
        next_node = cursor.get(part)
        if not isinstance(next_node, dict):
            next_node = {}
            cursor[part] = next_node
        cursor = next_node
    cursor[path[-1]] = value


def _get_nested(payload: Mapping[str, object], path: tuple[str, ...]) -> object | None:
    cursor: object = payload
    for part in path:
        if not isinstance(cursor, Mapping) or part not in cursor:
            return None
        cursor = cursor[part]
    return cursor


def _normalize_one_path(raw: str, base_dir: Path) -> str:
    candidate = Path(os.path.expandvars(raw)).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return Path(os.path.normpath(str(candidate))).as_posix()


def _env_name_for_path(path: tuple[str, ...]) -> str:
    return ENV_PREFIX + "_".join(part.upper() for part in path)


__all__ = [
    "SettingsLoadError",
    "dump_settings",
    "load_settings",
    "normalize_paths",
]
