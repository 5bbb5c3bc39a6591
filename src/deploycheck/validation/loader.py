"""
deploycheck — document loading entrypoints

File: src/deploycheck/validation/loader.py

Purpose
- Parse, project, normalize and validate a specification/configuration pair, from
  text or from files.

Functional requirements
- ``load`` returns the validated ``(AppSpec, AppConfig)`` or raises the first
  ``DiagnosticError`` (``ParseError`` included).
- ``load_from_file`` resolves both paths, decodes them as UTF-8 without newline
  translation (spans index the file as stored) and names each document
  by its resolved path; unreadable files raise ``DocumentReadError``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from deploycheck.document.parser import parse_document
from deploycheck.model.config import normalize, project_config
from deploycheck.model.spec import project_spec
from deploycheck.validation.errors import DocumentReadError
from deploycheck.validation.validator import ConfigDocument, SpecDocument, assert_valid

if TYPE_CHECKING:
    from os import PathLike

    from deploycheck.model.config import AppConfig
    from deploycheck.model.spec import AppSpec

_LOGGER = logging.getLogger(__name__)


def load(
    spec_source: tuple[str, str],
    config_source: tuple[str, str],
) -> tuple[AppSpec, AppConfig]:
    """Load ``(name, text)`` pairs for the spec and the config and validate them."""

    spec_name, spec_text = spec_source
    config_name, config_text = config_source

    spec_tree = parse_document(spec_name, spec_text)
    config_tree = parse_document(config_name, config_text)

    spec = project_spec(spec_tree, spec_name, spec_text)
    config = normalize(project_config(config_tree, config_name, config_text))

    return assert_valid(
        SpecDocument(spec_name, spec_text, spec),
        ConfigDocument(config_name, config_text, config),
    )


def load_from_file(
    spec_path: str | PathLike[str],
    config_path: str | PathLike[str],
) -> tuple[AppSpec, AppConfig]:
    """Read both documents from disk and ``load`` them."""

    spec_resolved, spec_text = _read_document(Path(spec_path), "spec")
    config_resolved, config_text = _read_document(Path(config_path), "config")
    _LOGGER.debug("loaded documents spec=%s config=%s", spec_resolved, config_resolved)
    return load((str(spec_resolved), spec_text), (str(config_resolved), config_text))


def _read_document(path: Path, role: str) -> tuple[Path, str]:
    try:
        resolved = path.resolve(strict=True)
    except OSError as exc:
        raise DocumentReadError(f"cannot resolve {role} path", path=path) from exc
    try:
        text = resolved.read_bytes().decode("utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentReadError(f"cannot read {role}", path=resolved) from exc
    return resolved, text


__all__ = ["load", "load_from_file"]
