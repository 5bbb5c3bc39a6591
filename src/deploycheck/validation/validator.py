"""
deploycheck — cross-document validator

File: src/deploycheck/validation/validator.py

Purpose
- Reconcile a parsed specification with a parsed configuration.

What should be included in this file
- ``SpecDocument`` / ``ConfigDocument``: name + source text + model.
- The four checks, in their fixed order (``VALIDATION_CHECKS``).
- ``validate`` (result object) and ``assert_valid`` (raising).

Functional requirements
- Stop at the first violation and report it as a single diagnostic.
- An ``env`` requirement may be satisfied from ``secrets``; only a secret requirement
  supplied through ``env`` is a violation.
- Patterns use RE2 syntax (no lookaround or backreferences) and match as an unanchored
  search; ``$`` anchors only at the very end of the value.

Non-functional requirements
- Pure: no I/O, no mutation of the models. Secret values are never logged.
"""

from __future__ import annotations

import logging
import re2
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from deploycheck.diagnostics.errors import DiagnosticError
from deploycheck.validation.errors import (
    DuplicateConfigKeyError,
    DuplicateSpecKeyError,
    InvalidPatternError,
    NamespaceViolationError,
    PatternMismatchError,
    UndefinedRequirementError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from deploycheck.model.config import AppConfig
    from deploycheck.model.spec import AppSpec
    from deploycheck.spans import SourceSpan

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SpecDocument:
    name: str
    text: str
    spec: AppSpec


@dataclass(frozen=True, slots=True)
class ConfigDocument:
    name: str
    text: str
    config: AppConfig


@dataclass(frozen=True, slots=True)
class ValidationResult:
    """Outcome of one validation pass; ``diagnostic`` is the first violation, if any."""

    spec: AppSpec
    config: AppConfig
    diagnostic: DiagnosticError | None = None

    @property
    def is_valid(self) -> bool:
        return self.diagnostic is None


def check_spec_duplicates(spec_doc: SpecDocument, _config_doc: ConfigDocument) -> None:
    """No key is declared twice across ``spec.env`` and ``spec.secrets``."""

    duplicate = _first_duplicate(
        (requirement.key, requirement.span) for requirement in spec_doc.spec.requirements()
    )
    if duplicate is not None:
        key, first, second = duplicate
        raise DuplicateSpecKeyError(
            document_name=spec_doc.name,
            document_text=spec_doc.text,
            key=key,
            first=first,
            second=second,
        )


def check_config_duplicates(_spec_doc: SpecDocument, config_doc: ConfigDocument) -> None:
    """No key is supplied twice across ``config.env`` and ``config.secrets``."""

    duplicate = _first_duplicate(
        (entry.key, entry.key_span) for entry in config_doc.config.entries()
    )
    if duplicate is not None:
        key, first, second = duplicate
        raise DuplicateConfigKeyError(
            document_name=config_doc.name,
            document_text=config_doc.text,
            key=key,
            first=first,
            second=second,
        )


def check_requirements_satisfied(spec_doc: SpecDocument, config_doc: ConfigDocument) -> None:
    """Every required key is present and every declared pattern compiles and matches."""

    config = config_doc.config
    for requirement in spec_doc.spec.requirements():
        entry = config.lookup(requirement.key)
        if entry is None and not requirement.optional:
            raise UndefinedRequirementError(
                document_name=spec_doc.name,
                document_text=spec_doc.text,
                key=requirement.key,
                span=requirement.span,
            )
        if requirement.regex is None:
            continue

        try:
            pattern = re2.compile(requirement.regex)
        except re2.error as exc:
            raise InvalidPatternError(
                document_name=spec_doc.name,
                document_text=spec_doc.text,
                key=requirement.key,
                pattern=requirement.regex,
                span=requirement.span,
                reason=str(exc),
            ) from exc

        if entry is not None and pattern.search(entry.value) is None:
            raise PatternMismatchError(
                document_name=config_doc.name,
                document_text=config_doc.text,
                key=entry.key,
                pattern=requirement.regex,
                span=entry.key_span,
            )


def check_secrets_not_in_env(spec_doc: SpecDocument, config_doc: ConfigDocument) -> None:
    """No key declared as a secret requirement is supplied through ``config.env``."""

    for requirement in spec_doc.spec.secret_requirements():
        entry = config_doc.config.env_entry(requirement.key)
        if entry is not None:
            raise NamespaceViolationError(
                document_name=config_doc.name,
                document_text=config_doc.text,
                key=entry.key,
                span=entry.key_span,
            )


VALIDATION_CHECKS: Final[tuple[Callable[[SpecDocument, ConfigDocument], None], ...]] = (
    check_spec_duplicates,
    check_config_duplicates,
    check_requirements_satisfied,
    check_secrets_not_in_env,
)


def validate(spec_doc: SpecDocument, config_doc: ConfigDocument) -> ValidationResult:
    """Run every check in order and return the first violation, if any."""

    try:
        spec, config = assert_valid(spec_doc, config_doc)
    except DiagnosticError as exc:
        return ValidationResult(spec=spec_doc.spec, config=config_doc.config, diagnostic=exc)
    return ValidationResult(spec=spec, config=config)


def assert_valid(spec_doc: SpecDocument, config_doc: ConfigDocument) -> tuple[AppSpec, AppConfig]:
    """Run every check in order, raising the first violation as a ``DiagnosticError``."""

    for check in VALIDATION_CHECKS:
        try:
            check(spec_doc, config_doc)
        except DiagnosticError as exc:
            _LOGGER.debug("validation check %s failed: %s", check.__name__, exc.code)
            raise
    _LOGGER.debug(
        "validated %s against %s (%d requirements)",
        config_doc.name,
        spec_doc.name,
        len(spec_doc.spec.env) + len(spec_doc.spec.secrets),
    )
    return spec_doc.spec, config_doc.config


def _first_duplicate(
    keyed_spans: Iterable[tuple[str, SourceSpan]],
) -> tuple[str, SourceSpan, SourceSpan] | None:
    seen: dict[str, SourceSpan] = {}
    for key, span in keyed_spans:
        previous = seen.get(key)
        if previous is not None:
            return key, previous, span
        seen[key] = span
    return None


__all__ = [
    "VALIDATION_CHECKS",
    "ConfigDocument",
    "SpecDocument",
    "ValidationResult",
    "assert_valid",
    "check_config_duplicates",
    "check_requirements_satisfied",
    "check_secrets_not_in_env",
    "check_spec_duplicates",
    "validate",
]
