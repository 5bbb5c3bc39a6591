"""
deploycheck — validation diagnostics

File: src/deploycheck/validation/errors.py

Purpose
- One diagnostic class per kind of cross-document violation.

What should be included in this file
- Duplicate keys (spec and config flavours), undefined requirements, invalid patterns,
  pattern mismatches, secrets defined as env.
- ``DocumentReadError`` for documents that cannot be resolved or read.

Functional requirements
- Each class fixes its code, message and label texts; callers supply only the
  document context and spans.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from deploycheck.diagnostics.errors import DiagnosticError, DiagnosticLabel
from deploycheck.errors import DeploycheckError

if TYPE_CHECKING:
    from pathlib import Path

    from deploycheck.spans import SourceSpan


class DuplicateKeyError(DiagnosticError):
    """A key declared twice across the ``env`` and ``secrets`` namespaces of one document."""

    subject = "document"

    key: str
    previous: SourceSpan
    redefinition: SourceSpan

    def __init__(
        self,
        *,
        document_name: str,
        document_text: str,
        key: str,
        first: SourceSpan,
        second: SourceSpan,
    ) -> None:
        # The earlier occurrence in the text is the previous definition, whichever list it is in.
        previous, redefinition = (first, second) if first.start < second.start else (second, first)
        self.key = key
        self.previous = previous
        self.redefinition = redefinition
        super().__init__(
            f"duplicate environment variable in {self.subject}",
            labels=(
                DiagnosticLabel(document_name, document_text, previous, "previous definition"),
                DiagnosticLabel(document_name, document_text, redefinition, "redefined here"),
            ),
        )


class DuplicateSpecKeyError(DuplicateKeyError):
    code = "deploycheck::spec::duplicate_key"
    subject = "spec"


class DuplicateConfigKeyError(DuplicateKeyError):
    code = "deploycheck::config::duplicate_key"
    subject = "config"


class UndefinedRequirementError(DiagnosticError):
    """A required key is missing from both ``env`` and ``secrets`` of the configuration."""

    code = "deploycheck::config::undefined_env"

    def __init__(
        self, *, document_name: str, document_text: str, key: str, span: SourceSpan
    ) -> None:
        self.key = key
        self.span = span
        super().__init__(
            "undefined environment variable",
            labels=(DiagnosticLabel(document_name, document_text, span, "specified here"),),
        )


class InvalidPatternError(DiagnosticError):
    code = "deploycheck::spec::invalid_regex"

    def __init__(
        self,
        *,
        document_name: str,
        document_text: str,
        key: str,
        pattern: str,
        span: SourceSpan,
        reason: str | None = None,
    ) -> None:
        self.key = key
        self.pattern = pattern
        self.span = span
        super().__init__(
            "invalid regex for environment variable",
            labels=(DiagnosticLabel(document_name, document_text, span, "specified here"),),
            help=reason,
        )


class PatternMismatchError(DiagnosticError):
    code = "deploycheck::config::invalid_env"

    def __init__(
        self,
        *,
        document_name: str,
        document_text: str,
        key: str,
        pattern: str,
        span: SourceSpan,
    ) -> None:
        self.key = key
        self.pattern = pattern
        self.span = span
        super().__init__(
            "environment variable value does not match spec",
            labels=(DiagnosticLabel(document_name, document_text, span, "defined here"),),
            help=f"regex: {pattern}",
        )


class NamespaceViolationError(DiagnosticError):
    """A key declared as a secret requirement is supplied through ``env``."""

    code = "deploycheck::config::secret_as_env"

    def __init__(
        self, *, document_name: str, document_text: str, key: str, span: SourceSpan
    ) -> None:
        self.key = key
        self.span = span
        super().__init__(
            "secret defined as env",
            labels=(DiagnosticLabel(document_name, document_text, span, "defined as env here"),),
        )


class DocumentReadError(DeploycheckError):
    """Raised when a document path cannot be resolved or read."""

    def __init__(self, message: str, *, path: Path | str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = path


__all__ = [
    "DocumentReadError",
    "DuplicateConfigKeyError",
    "DuplicateKeyError",
    "DuplicateSpecKeyError",
    "InvalidPatternError",
    "NamespaceViolationError",
    "PatternMismatchError",
    "UndefinedRequirementError",
]
