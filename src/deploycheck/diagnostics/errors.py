"""
deploycheck — structured, self-rendering diagnostics

File: src/deploycheck/diagnostics/errors.py

Purpose
- Define the diagnostic base type shared by parse and validation failures.

What should be included in this file
- ``DiagnosticLabel``: one labelled span against one document's source text.
- ``DiagnosticError``: code + message + labels + optional help.

Functional requirements
- Every diagnostic carries enough context (document name, text, span) to be rendered
  without access to the models or the parser.

Non-functional requirements
- No rendering logic here; see ``deploycheck.diagnostics.reporter``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from deploycheck.errors import DeploycheckError
from deploycheck.spans import location_of

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deploycheck.spans import SourceSpan


@dataclass(frozen=True, slots=True)
class DiagnosticLabel:
    """A labelled span inside a named document."""

    document_name: str
    document_text: str
    span: SourceSpan | None
    label: str

    @property
    def location(self) -> tuple[int, int] | None:
        if self.span is None:
            return None
        return location_of(self.document_text, self.span.start)

    def describe_location(self) -> str:
        location = self.location
        if location is None:
            return self.document_name
        line, column = location
        return f"{self.document_name}:{line}:{column}"


class DiagnosticError(DeploycheckError):
    """A single structured diagnostic; the first violation of a pass."""

    code: ClassVar[str] = "deploycheck::diagnostic"

    message: str
    labels: tuple[DiagnosticLabel, ...]
    help: str | None

    def __init__(
        self,
        message: str,
        *,
        labels: Sequence[DiagnosticLabel] = (),
        help: str | None = None,  # noqa: A002 - mirrors the rendered "help" field.
    ) -> None:
        self.message = message
        self.labels = tuple(labels)
        self.help = help
        super().__init__(self._summary())

    @property
    def primary_label(self) -> DiagnosticLabel | None:
        return self.labels[0] if self.labels else None

    @property
    def spans(self) -> tuple[SourceSpan | None, ...]:
        return tuple(label.span for label in self.labels)

    def label_for(self, text: str) -> DiagnosticLabel | None:
        """Return the first label whose text equals ``text``."""

        for label in self.labels:
            if label.label == text:
                return label
        return None

    def _summary(self) -> str:
        primary = self.primary_label
        if primary is None:
            return self.message
        rendered = f"{primary.describe_location()}: {self.message}"
        if self.help:
            rendered = f"{rendered} ({self.help})"
        return rendered


__all__ = ["DiagnosticError", "DiagnosticLabel"]
