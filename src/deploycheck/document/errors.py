"""Parse failures raised by the loader and by the typed model projection."""

from __future__ import annotations

from typing import TYPE_CHECKING

from deploycheck.diagnostics.errors import DiagnosticError, DiagnosticLabel

if TYPE_CHECKING:
    from deploycheck.spans import SourceSpan


class ParseError(DiagnosticError):
    """Malformed document text, or a document whose shape does not fit the model."""

    code = "deploycheck::document::parse"

    document_name: str
    reason: str
    span: SourceSpan | None

    def __init__(
        self,
        *,
        document_name: str,
        document_text: str,
        reason: str,
        span: SourceSpan | None = None,
    ) -> None:
        self.document_name = document_name
        self.reason = reason
        self.span = span
        super().__init__(
            f"cannot parse document: {reason}",
            labels=(DiagnosticLabel(document_name, document_text, span, "error occurred here"),),
        )


__all__ = ["ParseError"]
