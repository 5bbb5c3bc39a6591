"""Structured diagnostics and their terminal rendering."""

from __future__ import annotations

from deploycheck.diagnostics.errors import DiagnosticError, DiagnosticLabel
from deploycheck.diagnostics.reporter import render_diagnostic, render_diagnostic_text

__all__ = [
    "DiagnosticError",
    "DiagnosticLabel",
    "render_diagnostic",
    "render_diagnostic_text",
]
