"""
deploycheck — diagnostic reporter

File: src/deploycheck/diagnostics/reporter.py

Purpose
- Render a ``DiagnosticError`` against the source text of the document(s) it
  points into.

What should be included in this file
- ``render_diagnostic_text``: styled ``rich.text.Text`` rendering.
- ``render_diagnostic``: the same rendering as plain text.

Functional requirements
- Header line with code and message, one ``--> name:line:column`` section per
  document (in order of first appearance), the offending source lines with each span
  underlined and labelled, and the optional help last.
- Zero-width spans get a single caret; spans crossing a line break are underlined
  to the end of their first line.

Non-functional requirements
- Pure: no I/O, no re-parsing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.style import Style
from rich.text import Text

from deploycheck.spans import line_bounds

if TYPE_CHECKING:
    from collections.abc import Sequence

    from deploycheck.diagnostics.errors import DiagnosticError, DiagnosticLabel

_S_ERROR = Style(color="red", bold=True)
_S_MESSAGE = Style(bold=True)
_S_GUTTER = Style(color="blue", bold=True)
_S_PRIMARY = Style(color="red", bold=True)
_S_SECONDARY = Style(color="cyan", bold=True)
_S_HELP = Style(color="green", bold=True)


def render_diagnostic(diagnostic: DiagnosticError) -> str:
    """Render ``diagnostic`` as plain text."""

    return render_diagnostic_text(diagnostic).plain


def render_diagnostic_text(diagnostic: DiagnosticError) -> Text:
    """Render ``diagnostic`` as styled text."""

    out = Text()
    out.append(f"error[{diagnostic.code}]", style=_S_ERROR)
    out.append(f": {diagnostic.message}\n", style=_S_MESSAGE)

    groups = _group_by_document(diagnostic.labels)
    width = _gutter_width(diagnostic.labels)
    primary = diagnostic.primary_label
    for labels in groups:
        _render_document(out, labels, width, primary)

    if diagnostic.help:
        out.append(f"{' ' * width} = ", style=_S_GUTTER)
        out.append("help", style=_S_HELP)
        out.append(f": {diagnostic.help}\n")

    out.rstrip()
    return out


def _group_by_document(labels: Sequence[DiagnosticLabel]) -> list[list[DiagnosticLabel]]:
    groups: dict[tuple[str, str], list[DiagnosticLabel]] = {}
    for label in labels:
        groups.setdefault((label.document_name, label.document_text), []).append(label)
    return list(groups.values())


def _gutter_width(labels: Sequence[DiagnosticLabel]) -> int:
    widest = 1
    for label in labels:
        location = label.location
        if location is not None:
            widest = max(widest, len(str(location[0])))
    return widest


def _render_document(
    out: Text,
    labels: list[DiagnosticLabel],
    width: int,
    primary: DiagnosticLabel | None,
) -> None:
    pad = " " * width
    located = sorted(
        (label for label in labels if label.span is not None),
        key=lambda label: (label.span.start, label.span.end) if label.span else (0, 0),
    )
    header = located[0].describe_location() if located else labels[0].document_name
    out.append(f"{pad}--> ", style=_S_GUTTER)
    out.append(f"{header}\n")
    if not located:
        return

    out.append(f"{pad} |\n", style=_S_GUTTER)
    previous_line: int | None = None
    for label in located:
        span = label.span
        location = label.location
        assert span is not None and location is not None
        line_number = location[0]
        text = label.document_text
        line_start, line_end = line_bounds(text, span.start)
        source_line = text[line_start:line_end]

        if line_number != previous_line:
            out.append(f"{str(line_number).rjust(width)} | ", style=_S_GUTTER)
            out.append(f"{source_line}\n")
            previous_line = line_number

        column = min(span.start, line_end) - line_start
        indent = "".join("\t" if char == "\t" else " " for char in source_line[:column])
        carets = max(1, min(span.end, line_end) - span.start)
        style = _S_PRIMARY if label is primary else _S_SECONDARY
        out.append(f"{pad} | ", style=_S_GUTTER)
        out.append(indent)
        out.append(f"{'^' * carets} {label.label}\n", style=style)


__all__ = ["render_diagnostic", "render_diagnostic_text"]
