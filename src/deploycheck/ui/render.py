"""Output rendering for the deploycheck CLI.

File: src/deploycheck/ui/render.py

Purpose
- Provide a thin rendering layer for CLI output.
- Respect the NO_COLOR environment variable and the --no-color CLI flag.

What should be included in this file
- CLIRenderer class with methods for the command output patterns.
- Diagnostic printing: styled through ``rich`` when colour is allowed, plain otherwise.

Functional requirements
- Command results go to stdout; diagnostics and failures go to stderr.
- Plain output is byte-for-byte the reporter's plain rendering.
"""

from __future__ import annotations

import json
import os
import sys
from typing import TYPE_CHECKING

from rich.console import Console

from deploycheck.diagnostics.reporter import render_diagnostic, render_diagnostic_text

if TYPE_CHECKING:
    from deploycheck.diagnostics.errors import DiagnosticError


def _color_allowed(no_color_flag: bool) -> bool:
    """Check whether color output should be attempted."""

    if no_color_flag:
        return False
    if os.environ.get("NO_COLOR", ""):
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


class CLIRenderer:
    """Thin CLI output renderer."""

    def __init__(self, *, no_color: bool = False, verbose: bool = False) -> None:
        self.verbose = verbose
        self._color = _color_allowed(no_color)

    def kv(self, key: str, value: object) -> None:
        print(f"{key}: {value}")

    def text(self, line: str) -> None:
        print(line)

    def json(self, payload: object) -> None:
        """Print ``payload`` as deterministic, indented JSON."""

        print(json.dumps(payload, sort_keys=True, indent=2, ensure_ascii=False))

    def ok(self, label: str) -> None:
        print(f"  OK  {label}")

    def error(self, text: str) -> None:
        print(f"error: {text}", file=sys.stderr)

    def diagnostic(self, diagnostic: DiagnosticError) -> None:
        """Print a rendered diagnostic to stderr."""

        if self._color:
            console = Console(file=sys.stderr, highlight=False, soft_wrap=True)
            console.print(render_diagnostic_text(diagnostic))
            return
        print(render_diagnostic(diagnostic), file=sys.stderr)


def create_renderer(*, no_color: bool = False, verbose: bool = False) -> CLIRenderer:
    """Create a CLI renderer with the given settings."""

    return CLIRenderer(no_color=no_color, verbose=verbose)


__all__ = ["CLIRenderer", "create_renderer"]
