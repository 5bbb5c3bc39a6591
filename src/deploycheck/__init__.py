"""
deploycheck — deployment spec/config validation

File: src/deploycheck/__init__.py

Purpose
- Package root. Validates a deployment configuration against the specification an
  application declares, reporting violations at their exact source location.

What should be included in this file
- Version export and the small public API surface (``load``, ``load_from_file``,
  the diagnostic base type and the reporter).

Functional requirements
- Must not have side effects at import time (no settings loading, no logging init).
"""

from __future__ import annotations

from deploycheck.diagnostics import DiagnosticError, render_diagnostic
from deploycheck.document import ParseError
from deploycheck.errors import ContractViolation, DeploycheckError
from deploycheck.validation import load, load_from_file

__version__ = "0.1.0"

__all__ = [
    "ContractViolation",
    "DeploycheckError",
    "DiagnosticError",
    "ParseError",
    "__version__",
    "load",
    "load_from_file",
    "render_diagnostic",
]
