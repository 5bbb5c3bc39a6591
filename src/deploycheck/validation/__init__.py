"""Cross-document validation and the load entrypoints."""

from __future__ import annotations

from deploycheck.validation.errors import (
    DocumentReadError,
    DuplicateConfigKeyError,
    DuplicateKeyError,
    DuplicateSpecKeyError,
    InvalidPatternError,
    NamespaceViolationError,
    PatternMismatchError,
    UndefinedRequirementError,
)
from deploycheck.validation.loader import load, load_from_file
from deploycheck.validation.validator import (
    VALIDATION_CHECKS,
    ConfigDocument,
    SpecDocument,
    ValidationResult,
    assert_valid,
    validate,
)

__all__ = [
    "VALIDATION_CHECKS",
    "ConfigDocument",
    "DocumentReadError",
    "DuplicateConfigKeyError",
    "DuplicateKeyError",
    "DuplicateSpecKeyError",
    "InvalidPatternError",
    "NamespaceViolationError",
    "PatternMismatchError",
    "SpecDocument",
    "UndefinedRequirementError",
    "ValidationResult",
    "assert_valid",
    "load",
    "load_from_file",
    "validate",
]
