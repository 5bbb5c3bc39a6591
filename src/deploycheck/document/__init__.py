"""Span-tracking TOML loader and the spanned document tree."""

from __future__ import annotations

from deploycheck.document.tree import (
    ScalarKind,
    SpannedArray,
    SpannedEntry,
    SpannedKey,
    SpannedNode,
    SpannedScalar,
    SpannedTable,
    node_type_name,
    to_plain,
)
from deploycheck.document.errors import ParseError
from deploycheck.document.parser import parse_document

__all__ = [
    "ParseError",
    "ScalarKind",
    "SpannedArray",
    "SpannedEntry",
    "SpannedKey",
    "SpannedNode",
    "SpannedScalar",
    "SpannedTable",
    "node_type_name",
    "parse_document",
    "to_plain",
]
