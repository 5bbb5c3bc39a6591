"""Shape checks shared by the spec and config projections."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NoReturn

from deploycheck.document.errors import ParseError
from deploycheck.document.tree import (
    ScalarKind,
    SpannedArray,
    SpannedEntry,
    SpannedScalar,
    SpannedTable,
    node_type_name,
)

if TYPE_CHECKING:
    from deploycheck.document.tree import SpannedNode
    from deploycheck.spans import SourceSpan


@dataclass(frozen=True, slots=True)
class ShapeReader:
    """Reads typed fields out of a spanned tree, raising ``ParseError`` on mismatch."""

    document_name: str
    document_text: str

    def fail(self, reason: str, span: SourceSpan | None = None) -> NoReturn:
        raise ParseError(
            document_name=self.document_name,
            document_text=self.document_text,
            reason=reason,
            span=span,
        )

    def required(self, table: SpannedTable, name: str, *, top_level: bool = False) -> SpannedEntry:
        entry = table.get(name)
        if entry is None:
            # A missing top-level field has no text to point at.
            self.fail(f"missing field `{name}`", None if top_level else table.span)
        return entry

    def type_mismatch(self, name: str, expected: str, node: SpannedNode) -> NoReturn:
        self.fail(
            f"invalid type for `{name}`: expected {expected}, found {node_type_name(node)}",
            node.span,
        )

    def string(self, entry: SpannedEntry) -> str:
        return self.string_node(entry.value, entry.key.name)

    def string_node(self, node: SpannedNode, name: str) -> str:
        if not isinstance(node, SpannedScalar) or node.kind is not ScalarKind.STRING:
            self.type_mismatch(name, "string", node)
        assert isinstance(node.value, str)
        return node.value

    def optional_string(self, table: SpannedTable, name: str) -> str | None:
        entry = table.get(name)
        return None if entry is None else self.string(entry)

    def boolean(self, table: SpannedTable, name: str, *, default: bool = False) -> bool:
        entry = table.get(name)
        if entry is None:
            return default
        node = entry.value
        if not isinstance(node, SpannedScalar) or node.kind is not ScalarKind.BOOLEAN:
            self.type_mismatch(name, "boolean", node)
        return bool(node.value)

    def table(self, entry: SpannedEntry) -> SpannedTable:
        node = entry.value
        if not isinstance(node, SpannedTable):
            self.type_mismatch(entry.key.name, "table", node)
        return node

    def array(self, entry: SpannedEntry) -> SpannedArray:
        node = entry.value
        if not isinstance(node, SpannedArray):
            self.type_mismatch(entry.key.name, "array", node)
        return node


__all__ = ["ShapeReader"]
