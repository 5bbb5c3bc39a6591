"""Span-annotated document tree produced by the TOML loader."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import StrEnum
from typing import TYPE_CHECKING, Any, TypeAlias

if TYPE_CHECKING:
    from collections.abc import Iterator

    from deploycheck.spans import SourceSpan

ScalarValue: TypeAlias = str | int | float | bool | datetime | date | time


class ScalarKind(StrEnum):
    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    DATE = "date"
    TIME = "time"


@dataclass(frozen=True, slots=True)
class SpannedKey:
    """One key segment; the span covers its literal text including any quotes."""

    name: str
    span: SourceSpan


@dataclass(frozen=True, slots=True)
class SpannedScalar:
    value: ScalarValue
    kind: ScalarKind
    span: SourceSpan


@dataclass(frozen=True, slots=True)
class SpannedArray:
    items: tuple[SpannedNode, ...]
    span: SourceSpan
    of_tables: bool = False

    def __iter__(self) -> Iterator[SpannedNode]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True, slots=True)
class SpannedEntry:
    key: SpannedKey
    value: SpannedNode


@dataclass(frozen=True, slots=True)
class SpannedTable:
    """Ordered table; each entry keeps the span of its key and of its value.

    Header tables span their ``[header]`` text, inline tables span ``{...}``, tables
    created implicitly span the key segment that created them.
    """

    entries: tuple[SpannedEntry, ...]
    span: SourceSpan
    _index: dict[str, SpannedEntry] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {entry.key.name: entry for entry in self.entries})

    def get(self, name: str) -> SpannedEntry | None:
        return self._index.get(name)

    def keys(self) -> tuple[str, ...]:
        return tuple(entry.key.name for entry in self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[SpannedEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


SpannedNode: TypeAlias = SpannedScalar | SpannedArray | SpannedTable


def node_type_name(node: SpannedNode) -> str:
    """Human readable type name used in shape errors."""

    if isinstance(node, SpannedTable):
        return "table"
    if isinstance(node, SpannedArray):
        return "array of tables" if node.of_tables else "array"
    return node.kind.value


def to_plain(node: SpannedNode) -> Any:
    """Strip spans, returning the same structure ``tomllib`` would produce."""

    if isinstance(node, SpannedTable):
        return {entry.key.name: to_plain(entry.value) for entry in node.entries}
    if isinstance(node, SpannedArray):
        return [to_plain(item) for item in node.items]
    return node.value


__all__ = [
    "ScalarKind",
    "ScalarValue",
    "SpannedArray",
    "SpannedEntry",
    "SpannedKey",
    "SpannedNode",
    "SpannedScalar",
    "SpannedTable",
    "node_type_name",
    "to_plain",
]
