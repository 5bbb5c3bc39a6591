"""
deploycheck — span-tracking TOML loader

File: src/deploycheck/document/parser.py

Purpose
- Parse TOML 1.0 text into a ``SpannedTable`` tree where every key segment, scalar,
  array and inline table remembers the offset range it was parsed from.

What should be included in this file
- A single-pass recursive-descent parser over the source text (no newline
  normalization, so offsets always index the caller's string).
- TOML structural rules: duplicate keys, table redeclaration, immutable inline
  tables and static arrays, dotted keys that reopen closed tables.

Functional requirements
- All-or-nothing: a failure raises ``ParseError`` with a point span at the offending
  offset and never returns a partial tree.
- Decoded values match what ``tomllib`` produces for the same document.

Non-functional requirements
- Deterministic, pure, no I/O.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Final, NoReturn, TypeAlias

from deploycheck.document.errors import ParseError
from deploycheck.document.tree import (
    ScalarKind,
    SpannedArray,
    SpannedEntry,
    SpannedKey,
    SpannedNode,
    SpannedScalar,
    SpannedTable,
)
from deploycheck.spans import SourceSpan

_LOGGER = logging.getLogger(__name__)

_WS: Final[frozenset[str]] = frozenset(" \t")
_BARE_KEY_RE: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_-]+")
_HEX_RE: Final[re.Pattern[str]] = re.compile(r"[0-9A-Fa-f]+")

_DATETIME_RE: Final[re.Pattern[str]] = re.compile(
    r"""
([0-9]{4})-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])
(?:
    [Tt ]
    ([01][0-9]|2[0-3]):([0-5][0-9]):([0-5][0-9])
    (?:\.([0-9]{1,6})[0-9]*)?
    (?:([Zz])|([+-])([01][0-9]|2[0-3]):([0-5][0-9]))?
)?
""",
    flags=re.VERBOSE,
)
_LOCAL_TIME_RE: Final[re.Pattern[str]] = re.compile(
    r"([01][0-9]|2[0-3]):([0-5][0-9]):([0-5][0-9])(?:\.([0-9]{1,6})[0-9]*)?"
)
_NUMBER_RE: Final[re.Pattern[str]] = re.compile(
    r"""
0
(?:
    x[0-9A-Fa-f](?:_?[0-9A-Fa-f])*
    |
    b[01](?:_?[01])*
    |
    o[0-7](?:_?[0-7])*
)
|
[+-]?(?:0|[1-9](?:_?[0-9])*)
(?P<floatpart>
    (?:\.[0-9](?:_?[0-9])*)?
    (?:[eE][+-]?[0-9](?:_?[0-9])*)?
)
""",
    flags=re.VERBOSE,
)

_BASIC_ESCAPES: Final[dict[str, str]] = {
    "\\b": "\b",
    "\\t": "\t",
    "\\n": "\n",
    "\\f": "\f",
    "\\r": "\r",
    '\\"': '"',
    "\\\\": "\\",
}


class _Table:
    __slots__ = ("entries", "explicit", "frozen", "span")

    def __init__(self, span: SourceSpan, *, explicit: bool = False) -> None:
        self.entries: dict[str, tuple[SpannedKey, _Node]] = {}
        self.span = span
        self.explicit = explicit
        self.frozen = False


class _Array:
    __slots__ = ("items", "of_tables", "span")

    def __init__(self, span: SourceSpan, *, of_tables: bool) -> None:
        self.items: list[_Node] = []
        self.span = span
        self.of_tables = of_tables


_Node: TypeAlias = "_Table | _Array | SpannedScalar"


def parse_document(document_name: str, document_text: str) -> SpannedTable:
    """Parse ``document_text`` into a span-annotated tree or raise ``ParseError``."""

    tree = _Parser(document_name, document_text).parse()
    _LOGGER.debug("parsed document %s with %d top-level keys", document_name, len(tree))
    return tree


class _Parser:
    def __init__(self, name: str, src: str) -> None:
        self._name = name
        self._src = src
        self._pos = 0
        self._root = _Table(SourceSpan(0, len(src)), explicit=True)
        self._pending_explicit: list[_Table] = []

    # ------------------------------------------------------------------
    # Document structure
    # ------------------------------------------------------------------

    def parse(self) -> SpannedTable:
        current = self._root
        src = self._src
        while True:
            self._skip_ws()
            if self._pos >= len(src):
                break
            char = src[self._pos]
            if char == "#":
                self._skip_comment()
            elif char in "\r\n":
                self._consume_newline()
                continue
            elif char == "[":
                self._finalize_pending()
                if src.startswith("[[", self._pos):
                    current = self._array_table_header()
                else:
                    current = self._table_header()
            else:
                self._key_value(current, self._pending_explicit)
            self._expect_line_end()

        frozen = _freeze(self._root)
        assert isinstance(frozen, SpannedTable)
        return frozen

    def _finalize_pending(self) -> None:
        for table in self._pending_explicit:
            table.explicit = True
        self._pending_explicit.clear()

    def _expect_line_end(self) -> None:
        self._skip_ws()
        if self._pos >= len(self._src):
            return
        if self._src[self._pos] == "#":
            self._skip_comment()
            if self._pos >= len(self._src):
                return
        if self._src[self._pos] in "\r\n":
            self._consume_newline()
            return
        self._fail(self._pos, "expected newline or end of document after expression")

    def _table_header(self) -> _Table:
        start = self._pos
        self._pos += 1
        self._skip_ws()
        keys = self._parse_key()
        self._skip_ws()
        self._expect("]", "expected ']' at end of table header")
        span = SourceSpan(start, self._pos)

        parent = self._root
        for key in keys[:-1]:
            parent = self._descend_for_header(parent, key)

        stem = keys[-1]
        existing = parent.entries.get(stem.name)
        if existing is None:
            table = _Table(span, explicit=True)
            parent.entries[stem.name] = (stem, table)
            return table

        node = existing[1]
        if not isinstance(node, _Table) or node.explicit or node.frozen:
            self._fail(stem.span.start, f"table {_dotted(keys)!r} is already defined")
        node.explicit = True
        node.span = span
        parent.entries[stem.name] = (stem, node)
        return node

    def _array_table_header(self) -> _Table:
        start = self._pos
        self._pos += 2
        self._skip_ws()
        keys = self._parse_key()
        self._skip_ws()
        self._expect("]]", "expected ']]' at end of array of tables header")
        span = SourceSpan(start, self._pos)

        parent = self._root
        for key in keys[:-1]:
            parent = self._descend_for_header(parent, key)

        stem = keys[-1]
        element = _Table(span, explicit=True)
        existing = parent.entries.get(stem.name)
        if existing is None:
            array = _Array(span, of_tables=True)
            array.items.append(element)
            parent.entries[stem.name] = (stem, array)
            return element

        node = existing[1]
        if not isinstance(node, _Array) or not node.of_tables:
            self._fail(
                stem.span.start,
                f"cannot append to {_dotted(keys)!r}: key is already defined as another type",
            )
        node.items.append(element)
        return element

    def _descend_for_header(self, parent: _Table, key: SpannedKey) -> _Table:
        existing = parent.entries.get(key.name)
        if existing is None:
            child = _Table(key.span)
            parent.entries[key.name] = (key, child)
            return child

        node = existing[1]
        if isinstance(node, _Array) and node.of_tables:
            last = node.items[-1]
            assert isinstance(last, _Table)
            return last
        if isinstance(node, _Table) and not node.frozen:
            return node
        if isinstance(node, (_Table, _Array)):
            self._fail(key.span.start, f"cannot extend immutable value {key.name!r}")
        self._fail(key.span.start, f"key {key.name!r} already holds a value")

    def _key_value(self, table: _Table, pending: list[_Table] | None) -> None:
        keys = self._parse_key()
        self._skip_ws()
        self._expect("=", "expected '=' after key")
        self._skip_ws()
        value = self._parse_value()
        self._insert(table, keys, value, pending)

    def _insert(
        self,
        table: _Table,
        keys: list[SpannedKey],
        value: _Node,
        pending: list[_Table] | None,
    ) -> None:
        parent = table
        for key in keys[:-1]:
            existing = parent.entries.get(key.name)
            if existing is None:
                child = _Table(key.span)
                parent.entries[key.name] = (key, child)
            else:
                node = existing[1]
                if not isinstance(node, _Table):
                    self._fail(key.span.start, f"key {key.name!r} already holds a value")
                if node.frozen:
                    self._fail(key.span.start, f"cannot extend immutable table {key.name!r}")
                if node.explicit:
                    self._fail(key.span.start, f"cannot redefine table {key.name!r}")
                child = node
            if pending is not None:
                pending.append(child)
            parent = child

        stem = keys[-1]
        if stem.name in parent.entries:
            self._fail(stem.span.start, f"duplicate key {_dotted(keys)!r}")
        parent.entries[stem.name] = (stem, value)

    # ------------------------------------------------------------------
    # Keys
    # ------------------------------------------------------------------

    def _parse_key(self) -> list[SpannedKey]:
        keys = [self._simple_key()]
        while True:
            self._skip_ws()
            if self._peek() != ".":
                return keys
            self._pos += 1
            self._skip_ws()
            keys.append(self._simple_key())

    def _simple_key(self) -> SpannedKey:
        start = self._pos
        char = self._peek()
        if char == '"':
            if self._src.startswith('"""', start):
                self._fail(start, "multi-line strings cannot be used as keys")
            name = self._basic_string()
        elif char == "'":
            if self._src.startswith("'''", start):
                self._fail(start, "multi-line strings cannot be used as keys")
            name = self._literal_string()
        else:
            match = _BARE_KEY_RE.match(self._src, start)
            if match is None:
                self._fail(start, "expected a key")
            name = match.group()
            self._pos = match.end()
        return SpannedKey(name, SourceSpan(start, self._pos))

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _parse_value(self) -> _Node:
        src = self._src
        start = self._pos
        char = self._peek()

        if char == '"':
            if src.startswith('"""', start):
                value = self._multiline_basic_string()
            else:
                value = self._basic_string()
            return self._scalar(value, ScalarKind.STRING, start)
        if char == "'":
            if src.startswith("'''", start):
                value = self._multiline_literal_string()
            else:
                value = self._literal_string()
            return self._scalar(value, ScalarKind.STRING, start)
        if src.startswith("true", start):
            self._pos += 4
            return self._scalar(True, ScalarKind.BOOLEAN, start)
        if src.startswith("false", start):
            self._pos += 5
            return self._scalar(False, ScalarKind.BOOLEAN, start)
        if char == "[":
            return self._array()
        if char == "{":
            return self._inline_table()

        datetime_match = _DATETIME_RE.match(src, start)
        if datetime_match is not None:
            try:
                moment = _match_to_datetime(datetime_match)
            except ValueError:
                self._fail(start, "invalid date or datetime")
            self._pos = datetime_match.end()
            kind = ScalarKind.DATETIME if isinstance(moment, datetime) else ScalarKind.DATE
            return self._scalar(moment, kind, start)

        time_match = _LOCAL_TIME_RE.match(src, start)
        if time_match is not None:
            self._pos = time_match.end()
            return self._scalar(_match_to_time(time_match), ScalarKind.TIME, start)

        number_match = _NUMBER_RE.match(src, start)
        if number_match is not None:
            self._pos = number_match.end()
            literal = number_match.group()
            if number_match.group("floatpart"):
                return self._scalar(float(literal), ScalarKind.FLOAT, start)
            return self._scalar(int(literal, 0), ScalarKind.INTEGER, start)

        for width in (3, 4):
            literal = src[start : start + width]
            if literal.lstrip("+-") in {"inf", "nan"} and len(literal) == width:
                if width == 3 or literal[0] in "+-":
                    self._pos += width
                    return self._scalar(float(literal), ScalarKind.FLOAT, start)

        self._fail(start, "invalid value")

    def _scalar(self, value: object, kind: ScalarKind, start: int) -> SpannedScalar:
        return SpannedScalar(value, kind, SourceSpan(start, self._pos))  # type: ignore[arg-type]

    def _array(self) -> _Array:
        start = self._pos
        self._pos += 1
        array = _Array(SourceSpan(start, start), of_tables=False)
        while True:
            self._skip_ws_comments_and_newlines()
            if self._peek() == "]":
                self._pos += 1
                break
            array.items.append(self._parse_value())
            self._skip_ws_comments_and_newlines()
            char = self._peek()
            if char == "]":
                self._pos += 1
                break
            if char != ",":
                self._fail(self._pos, "expected ',' or ']' in array")
            self._pos += 1
        array.span = SourceSpan(start, self._pos)
        return array

    def _inline_table(self) -> _Table:
        start = self._pos
        self._pos += 1
        table = _Table(SourceSpan(start, start), explicit=True)
        self._skip_ws()
        if self._peek() == "}":
            self._pos += 1
        else:
            while True:
                self._key_value(table, None)
                self._skip_ws()
                char = self._peek()
                if char == "}":
                    self._pos += 1
                    break
                if char != ",":
                    self._fail(self._pos, "expected ',' or '}' in inline table")
                self._pos += 1
                self._skip_ws()
        table.span = SourceSpan(start, self._pos)
        _freeze_in_place(table)
        return table

    # ------------------------------------------------------------------
    # Strings
    # ------------------------------------------------------------------

    def _basic_string(self) -> str:
        src = self._src
        self._pos += 1
        chunks: list[str] = []
        chunk_start = self._pos
        while True:
            if self._pos >= len(src):
                self._fail(self._pos, "unterminated string")
            char = src[self._pos]
            if char == '"':
                chunks.append(src[chunk_start : self._pos])
                self._pos += 1
                return "".join(chunks)
            if char == "\\":
                chunks.append(src[chunk_start : self._pos])
                chunks.append(self._escape(multiline=False))
                chunk_start = self._pos
                continue
            if char == "\n" or char == "\r":
                self._fail(self._pos, "newlines are not allowed in single-line strings")
            self._check_string_char(char)
            self._pos += 1

    def _multiline_basic_string(self) -> str:
        src = self._src
        self._pos += 3
        self._skip_one_newline()
        chunks: list[str] = []
        chunk_start = self._pos
        while True:
            if self._pos >= len(src):
                self._fail(self._pos, "unterminated multi-line string")
            char = src[self._pos]
            if src.startswith('"""', self._pos):
                chunks.append(src[chunk_start : self._pos])
                chunks.append(self._closing_quotes('"'))
                return "".join(chunks)
            if char == "\\":
                chunks.append(src[chunk_start : self._pos])
                chunks.append(self._escape(multiline=True))
                chunk_start = self._pos
                continue
            if char == "\r":
                if not src.startswith("\r\n", self._pos):
                    self._fail(self._pos, "bare carriage return in string")
                chunks.append(src[chunk_start : self._pos])
                chunks.append("\n")
                self._pos += 2
                chunk_start = self._pos
                continue
            if char != "\n":
                self._check_string_char(char)
            self._pos += 1

    def _literal_string(self) -> str:
        src = self._src
        self._pos += 1
        start = self._pos
        while True:
            if self._pos >= len(src):
                self._fail(self._pos, "unterminated string")
            char = src[self._pos]
            if char == "'":
                value = src[start : self._pos]
                self._pos += 1
                return value
            if char == "\n" or char == "\r":
                self._fail(self._pos, "newlines are not allowed in single-line strings")
            self._check_string_char(char)
            self._pos += 1

    def _multiline_literal_string(self) -> str:
        src = self._src
        self._pos += 3
        self._skip_one_newline()
        chunks: list[str] = []
        chunk_start = self._pos
        while True:
            if self._pos >= len(src):
                self._fail(self._pos, "unterminated multi-line string")
            char = src[self._pos]
            if src.startswith("'''", self._pos):
                chunks.append(src[chunk_start : self._pos])
                chunks.append(self._closing_quotes("'"))
                return "".join(chunks)
            if char == "\r":
                if not src.startswith("\r\n", self._pos):
                    self._fail(self._pos, "bare carriage return in string")
                chunks.append(src[chunk_start : self._pos])
                chunks.append("\n")
                self._pos += 2
                chunk_start = self._pos
                continue
            if char != "\n":
                self._check_string_char(char)
            self._pos += 1

    def _closing_quotes(self, quote: str) -> str:
        # Up to two quotes may directly precede the closing delimiter.
        extra = 0
        while extra < 2 and self._src.startswith(quote, self._pos + 3 + extra):
            extra += 1
        self._pos += 3 + extra
        return quote * extra

    def _skip_one_newline(self) -> None:
        if self._src.startswith("\n", self._pos):
            self._pos += 1
        elif self._src.startswith("\r\n", self._pos):
            self._pos += 2

    def _escape(self, *, multiline: bool) -> str:
        src = self._src
        start = self._pos
        sequence = src[start : start + 2]

        if multiline and sequence in {"\\ ", "\\\t", "\\\n", "\\\r"}:
            self._pos += 1
            self._skip_ws()
            if not (src.startswith("\n", self._pos) or src.startswith("\r\n", self._pos)):
                self._fail(start, "unescaped '\\' in string")
            while self._pos < len(src):
                if src[self._pos] in _WS or src[self._pos] == "\n":
                    self._pos += 1
                elif src.startswith("\r\n", self._pos):
                    self._pos += 2
                else:
                    break
            return ""

        if sequence in {"\\u", "\\U"}:
            width = 4 if sequence == "\\u" else 8
            digits = src[start + 2 : start + 2 + width]
            if len(digits) != width or _HEX_RE.fullmatch(digits) is None:
                self._fail(start, f"invalid unicode escape, expected {width} hex digits")
            codepoint = int(digits, 16)
            if not (0 <= codepoint <= 0xD7FF or 0xE000 <= codepoint <= 0x10FFFF):
                self._fail(start, "escaped character is not a unicode scalar value")
            self._pos = start + 2 + width
            return chr(codepoint)

        replacement = _BASIC_ESCAPES.get(sequence)
        if replacement is None:
            self._fail(start, "invalid escape sequence")
        self._pos += 2
        return replacement

    def _check_string_char(self, char: str) -> None:
        codepoint = ord(char)
        if (codepoint < 0x20 and char != "\t") or codepoint == 0x7F:
            self._fail(self._pos, "control characters are not allowed in strings")

    # ------------------------------------------------------------------
    # Whitespace, comments, low-level helpers
    # ------------------------------------------------------------------

    def _peek(self) -> str:
        return self._src[self._pos : self._pos + 1]

    def _expect(self, token: str, message: str) -> None:
        if not self._src.startswith(token, self._pos):
            self._fail(self._pos, message)
        self._pos += len(token)

    def _skip_ws(self) -> None:
        src = self._src
        while self._pos < len(src) and src[self._pos] in _WS:
            self._pos += 1

    def _skip_comment(self) -> None:
        src = self._src
        self._pos += 1
        while self._pos < len(src):
            char = src[self._pos]
            if char == "\n" or src.startswith("\r\n", self._pos):
                return
            codepoint = ord(char)
            if (codepoint < 0x20 and char != "\t") or codepoint == 0x7F:
                self._fail(self._pos, "control characters are not allowed in comments")
            self._pos += 1

    def _consume_newline(self) -> None:
        if self._src.startswith("\n", self._pos):
            self._pos += 1
        elif self._src.startswith("\r\n", self._pos):
            self._pos += 2
        else:
            self._fail(self._pos, "bare carriage return is not a valid newline")

    def _skip_ws_comments_and_newlines(self) -> None:
        src = self._src
        while self._pos < len(src):
            char = src[self._pos]
            if char in _WS:
                self._pos += 1
            elif char == "#":
                self._skip_comment()
            elif char in "\r\n":
                self._consume_newline()
            else:
                return

    def _fail(self, offset: int, reason: str) -> NoReturn:
        raise ParseError(
            document_name=self._name,
            document_text=self._src,
            reason=reason,
            span=SourceSpan.point(min(offset, len(self._src))),
        )


def _dotted(keys: list[SpannedKey]) -> str:
    return ".".join(key.name for key in keys)


def _match_to_datetime(match: re.Match[str]) -> datetime | date:
    (
        year,
        month,
        day,
        hour,
        minute,
        second,
        micros,
        zulu,
        offset_sign,
        offset_hour,
        offset_minute,
    ) = match.groups()
    if hour is None:
        return date(int(year), int(month), int(day))

    tz: timezone | None = None
    if offset_sign:
        delta = timedelta(hours=int(offset_hour), minutes=int(offset_minute))
        tz = timezone(-delta if offset_sign == "-" else delta)
    elif zulu:
        tz = timezone.utc
    return datetime(
        int(year),
        int(month),
        int(day),
        int(hour),
        int(minute),
        int(second),
        int(micros.ljust(6, "0")) if micros else 0,
        tzinfo=tz,
    )


def _match_to_time(match: re.Match[str]) -> time:
    hour, minute, second, micros = match.groups()
    return time(int(hour), int(minute), int(second), int(micros.ljust(6, "0")) if micros else 0)


def _freeze_in_place(table: _Table) -> None:
    table.frozen = True
    for _, node in table.entries.values():
        if isinstance(node, _Table):
            _freeze_in_place(node)


def _freeze(node: _Node) -> SpannedNode:
    if isinstance(node, _Table):
        return SpannedTable(
            tuple(SpannedEntry(key, _freeze(value)) for key, value in node.entries.values()),
            node.span,
        )
    if isinstance(node, _Array):
        return SpannedArray(
            tuple(_freeze(item) for item in node.items), node.span, of_tables=node.of_tables
        )
    return node


__all__ = ["parse_document"]
