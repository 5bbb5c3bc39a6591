"""Source spans and offset/location conversion helpers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True, order=True)
class SourceSpan:
    """Half-open ``[start, end)`` range of offsets into a document's text.

    Offsets index the decoded document text, so ``text[span.start:span.end]`` is the
    literal the span was parsed from. ``byte_range`` converts to UTF-8 byte offsets.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0:
            raise ValueError(f"span start must be >= 0, got {self.start}")
        if self.end < self.start:
            raise ValueError(f"span end {self.end} precedes start {self.start}")

    @classmethod
    def point(cls, offset: int) -> SourceSpan:
        return cls(offset, offset)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_point(self) -> bool:
        return self.start == self.end

    def slice(self, text: str) -> str:
        return text[self.start : self.end]

    def byte_range(self, text: str) -> tuple[int, int]:
        start = len(text[: self.start].encode("utf-8"))
        return start, start + len(text[self.start : self.end].encode("utf-8"))


def offset_from_location(text: str, line: int, column: int) -> int:
    """Convert a 1-based ``(line, column)`` location into an offset into ``text``.

    Locations past the end of a line clamp to the line end; lines past the end of the
    document clamp to ``len(text)``.
    """

    if line < 1 or column < 1:
        raise ValueError(f"locations are 1-based, got line={line} column={column}")

    offset = 0
    for _ in range(line - 1):
        newline = text.find("\n", offset)
        if newline == -1:
            return len(text)
        offset = newline + 1

    line_end = text.find("\n", offset)
    if line_end == -1:
        line_end = len(text)
    return min(offset + column - 1, line_end)


def location_of(text: str, offset: int) -> tuple[int, int]:
    """Return the 1-based ``(line, column)`` of ``offset`` in ``text``."""

    clamped = max(0, min(offset, len(text)))
    line = text.count("\n", 0, clamped) + 1
    line_start = text.rfind("\n", 0, clamped) + 1
    return line, clamped - line_start + 1


def line_bounds(text: str, offset: int) -> tuple[int, int]:
    """Return ``(start, end)`` offsets of the line containing ``offset``.

    ``end`` excludes the line terminator (``\\n`` or ``\\r\\n``).
    """

    clamped = max(0, min(offset, len(text)))
    start = text.rfind("\n", 0, clamped) + 1
    end = text.find("\n", clamped)
    if end == -1:
        end = len(text)
    if end > start and text[end - 1] == "\r":
        end -= 1
    return start, end


__all__ = ["SourceSpan", "line_bounds", "location_of", "offset_from_location"]
