# Source map decoder, turning solc "offset:length:file" entries into line/column pairs.
# A LineBreakTable is built once per source text and reused for every lookup
# against that text.

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from typing import Sequence

from sabre.errors import InvalidLocation, MalformedLocation


@dataclass(frozen=True)
class SourceLocation:
    """A byte range within one source text."""

    offset: int
    length: int

    @property
    def end(self) -> int:
        return self.offset + self.length


@dataclass(frozen=True)
class LineColumn:
    """1-based line, 0-based column."""

    line: int
    column: int


def parse_source_map_token(token: str) -> tuple[SourceLocation, int]:
    """
    Parse a compiler source-map token into a location and a file index.

    Only the first ``;``-separated entry is used. The entry must carry at least
    ``offset:length:fileIndex``; further solc fields (jump type, modifier
    depth) are ignored. A file index of -1 marks compiler-generated code and is
    returned unchanged.

    Raises:
        MalformedLocation: the entry is missing fields or they are not integers.
        InvalidLocation: offset or length is negative.
    """
    if not isinstance(token, str):
        raise MalformedLocation(repr(token))
    entry = token.split(";", 1)[0].strip()
    parts = entry.split(":")
    if len(parts) < 3:
        raise MalformedLocation(token)
    try:
        offset, length, source_index = (int(p) for p in parts[:3])
    except ValueError:
        raise MalformedLocation(token) from None
    if offset < 0 or length < 0:
        raise InvalidLocation(token, offset, length)
    return SourceLocation(offset=offset, length=length), source_index


class LineBreakTable:
    """
    Byte offsets at which each line of a source text starts (line 1 excluded).

    Offsets are stored in ascending order, so an offset's 0-based line is the
    number of line starts at or before it.
    """

    def __init__(self, breaks: Sequence[int], size: int = 0) -> None:
        self.breaks = tuple(breaks)
        self.size = size

    @classmethod
    def from_source(cls, text: str | bytes) -> "LineBreakTable":
        data = text.encode("utf-8") if isinstance(text, str) else text
        breaks = []
        pos = data.find(b"\n")
        while pos != -1:
            breaks.append(pos + 1)
            pos = data.find(b"\n", pos + 1)
        return cls(breaks, size=len(data))

    def __len__(self) -> int:
        return len(self.breaks)

    def __repr__(self) -> str:
        return f"LineBreakTable(lines={len(self.breaks) + 1}, size={self.size})"

    def resolve_offset(self, offset: int) -> LineColumn:
        """Return the 1-based line and 0-based column of a byte offset."""
        if offset < 0:
            raise InvalidLocation(str(offset), offset, 0)
        line = bisect_right(self.breaks, offset)
        line_start = self.breaks[line - 1] if line > 0 else 0
        return LineColumn(line=line + 1, column=offset - line_start)

    def resolve(self, location: SourceLocation) -> tuple[LineColumn, LineColumn]:
        """Return (start, end) positions for a location."""
        if location.offset < 0 or location.length < 0:
            raise InvalidLocation(
                f"{location.offset}:{location.length}", location.offset, location.length
            )
        return self.resolve_offset(location.offset), self.resolve_offset(location.end)


def build_line_break_table(source_text: str | bytes) -> LineBreakTable:
    """Scan source text once and return its line break table."""
    return LineBreakTable.from_source(source_text)


def resolve(location: SourceLocation, table: LineBreakTable) -> tuple[LineColumn, LineColumn]:
    """Resolve a location against a table built for the same source text."""
    return table.resolve(location)


def code_sample(source_text: str, location: SourceLocation) -> str:
    """
    Return the fragment of source_text covered by location.

    Offsets are byte offsets, so slicing happens on the UTF-8 encoding and is
    decoded with errors="replace".
    """
    data = source_text.encode("utf-8")
    return data[location.offset : location.end].decode("utf-8", errors="replace")
