"""Tests for sabre.sourcemap: token parsing, line break tables, offset resolution."""

import re
from pathlib import Path

import pytest

import sabre.sourcemap
from sabre.errors import InvalidLocation, MalformedLocation
from sabre.sourcemap import (
    LineBreakTable,
    LineColumn,
    SourceLocation,
    build_line_break_table,
    code_sample,
    parse_source_map_token,
    resolve,
)

SOURCE = "pragma solidity ^0.5.0;\ncontract C { uint x; }"

ENCODING_DECLARATION = re.compile(r"^[ \t\f]*#.*?coding[:=][ \t]*([-\w.]+)")


class TestParseToken:
    """Parsing of solc source map tokens."""

    def test_offset_length_file(self):
        location, index = parse_source_map_token("24:8:0")
        assert location == SourceLocation(offset=24, length=8)
        assert index == 0

    def test_extra_solc_fields_ignored(self):
        location, index = parse_source_map_token("10:5:1:i:0")
        assert location == SourceLocation(offset=10, length=5)
        assert index == 1

    def test_only_first_entry_used(self):
        location, index = parse_source_map_token("3:4:2;;10:11:0")
        assert location == SourceLocation(offset=3, length=4)
        assert index == 2

    def test_compiler_generated_index_kept(self):
        _, index = parse_source_map_token("0:0:-1")
        assert index == -1

    @pytest.mark.parametrize("token", ["", "24:8", "a:b:c", "24::0", ":8:0", "1.5:2:0"])
    def test_malformed(self, token):
        with pytest.raises(MalformedLocation) as excinfo:
            parse_source_map_token(token)
        assert excinfo.value.token == token

    def test_non_string_is_malformed(self):
        with pytest.raises(MalformedLocation):
            parse_source_map_token(None)  # type: ignore[arg-type]

    @pytest.mark.parametrize("token", ["-1:8:0", "4:-2:0"])
    def test_negative_offset_or_length(self, token):
        with pytest.raises(InvalidLocation):
            parse_source_map_token(token)


class TestLineBreakTable:
    """Building the table and resolving offsets against it."""

    def test_records_offset_after_each_newline(self):
        table = build_line_break_table("a\nbc\n\nd")
        assert table.breaks == (2, 5, 6)
        assert len(table) == 3

    def test_no_newlines(self):
        table = LineBreakTable.from_source("contract C {}")
        assert table.breaks == ()

    def test_offset_zero_is_line_one_column_zero(self):
        table = build_line_break_table(SOURCE)
        assert table.resolve_offset(0) == LineColumn(line=1, column=0)

    def test_start_of_second_line(self):
        """A finding at 24:8 starts the second line of the pragma example."""
        table = build_line_break_table(SOURCE)
        start, end = resolve(SourceLocation(offset=24, length=8), table)
        assert start == LineColumn(line=2, column=0)
        assert end == LineColumn(line=2, column=8)

    def test_newline_character_belongs_to_its_line(self):
        table = build_line_break_table(SOURCE)
        assert table.resolve_offset(23) == LineColumn(line=1, column=23)

    def test_offset_past_end_is_last_line(self):
        table = build_line_break_table("a\nb\nc")
        assert table.resolve_offset(1000).line == 3

    def test_negative_offset_rejected(self):
        table = build_line_break_table(SOURCE)
        with pytest.raises(InvalidLocation):
            table.resolve_offset(-1)
        with pytest.raises(InvalidLocation):
            table.resolve(SourceLocation(offset=-3, length=1))

    def test_columns_count_bytes(self):
        """Offsets are UTF-8 byte offsets, so multi-byte characters widen columns."""
        text = "// é\nx"
        table = build_line_break_table(text)
        assert table.breaks == (6,)
        assert table.resolve_offset(6) == LineColumn(line=2, column=0)
        assert table.resolve_offset(5) == LineColumn(line=1, column=5)

    def test_resolution_is_monotonic(self):
        text = "line one\n\nthird line\n  indented\nlast"
        table = build_line_break_table(text)
        size = len(text.encode("utf-8"))
        positions = [table.resolve_offset(o) for o in range(size + 1)]
        for a, b in zip(positions, positions[1:]):
            assert a.line <= b.line
            if a.line == b.line:
                assert a.column <= b.column


def test_code_sample():
    assert code_sample(SOURCE, SourceLocation(offset=24, length=8)) == "contract"
    assert code_sample(SOURCE, SourceLocation(offset=0, length=0)) == ""


def test_no_module_header_reads_as_encoding_declaration():
    """A ``coding:`` pattern in the first two lines of a module is taken as its source encoding."""
    package = Path(sabre.sourcemap.__file__).resolve().parent
    for module in sorted(package.rglob("*.py")):
        header = module.read_text(encoding="utf-8").splitlines()[:2]
        assert not any(ENCODING_DECLARATION.search(line) for line in header), module
