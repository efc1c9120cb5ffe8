"""
Output formats for file reports.

The set of formats is closed: each member of OutputFormat maps to one
``render(reports) -> str`` function and selection is a dictionary lookup.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Sequence

from pydantic import TypeAdapter

from sabre.errors import UnknownFormat
from sabre.findings.models import FileReport
from sabre.reporting import console, html, text

Formatter = Callable[[Sequence[FileReport]], str]

_REPORT_LIST = TypeAdapter(list[FileReport])


class OutputFormat(str, Enum):
    TEXT = "text"
    STYLISH = "stylish"
    COMPACT = "compact"
    TABLE = "table"
    HTML = "html"
    JSON = "json"


def render_compact(reports: Sequence[FileReport]) -> str:
    """One line per diagnostic: ``path: line L, col C, Error - message (rule)``."""
    lines = []
    for report in reports:
        for d in report.messages:
            kind = "Error" if d.fatal else "Warning"
            lines.append(
                f"{report.file_path}: line {d.line}, col {d.column}, "
                f"{kind} - {d.message} ({d.rule_link})"
            )
    total = len(lines)
    if total:
        lines += ["", f"{total} problem{'s' if total != 1 else ''}"]
    return "\n".join(lines)


def render_json(reports: Sequence[FileReport]) -> str:
    return _REPORT_LIST.dump_json(list(reports), indent=2).decode("utf-8")


FORMATTERS: dict[OutputFormat, Formatter] = {
    OutputFormat.TEXT: text.render,
    OutputFormat.STYLISH: console.render_stylish,
    OutputFormat.COMPACT: render_compact,
    OutputFormat.TABLE: console.render_table,
    OutputFormat.HTML: html.render,
    OutputFormat.JSON: render_json,
}


def available_formats() -> list[str]:
    return [fmt.value for fmt in OutputFormat]


def get_formatter(name: str | OutputFormat) -> Formatter:
    """Return the renderer for a format name; raise UnknownFormat otherwise."""
    try:
        return FORMATTERS[OutputFormat(name)]
    except ValueError:
        raise UnknownFormat(str(name), available_formats()) from None
