# Rich console output: stylish and table renderers for file reports, plus status panels.

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from sabre.findings.models import Diagnostic, FileReport

RENDER_WIDTH = 120

# Severity → Rich style
SEVERITY_STYLE = {
    "fatal": "bold red",
    "error": "bold red",
    "warning": "bold yellow",
    "high": "bold red",
    "medium": "bold yellow",
    "low": "bold dim",
}

DEFAULT_SEVERITY_STYLE = "bold white"


def _severity_style(severity: str) -> str:
    return SEVERITY_STYLE.get(severity.lower(), DEFAULT_SEVERITY_STYLE)


def _severity_label(diagnostic: Diagnostic) -> str:
    return "error" if diagnostic.fatal else "warning"


def _capture_console(color: bool = False) -> Console:
    """A console writing to a string buffer; plain text unless color is asked for."""
    return Console(
        file=io.StringIO(),
        width=RENDER_WIDTH,
        force_terminal=color,
        color_system="standard" if color else None,
        highlight=False,
    )


def _captured(console: Console) -> str:
    return console.file.getvalue().rstrip("\n")  # type: ignore[attr-defined]


def _shorten_path(path: str | Path) -> str:
    """Return a path relative to the working directory when it lives below it."""
    try:
        return Path(path).resolve().relative_to(Path.cwd().resolve()).as_posix()
    except (ValueError, OSError):
        return str(path).replace("\\", "/")


def _position(diagnostic: Diagnostic) -> str:
    return f"{diagnostic.line}:{diagnostic.column}"


def _plural(count: int, word: str) -> str:
    return f"{count} {word}{'s' if count != 1 else ''}"


def _totals(reports: Sequence[FileReport]) -> tuple[int, int]:
    return (
        sum(r.error_count for r in reports),
        sum(r.warning_count for r in reports),
    )


def render_stylish(reports: Sequence[FileReport], color: bool = False) -> str:
    """
    Compact per-file listing in the style of ESLint's "stylish" formatter:
    file header, one aligned row per diagnostic, and a problem count.
    """
    console = _capture_console(color)

    for report in reports:
        console.print(Text(_shorten_path(report.file_path), style="underline"))
        grid = Table.grid(padding=(0, 2))
        grid.add_column(justify="right", style="dim")
        grid.add_column()
        grid.add_column()
        grid.add_column(style="dim")
        for d in report.messages:
            label = _severity_label(d)
            grid.add_row(
                "  " + _position(d),
                Text(label, style=_severity_style(label)),
                Text(d.message),
                Text(d.rule_link),
            )
        console.print(grid)
        console.print()

    errors, warnings = _totals(reports)
    total = errors + warnings
    if total:
        console.print(
            Text(
                f"✖ {_plural(total, 'problem')} "
                f"({_plural(errors, 'error')}, {_plural(warnings, 'warning')})",
                style="bold red" if errors else "bold yellow",
            )
        )
    return _captured(console)


def render_table(reports: Sequence[FileReport], color: bool = False) -> str:
    """
    Per-file tables with line, column, severity, SWC link and message,
    followed by a file summary and a severity summary.
    """
    console = _capture_console(color)

    for report in reports:
        console.print()
        console.print(Panel(
            Text(_shorten_path(report.file_path), style="bold cyan"),
            box=box.SIMPLE_HEAD,
            border_style="blue",
            padding=(0, 1),
        ))

        table = Table(
            show_header=True,
            header_style="bold magenta",
            box=box.SIMPLE,
            padding=(0, 1),
            expand=False,
        )
        table.add_column("Line", justify="right", style="dim", width=5)
        table.add_column("Col", justify="right", style="dim", width=4)
        table.add_column("Severity", width=10)
        table.add_column("Rule", overflow="fold")
        table.add_column("Message", style="white")

        for d in report.messages:
            severity = d.vendor_severity or _severity_label(d)
            table.add_row(
                str(d.line),
                str(d.column),
                Text(severity.upper(), style=_severity_style(severity)),
                Text(d.rule_link, style="dim"),
                Text(d.message),
            )

        console.print(table)

    _print_file_summary_table(reports, console)
    _print_summary(reports, console)
    return _captured(console)


def _print_file_summary_table(reports: Sequence[FileReport], console: Console) -> None:
    """Print a table of error/warning counts per file."""
    table = Table(
        title="Files Summary",
        show_header=True,
        header_style="bold cyan",
        box=box.ROUNDED,
        padding=(0, 1),
    )
    table.add_column("File", style="white")
    table.add_column("Errors", justify="right", width=8)
    table.add_column("Warnings", justify="right", width=8)

    for report in reports:
        table.add_row(
            _shorten_path(report.file_path),
            Text(str(report.error_count), style="bold red" if report.error_count else "dim"),
            Text(str(report.warning_count), style="bold yellow" if report.warning_count else "dim"),
        )

    console.print()
    console.print(Panel(table, border_style="cyan", box=box.ROUNDED))


def _print_summary(reports: Sequence[FileReport], console: Console) -> None:
    """Print a compact summary of findings."""
    errors, warnings = _totals(reports)
    total = errors + warnings
    summary_parts = [f"[bold]{_plural(total, 'finding')}[/bold]"]
    if errors:
        summary_parts.append(f"[{_severity_style('error')}]{_plural(errors, 'error')}[/]")
    if warnings:
        summary_parts.append(f"[{_severity_style('warning')}]{_plural(warnings, 'warning')}[/]")

    console.print()
    console.print(
        Panel(
            " | ".join(summary_parts),
            title="Summary",
            border_style="yellow" if total > 0 else "green",
            box=box.ROUNDED,
        )
    )


def print_no_issues(target: str, contract_name: Optional[str] = None, console: Optional[Console] = None) -> None:
    """Report an all-clean analysis as a positive outcome."""
    console = console or Console()
    message = f"✔ No errors/warnings found in {target}"
    if contract_name:
        message += f" for contract: {contract_name}"
    console.print(Text(message, style="green"), soft_wrap=True)
