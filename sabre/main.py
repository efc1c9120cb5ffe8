from __future__ import annotations

"""
Typer CLI entry point and orchestration of the analysis pipeline.

`sabre analyze` runs the whole flow for one Solidity file:
- resolve the file and its imports, compile them with solc
- pick the contract and build the analysis request
- submit it, wait for the job with the bounded polling schedule of the mode
- fetch the findings, map them onto source lines, and render them

The remaining commands inspect jobs that were already submitted.
"""

import json
import logging
from importlib import metadata
from pathlib import Path
from typing import Any, NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from sabre.client import MythXClient, dashboard_url
from sabre.compiler import compile_sources, get_compiled_contract, get_solc_input, resolve_sources
from sabre.config import DEFAULT_MODE, Config, load_config, mode_timings
from sabre.errors import CompilationError, SabreError
from sabre.findings.aggregate import aggregate
from sabre.findings.vendor import parse_issue_reports
from sabre.polling import PollStatus
from sabre.reporting.console import print_no_issues
from sabre.reporting.formatters import OutputFormat, available_formats, get_formatter
from sabre.request import get_request_data, get_submission

logger = logging.getLogger(__name__)

app = typer.Typer(help="Sabre - MythX security analysis client for Solidity smart contracts.")
console = Console()

FORMAT_HELP = f"Output format: {', '.join(available_formats())}."


def _configure_logging(verbose: bool) -> None:
    """Send sabre.* log records to stderr through Rich; DEBUG with --verbose."""
    level = logging.DEBUG if verbose else logging.WARNING
    sabre_logger = logging.getLogger("sabre")
    sabre_logger.setLevel(level)
    for handler in list(sabre_logger.handlers):
        sabre_logger.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_path=False, markup=False)
    handler.setLevel(level)
    sabre_logger.addHandler(handler)


def _fail(message: str, details: Optional[list[str]] = None) -> NoReturn:
    console.print(f"[red]✖ {message}[/red]", soft_wrap=True, markup=True, highlight=False)
    for line in details or []:
        console.print(line, style="red", soft_wrap=True, markup=False, highlight=False)
    raise typer.Exit(code=1)


def _debug_dump(title: str, body: Any) -> None:
    console.print("-------------------")
    console.print(f"{title}:\n", markup=False)
    console.print_json(json.dumps(body, default=str))
    console.print("-------------------")


def _load_config(**overrides: Optional[str]) -> Config:
    try:
        return load_config().with_overrides(**overrides)
    except SabreError as e:
        _fail(str(e))


@app.callback()
def _main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
) -> None:
    _configure_logging(verbose)


@app.command()
def analyze(
    target: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        help="Solidity file to analyze.",
    ),
    contract: Optional[str] = typer.Argument(
        None, help="Contract to analyze (defaults to the largest one in the file)."
    ),
    mode: str = typer.Option(DEFAULT_MODE, "--mode", help="Analysis mode: quick, standard, full, deep."),
    output_format: str = typer.Option(OutputFormat.TEXT.value, "--format", help=FORMAT_HELP),
    client_tool_name: Optional[str] = typer.Option(
        None, "--client-tool-name", help="Override the client tool name sent to the API."
    ),
    no_cache_lookup: bool = typer.Option(
        False, "--no-cache-lookup", help="Deactivate MythX cache lookups."
    ),
    debug: bool = typer.Option(False, "--debug", help="Print the API request and response bodies."),
    solc: Optional[str] = typer.Option(None, "--solc", help="solc binary to compile with."),
) -> None:
    """
    Compile a Solidity file, submit it to MythX, and report the findings.
    """
    try:
        timings = mode_timings(mode)
        formatter = get_formatter(output_format)
    except SabreError as e:
        _fail(str(e))
    config = _load_config(client_tool_name=client_tool_name, solc=solc)
    if config.uses_trial_account:
        console.print(
            "[yellow]Using the MythX trial account. Set MYTHX_API_KEY or "
            "MYTHX_USERNAME and MYTHX_PASSWORD to analyze with your own account.[/yellow]",
            soft_wrap=True,
        )

    try:
        with console.status("Resolving imports"):
            sources = resolve_sources(target)
        main_source = target.as_posix()

        with console.status("Compiling source(s)"):
            output = compile_sources(get_solc_input(sources), config.solc)
        compiled = get_compiled_contract(output, main_source, contract)
        console.print(f"[green]✔[/green] Compiled contract {compiled.name}", soft_wrap=True)

        data = get_request_data(compiled, output, sources, main_source, mode)
        submission = get_submission(data, config.client_tool_name, no_cache_lookup)
        if debug:
            _debug_dump("MythX Request Body", submission)

        client = MythXClient.from_config(config)
        with console.status("Submitting data for analysis"):
            uuid = client.submit(submission)
        console.print(
            f"[green]✔[/green] Analysis job submitted: [yellow]{dashboard_url(uuid)}[/yellow]",
            soft_wrap=True,
        )

        with console.status(f"Analyzing {compiled.name}"):
            state = client.await_analysis(uuid, timings.initial_delay, timings.timeout)
        logger.info(
            "Analysis %s ended with status %s after %d queries (%.1fs)",
            uuid,
            state.vendor_status or state.status.value,
            state.attempts_made,
            state.elapsed_time,
        )
        if state.status is PollStatus.ERROR:
            _fail(f"Analysis {uuid} failed with status: {state.vendor_status or state.status.value}")

        with console.status("Retrieving analysis results"):
            payload = client.get_issues(uuid)
        if debug:
            _debug_dump("MythX Response Body", payload)

        reports = aggregate(parse_issue_reports(payload), sources, data["sourceList"])
    except CompilationError as e:
        _fail(str(e), e.errors[1:])
    except SabreError as e:
        _fail(str(e))

    if not reports:
        print_no_issues(str(target), compiled.name, console)
        return
    typer.echo(formatter(reports))


@app.command()
def report(
    uuid: str = typer.Argument(..., help="UUID of a finished analysis."),
    output_format: str = typer.Option(OutputFormat.TEXT.value, "--format", help=FORMAT_HELP),
) -> None:
    """
    Fetch the findings of an analysis that was already submitted.

    Source files are not available here, so findings are grouped by file but
    their positions stay unresolved.
    """
    try:
        formatter = get_formatter(output_format)
    except SabreError as e:
        _fail(str(e))
    client = MythXClient.from_config(_load_config())
    try:
        reports = aggregate(client.fetch_findings(uuid), {})
    except SabreError as e:
        _fail(str(e))

    if not reports:
        print_no_issues(f"analysis {uuid}", console=console)
        return
    typer.echo(formatter(reports))


def _print_analysis(analysis: dict[str, Any]) -> None:
    uuid = analysis.get("uuid", "")
    console.print("--------------------------------------------", markup=False)
    for label, key in (
        ("API Version", "apiVersion"),
        ("UUID", "uuid"),
        ("Status", "status"),
        ("Submitted by", "submittedBy"),
        ("Submitted at", "submittedAt"),
    ):
        console.print(f"{label + ':':<24}{analysis.get(key, '')}", markup=False, soft_wrap=True)
    if uuid:
        console.print(f"{'Report URL:':<24}{dashboard_url(uuid)}", markup=False, soft_wrap=True)


@app.command()
def status(uuid: str = typer.Argument(..., help="UUID of a submitted analysis.")) -> None:
    """Show the status of an analysis."""
    client = MythXClient.from_config(_load_config())
    try:
        analysis = client.get_status(uuid)
    except SabreError as e:
        _fail(str(e))
    console.print("[green]✔ Analysis status retrieved[/green]")
    _print_analysis(analysis)


@app.command("list")
def list_analyses() -> None:
    """List submitted analyses."""
    client = MythXClient.from_config(_load_config())
    try:
        body = client.list_analyses()
    except SabreError as e:
        _fail(str(e))
    analyses = body.get("analyses") or []
    console.print(f"[green]✔ {len(analyses)} analyses retrieved[/green]")
    for analysis in analyses:
        _print_analysis(analysis)


@app.command()
def api_version() -> None:
    """Print the MythX API version."""
    client = MythXClient.from_config(_load_config())
    try:
        versions = client.api_version()
    except SabreError as e:
        _fail(f"Failed to obtain API version: {e}")
    for key, value in versions.items():
        console.print(f"{key}: {value}", markup=False, highlight=False)


@app.command()
def version() -> None:
    """Print the sabre version."""
    try:
        typer.echo(metadata.version("sabre"))
    except metadata.PackageNotFoundError:
        typer.echo("unknown")


def main() -> None:
    """Entry point for `python -m sabre.main` and the `sabre` script."""
    app()


if __name__ == "__main__":
    main()
