# Convert one raw finding into a Diagnostic: pick its authoritative location,
# map severity, build the SWC link, and resolve line/column when the source is known.

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from sabre.errors import UnresolvableFile
from sabre.findings.models import (
    NO_RULE_LINK,
    UNKNOWN_FILE,
    Diagnostic,
    RawFinding,
    RawLocation,
    Severity,
)
from sabre.sourcemap import LineBreakTable, code_sample, parse_source_map_token

SOURCE_TYPE_FILE = "solidity-file"
SOURCE_FORMAT_TEXT = "text"

SWC_LINK_TEMPLATE = "https://smartcontractsecurity.github.io/SWC-registry/docs/{swc_id}"

# Vendor severity -> reporting severity. Anything not listed is a warning.
VENDOR_SEVERITY = {
    "High": Severity.FATAL,
    "Medium": Severity.WARNING,
}


def text_locations(finding: RawFinding) -> list[RawLocation]:
    """Candidate locations that point into a Solidity file in text form."""
    return [
        loc
        for loc in finding.locations
        if loc.source_type == SOURCE_TYPE_FILE and loc.source_format == SOURCE_FORMAT_TEXT
    ]


def authoritative_location(finding: RawFinding) -> Optional[RawLocation]:
    """The first text-format, source-file location, or None."""
    locations = text_locations(finding)
    return locations[0] if locations else None


def severity_for(vendor_severity: Optional[str]) -> Severity:
    if not vendor_severity:
        return Severity.WARNING
    return VENDOR_SEVERITY.get(vendor_severity, Severity.WARNING)


def rule_link(swc_id: Optional[str]) -> str:
    if not swc_id:
        return NO_RULE_LINK
    return SWC_LINK_TEMPLATE.format(swc_id=swc_id)


def resolve_file_path(
    source_index: int,
    source_list: Sequence[str],
    sources: Mapping[str, Any] | None = None,
) -> str:
    """
    Map a source-map file index to a file path.

    The service sometimes prefixes paths with "/" (e.g. "/token.sol" for
    "token.sol"); the prefix is dropped when only the bare name is a known source.

    Raises:
        UnresolvableFile: the index is negative or past the end of source_list.
    """
    if source_index < 0 or source_index >= len(source_list):
        raise UnresolvableFile(source_index, list(source_list))
    path = source_list[source_index]
    if sources is not None and path not in sources and path.startswith("/"):
        bare = path[1:]
        if bare in sources:
            return bare
    return path


def normalize(
    finding: RawFinding,
    source_text: Optional[str] = None,
    file_path: Optional[str] = None,
    table: Optional[LineBreakTable] = None,
) -> Diagnostic:
    """
    Build the Diagnostic for a finding.

    Args:
        finding: The raw finding from the service.
        source_text: Content of the file the finding's location points into,
            or None when it is not known. Without it the position stays at the
            unresolved sentinel (line -1, column 0).
        file_path: Path the diagnostic is filed under. When omitted it is
            looked up from the location's file index and source list; a
            finding whose file cannot be found goes under "<unknown>" and its
            position stays unresolved.
        table: Line break table already built for source_text; built here
            when omitted.

    Raises:
        MalformedLocation / InvalidLocation: the authoritative location's
            source map token cannot be parsed.
    """
    line, column, end_line, end_column = -1, 0, -1, 0
    snippet = None

    location = authoritative_location(finding)
    if location is not None:
        source_location, source_index = parse_source_map_token(location.source_map)
        if file_path is None:
            try:
                file_path = resolve_file_path(source_index, location.source_list)
            except UnresolvableFile:
                source_text = None
        if source_text is not None:
            if table is None:
                table = LineBreakTable.from_source(source_text)
            start, end = table.resolve(source_location)
            line, column = start.line, start.column
            end_line, end_column = end.line, end.column
            snippet = code_sample(source_text, source_location)

    return Diagnostic(
        file_path=file_path or UNKNOWN_FILE,
        message=finding.description.head,
        severity=severity_for(finding.severity),
        line=line,
        column=column,
        end_line=end_line,
        end_column=end_column,
        rule_link=rule_link(finding.swc_id),
        vendor_severity=finding.severity,
        snippet=snippet,
        raw_finding=finding,
    )
