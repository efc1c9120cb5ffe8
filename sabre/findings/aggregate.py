# Group normalized findings into one FileReport per source file, de-duplicated,
# with error/warning counts recomputed from what is left.

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Optional, Sequence

from sabre.errors import LocationError, UnresolvableFile
from sabre.findings.models import UNKNOWN_FILE, Diagnostic, FileReport, RawFinding
from sabre.findings.normalize import authoritative_location, normalize, resolve_file_path
from sabre.sourcemap import LineBreakTable, parse_source_map_token

logger = logging.getLogger(__name__)


def source_text(sources: Mapping[str, Any], file_path: str) -> Optional[str]:
    """
    Return the content of file_path from a sources mapping.

    Values may be plain strings or compiler-input style mappings holding the
    text under "content" (or "source", as sent to the service).
    """
    entry = sources.get(file_path)
    if entry is None:
        return None
    if isinstance(entry, str):
        return entry
    if isinstance(entry, Mapping):
        text = entry.get("content", entry.get("source"))
        return text if isinstance(text, str) else None
    return None


def aggregate(
    findings: Iterable[RawFinding],
    sources: Mapping[str, Any],
    source_list: Sequence[str] | None = None,
) -> list[FileReport]:
    """
    Turn a batch of findings into per-file reports.

    Files appear in the order their first finding was received and diagnostics
    keep the service's order; repeated diagnostics are dropped after the
    first. Findings with no resolvable file are filed under "<unknown>". A
    finding whose location cannot be parsed is skipped and logged; the rest of
    the batch is still reported.

    Returns:
        One FileReport per file with at least one diagnostic. An empty list
        means the analysis found no issues.
    """
    default_source_list = list(source_list or [])
    groups: dict[str, dict[str, Diagnostic]] = {}
    tables: dict[str, LineBreakTable] = {}

    for finding in findings:
        file_path = UNKNOWN_FILE
        text = None
        location = authoritative_location(finding)
        try:
            if location is not None:
                _, source_index = parse_source_map_token(location.source_map)
                try:
                    file_path = resolve_file_path(
                        source_index, location.source_list or default_source_list, sources
                    )
                except UnresolvableFile as exc:
                    logger.debug("Filing finding %r under %s: %s", finding.swc_id, UNKNOWN_FILE, exc)
                else:
                    text = source_text(sources, file_path)
                    if text is None:
                        logger.debug("No source text for %s; position left unresolved", file_path)

            table = None
            if text is not None:
                table = tables.get(file_path)
                if table is None:
                    table = tables[file_path] = LineBreakTable.from_source(text)
            diagnostic = normalize(finding, text, file_path, table=table)
        except LocationError as exc:
            logger.warning("Skipping finding %r: %s", finding.swc_id or finding.description.head, exc)
            continue

        group = groups.setdefault(file_path, {})
        group.setdefault(diagnostic.identity(), diagnostic)

    return [
        FileReport.from_diagnostics(file_path, group.values())
        for file_path, group in groups.items()
        if group
    ]
