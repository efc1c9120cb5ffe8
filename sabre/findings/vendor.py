# Adapter from the service's issue report JSON to RawFinding. Field shapes differ
# slightly between API versions; everything past this module sees one shape.

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from sabre.findings.models import Description, RawFinding, RawLocation

logger = logging.getLogger(__name__)


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _severity(value: Any) -> Optional[str]:
    """Flat "High" or nested {"level": "High"} / {"name": "High"}."""
    if isinstance(value, Mapping):
        value = value.get("level", value.get("name"))
    return _as_str(value)


def _description(issue: Mapping[str, Any]) -> Description:
    value = issue.get("description")
    if isinstance(value, Mapping):
        return Description(
            head=_as_str(value.get("head")) or "",
            tail=_as_str(value.get("tail")) or "",
        )
    if isinstance(value, str):
        return Description(head=value.strip())
    # Older responses put head/tail at the top level of the issue.
    return Description(
        head=_as_str(issue.get("descriptionHead")) or _as_str(issue.get("swcTitle")) or "",
        tail=_as_str(issue.get("descriptionTail")) or "",
    )


def _location(raw: Mapping[str, Any], report: Mapping[str, Any]) -> RawLocation:
    source_list = raw.get("sourceList")
    if source_list is None:
        source_list = report.get("sourceList") or []
    return RawLocation(
        source_map=_as_str(raw.get("sourceMap")) or "",
        source_type=_as_str(raw.get("sourceType", report.get("sourceType"))) or "",
        source_format=_as_str(raw.get("sourceFormat", report.get("sourceFormat"))) or "",
        source_list=[str(p) for p in source_list],
    )


def parse_issue(issue: Mapping[str, Any], report: Mapping[str, Any] | None = None) -> RawFinding:
    """Convert one vendor issue; report supplies defaults shared by its issues."""
    report = report or {}
    locations = issue.get("locations") or []
    extra = issue.get("extra")
    return RawFinding(
        swc_id=_as_str(issue.get("swcID", issue.get("swcId"))),
        swc_title=_as_str(issue.get("swcTitle")),
        severity=_severity(issue.get("severity")),
        description=_description(issue),
        locations=[_location(loc, report) for loc in locations if isinstance(loc, Mapping)],
        extra=dict(extra) if isinstance(extra, Mapping) else {},
    )


def parse_issue_reports(payload: Any) -> list[RawFinding]:
    """
    Flatten the issues endpoint response into RawFindings.

    Accepts a list of reports ({"issues": [...], "sourceList": [...], ...}), a
    single report, or {"issues": [report, ...]} as saved by earlier versions
    of the tool. Findings keep the order the service sent them in.
    """
    if isinstance(payload, Mapping):
        issues = payload.get("issues")
        if isinstance(issues, list) and issues and all(
            isinstance(i, Mapping) and "issues" in i for i in issues
        ):
            reports: list[Any] = list(issues)
        else:
            reports = [payload]
    elif isinstance(payload, list):
        reports = payload
    else:
        raise TypeError(f"Unexpected issue report payload: {type(payload).__name__}")

    findings: list[RawFinding] = []
    for report in reports:
        if not isinstance(report, Mapping):
            logger.warning("Ignoring malformed issue report: %r", report)
            continue
        for issue in report.get("issues") or []:
            if isinstance(issue, Mapping):
                findings.append(parse_issue(issue, report))
    logger.debug("Parsed %d finding(s) from %d report(s)", len(findings), len(reports))
    return findings
