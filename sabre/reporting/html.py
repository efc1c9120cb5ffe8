# Standalone HTML report: one table per file, every value escaped.

from __future__ import annotations

from html import escape
from typing import Sequence

from sabre.findings.models import NO_RULE_LINK, FileReport

STYLE = (
    "body{font-family:Arial,Helvetica,sans-serif;margin:20px}"
    "table{border-collapse:collapse;width:100%;margin-bottom:24px}"
    "th,td{border:1px solid #ddd;padding:8px;vertical-align:top}"
    "th{background:#f2f2f2;text-align:left}"
    "tr:nth-child(even){background:#fafafa}"
    ".error{color:#c0392b;font-weight:bold}.warning{color:#b7950b;font-weight:bold}"
    "pre{white-space:pre-wrap;word-wrap:break-word;margin:0}"
)


def render(reports: Sequence[FileReport]) -> str:
    errors = sum(r.error_count for r in reports)
    warnings = sum(r.warning_count for r in reports)

    rows: list[str] = [
        "<!doctype html>",
        "<html><head><meta charset='utf-8'><title>MythX Report</title>",
        f"<style>{STYLE}</style>",
        "</head><body>",
        "<h2>MythX Report</h2>",
        f"<p>{errors + warnings} problem(s): {errors} error(s), {warnings} warning(s)</p>",
    ]

    for report in reports:
        rows.append(f"<h3>{escape(report.file_path)}</h3>")
        rows.append(
            "<table><thead><tr><th>Location</th><th>Severity</th>"
            "<th>Issue</th><th>SWC</th></tr></thead><tbody>"
        )
        for d in report.messages:
            label = "error" if d.fatal else "warning"
            tail = d.raw_finding.description.tail if d.raw_finding else ""
            details = escape(d.message)
            if tail:
                details += f"<pre>{escape(tail)}</pre>"
            if d.rule_link == NO_RULE_LINK:
                link = NO_RULE_LINK
            else:
                link = f"<a href='{escape(d.rule_link, quote=True)}'>{escape(d.rule_link)}</a>"
            rows.append(
                f"<tr><td>{d.line}:{d.column}&ndash;{d.end_line}:{d.end_column}</td>"
                f"<td class='{label}'>{escape(d.vendor_severity or label)}</td>"
                f"<td>{details}</td><td>{link}</td></tr>"
            )
        rows.append("</tbody></table>")

    rows.append("</body></html>")
    return "\n".join(rows)
