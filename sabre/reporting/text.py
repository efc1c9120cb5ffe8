# Plain-text renderer: one block per diagnostic with its description, location,
# code sample, and the transaction sequence the service used to trigger the issue.

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

from sabre.findings.models import NO_RULE_LINK, Diagnostic, FileReport

DEFAULT_TITLE = "Exception State"
INDENT = " " * 4

ROLE_CREATOR = "CREATOR"
ROLE_ATTACKER = "ATTACKER"
ROLE_OTHER = "USER"

# Address prefixes the service uses for its synthetic accounts.
ROLE_PREFIXES = {
    "0xaffeaffe": ROLE_CREATOR,
    "0xdeadbeef": ROLE_ATTACKER,
}


def guess_account_role(address: str) -> str:
    return ROLE_PREFIXES.get(str(address).lower()[:10], ROLE_OTHER)


def stringify_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return str(value)
    return json.dumps(value)


def format_initial_state(initial_state: Mapping[str, Any]) -> str:
    output: list[str] = []
    for address, data in (initial_state.get("accounts") or {}).items():
        output.append(f"Account for {guess_account_role(address)} at [ {address} ]:")
        for key in ("nonce", "balance", "storage"):
            output.append(f"{INDENT}{key}: {stringify_value((data or {}).get(key))}")
        output.append("")
    return "\n".join(output).rstrip()


def format_steps(steps: Sequence[Mapping[str, Any]]) -> str:
    output: list[str] = []
    for index, step in enumerate(steps):
        origin = step.get("origin", "")
        output.append(f"Tx #{index}:")
        output.append(f"{INDENT}Origin: {origin} ({guess_account_role(origin)})")
        if step.get("address") == "":
            output.append(f"{INDENT}Data: [CONTRACT CREATION]")
        else:
            output.append(f"{INDENT}Data: {stringify_value(step.get('input'))}")
        output.append(f"{INDENT}Value: {stringify_value(step.get('value'))}")
        output.append("")
    return "\n".join(output).rstrip()


def format_test_case(test_case: Mapping[str, Any]) -> str:
    output: list[str] = []
    initial_state = test_case.get("initialState")
    steps = test_case.get("steps")
    if initial_state:
        output += ["Initial State:", "", format_initial_state(initial_state)]
    if steps:
        if initial_state:
            output.append("")
        output += ["Transaction Sequence:", "", format_steps(steps)]
    return "\n".join(output)


def format_location(diagnostic: Diagnostic) -> str:
    return (
        f"from {diagnostic.line}:{diagnostic.column} "
        f"to {diagnostic.end_line}:{diagnostic.end_column}"
    )


def format_diagnostic(diagnostic: Diagnostic, file_path: str) -> str:
    finding = diagnostic.raw_finding
    title = (finding.swc_title if finding else None) or DEFAULT_TITLE
    header = f"==== {title} ===="
    separator = "-" * len(header)

    output = [
        header,
        f"Severity: {diagnostic.vendor_severity or diagnostic.severity.value}",
        f"File: {file_path}",
    ]
    if diagnostic.rule_link != NO_RULE_LINK:
        output.append(f"Link: {diagnostic.rule_link}")

    output += [separator, diagnostic.message]
    if finding and finding.description.tail:
        output.append(finding.description.tail)

    output += [
        separator,
        f"Location: {format_location(diagnostic)}",
        "",
        diagnostic.snippet if diagnostic.snippet is not None else "<code not available>",
    ]

    test_cases = finding.extra.get("testCases") if finding else None
    for test_case in test_cases or []:
        if isinstance(test_case, Mapping):
            output += [separator, format_test_case(test_case)]

    return "\n".join(output)


def render(reports: Sequence[FileReport]) -> str:
    return "\n\n".join(
        format_diagnostic(message, report.file_path)
        for report in reports
        for message in report.messages
    )
