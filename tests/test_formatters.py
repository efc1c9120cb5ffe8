"""Tests for the output renderers."""

import io
import json

import pytest
from rich.console import Console

from sabre.errors import UnknownFormat
from sabre.findings.aggregate import aggregate
from sabre.reporting import console, html, text
from sabre.reporting.formatters import (
    OutputFormat,
    available_formats,
    get_formatter,
    render_compact,
)

SOURCE = "pragma solidity ^0.5.0;\ncontract C { uint x; }"

CREATOR = "0xaffeaffeaffeaffeaffeaffeaffeaffeaffeaffe"
ATTACKER = "0xdeadbeefdeadbeefdeadbeefdeadbeefdeadbeef"

TEST_CASE = {
    "initialState": {
        "accounts": {
            CREATOR: {"nonce": 0, "balance": "0x0", "storage": "{}"},
        }
    },
    "steps": [
        {"origin": CREATOR, "address": "", "input": "0x6080", "value": "0x0"},
        {"origin": ATTACKER, "address": "0x0901d12e", "input": "0xa9059cbb", "value": None},
    ],
}


@pytest.fixture
def reports(finding_factory):
    findings = [
        finding_factory("24:8:0", tail="The operands are not constrained.", extra={"testCases": [TEST_CASE]}),
        finding_factory(
            "0:6:0",
            severity="Low",
            head="A floating pragma is set.",
            swc_id="SWC-103",
            swc_title="Floating Pragma",
        ),
    ]
    return aggregate(findings, {"C.sol": SOURCE})


def test_available_formats():
    assert available_formats() == ["text", "stylish", "compact", "table", "html", "json"]


def test_unknown_format():
    with pytest.raises(UnknownFormat) as excinfo:
        get_formatter("xml")
    assert "Invalid output format 'xml'" in str(excinfo.value)
    assert "json" in str(excinfo.value)


def test_get_formatter_accepts_enum():
    assert get_formatter(OutputFormat.COMPACT) is render_compact


class TestText:
    def test_block_layout(self, reports):
        output = get_formatter("text")(reports)
        assert "==== Integer Overflow and Underflow ====" in output
        assert "Severity: High" in output
        assert "File: C.sol" in output
        assert "Link: https://smartcontractsecurity.github.io/SWC-registry/docs/SWC-101" in output
        assert "The operands are not constrained." in output
        assert "Location: from 2:0 to 2:8" in output
        assert "\ncontract\n" in output
        assert "==== Floating Pragma ====" in output

    def test_test_case(self, reports):
        output = get_formatter("text")(reports)
        assert "Initial State:" in output
        assert f"Account for CREATOR at [ {CREATOR} ]:" in output
        assert "Transaction Sequence:" in output
        assert f"Origin: {ATTACKER} (ATTACKER)" in output
        assert "Data: [CONTRACT CREATION]" in output
        assert "Data: 0xa9059cbb" in output
        assert "Value: null" in output

    def test_unresolved_diagnostic(self, finding_factory):
        unresolved = aggregate([finding_factory("24:8:0", swc_title=None, swc_id=None)], {})
        output = text.render(unresolved)
        assert output.startswith("==== Exception State ====")
        assert "Link:" not in output
        assert "Location: from -1:0 to -1:0" in output
        assert output.endswith("<code not available>")

    def test_guess_account_role(self):
        assert text.guess_account_role(CREATOR) == "CREATOR"
        assert text.guess_account_role(ATTACKER.upper().replace("0X", "0x")) == "ATTACKER"
        assert text.guess_account_role("0x1234") == "USER"


def test_compact(reports):
    output = render_compact(reports)
    lines = output.splitlines()
    assert lines[0] == (
        "C.sol: line 2, col 0, Error - The binary addition can overflow. "
        "(https://smartcontractsecurity.github.io/SWC-registry/docs/SWC-101)"
    )
    assert lines[1].startswith("C.sol: line 1, col 0, Warning - A floating pragma is set.")
    assert lines[-1] == "2 problems"


def test_json_round_trips_counts(reports):
    data = json.loads(get_formatter(OutputFormat.JSON)(reports))
    assert data[0]["file_path"] == "C.sol"
    assert data[0]["error_count"] == 1
    assert data[0]["warning_count"] == 1
    assert data[0]["messages"][0]["line"] == 2
    assert data[0]["messages"][0]["severity"] == "fatal"


def test_stylish(reports):
    output = console.render_stylish(reports)
    assert output.startswith("C.sol")
    assert "2:0" in output
    assert "error" in output
    assert "warning" in output
    assert output.splitlines()[-1] == "✖ 2 problems (1 error, 1 warning)"


def test_stylish_keeps_markup_literal(finding_factory):
    reports = aggregate([finding_factory(head="Uses [bold]brackets[/bold]")], {"C.sol": SOURCE})
    assert "[bold]brackets[/bold]" in console.render_stylish(reports)


def test_table(reports):
    output = console.render_table(reports)
    assert "Files Summary" in output
    assert "HIGH" in output
    assert "LOW" in output
    assert "2 findings" in output
    assert "1 error" in output


def test_html_escapes_values(finding_factory):
    reports = aggregate([finding_factory(head="<script>alert(1)</script>")], {"C.sol": SOURCE})
    output = html.render(reports)
    assert output.startswith("<!doctype html>")
    assert "<script>" not in output
    assert "&lt;script&gt;" in output
    assert "<h3>C.sol</h3>" in output
    assert "1 problem(s): 1 error(s), 0 warning(s)" in output


def test_print_no_issues():
    out = Console(file=io.StringIO(), width=200)
    console.print_no_issues("C.sol", "C", out)
    assert out.file.getvalue().strip() == "✔ No errors/warnings found in C.sol for contract: C"


def test_empty_reports_render():
    assert render_compact([]) == ""
    assert json.loads(get_formatter("json")([])) == []


@pytest.mark.parametrize(
    "value, expected",
    [(True, "true"), (False, "false"), (None, "null"), (0, "0"), ("0x0", "0x0"), ({"a": 1}, '{"a": 1}')],
)
def test_stringify_value(value, expected):
    assert text.stringify_value(value) == expected
