from __future__ import annotations

from typing import Any, Callable, Optional

import pytest

from sabre.findings.models import Description, RawFinding, RawLocation


def make_finding(
    source_map: str = "24:8:0",
    *,
    severity: Optional[str] = "High",
    head: str = "The binary addition can overflow.",
    tail: str = "",
    swc_id: Optional[str] = "SWC-101",
    swc_title: Optional[str] = "Integer Overflow and Underflow",
    source_type: str = "solidity-file",
    source_format: str = "text",
    source_list: Optional[list[str]] = None,
    extra: Optional[dict[str, Any]] = None,
) -> RawFinding:
    """Build a RawFinding with a single candidate location."""
    return RawFinding(
        swc_id=swc_id,
        swc_title=swc_title,
        severity=severity,
        description=Description(head=head, tail=tail),
        locations=[
            RawLocation(
                source_map=source_map,
                source_type=source_type,
                source_format=source_format,
                source_list=source_list if source_list is not None else ["C.sol"],
            )
        ],
        extra=extra or {},
    )


@pytest.fixture
def finding_factory() -> Callable[..., RawFinding]:
    """Provide the RawFinding builder to tests."""
    return make_finding
