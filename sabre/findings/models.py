# Pydantic data models for analysis findings: RawFinding, Diagnostic, FileReport, Severity.

from __future__ import annotations

from enum import Enum
from typing import Any, Iterable, Optional

from pydantic import BaseModel, Field

UNKNOWN_FILE = "<unknown>"
NO_RULE_LINK = "N/A"


class Severity(str, Enum):
    """Binary classification used by every renderer."""

    FATAL = "fatal"
    WARNING = "warning"


class Description(BaseModel):
    """Short (head) and long (tail) description of a finding."""

    head: str = ""
    tail: str = ""


class RawLocation(BaseModel):
    """One candidate location of a finding, as reported by the service."""

    source_map: str = ""
    source_type: str = ""
    source_format: str = ""
    source_list: list[str] = Field(default_factory=list)


class RawFinding(BaseModel):
    """A finding in the shape the vendor adapter produces, independent of API version."""

    swc_id: Optional[str] = None
    swc_title: Optional[str] = None
    severity: Optional[str] = None
    description: Description = Field(default_factory=Description)
    locations: list[RawLocation] = Field(default_factory=list)
    extra: dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}


class Diagnostic(BaseModel):
    """A finding resolved to a file and a line/column range."""

    file_path: str
    message: str
    severity: Severity = Severity.WARNING
    line: int = Field(-1, description="1-based line number, -1 when unresolved")
    column: int = Field(0, ge=0, description="0-based column number")
    end_line: int = -1
    end_column: int = Field(0, ge=0)
    rule_link: str = NO_RULE_LINK
    vendor_severity: Optional[str] = None
    snippet: Optional[str] = None
    raw_finding: Optional[RawFinding] = Field(default=None, repr=False)

    model_config = {"frozen": True}

    @property
    def fatal(self) -> bool:
        return self.severity is Severity.FATAL

    @property
    def resolved(self) -> bool:
        return self.line >= 1

    def identity(self) -> str:
        """Structural key used for de-duplication; ignores the raw finding."""
        return self.model_dump_json(exclude={"raw_finding"})


class FileReport(BaseModel):
    """All diagnostics filed against one source file in a single run."""

    file_path: str
    error_count: int = Field(0, ge=0)
    warning_count: int = Field(0, ge=0)
    messages: list[Diagnostic] = Field(default_factory=list)

    @classmethod
    def from_diagnostics(cls, file_path: str, diagnostics: Iterable[Diagnostic]) -> "FileReport":
        messages = list(diagnostics)
        errors = sum(1 for d in messages if d.fatal)
        return cls(
            file_path=file_path,
            error_count=errors,
            warning_count=len(messages) - errors,
            messages=messages,
        )
