"""Custom exceptions for sabre."""

from __future__ import annotations

from typing import Any


class SabreError(Exception):
    """Base exception for all sabre errors."""

    pass


class ConfigError(SabreError):
    """Raised when the environment or command line holds unusable settings."""


class LocationError(SabreError):
    """A compiler source-map token could not be turned into a location."""

    def __init__(self, message: str, token: str) -> None:
        super().__init__(message)
        self.token = token


class MalformedLocation(LocationError):
    """Raised when a source-map token does not have the offset:length:file shape."""

    def __init__(self, token: str) -> None:
        super().__init__(f"Malformed source map token: {token!r}", token)


class InvalidLocation(LocationError):
    """Raised when a source-map token parses but names a negative offset or length."""

    def __init__(self, token: str, offset: int, length: int) -> None:
        super().__init__(
            f"Invalid source location {offset}:{length} in token {token!r}", token
        )
        self.offset = offset
        self.length = length


class UnresolvableFile(SabreError):
    """Raised when a finding's file index does not name a file in the source list."""

    def __init__(self, source_index: int, source_list: list[str]) -> None:
        super().__init__(
            f"Source index {source_index} is not in the source list "
            f"({len(source_list)} file(s))"
        )
        self.source_index = source_index
        self.source_list = source_list


class PollingError(SabreError):
    """Base for the ways waiting on an analysis job can end without a result."""

    def __init__(self, message: str, last_state: Any = None) -> None:
        super().__init__(message)
        self.last_state = last_state


class TimeoutExceeded(PollingError):
    """Raised when the wall-clock budget runs out before the job finishes."""


class RequestBudgetExhausted(PollingError):
    """Raised when every allowed status query was used without a terminal status."""


class Cancelled(PollingError):
    """Raised when the caller cancels a wait between status queries."""


class ServiceError(SabreError):
    """Raised when the analysis service answers with an HTTP error."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CompilationError(SabreError):
    """Raised when solc reports errors for the given sources."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class CompilerNotFound(CompilationError):
    """Raised when the solc binary cannot be executed."""

    def __init__(self, solc: str) -> None:
        super().__init__(f"Solidity compiler not found: {solc}")
        self.solc = solc


class UnknownFormat(SabreError):
    """Raised when an output format name is not one of the supported renderers."""

    def __init__(self, name: str, available: list[str]) -> None:
        super().__init__(
            f"Invalid output format {name!r}. Available formats: {', '.join(available)}."
        )
        self.name = name
        self.available = available
