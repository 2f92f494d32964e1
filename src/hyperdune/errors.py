"""Exception types raised by the export pipeline."""

from __future__ import annotations

from datetime import date
from pathlib import Path


class ExportError(Exception):
    """Base class for every failure the exporter surfaces to the operator."""


class TradeParseError(ExportError, ValueError):
    """A structurally relevant node log line has a missing or malformed field."""

    def __init__(self, field: str, line: str, source: Path | None = None, reason: str = "") -> None:
        self.field = field
        self.line = line
        self.source = source
        self.reason = reason
        location = f" in file {source}" if source is not None else ""
        detail = f" ({reason})" if reason else ""
        super().__init__(f"Failed to parse '{field}'{detail}{location} on line: {line}")


class NodeDataReadError(ExportError, OSError):
    """An hour file exists but could not be read or decoded."""

    def __init__(self, path: Path, cause: BaseException) -> None:
        self.path = path
        super().__init__(f"Failed to read node data file {path}: {cause}")

    def __str__(self) -> str:
        return self.args[0]


class DuneAPIError(ExportError):
    """Dune rejected a request or could not be reached."""

    def __init__(self, operation: str, status_code: int | None = None, body: str = "") -> None:
        self.operation = operation
        self.status_code = status_code
        self.body = body
        if status_code is None:
            message = f"Dune {operation} request failed"
        else:
            message = f"Dune {operation} failed with HTTP {status_code}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)


class DayExportError(ExportError):
    """Processing of a single day failed, aborting the whole run."""

    def __init__(self, day: date, stage: str, record_count: int = 0, destination: str = "") -> None:
        self.day = day
        self.stage = stage
        self.record_count = record_count
        self.destination = destination
        if stage == "insert":
            message = f"Failed to insert {record_count} trades for {day.isoformat()}"
            if destination:
                message = f"{message} into {destination}"
        else:
            message = f"Failed to process trade data for {day.isoformat()}"
        super().__init__(message)


def format_error_chain(exc: BaseException) -> str:
    """Join an exception and its explicit causes into one operator-facing line."""
    parts: list[str] = []
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(str(current) or type(current).__name__)
        current = current.__cause__
    return ": ".join(parts)
