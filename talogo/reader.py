from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Callable

from .codec import Record, encode_row, is_current_header, is_legacy_header, iter_records
from .errors import HeaderError
from .models import Session, chain_prefix, parse_timestamp


LAYOUT_EMPTY = "empty"
LAYOUT_CURRENT = "current"
LAYOUT_LEGACY = "legacy"


@dataclass(frozen=True)
class Diagnostic:
    line_number: int
    reason: str
    raw: str = ""

    def __str__(self) -> str:
        return f"Skipping record on line {self.line_number}: {self.reason}"


@dataclass
class LogReadResult:
    layout: str = LAYOUT_EMPTY
    sessions: list[Session] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)


class _SkipRow(Exception):
    pass


def read_all(path: Path, *, on_diagnostic: Callable[[Diagnostic], None] | None = None) -> list[Session]:
    """Read every valid session from a log file.

    A missing file raises `FileNotFoundError` and an unusable header raises
    `HeaderError`. Bad rows are skipped and reported through `on_diagnostic`.
    """

    result = read_log(path, on_diagnostic=on_diagnostic)
    return result.sessions


def read_log(path: Path, *, on_diagnostic: Callable[[Diagnostic], None] | None = None) -> LogReadResult:
    path = Path(path)
    result = LogReadResult()

    def _report(diagnostic: Diagnostic) -> None:
        result.diagnostics.append(diagnostic)
        if on_diagnostic is not None:
            on_diagnostic(diagnostic)

    with path.open("r", encoding="utf-8", errors="replace", newline="") as handle:
        parse_row: Callable[[list[str]], Session] | None = None
        for record in iter_records(handle):
            if parse_row is None:
                if record.error is not None:
                    raise HeaderError(path, record.error.reason)
                if not record.fields:
                    continue
                result.layout, parse_row = _layout_for(path, record.fields)
                continue

            if record.error is not None:
                _report(Diagnostic(record.line_number, record.error.reason, record.error.line))
                continue
            if not record.fields or record.fields == [""]:
                continue
            try:
                result.sessions.append(parse_row(record.fields))
            except _SkipRow as exc:
                _report(Diagnostic(record.line_number, str(exc), _raw(record)))
    return result


def _layout_for(path: Path, header: list[str]) -> tuple[str, Callable[[list[str]], Session]]:
    if is_current_header(header):
        return LAYOUT_CURRENT, _parse_current_row
    if is_legacy_header(header):
        return LAYOUT_LEGACY, _parse_legacy_row
    raise HeaderError(path, f"unrecognized columns: {', '.join(header)}")


def _parse_current_row(fields: list[str]) -> Session:
    if len(fields) < 2:
        raise _SkipRow(f"too few fields ({len(fields)})")
    start = _timestamp(fields[0], "start time")
    end = _timestamp(fields[1], "end time")
    return _session(chain_prefix(fields[2:]), start, end)


def _parse_legacy_row(fields: list[str]) -> Session:
    if len(fields) < 4:
        raise _SkipRow(f"too few fields ({len(fields)})")
    start = _timestamp(fields[1], "start time")
    _timestamp(fields[2], "end time")
    try:
        seconds = int(fields[3].strip())
    except ValueError:
        raise _SkipRow(f"invalid duration ({fields[3]})") from None
    if seconds < 0:
        raise _SkipRow(f"negative duration ({seconds})")
    return _session(chain_prefix(fields[:1]), start, start + timedelta(seconds=seconds))


def _timestamp(value: str, label: str):
    try:
        return parse_timestamp(value)
    except ValueError:
        raise _SkipRow(f"invalid {label} ({value})") from None


def _session(titles: tuple[str, ...], start, end) -> Session:
    if not titles:
        raise _SkipRow("no task title")
    if end < start:
        raise _SkipRow("end time before start time")
    return Session(titles=titles, start=start, end=end)


def _raw(record: Record) -> str:
    return encode_row(record.fields or [])
