from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, Sequence

from .codec import encode_row, header_fields, is_current_header, is_legacy_header, iter_records, max_chain_width, title_width
from .diagnostics import DiagnosticHooks, warn
from .errors import HeaderError, WidthError, WriteError
from .models import Row
from .splitter import split_by_day


class WidthPolicy(str, Enum):
    """What to do when a title chain is deeper than the file's header allows."""

    WIDEN = "widen"
    STRICT = "strict"
    TRUNCATE = "truncate"

    @classmethod
    def parse(cls, value: str | WidthPolicy) -> WidthPolicy:
        if isinstance(value, WidthPolicy):
            return value
        lowered = str(value or "").strip().lower()
        for policy in cls:
            if policy.value == lowered:
                return policy
        choices = ", ".join(policy.value for policy in cls)
        raise ValueError(f"unknown width policy {value!r} (expected one of: {choices})")


@dataclass(frozen=True)
class _FileState:
    width: int | None
    ends_with_newline: bool


def append_rows(
    path: Path,
    rows: Iterable[Row],
    *,
    policy: WidthPolicy = WidthPolicy.WIDEN,
    hooks: DiagnosticHooks | None = None,
) -> int:
    """Append rows to the log, writing or widening the header as needed.

    Returns the title width the rows were written with. The data is flushed
    and fsynced before returning; any failure raises `WriteError`.
    """

    path = Path(path)
    pending = list(rows)
    required = max(1, max_chain_width(pending))

    try:
        state = _file_state(path)
    except OSError as exc:
        raise WriteError(path, f"failed to read existing log: {exc}") from exc
    if not pending:
        return state.width or 0

    width = required
    ends_with_newline = state.ends_with_newline
    if state.width is not None and required > state.width:
        if policy is WidthPolicy.STRICT or (policy is WidthPolicy.TRUNCATE and state.width < 1):
            raise WidthError(
                path,
                f"title chain needs {required} columns but the header declares {state.width}",
            )
        if policy is WidthPolicy.TRUNCATE:
            width = state.width
            pending = [_truncate(row, width, path=path, hooks=hooks) for row in pending]
        else:
            _widen(path, state.width, required)
            ends_with_newline = True
    elif state.width is not None:
        width = state.width

    lines: list[str] = []
    if state.width is None:
        lines.append(encode_row(header_fields(width)))
    lines.extend(encode_row(row.fields(width)) for row in pending)

    payload = "\n".join(lines) + "\n"
    if not ends_with_newline:
        payload = "\n" + payload
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8", newline="") as handle:
            handle.write(payload)
            handle.flush()
            os.fsync(handle.fileno())
    except OSError as exc:
        raise WriteError(path, f"failed to append rows: {exc}") from exc
    return width


def log_session(
    path: Path,
    titles: Sequence[str],
    start: datetime,
    end: datetime,
    *,
    policy: WidthPolicy = WidthPolicy.WIDEN,
    hooks: DiagnosticHooks | None = None,
) -> list[Row]:
    rows = split_by_day(start, end, titles)
    append_rows(path, rows, policy=policy, hooks=hooks)
    return rows


def _file_state(path: Path) -> _FileState:
    if not path.exists() or path.stat().st_size == 0:
        return _FileState(width=None, ends_with_newline=True)

    with path.open("rb") as raw:
        raw.seek(-1, os.SEEK_END)
        ends_with_newline = raw.read(1) in (b"\n", b"\r")

    # Only the header is decoded here; stray bytes further down are the reader's concern.
    with path.open("r", encoding="utf-8", errors="replace", newline="") as handle:
        for record in iter_records(handle):
            if record.error is not None:
                raise HeaderError(path, record.error.reason)
            if not record.fields:
                continue
            header = record.fields
            break
        else:
            return _FileState(width=None, ends_with_newline=ends_with_newline)

    if is_legacy_header(header):
        raise HeaderError(path, "legacy single-title log; start a new log file to record title chains")
    if not is_current_header(header):
        raise HeaderError(path, "expected start_time,end_time as the first columns")
    return _FileState(width=title_width(header), ends_with_newline=ends_with_newline)


def _widen(path: Path, old_width: int, new_width: int) -> None:
    """Rewrite the log with a wider header, padding every prior row to match."""

    column_count = 2 + new_width
    try:
        with path.open("r", encoding="utf-8", newline="") as handle:
            records = list(iter_records(handle))

        lines = [encode_row(header_fields(new_width))]
        seen_header = False
        for record in records:
            if record.error is not None:
                # Keep undecodable rows byte-for-byte; the reader reports them.
                lines.append(record.error.line)
                continue
            if not record.fields:
                continue
            if not seen_header:
                seen_header = True
                continue
            fields = list(record.fields)
            if len(fields) < column_count:
                fields.extend([""] * (column_count - len(fields)))
            lines.append(encode_row(fields))

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write("\n".join(lines) + "\n")
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
    except UnicodeDecodeError as exc:
        raise WriteError(
            path,
            f"cannot widen header from {old_width} to {new_width} titles: log is not valid UTF-8 ({exc.reason} at byte {exc.start})",
        ) from exc
    except OSError as exc:
        raise WriteError(path, f"failed to widen header from {old_width} to {new_width} titles: {exc}") from exc


def _truncate(row: Row, width: int, *, path: Path, hooks: DiagnosticHooks | None) -> Row:
    if row.depth <= width:
        return row
    dropped = " > ".join(row.titles[width:])
    warn(f"header allows {width} titles; dropped {dropped}", path=path, hooks=hooks)
    return replace(row, titles=row.titles[:width])
