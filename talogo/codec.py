from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from typing import Iterable, Iterator, Sequence

from .errors import RowDecodeError
from .models import Row


START_COLUMN = "start_time"
END_COLUMN = "end_time"
TITLE_COLUMN_PREFIX = "title"
LEGACY_HEADER = ("title", "start_time", "end_time", "duration_seconds")

# Hand-edited logs: allow spaces after commas and stray quotes inside fields.
_READ_OPTIONS = {"skipinitialspace": True, "strict": False}


@dataclass(frozen=True)
class Record:
    """One logical CSV record and the physical line it starts on."""

    line_number: int
    fields: list[str] | None
    error: RowDecodeError | None = None


def encode_row(fields: Sequence[str]) -> str:
    buffer = io.StringIO()
    # \r\n as terminator so both CR and LF inside a field force quoting.
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(list(fields))
    return buffer.getvalue()[: -len("\r\n")]


def decode_row(line: str) -> list[str]:
    if "\x00" in line:
        raise RowDecodeError(line, "line contains NUL")
    try:
        records = list(csv.reader(line.splitlines(keepends=True), **_READ_OPTIONS))
    except csv.Error as exc:
        raise RowDecodeError(line, str(exc)) from exc
    if not records:
        return []
    if len(records) > 1:
        raise RowDecodeError(line, f"expected one record, found {len(records)}")
    return records[0]


def iter_records(lines: Iterable[str]) -> Iterator[Record]:
    """Decode a stream of physical lines into records without stopping on bad ones.

    Quoted fields may span lines; `line_number` is 1-based and points at the
    first physical line of the record.
    """

    consumed: list[str] = []

    def _feed() -> Iterator[str]:
        for line in lines:
            consumed.append(line)
            yield line

    reader = csv.reader(_feed(), **_READ_OPTIONS)
    line_number = 0
    while True:
        consumed.clear()
        try:
            fields = next(reader)
        except StopIteration:
            return
        except csv.Error as exc:
            raw = "".join(consumed).rstrip("\r\n")
            yield Record(line_number + 1, None, RowDecodeError(raw, str(exc)))
            line_number = reader.line_num
            continue
        raw = "".join(consumed)
        if "\x00" in raw:
            yield Record(line_number + 1, None, RowDecodeError(raw.rstrip("\r\n"), "line contains NUL"))
        else:
            yield Record(line_number + 1, fields)
        line_number = reader.line_num


def header_fields(width: int) -> list[str]:
    return [START_COLUMN, END_COLUMN, *(f"{TITLE_COLUMN_PREFIX}{idx}" for idx in range(1, width + 1))]


def is_current_header(header: Sequence[str]) -> bool:
    return len(header) >= 2 and header[0].strip() == START_COLUMN and header[1].strip() == END_COLUMN


def is_legacy_header(header: Sequence[str]) -> bool:
    return tuple(item.strip() for item in header) == LEGACY_HEADER


def title_width(header: Sequence[str]) -> int:
    return max(0, len(header) - 2)


def max_chain_width(rows: Iterable[Row]) -> int:
    return max((row.depth for row in rows), default=0)
