from __future__ import annotations

from datetime import datetime, time, timedelta
from typing import Sequence

from .models import Row


def next_local_midnight(value: datetime) -> datetime:
    return datetime.combine(value.date() + timedelta(days=1), time(0), tzinfo=value.tzinfo)


def split_by_day(start: datetime, end: datetime, titles: Sequence[str]) -> list[Row]:
    """Break [start, end] into rows that each stay within one calendar day.

    Days are taken in the timezone of `start`. A row that reaches a day
    boundary ends at local midnight and the next row starts at that same
    instant, so the rows are contiguous and together cover the interval.
    """

    if start.tzinfo is None or end.tzinfo is None:
        raise ValueError("start and end must carry a timezone offset")
    if end < start:
        raise ValueError("end is before start")

    chain = tuple(titles)
    end = end.astimezone(start.tzinfo)
    rows: list[Row] = []
    current = start
    while True:
        segment_end = min(end, next_local_midnight(current))
        rows.append(Row(start=current, end=segment_end, titles=chain))
        if segment_end == end:
            return rows
        current = segment_end
