from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable


def format_timestamp(value: datetime) -> str:
    """Render an aware datetime as RFC 3339 with second precision (`Z` for UTC)."""

    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("timestamp must carry a timezone offset")
    text = value.replace(microsecond=0).isoformat()
    if text.endswith("+00:00"):
        text = text[: -len("+00:00")] + "Z"
    return text


def parse_timestamp(text: str) -> datetime:
    raw = (text or "").strip()
    if not raw:
        raise ValueError("empty timestamp")
    parsed = datetime.fromisoformat(raw)
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp has no offset: {raw}")
    return parsed


def chain_prefix(values: Iterable[str]) -> tuple[str, ...]:
    """Titles up to (not including) the first empty one."""

    chain: list[str] = []
    for value in values:
        if not value:
            break
        chain.append(value)
    return tuple(chain)


@dataclass(frozen=True)
class Row:
    start: datetime
    end: datetime
    titles: tuple[str, ...]

    @property
    def depth(self) -> int:
        return len(self.titles)

    def fields(self, width: int) -> list[str]:
        if width < len(self.titles):
            raise ValueError(f"row needs {len(self.titles)} title columns, width is {width}")
        padding = [""] * (width - len(self.titles))
        return [format_timestamp(self.start), format_timestamp(self.end), *self.titles, *padding]


@dataclass(frozen=True)
class Session:
    titles: tuple[str, ...]
    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if not self.titles or not self.titles[0]:
            raise ValueError("session needs at least one title")
        if self.start.tzinfo is None or self.end.tzinfo is None:
            raise ValueError("session timestamps must carry a timezone offset")
        if self.end < self.start:
            raise ValueError("session ends before it starts")

    @property
    def duration(self) -> timedelta:
        return self.end - self.start
