from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Sequence

from .diagnostics import DiagnosticHooks, emit
from .errors import HeaderError, WriteError
from .models import Row
from .writer import WidthPolicy, log_session


def format_elapsed(value: timedelta) -> str:
    seconds = max(0, int(value.total_seconds()))
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


@dataclass
class TrackedSession:
    """A running work interval: wall-clock start plus a monotonic stopwatch."""

    titles: tuple[str, ...]
    started_at: datetime
    ended_at: datetime | None = None
    _monotonic_start: float = field(default_factory=time.monotonic, repr=False)

    @classmethod
    def begin(cls, titles: Sequence[str], *, now: datetime | None = None) -> TrackedSession:
        chain = tuple(titles)
        if not chain or not all(chain):
            raise ValueError("task titles must be non-empty")
        started_at = (now or datetime.now()).astimezone()
        return cls(titles=chain, started_at=started_at)

    @property
    def stopped(self) -> bool:
        return self.ended_at is not None

    def elapsed(self, now: datetime | None = None) -> timedelta:
        if self.ended_at is not None:
            return self.ended_at - self.started_at
        if now is not None:
            return max(timedelta(0), now - self.started_at)
        return timedelta(seconds=time.monotonic() - self._monotonic_start)

    def stop(self, now: datetime | None = None) -> datetime:
        if self.ended_at is None:
            self.ended_at = self.started_at + self.elapsed(now)
        return self.ended_at

    def display_lines(self, now: datetime | None = None) -> list[str]:
        lines = [f"Title {idx}: {title}" for idx, title in enumerate(self.titles, start=1)]
        lines.append(f"Timer: {format_elapsed(self.elapsed(now))}")
        return lines

    def save(
        self,
        path: Path,
        *,
        policy: WidthPolicy = WidthPolicy.WIDEN,
        hooks: DiagnosticHooks | None = None,
    ) -> list[Row]:
        end = self.stop()
        return log_session(path, self.titles, self.started_at, end, policy=policy, hooks=hooks)


def run_plain_timer(
    session: TrackedSession,
    *,
    path: Path,
    policy: WidthPolicy = WidthPolicy.WIDEN,
    refresh_interval: float = 1.0,
    hooks: DiagnosticHooks | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Line-mode timer for terminals without a text UI; Ctrl+C stops and saves."""

    for line in session.display_lines()[:-1]:
        emit(line, hooks=hooks)
    try:
        while True:
            emit(session.display_lines()[-1], hooks=hooks)
            sleep(refresh_interval)
    except KeyboardInterrupt:
        pass

    try:
        session.save(path, policy=policy, hooks=hooks)
    except (HeaderError, WriteError) as exc:
        emit(f"Error writing log: {exc}", level="error", stderr=True, hooks=hooks)
        return 1
    emit(f"Timer stopped. Data saved to {path}", hooks=hooks)
    return 0
