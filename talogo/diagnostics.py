from __future__ import annotations

import contextlib
import sys
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from .models import format_timestamp


@dataclass(frozen=True)
class DiagnosticHooks:
    """Where warnings and status lines go.

    `log` receives `(level, message)`; the console gets the message unless
    `emit_console` is off; `log_file`, when set, gets one stamped line each.
    """

    log: Callable[[str, str], None] | None = None
    emit_console: bool = True
    log_file: Path | None = None

    def with_log_file(self, log_file: Path | None) -> DiagnosticHooks:
        if log_file is None or self.log_file is not None:
            return self
        return replace(self, log_file=log_file)


def locate(message: str, *, path: Path | None = None, line_number: int | None = None) -> str:
    """Prefix a message with `path:line:` so it points at the offending log entry."""

    if path is None:
        return message
    if line_number is None:
        return f"{path}: {message}"
    return f"{path}:{line_number}: {message}"


def emit(
    message: str,
    *,
    level: str = "info",
    stderr: bool = False,
    hooks: DiagnosticHooks | None = None,
) -> None:
    if hooks and hooks.log:
        hooks.log(level, message)
    if hooks and hooks.log_file is not None:
        _append_to_log_file(hooks.log_file, level, message)
    if hooks is None or hooks.emit_console:
        print(message, file=sys.stderr if stderr else sys.stdout)


def warn(
    message: str,
    *,
    path: Path | None = None,
    line_number: int | None = None,
    hooks: DiagnosticHooks | None = None,
) -> None:
    emit(locate(message, path=path, line_number=line_number), level="warn", stderr=True, hooks=hooks)


def _append_to_log_file(log_file: Path, level: str, message: str) -> None:
    # One entry per line, even for messages carrying a raw multi-line record.
    flattened = " ".join(message.split())
    line = f"{format_timestamp(datetime.now(timezone.utc))} [{level.lower()}] {flattened}\n"
    # A failed log-file write never fails the command.
    with contextlib.suppress(OSError):
        log_file.parent.mkdir(parents=True, exist_ok=True)
        with log_file.open("a", encoding="utf-8") as handle:
            handle.write(line)
