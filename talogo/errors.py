from __future__ import annotations

from pathlib import Path


class TalogoError(Exception):
    """Base class for errors raised by the log and report core."""


class RowDecodeError(TalogoError):
    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"cannot decode row: {reason}")
        self.line = line
        self.reason = reason


class HeaderError(TalogoError):
    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: invalid header: {reason}")
        self.path = path
        self.reason = reason


class WriteError(TalogoError):
    """Raised when rows could not be durably appended; nothing may be assumed persisted."""

    def __init__(self, path: Path, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class WidthError(WriteError):
    pass
