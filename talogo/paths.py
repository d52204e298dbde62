from __future__ import annotations

from pathlib import Path


CONFIG_FILENAME = "talogo.toml"
DEFAULT_LOG_FILE = "./talogo.csv"


def find_config_path(start: Path | None = None) -> Path | None:
    """Nearest `talogo.toml`, searching from `start` (default: cwd) up to the filesystem root."""

    origin = (start or Path.cwd()).resolve()
    for candidate in [origin, *origin.parents]:
        path = candidate / CONFIG_FILENAME
        if path.is_file():
            return path
    return None


def resolve_relative(value: str, base: Path | None) -> Path:
    path = Path(value).expanduser()
    if path.is_absolute() or base is None:
        return path
    return base / path
