from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
import tomllib

from .paths import DEFAULT_LOG_FILE, resolve_relative
from .writer import WidthPolicy


MIN_REFRESH_INTERVAL = 0.1


def _as_float(value, *, default: float) -> float:
    try:
        return float(value)
    except Exception:  # noqa: BLE001
        return float(default)


def _as_str(value, *, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


@dataclass(frozen=True)
class LogConfig:
    file: Path = Path(DEFAULT_LOG_FILE)
    width_policy: WidthPolicy = WidthPolicy.WIDEN


@dataclass(frozen=True)
class TimerConfig:
    refresh_interval: float = 1.0


@dataclass(frozen=True)
class DiagnosticsConfig:
    log_file: Path | None = None


@dataclass(frozen=True)
class TalogoConfig:
    log: LogConfig = field(default_factory=LogConfig)
    timer: TimerConfig = field(default_factory=TimerConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def load_talogo_toml(path: Path | None) -> tuple[TalogoConfig, str]:
    """Load settings from talogo.toml.

    Returns (config, warning). Warning is empty on success; on any problem the
    affected values fall back to defaults and the warning says why.
    """

    if path is None or not path.exists():
        return TalogoConfig(), ""

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        return TalogoConfig(), f"talogo.toml parse failed: {exc}"

    base = path.parent
    log = data.get("log") if isinstance(data.get("log"), dict) else {}
    timer = data.get("timer") if isinstance(data.get("timer"), dict) else {}
    diagnostics = data.get("diagnostics") if isinstance(data.get("diagnostics"), dict) else {}

    warning = ""
    try:
        policy = WidthPolicy.parse(log.get("width_policy") or LogConfig.width_policy)
    except ValueError as exc:
        policy = LogConfig.width_policy
        warning = f"talogo.toml: {exc}; using {policy.value}"

    diagnostics_file = _as_str(diagnostics.get("log_file"), default="")

    cfg = TalogoConfig(
        log=LogConfig(
            file=resolve_relative(_as_str(log.get("file"), default=DEFAULT_LOG_FILE), base),
            width_policy=policy,
        ),
        timer=TimerConfig(
            refresh_interval=max(
                MIN_REFRESH_INTERVAL,
                _as_float(timer.get("refresh_interval"), default=TimerConfig.refresh_interval),
            ),
        ),
        diagnostics=DiagnosticsConfig(
            log_file=resolve_relative(diagnostics_file, base) if diagnostics_file else None,
        ),
    )
    return cfg, warning


def explain_talogo_toml(config: TalogoConfig, *, path: Path | None = None) -> str:
    location = str(path) if path is not None else "talogo.toml (not found, using defaults)"
    diagnostics_file = str(config.diagnostics.log_file) if config.diagnostics.log_file else "(stderr only)"
    lines = [
        f"talogo.toml guide ({location})",
        "",
        "[log]",
        f"- file: CSV log that `log` appends to and `summary` reads (current: {config.log.file})",
        f"- width_policy: widen | strict | truncate, for title chains deeper than the header (current: {config.log.width_policy.value})",
        "",
        "[timer]",
        f"- refresh_interval: seconds between timer display refreshes (current: {config.timer.refresh_interval})",
        "",
        "[diagnostics]",
        f"- log_file: optional file that also receives warnings and skipped-row notices (current: {diagnostics_file})",
    ]
    return "\n".join(lines)
