from __future__ import annotations

import argparse
import os
from pathlib import Path
import sys

from . import __version__
from .clock import TrackedSession, run_plain_timer
from .config import TalogoConfig, explain_talogo_toml, load_talogo_toml
from .diagnostics import DiagnosticHooks, emit, warn
from .errors import HeaderError
from .paths import find_config_path
from .reader import Diagnostic, read_log
from .summary import aggregate, render_report
from .writer import WidthPolicy


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="talogo",
        description="talogo is a simple tasks time tracker utility and logger",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", help="Path to talogo.toml (default: nearest one above the working directory)")

    sub = parser.add_subparsers(dest="cmd", required=False)

    log = sub.add_parser("log", help="Start tracking a task and log to file when finished.")
    log.add_argument("titles", nargs="+", metavar="TITLE", help="Task title, followed by optional subtask titles")
    log.add_argument("-f", "--file", help="Log file to write (default: ./talogo.csv)")
    log.add_argument(
        "--width-policy",
        choices=[policy.value for policy in WidthPolicy],
        help="What to do when the title chain is deeper than the log header",
    )
    log.add_argument("--plain", action="store_true", help="Use the line-mode timer instead of the text UI")

    summary = sub.add_parser("summary", help="Report total hours spent per task and subtasks per day.")
    summary.add_argument("-f", "--file", help="Log file to read (default: ./talogo.csv)")

    sub.add_parser("config", help="Explain the effective talogo.toml settings.")

    return parser


def _load_config(args: argparse.Namespace) -> tuple[TalogoConfig, Path | None, DiagnosticHooks]:
    config_path = Path(args.config) if getattr(args, "config", None) else find_config_path()
    cfg, warning = load_talogo_toml(config_path)
    hooks = DiagnosticHooks().with_log_file(cfg.diagnostics.log_file)
    if warning:
        warn(warning, hooks=hooks)
    return cfg, config_path, hooks


def _log_file(args: argparse.Namespace, cfg: TalogoConfig) -> Path:
    if getattr(args, "file", None):
        return Path(args.file)
    return cfg.log.file


def _terminal_text_ui_unavailable_reason() -> str:
    if os.environ.get("TERM", "").strip().lower() == "dumb":
        return "TERM=dumb"
    if not sys.stdin.isatty() or not sys.stdout.isatty():
        return "not attached to a terminal"
    return ""


def _run_timer_app_entry(session: TrackedSession, **kwargs) -> int:
    from .timer import run_timer_app

    return run_timer_app(session, **kwargs)


def cmd_log(args: argparse.Namespace) -> int:
    cfg, _config_path, hooks = _load_config(args)
    path = _log_file(args, cfg)
    policy = WidthPolicy.parse(args.width_policy) if args.width_policy else cfg.log.width_policy

    try:
        session = TrackedSession.begin(args.titles)
    except ValueError as exc:
        emit(f"Error: {exc}", level="error", stderr=True, hooks=hooks)
        return 1

    options = {
        "path": path,
        "policy": policy,
        "refresh_interval": cfg.timer.refresh_interval,
        "hooks": hooks,
    }

    reason = "--plain" if args.plain else _terminal_text_ui_unavailable_reason()
    if not reason:
        try:
            return _run_timer_app_entry(session, **options)
        except ModuleNotFoundError as exc:
            if exc.name != "textual":
                raise
            reason = "textual is not installed"
    if reason != "--plain":
        warn(f"Text UI unavailable ({reason}); using line-mode timer.", hooks=hooks)
    return run_plain_timer(session, **options)


def cmd_summary(args: argparse.Namespace) -> int:
    cfg, _config_path, hooks = _load_config(args)
    path = _log_file(args, cfg)

    def _report_skipped(diagnostic: Diagnostic) -> None:
        warn(f"skipping record: {diagnostic.reason}", path=path, line_number=diagnostic.line_number, hooks=hooks)

    try:
        result = read_log(path, on_diagnostic=_report_skipped)
    except FileNotFoundError:
        emit(f"Error generating summary: log file not found: {path}", level="error", stderr=True, hooks=hooks)
        return 1
    except HeaderError as exc:
        emit(f"Error generating summary: {exc}", level="error", stderr=True, hooks=hooks)
        return 1
    except OSError as exc:
        emit(f"Error generating summary: failed to read {path}: {exc}", level="error", stderr=True, hooks=hooks)
        return 1

    if not result.sessions:
        print("No data in log file (only header or empty)")
        return 0

    print(render_report(aggregate(result.sessions)), end="")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    cfg, config_path, _hooks = _load_config(args)
    print(explain_talogo_toml(cfg, path=config_path))
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    argv = list(argv) if argv is not None else list(sys.argv[1:])
    args = parser.parse_args(argv)

    if args.cmd is None:
        parser.print_help()
        return 0
    if args.cmd == "log":
        return cmd_log(args)
    if args.cmd == "summary":
        return cmd_summary(args)
    if args.cmd == "config":
        return cmd_config(args)

    parser.error(f"Unknown command: {args.cmd}")
