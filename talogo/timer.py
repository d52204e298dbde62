from __future__ import annotations

from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import Footer, Static

from .clock import TrackedSession
from .diagnostics import DiagnosticHooks, emit
from .errors import HeaderError, WriteError
from .writer import WidthPolicy


class TimerApp(App[int]):
    CSS = """
    Screen {
        layout: vertical;
    }

    #titles {
        height: auto;
        padding: 0 1;
    }

    #clock {
        height: 1;
        padding: 0 1;
        color: $accent;
    }

    #status {
        height: auto;
        padding: 0 1;
        color: $text;
    }

    #status.error {
        color: $error;
    }
    """

    BINDINGS = [
        Binding("ctrl+c", "stop_and_save", "Stop & Save", priority=True),
        ("r", "retry_save", "Retry Save"),
        ("q", "discard", "Quit Without Saving"),
    ]

    def __init__(
        self,
        session: TrackedSession,
        *,
        path: Path,
        policy: WidthPolicy = WidthPolicy.WIDEN,
        refresh_interval: float = 1.0,
        hooks: DiagnosticHooks | None = None,
    ) -> None:
        super().__init__()
        self.session = session
        self.path = path
        self.policy = policy
        self.refresh_interval = refresh_interval
        self.hooks = hooks
        self.saved = False
        self.save_error = ""

        self.titles_panel: Static
        self.clock_panel: Static
        self.status_panel: Static

    def compose(self) -> ComposeResult:
        yield Static("", id="titles")
        yield Static("", id="clock")
        yield Static("Ctrl+C stops the timer and saves the session.", id="status")
        yield Footer()

    def on_mount(self) -> None:
        self.titles_panel = self.query_one("#titles", Static)
        self.clock_panel = self.query_one("#clock", Static)
        self.status_panel = self.query_one("#status", Static)
        self.titles_panel.update("\n".join(self.session.display_lines()[:-1]))
        self.set_interval(self.refresh_interval, self._refresh_clock)
        self._refresh_clock()

    def _refresh_clock(self) -> None:
        self.clock_panel.update(self.session.display_lines()[-1])

    def action_stop_and_save(self) -> None:
        if self.saved:
            return
        self.session.stop()
        self._refresh_clock()
        try:
            self.session.save(self.path, policy=self.policy, hooks=self.hooks)
        except (HeaderError, WriteError) as exc:
            self.save_error = str(exc)
            self.status_panel.add_class("error")
            self.status_panel.update(
                f"Error writing log: {exc}\nPress r to retry or q to quit without saving."
            )
            return
        self.saved = True
        self.exit(0)

    def action_retry_save(self) -> None:
        if not self.save_error:
            return
        self.action_stop_and_save()

    def action_discard(self) -> None:
        if not self.save_error:
            return
        self.exit(1)


def run_timer_app(
    session: TrackedSession,
    *,
    path: Path,
    policy: WidthPolicy = WidthPolicy.WIDEN,
    refresh_interval: float = 1.0,
    hooks: DiagnosticHooks | None = None,
) -> int:
    app = TimerApp(session, path=path, policy=policy, refresh_interval=refresh_interval, hooks=hooks)
    app.run(mouse=False)
    if app.saved:
        emit(f"Timer stopped. Data saved to {path}", hooks=hooks)
        return 0
    if app.save_error:
        emit(f"Session discarded after write failure: {app.save_error}", level="error", stderr=True, hooks=hooks)
    else:
        emit("Timer quit without saving.", level="warn", stderr=True, hooks=hooks)
    return 1
