"""agentwatch TUI — Textual application class."""

from __future__ import annotations

from pathlib import Path

from textual.app import App
from textual.css.query import NoMatches

from agentwatch.engine.tracker import SessionTracker
from agentwatch.tui.screens.dashboard import DashboardScreen
from agentwatch.tui.widgets.activity_log import ActivityLog


class WatchApp(App):
    """Terminal dashboard of live Codex agent sessions."""

    TITLE = "agentwatch"
    SUB_TITLE = "Codex sessions"
    CSS_PATH = Path("styles/app.tcss")

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("ctrl+q", "quit", "Quit"),
        ("r", "rescan", "Rescan"),
        ("l", "toggle_log", "Log"),
    ]

    def __init__(self, tracker: SessionTracker, **kwargs) -> None:
        super().__init__(**kwargs)
        self.tracker = tracker

    def on_mount(self) -> None:
        self.sub_title = str(self.tracker.config.project_root)
        self.push_screen(DashboardScreen(self.tracker))

    def action_rescan(self) -> None:
        screen = self.screen
        if isinstance(screen, DashboardScreen):
            screen.rescan()

    def action_toggle_log(self) -> None:
        try:
            self.screen.query_one(ActivityLog).toggle()
        except NoMatches:
            pass
