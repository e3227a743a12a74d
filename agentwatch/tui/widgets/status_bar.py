"""Status bar — bottom bar showing project and agent counts."""

from __future__ import annotations

import time

from rich.text import Text
from textual.reactive import reactive
from textual.widget import Widget


def _format_elapsed(seconds: float) -> str:
    """Format elapsed seconds into a human-readable string."""
    secs = int(seconds)
    if secs < 60:
        return f"{secs}s"
    elif secs < 3600:
        m, s = divmod(secs, 60)
        return f"{m}m {s}s"
    else:
        h, remainder = divmod(secs, 3600)
        m = remainder // 60
        return f"{h}h {m}m"


class StatusBar(Widget):
    """Single-line status bar with project, agent counts and poll age."""

    project: reactive[str] = reactive("—")
    agent_count: reactive[int] = reactive(0)
    active_count: reactive[int] = reactive(0)
    last_tick_at: reactive[float | None] = reactive(None)

    def on_mount(self) -> None:
        self.set_interval(1.0, self.refresh)

    def render(self) -> Text:
        bar = Text()
        bar.append(f" {self.project} ", style="bold")
        bar.append(" │ ", style="dim")
        bar.append(f"{self.agent_count} agent(s)", style="cyan")
        bar.append(" │ ", style="dim")
        color = "green" if self.active_count else "dim"
        bar.append(f"● {self.active_count} active", style=color)
        bar.append(" │ ", style="dim")
        if self.last_tick_at is None:
            bar.append("not polled yet", style="dim italic")
        else:
            age = _format_elapsed(max(0.0, time.time() - self.last_tick_at))
            bar.append(f"polled {age} ago", style="dim")
        return bar
