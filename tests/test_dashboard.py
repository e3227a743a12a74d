from __future__ import annotations

from datetime import date

import pytest

from agentwatch.adapters.events import (
    ResyncSnapshot,
    SessionCreated,
    StatusChanged,
    ToolFinished,
    ToolsCleared,
    ToolStarted,
    TrackerEvent,
)
from agentwatch.engine.tracker import SessionTracker
from agentwatch.tui.app import WatchApp
from agentwatch.tui.screens.dashboard import DashboardScreen
from agentwatch.tui.widgets.activity_log import describe_event

TODAY = date(2026, 3, 14)


@pytest.mark.parametrize(
    ("event", "fragment"),
    [
        (ResyncSnapshot(agent_ids=[1, 2]), "Tracking 2 session(s)"),
        (SessionCreated(agent_id=4), "New session"),
        (StatusChanged(agent_id=1, status="active"), "active"),
        (ToolStarted(agent_id=1, tool_id="a", status_text="Running: ls [x]"), "Running: ls \\[x]"),
        (ToolFinished(agent_id=1, tool_id="a"), "#1 done a"),
        (ToolsCleared(agent_id=3), "#3 turn ended, tools cleared"),
    ],
)
def test_every_event_type_is_logged(event: TrackerEvent, fragment: str) -> None:
    line = describe_event(event)
    assert line is not None
    assert fragment in line


def test_unknown_event_is_not_logged() -> None:
    assert describe_event(TrackerEvent(event_type="mystery")) is None


@pytest.mark.asyncio
async def test_dashboard_follows_tracker(watch_config, day_dir, rollout) -> None:
    path = day_dir() / "rollout-1.jsonl"
    path.write_bytes(rollout.join(
        rollout.turn_context(str(watch_config.project_root)),
        rollout.function_call("a", "apply_patch"),
    ))
    app = WatchApp(SessionTracker(watch_config, today=lambda: TODAY))

    async with app.run_test(size=(120, 40)) as pilot:
        await pilot.pause(0.2)
        screen = app.screen
        assert isinstance(screen, DashboardScreen)
        assert screen.state.summary() == {1: ("active", [("a", "Editing files")])}

        with path.open("ab") as f:
            f.write(rollout.join(rollout.task_complete()))
        for _ in range(50):
            if screen.state.summary() == {1: ("waiting", [])}:
                break
            await pilot.pause(0.05)
        assert screen.state.summary() == {1: ("waiting", [])}

        await pilot.press("l")
        await pilot.pause()
        assert screen.query_one("#activity-log").has_class("hidden")
