from __future__ import annotations

import json
from datetime import date

import pytest
from aiohttp.test_utils import TestClient, TestServer

from agentwatch.engine.tracker import SessionTracker
from agentwatch.server.server import WatchServer, format_sse

TODAY = date(2026, 3, 14)


class _Request(dict):
    """Bare stand-in for aiohttp.web.Request in direct handler calls."""


def _json_payload(resp) -> dict:
    return json.loads(resp.text)


def _build_server(watch_config, day_dir, rollout) -> WatchServer:
    day_dir().joinpath("rollout-1.jsonl").write_bytes(rollout.join(
        rollout.turn_context(str(watch_config.project_root)),
        rollout.task_started(),
        rollout.function_call("a", "exec_command", rollout.exec_args("make lint")),
    ))
    tracker = SessionTracker(watch_config, today=lambda: TODAY)
    tracker.bootstrap()
    return WatchServer(tracker)


def test_format_sse_frames_event_name() -> None:
    frame = format_sse({"event": "tool_finished", "agent_id": 2, "tool_id": "a"})
    assert frame == b'event: tool_finished\ndata: {"agent_id": 2, "tool_id": "a"}\n\n'


@pytest.mark.asyncio
async def test_health_reports_tracker_state(watch_config, day_dir, rollout) -> None:
    server = _build_server(watch_config, day_dir, rollout)
    payload = _json_payload(await server._handle_health(_Request()))
    assert payload["status"] == "ok"
    assert payload["session_count"] == 1
    assert payload["project_root"] == str(watch_config.project_root)
    assert payload["poller"]["running"] is False
    assert payload["poller"]["ticks"] == 0


@pytest.mark.asyncio
async def test_list_sessions(watch_config, day_dir, rollout) -> None:
    server = _build_server(watch_config, day_dir, rollout)
    payload = _json_payload(await server._handle_list_sessions(_Request()))
    assert payload["agents"] == [{
        "agent_id": 1,
        "path": str(day_dir() / "rollout-1.jsonl"),
        "status": "active",
        "active_tools": [
            {"tool_id": "a", "name": "exec_command", "status_text": "Running: make lint"},
        ],
    }]


@pytest.mark.asyncio
async def test_rescan_registers_new_sessions(watch_config, day_dir, rollout) -> None:
    server = _build_server(watch_config, day_dir, rollout)
    assert _json_payload(await server._handle_rescan(_Request())) == {"registered": []}

    day_dir().joinpath("rollout-2.jsonl").write_bytes(
        rollout.join(rollout.turn_context(str(watch_config.project_root)))
    )
    assert _json_payload(await server._handle_rescan(_Request())) == {"registered": [2]}


@pytest.mark.asyncio
async def test_event_stream_starts_with_snapshot(watch_config, day_dir, rollout) -> None:
    server = _build_server(watch_config, day_dir, rollout)
    async with TestClient(TestServer(server.app)) as client:
        resp = await client.get("/events")
        assert resp.status == 200
        assert resp.headers["Content-Type"].startswith("text/event-stream")

        event_line = await resp.content.readline()
        data_line = await resp.content.readline()
        assert event_line == b"event: resync_snapshot\n"
        data = json.loads(data_line[len(b"data: "):])
        assert data["agent_ids"] == [1]
        assert data["per_agent"]["1"]["status"] == "active"
        assert server._tracker.broadcaster.subscriber_count == 1

        await resp.content.readline()
        server._tracker.processor.clear_tools(server._tracker.sessions()[0], emit=True)
        assert await resp.content.readline() == b"event: tools_cleared\n"
        resp.close()
