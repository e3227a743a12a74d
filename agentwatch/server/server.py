"""HTTP + SSE server exposing live agent session state.

Observers attach to ``GET /events`` and receive a ``resync_snapshot``
first, then every tracker event as it happens. The poller runs on the
server's event loop, so handlers read tracker state between ticks and
never race a mutation.

Usage:
    agentwatch --server [--port PORT]
"""
from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
import time
import uuid
from typing import Any

from aiohttp import web

from agentwatch.adapters.events import event_to_dict
from agentwatch.engine.tracker import SessionTracker

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 30.0


class WatchServer:
    """aiohttp application wrapping a ``SessionTracker``.

    Thin adapter: all session state lives in the tracker. This class only
    handles HTTP routing and SSE delivery.
    """

    def __init__(
        self,
        tracker: SessionTracker,
        host: str = "127.0.0.1",
        port: int = 0,
    ) -> None:
        self._tracker = tracker
        self._host = host
        self._port = port
        self._started_at = time.time()
        self._sse_tasks: set[asyncio.Task] = set()
        self._app = web.Application(middlewares=[self._request_logging_middleware])
        self._app.on_shutdown.append(self._close_streams)
        self._setup_routes()
        logger.info(
            "WatchServer init host=%s port=%s project=%s pid=%s",
            self._host, self._port, tracker.config.project_root, os.getpid(),
        )

    @property
    def app(self) -> web.Application:
        return self._app

    # ── Middleware ──

    @web.middleware
    async def _request_logging_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        req_id = request.headers.get("x-agentwatch-request-id", str(uuid.uuid4())[:8])
        request["req_id"] = req_id
        start = time.monotonic()
        logger.debug("HTTP %s %s req=%s from=%s", request.method, request.path_qs, req_id, request.remote)
        try:
            response = await handler(request)
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.info(
                "HTTP %s %s req=%s status=%s duration_ms=%.1f",
                request.method, request.path_qs, req_id,
                getattr(response, "status", "?"), elapsed_ms,
            )
            return response
        except Exception:
            elapsed_ms = (time.monotonic() - start) * 1000
            logger.exception("HTTP %s %s req=%s failed duration_ms=%.1f", request.method, request.path_qs, req_id, elapsed_ms)
            raise

    # ── Route setup ──

    def _setup_routes(self) -> None:
        r = self._app.router
        r.add_get("/health", self._handle_health)
        r.add_get("/events", self._handle_sse)
        r.add_get("/sessions", self._handle_list_sessions)
        r.add_post("/sessions/rescan", self._handle_rescan)

    # ── Lifecycle ──

    async def start(self) -> None:
        """Start polling and serving; print the bound port to stdout."""
        runner = web.AppRunner(self._app)
        await runner.setup()
        site = web.TCPSite(runner, self._host, self._port)
        await site.start()

        actual_port = self._resolve_port(site, runner)
        if actual_port is None:
            raise RuntimeError("agentwatch server started but no listening socket was reported.")
        self._port = actual_port

        sys.stdout.write(json.dumps({"port": actual_port}) + "\n")
        sys.stdout.flush()
        logger.info("agentwatch server listening on %s:%d", self._host, actual_port)

        self._tracker.start()
        try:
            await asyncio.Event().wait()
        except (KeyboardInterrupt, asyncio.CancelledError):
            logger.info("Server shutting down")
        finally:
            await self._tracker.stop()
            await runner.cleanup()

    async def _close_streams(self, app: web.Application) -> None:
        """End open SSE streams so shutdown does not wait on them."""
        for task in list(self._sse_tasks):
            task.cancel()

    @staticmethod
    def _resolve_port(site, runner) -> int | None:
        sockets = getattr(getattr(site, "_server", None), "sockets", None) or ()
        if sockets:
            return sockets[0].getsockname()[1]
        addresses = getattr(runner, "addresses", None) or ()
        if addresses:
            first = addresses[0]
            if isinstance(first, tuple) and len(first) >= 2:
                return int(first[1])
        return None

    # ── HTTP handlers ──

    async def _handle_health(self, request: web.Request) -> web.Response:
        poller = self._tracker.poller
        return web.json_response({
            "status": "ok",
            "pid": os.getpid(),
            "uptime_seconds": round(max(0.0, time.time() - self._started_at), 3),
            "project_root": str(self._tracker.config.project_root),
            "sessions_root": str(self._tracker.config.sessions_root),
            "session_count": len(self._tracker.registry),
            "subscribers": self._tracker.broadcaster.subscriber_count,
            "poller": {
                "running": poller.running,
                "interval_seconds": poller.interval,
                "ticks": poller.tick_count,
                "last_tick_at": poller.last_tick_at,
            },
        })

    async def _handle_list_sessions(self, request: web.Request) -> web.Response:
        return web.json_response({
            "agents": [session.to_dict() for session in self._tracker.sessions()],
        })

    async def _handle_rescan(self, request: web.Request) -> web.Response:
        created = self._tracker.rescan()
        return web.json_response({
            "registered": [session.agent_id for session in created],
        })

    async def _handle_sse(self, request: web.Request) -> web.StreamResponse:
        response = web.StreamResponse(
            status=200,
            headers={
                "Content-Type": "text/event-stream",
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "Access-Control-Allow-Origin": "*",
            },
        )
        await response.prepare(request)

        req_id = request.get("req_id", "unknown")
        subscription = self._tracker.subscribe(name=f"sse-{req_id}")
        task = asyncio.current_task()
        if task is not None:
            self._sse_tasks.add(task)
        logger.info(
            "SSE client connected req=%s active_clients=%d",
            req_id, self._tracker.broadcaster.subscriber_count,
        )
        try:
            while True:
                try:
                    event = await asyncio.wait_for(subscription.get(), timeout=KEEPALIVE_SECONDS)
                    await response.write(format_sse(event_to_dict(event)))
                except asyncio.TimeoutError:
                    await response.write(b": keepalive\n\n")
                except ConnectionResetError:
                    break
        except asyncio.CancelledError:
            pass
        finally:
            subscription.close()
            self._sse_tasks.discard(task)
            logger.info(
                "SSE client disconnected req=%s active_clients=%d",
                req_id, self._tracker.broadcaster.subscriber_count,
            )
        return response


def format_sse(payload: dict[str, Any]) -> bytes:
    """Encode one event dict as an SSE frame named after its event type."""
    data = dict(payload)
    event_type = data.pop("event", "message")
    return f"event: {event_type}\ndata: {json.dumps(data)}\n\n".encode()
