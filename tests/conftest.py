"""Shared test fixtures for the promview test suite."""

from __future__ import annotations

import asyncio
import socket
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest
from aiohttp import web

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterator


# =============================================================================
# Pytest configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-apply markers based on test directory structure."""
    for item in items:
        test_path = str(item.fspath)
        if "/unit/" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/e2e/" in test_path:
            item.add_marker(pytest.mark.e2e)


# =============================================================================
# Exposition payloads
# =============================================================================

EXPOSITION = """\
# HELP reconcile_total Total number of reconciliations per controller
# TYPE reconcile_total counter
reconcile_total{controller="pods",result="success"} 12
reconcile_total{controller="nodes",result="success"} 3
# HELP reconcile_seconds Length of time per reconciliation per controller
# TYPE reconcile_seconds histogram
reconcile_seconds_bucket{controller="pods",le="0.005"} 0
reconcile_seconds_bucket{controller="pods",le="0.01"} 4
reconcile_seconds_bucket{controller="pods",le="0.1"} 10
reconcile_seconds_bucket{controller="pods",le="+Inf"} 12
reconcile_seconds_sum{controller="pods"} 0.4
reconcile_seconds_count{controller="pods"} 12
# HELP workqueue_depth Current depth of workqueue
# TYPE workqueue_depth gauge
workqueue_depth{name="pods"} 2
"""

# EXPOSITION minus the "nodes" counter series.
EXPOSITION_WITHOUT_NODES = "\n".join(
    line for line in EXPOSITION.splitlines() if 'controller="nodes"' not in line
) + "\n"


@dataclass
class MetricsTarget:
    """A running metrics server whose payload and status tests can change."""

    host: str
    payload: str | bytes = EXPOSITION
    status: int = 200

    @property
    def url(self) -> str:
        return f"http://{self.host}/metrics"


# =============================================================================
# Network utilities
# =============================================================================


def _get_free_port() -> int:
    """Find an available port on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


def _create_metrics_app(target: MetricsTarget) -> web.Application:
    """Build an app serving ``target.payload`` on /metrics."""

    def _payload_response(status: int) -> web.Response:
        # Raw bytes are sent as-is so tests can serve undecodable bodies.
        if isinstance(target.payload, bytes):
            return web.Response(
                body=target.payload,
                status=status,
                headers={"Content-Type": "text/plain; charset=utf-8"},
            )
        return web.Response(text=target.payload, status=status, content_type="text/plain")

    async def _metrics_handler(request: web.Request) -> web.Response:
        return _payload_response(target.status)

    async def _slow_handler(request: web.Request) -> web.Response:
        await asyncio.sleep(float(request.query.get("delay", "1.0")))
        return _payload_response(200)

    app = web.Application()
    app.router.add_get("/metrics", _metrics_handler)
    app.router.add_get("/slow", _slow_handler)
    return app


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
async def metrics_server() -> AsyncIterator[MetricsTarget]:
    """Aiohttp metrics server running on the test's event loop."""
    port = _get_free_port()
    target = MetricsTarget(host=f"127.0.0.1:{port}")
    runner = web.AppRunner(_create_metrics_app(target))
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", port)
    await site.start()
    yield target
    await runner.cleanup()


@pytest.fixture
def sync_metrics_server() -> Iterator[MetricsTarget]:
    """Metrics server running in a background thread for sync tests.

    Needed wherever the code under test runs its own event loop, such as
    the scrape thread or the CLI.
    """
    port = _get_free_port()
    target = MetricsTarget(host=f"127.0.0.1:{port}")
    started = threading.Event()
    loop_holder: list[asyncio.AbstractEventLoop] = []

    def _thread_target() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        runner = web.AppRunner(_create_metrics_app(target))
        loop.run_until_complete(runner.setup())
        site = web.TCPSite(runner, "127.0.0.1", port)
        loop.run_until_complete(site.start())
        loop_holder.append(loop)
        started.set()
        loop.run_forever()
        loop.run_until_complete(runner.cleanup())
        loop.close()

    thread = threading.Thread(target=_thread_target, daemon=True)
    thread.start()
    started.wait(timeout=5.0)

    yield target

    if loop_holder:
        loop_holder[0].call_soon_threadsafe(loop_holder[0].stop)
    thread.join(timeout=5.0)


@pytest.fixture
def closed_port_host() -> str:
    """``host:port`` where nothing is listening."""
    return f"127.0.0.1:{_get_free_port()}"


@pytest.fixture
def exposition() -> str:
    """Full sample payload served by the metrics server fixtures."""
    return EXPOSITION


@pytest.fixture
def exposition_without_nodes() -> str:
    """Sample payload with the ``controller="nodes"`` series removed."""
    return EXPOSITION_WITHOUT_NODES
