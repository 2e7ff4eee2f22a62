from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from soar_socket.realtime.heartbeat import HeartbeatMonitor
from soar_socket.realtime.registry import ConnectionRegistry


async def _settle() -> None:
    # Let scheduled ping round trips finish.
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def registry(store) -> ConnectionRegistry:
    return ConnectionRegistry(store)


@pytest.fixture
def monitor(registry) -> HeartbeatMonitor:
    return HeartbeatMonitor(registry, interval_secs=3600)


@pytest.mark.asyncio
async def test_first_tick_pings_and_clears_flag(monitor, registry, connect) -> None:
    conn, transport = connect(answer_pings=False)
    await registry.add(conn)

    assert await monitor.tick() == 0
    await _settle()

    assert conn.is_alive is False
    assert transport.pings == 1
    # Pings are control frames, never JSON frames.
    assert transport.sent == []


@pytest.mark.asyncio
async def test_unanswered_ping_evicts(monitor, registry, connect) -> None:
    conn, transport = connect(answer_pings=False)
    await registry.add(conn)
    await registry.bind(conn, "u-1", "Alice")

    await monitor.tick()
    await _settle()
    evicted = await monitor.tick()

    assert evicted == 1
    assert transport.open is False
    assert await registry.sessions_by_identity("u-1") == []
    assert await registry.connections() == []


@pytest.mark.asyncio
async def test_eviction_log_names_identity(monitor, registry, connect) -> None:
    conn, _ = connect(answer_pings=False)
    await registry.add(conn)
    await registry.bind(conn, "u-1", "Alice")

    await monitor.tick()
    with capture_logs() as logs:
        await monitor.tick()

    timeouts = [e for e in logs if e["event"] == "heartbeat_timeout"]
    assert len(timeouts) == 1
    assert timeouts[0]["identity"] == "u-1"
    assert timeouts[0]["connection_id"] == conn.id


@pytest.mark.asyncio
async def test_answering_client_survives_many_ticks(monitor, registry, connect) -> None:
    conn, transport = connect()
    await registry.add(conn)
    await registry.bind(conn, "u-1", "Alice")

    for _ in range(4):
        assert await monitor.tick() == 0
        await _settle()
        assert conn.is_alive is True

    assert transport.pings == 4
    assert transport.open is True
    assert len(await registry.sessions_by_identity("u-1")) == 1


@pytest.mark.asyncio
async def test_unbound_connections_are_pinged_and_evicted(monitor, registry, connect) -> None:
    conn, transport = connect(answer_pings=False)
    await registry.add(conn)

    await monitor.tick()
    assert await monitor.tick() == 1
    assert transport.open is False


@pytest.mark.asyncio
async def test_tick_sweeps_closed_transports(monitor, registry, connect) -> None:
    conn, transport = connect()
    await registry.add(conn)
    await registry.bind(conn, "u-1", "Alice")

    transport.open = False
    assert await monitor.tick() == 0

    assert await registry.sessions_by_identity("u-1") == []
    assert await registry.connections() == []


@pytest.mark.asyncio
async def test_start_and_stop(monitor) -> None:
    monitor.start()
    assert monitor.running
    await monitor.stop()
    assert not monitor.running
    # Stopping twice is harmless.
    await monitor.stop()
