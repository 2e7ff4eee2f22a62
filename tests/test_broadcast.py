from __future__ import annotations

import pytest

from soar_socket.db.models import Role
from soar_socket.realtime import messages
from soar_socket.realtime.broadcast import BroadcastEngine
from soar_socket.realtime.registry import ConnectionRegistry


@pytest.fixture
def registry(store) -> ConnectionRegistry:
    return ConnectionRegistry(store)


@pytest.fixture
def engine(registry, store) -> BroadcastEngine:
    return BroadcastEngine(registry, store)


@pytest.mark.asyncio
async def test_directory_lists_only_stored_records(engine, store) -> None:
    await store.put("a", display_name="Alice", role=Role.staff)
    await store.put("c", display_name="Carol", role=Role.premium)

    snapshot = engine.directory_snapshot()

    assert snapshot["type"] == "sws-soar-user-data"
    assert sorted(snapshot["users"], key=lambda u: u["uuid"]) == [
        {"name": "Alice", "uuid": "a", "role": "Staff"},
        {"name": "Carol", "uuid": "c", "role": "Premium"},
    ]


@pytest.mark.asyncio
async def test_directory_falls_back_to_premium_and_unknown(engine, store) -> None:
    await store.put("legacy", display_name=None, role=None)

    assert engine.directory_snapshot()["users"] == [
        {"name": "Unknown", "uuid": "legacy", "role": "Premium"},
    ]


@pytest.mark.asyncio
async def test_broadcast_reaches_every_open_connection_once(engine, registry, connect) -> None:
    bound, bound_t = connect()
    unbound, unbound_t = connect()
    closed, closed_t = connect()
    for c in (bound, unbound, closed):
        await registry.add(c)
    await registry.bind(bound, "u-1", "Alice")
    await bound.flush()
    bound_t.sent.clear()
    closed_t.open = False

    delivered = await engine.broadcast(messages.server_message("maintenance at noon"))
    await bound.flush()
    await unbound.flush()

    assert delivered == 2
    assert bound_t.frames == [{"type": "server_message", "message": "maintenance at noon"}]
    assert unbound_t.frames == [{"type": "server_message", "message": "maintenance at noon"}]
    assert closed_t.sent == []


@pytest.mark.asyncio
async def test_failing_recipient_does_not_block_others(engine, registry, connect) -> None:
    broken, broken_t = connect(fail_sends=True)
    healthy, healthy_t = connect()
    await registry.add(broken)
    await registry.add(healthy)

    await engine.broadcast(messages.server_message("first"))
    await broken.flush()
    await healthy.flush()
    await engine.broadcast(messages.server_message("second"))
    await healthy.flush()

    assert [f["message"] for f in healthy_t.frames] == ["first", "second"]
    assert broken_t.sent == []
    assert broken.is_open is False


@pytest.mark.asyncio
async def test_send_to_identity_targets_only_that_session(engine, registry, connect) -> None:
    alice, alice_t = connect()
    bob, bob_t = connect()
    await registry.bind(alice, "u-1", "Alice")
    await registry.bind(bob, "u-2", "Bob")
    await alice.flush()
    await bob.flush()
    alice_t.sent.clear()
    bob_t.sent.clear()

    delivered = await engine.send_to_identity("u-1", messages.server_message("hi"))
    await alice.flush()
    await bob.flush()

    assert delivered == 1
    assert alice_t.frames == [{"type": "server_message", "message": "hi"}]
    assert bob_t.sent == []
