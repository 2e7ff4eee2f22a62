"""
soar_socket.realtime.heartbeat

Periodic liveness probing of every tracked connection.

Each tick:
1. Sweep connections whose transport is no longer open.
2. Evict connections that did not answer the previous ping.
3. Clear the liveness flag on the rest and send a fresh protocol ping; the pong
   (answered by the peer's websocket stack) sets the flag again.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from soar_socket.observability.logging import get_logger
from soar_socket.realtime.connection import Connection
from soar_socket.realtime.registry import ConnectionRegistry

log = get_logger(__name__)


class HeartbeatMonitor:
    def __init__(
        self,
        registry: ConnectionRegistry,
        *,
        interval_secs: float = 30.0,
        on_pong: Callable[[Connection], None] | None = None,
    ) -> None:
        self._registry = registry
        self._on_pong = on_pong or _mark_alive
        self._interval = interval_secs
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if not self.running:
            self._task = asyncio.create_task(self._loop(), name="heartbeat")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

    async def tick(self) -> int:
        """Run one ping round; returns the number of evicted connections."""
        await self._registry.prune_closed()

        evicted = 0
        for connection in await self._registry.connections():
            if not connection.is_alive:
                session = await self._registry.discard(connection)
                await connection.terminate()
                evicted += 1
                log.info(
                    "heartbeat_timeout",
                    identity=session.identity if session is not None else None,
                    connection_id=connection.id,
                    remote=connection.remote,
                )
                continue
            connection.is_alive = False
            connection.ping(self._on_pong)
        return evicted

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.tick()
            except Exception:
                # A failed round must not stop future rounds.
                log.exception("heartbeat_tick_failed")


def _mark_alive(connection: Connection) -> None:
    connection.is_alive = True
