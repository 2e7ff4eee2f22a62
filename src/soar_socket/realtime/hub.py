"""
soar_socket.realtime.hub

Composition root for the realtime core.

Responsibilities:
- Own the registry, broadcast engine, binding handshake, heartbeat monitor and
  role service for one process.
- Expose the connection lifecycle hooks invoked by the transport layer.
- Start/stop background work with the application lifespan.
"""

from __future__ import annotations

from soar_socket.observability.logging import get_logger
from soar_socket.realtime import messages
from soar_socket.realtime.binding import IdentityBinding
from soar_socket.realtime.broadcast import BroadcastEngine
from soar_socket.realtime.connection import Connection
from soar_socket.realtime.heartbeat import HeartbeatMonitor
from soar_socket.realtime.registry import ConnectionRegistry
from soar_socket.services.role_service import RoleService
from soar_socket.services.role_store import RoleStore
from soar_socket.settings import Settings

log = get_logger(__name__)


class SocketHub:
    def __init__(self, *, store: RoleStore, settings: Settings) -> None:
        self.store = store
        self.registry = ConnectionRegistry(store, welcome_message=settings.welcome_message)
        self.broadcaster = BroadcastEngine(self.registry, store)
        self.binding = IdentityBinding(self.registry, self.broadcaster)
        self.heartbeat = HeartbeatMonitor(
            self.registry,
            interval_secs=settings.heartbeat_interval_secs,
            on_pong=self.on_pong,
        )
        self.roles = RoleService(store=store, registry=self.registry, broadcaster=self.broadcaster)

    async def start(self) -> None:
        self.heartbeat.start()
        log.info("hub_started")

    async def stop(self) -> None:
        await self.heartbeat.stop()
        for connection in await self.registry.connections():
            await self.registry.discard(connection)
            await connection.terminate(code=1001)
        log.info("hub_stopped")

    # ------------------------------------------------------------------
    # Transport hooks
    # ------------------------------------------------------------------

    async def on_open(self, connection: Connection) -> None:
        connection.start()
        await self.binding.open(connection)
        log.debug("connection_opened", connection_id=connection.id, remote=connection.remote)

    async def on_message(self, connection: Connection, raw: str | bytes) -> None:
        try:
            message = messages.decode_inbound(raw)
        except messages.MalformedFrame as e:
            log.warning("malformed_frame", connection_id=connection.id, error=str(e))
            return

        await self.binding.handle(connection, message)

    def on_pong(self, connection: Connection) -> None:
        # Protocol-level pong for the last heartbeat ping.
        connection.is_alive = True

    async def on_close(self, connection: Connection) -> None:
        await self.registry.discard(connection)
        await connection.terminate()
        await self.registry.prune_closed()
