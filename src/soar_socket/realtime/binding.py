"""
soar_socket.realtime.binding

Identity binding handshake for newly opened connections.

Per connection: Unbound -> Bound (terminal until close).
- On open the server asks for an identity (`request_uuid`).
- The first valid `user_uuid` frame binds the connection and triggers a directory
  broadcast; other frame types are ignored while unbound.
- Frames arriving after the bind belong to higher layers and are not handled here.
"""

from __future__ import annotations

from soar_socket.observability.logging import get_logger
from soar_socket.realtime import messages
from soar_socket.realtime.broadcast import BroadcastEngine
from soar_socket.realtime.connection import Connection
from soar_socket.realtime.registry import ConnectionRegistry, Session

log = get_logger(__name__)


class IdentityBinding:
    def __init__(self, registry: ConnectionRegistry, broadcaster: BroadcastEngine) -> None:
        self._registry = registry
        self._broadcaster = broadcaster

    async def open(self, connection: Connection) -> None:
        await self._registry.add(connection)
        connection.send(messages.request_identity())

    async def handle(
        self,
        connection: Connection,
        message: messages.IdentityAnnouncement | messages.UnknownMessage,
    ) -> Session | None:
        """Returns the new session when this message completed the bind."""
        if not isinstance(message, messages.IdentityAnnouncement):
            return None

        if await self._registry.session_for(connection) is not None:
            log.debug("identity_already_bound", connection_id=connection.id)
            return None

        session = await self._registry.bind(connection, message.identity, message.display_name)
        await self._broadcaster.broadcast_directory()
        log.info(
            "user_connected",
            identity=session.identity,
            role=session.role.value,
            remote=connection.remote,
        )
        return session
