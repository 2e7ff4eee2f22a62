"""
soar_socket.realtime.broadcast

Fan-out of frames to live connections.

Responsibilities:
- Build the user directory snapshot from the role store.
- Send a frame to every open connection exactly once per call.
- Send frames to the live session(s) of a single identity.

Broadcast is fire-and-forget: recipients are snapshotted from the registry, then each
one is sent to independently; a failure on one connection is logged and never reaches
the caller.
"""

from __future__ import annotations

from typing import Any

from soar_socket.db.models import Role
from soar_socket.observability.logging import get_logger
from soar_socket.realtime import messages
from soar_socket.realtime.connection import Connection
from soar_socket.realtime.registry import ConnectionRegistry
from soar_socket.services.role_store import RoleStore

log = get_logger(__name__)


class BroadcastEngine:
    def __init__(self, registry: ConnectionRegistry, store: RoleStore) -> None:
        self._registry = registry
        self._store = store

    def directory_snapshot(self) -> dict[str, Any]:
        # Records stored without a role are listed as Premium (only stored users appear).
        users = [
            {
                "name": record.display_name or "Unknown",
                "uuid": identity,
                "role": (record.role or Role.premium).value,
            }
            for identity, record in self._store.all_records().items()
        ]
        return messages.user_directory(users)

    async def broadcast(self, frame: dict[str, Any]) -> int:
        recipients = await self._registry.connections()
        seen: set[str] = set()
        delivered = 0
        for connection in recipients:
            if connection.id in seen or not connection.is_open:
                continue
            seen.add(connection.id)
            if self._deliver(connection, frame):
                delivered += 1
        log.debug("broadcast", frame_type=frame.get("type"), recipients=delivered)
        return delivered

    async def broadcast_directory(self) -> int:
        return await self.broadcast(self.directory_snapshot())

    async def send_to_identity(self, identity: str, *frames: dict[str, Any]) -> int:
        sessions = await self._registry.sessions_by_identity(identity)
        delivered = 0
        for session in sessions:
            if not session.connection.is_open:
                continue
            for frame in frames:
                if self._deliver(session.connection, frame):
                    delivered += 1
        return delivered

    @staticmethod
    def _deliver(connection: Connection, frame: dict[str, Any]) -> bool:
        try:
            sent = connection.send(frame)
        except (TypeError, ValueError) as e:
            log.warning(
                "broadcast_send_failed",
                connection_id=connection.id,
                frame_type=frame.get("type"),
                error=str(e),
            )
            return False
        if not sent:
            log.warning("broadcast_frame_dropped", connection_id=connection.id, frame_type=frame.get("type"))
        return sent
