"""
soar_socket.realtime.registry

In-memory association between live connections and bound identities.

Responsibilities:
- Track every accepted connection, bound or not.
- Bind a connection to an identity, enforcing at most one live session per identity
  (a newer bind takes over and closes the older connection).
- Update the role carried by live sessions when an identity's role changes.
- Sweep connections whose transport is no longer open.

All mutations run under a single `asyncio.Lock`. Outbound frames are queued on the
connection (never awaited under the lock) and transports are terminated only after
the lock is released.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from soar_socket.db.models import Role
from soar_socket.observability.logging import get_logger
from soar_socket.realtime import messages
from soar_socket.realtime.connection import Connection
from soar_socket.services.role_store import RoleStore

log = get_logger(__name__)


@dataclass(slots=True)
class Session:
    connection: Connection
    identity: str
    display_name: str | None
    role: Role


class ConnectionRegistry:
    def __init__(self, store: RoleStore, *, welcome_message: str = "Welcome!") -> None:
        self._store = store
        self._welcome_message = welcome_message
        self._connections: dict[str, Connection] = {}
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def add(self, connection: Connection) -> None:
        async with self._lock:
            self._connections[connection.id] = connection

    async def discard(self, connection: Connection) -> Session | None:
        """Forget a connection entirely; returns its session if it had one."""
        async with self._lock:
            self._connections.pop(connection.id, None)
            return self._unbind_locked(connection)

    async def bind(self, connection: Connection, identity: str, display_name: str | None) -> Session:
        async with self._lock:
            superseded = [
                s
                for s in self._sessions.values()
                if s.identity == identity and s.connection.id != connection.id
            ]
            for old in superseded:
                self._sessions.pop(old.connection.id, None)
                self._connections.pop(old.connection.id, None)

            record = self._store.get(identity)
            role = record.effective_role if record is not None else Role.normal
            session = Session(
                connection=connection,
                identity=identity,
                display_name=display_name,
                role=role,
            )
            self._sessions[connection.id] = session
            self._connections[connection.id] = connection

            connection.send(messages.role_update(role.value))
            connection.send(messages.server_message(self._welcome_message))

        for old in superseded:
            await old.connection.terminate()
            log.info(
                "duplicate_connection_closed",
                identity=identity,
                connection_id=old.connection.id,
                remote=old.connection.remote,
            )
        return session

    async def unbind(self, connection: Connection) -> Session | None:
        async with self._lock:
            return self._unbind_locked(connection)

    def _unbind_locked(self, connection: Connection) -> Session | None:
        session = self._sessions.pop(connection.id, None)
        if session is not None:
            log.info(
                "user_disconnected",
                identity=session.identity,
                connection_id=connection.id,
                remote=connection.remote,
            )
        return session

    async def session_for(self, connection: Connection) -> Session | None:
        async with self._lock:
            return self._sessions.get(connection.id)

    async def sessions_by_identity(self, identity: str) -> list[Session]:
        async with self._lock:
            return [s for s in self._sessions.values() if s.identity == identity]

    async def all_sessions(self) -> list[Session]:
        async with self._lock:
            return list(self._sessions.values())

    async def connections(self) -> list[Connection]:
        async with self._lock:
            return list(self._connections.values())

    async def reconcile_role(self, identity: str, role: Role | None) -> list[Session]:
        """
        Apply a role change to the identity's live session(s) and return them.

        `role=None` means the stored record was removed; live sessions fall back to Normal.
        Notifying the affected clients is left to the caller.
        """
        new_role = role or Role.normal
        async with self._lock:
            affected = [s for s in self._sessions.values() if s.identity == identity]
            for session in affected:
                session.role = new_role
        if affected:
            log.info("live_role_reconciled", identity=identity, role=new_role.value, sessions=len(affected))
        return affected

    async def prune_closed(self) -> list[Session]:
        """Unbind and forget every connection whose transport is no longer open."""
        async with self._lock:
            dead = [c for c in self._connections.values() if not c.is_open]
            pruned: list[Session] = []
            for connection in dead:
                self._connections.pop(connection.id, None)
                session = self._sessions.pop(connection.id, None)
                if session is not None:
                    pruned.append(session)
                    log.info("dead_connection_cleaned", identity=session.identity, connection_id=connection.id)
            return pruned


# --- Module Notes -----------------------------------------------------------
# Lock order is registry -> role store (bind reads the cached record); the role store
# never calls back into the registry, so the two locks cannot deadlock.
