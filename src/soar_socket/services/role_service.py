"""
soar_socket.services.role_service

Role mutation entry point used by the HTTP layer.

Responsibilities:
- Apply a role change or removal to the role store.
- Reconcile the identity's live session(s) and tell them their new role, then
  broadcast the refreshed directory.
- Answer role queries (`is_special_role`, `list_special_users`).

Mutations are serialized; a store failure aborts the mutation before any live session
or broadcast is touched.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from soar_socket.db.models import Role
from soar_socket.observability.logging import get_logger
from soar_socket.realtime import messages
from soar_socket.realtime.broadcast import BroadcastEngine
from soar_socket.realtime.registry import ConnectionRegistry
from soar_socket.services.role_store import RoleStore, UserRecord

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RoleChange:
    role: Role | None = None
    display_name: str | None = None
    remove: bool = False


class RoleService:
    def __init__(
        self,
        *,
        store: RoleStore,
        registry: ConnectionRegistry,
        broadcaster: BroadcastEngine,
    ) -> None:
        self._store = store
        self._registry = registry
        self._broadcaster = broadcaster
        self._lock = asyncio.Lock()

    async def mutate_role(self, identity: str, change: RoleChange) -> UserRecord | None:
        """
        Returns the stored record after the change, or None when the record was removed.

        Raises `RoleStoreError` if the change could not be persisted.
        """
        async with self._lock:
            if change.remove:
                await self._store.remove(identity)
                record = None
                live_role = None
            else:
                existing = self._store.get(identity)
                display_name = change.display_name or (existing and existing.display_name) or "Unknown"
                role = change.role or (existing and existing.role) or Role.premium
                record = await self._store.put(identity, display_name=display_name, role=role)
                live_role = record.role

            log.info(
                "role_mutated",
                identity=identity,
                role=record.role.value if record and record.role else None,
                removed=change.remove,
            )
            affected = await self._registry.reconcile_role(identity, live_role)
            if affected:
                new_role = affected[0].role.value
                await self._broadcaster.send_to_identity(
                    identity,
                    messages.role_update(new_role),
                    messages.server_message(f"Your role has been updated to {new_role}."),
                )
            await self._broadcast_directory()
            return record

    async def _broadcast_directory(self) -> None:
        try:
            await self._broadcaster.broadcast_directory()
        except Exception:
            # The mutation is already committed; fan-out failures are not the caller's concern.
            log.exception("directory_broadcast_failed")

    def is_special_role(self, identity: str) -> bool:
        record = self._store.get(identity)
        role = record.effective_role if record is not None else Role.normal
        return role != Role.normal

    def list_special_users(self) -> list[dict[str, str]]:
        return [
            {
                "uuid": identity,
                "name": record.display_name or "Unknown",
                "role": record.role.value,
            }
            for identity, record in self._store.all_records().items()
            if record.role is not None and record.role != Role.normal
        ]
