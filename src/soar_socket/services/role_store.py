"""
soar_socket.services.role_store

Durable identity -> {display name, role} mapping.

Responsibilities:
- Load every stored user record at startup (an empty table is an empty store).
- Serve reads from an in-memory mapping kept in sync with the database.
- Commit every mutation before the in-memory mapping changes, so a failed write
  leaves the store exactly as it was.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from soar_socket.db.models import Role, User
from soar_socket.db.repositories.users import UserRepo
from soar_socket.observability.logging import get_logger

log = get_logger(__name__)


class RoleStoreError(Exception):
    """Raised when the durable store cannot be read or written."""


@dataclass(frozen=True, slots=True)
class UserRecord:
    identity: str
    display_name: str | None
    # None means the stored record carries no role at all (see `effective_role`).
    role: Role | None

    @property
    def effective_role(self) -> Role:
        return self.role or Role.normal


def _parse_role(identity: str, raw: str | None) -> Role | None:
    if raw is None:
        return None
    try:
        return Role(raw)
    except ValueError:
        log.warning("unknown_stored_role", identity=identity, role=raw)
        return None


def _to_record(row: User) -> UserRecord:
    return UserRecord(
        identity=row.identity,
        display_name=row.display_name,
        role=_parse_role(row.identity, row.role),
    )


class RoleStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._records: dict[str, UserRecord] = {}
        self._lock = asyncio.Lock()

    async def load(self) -> dict[str, UserRecord]:
        async with self._lock:
            try:
                async with self._session_factory() as session:
                    rows = await UserRepo(session).list_all()
            except SQLAlchemyError as e:
                raise RoleStoreError(f"failed to load user records: {e}") from e
            self._records = {row.identity: _to_record(row) for row in rows}
        log.info("role_store_loaded", records=len(self._records))
        return dict(self._records)

    def get(self, identity: str) -> UserRecord | None:
        return self._records.get(identity)

    def all_records(self) -> dict[str, UserRecord]:
        return dict(self._records)

    async def put(
        self,
        identity: str,
        *,
        display_name: str | None,
        role: Role | None,
    ) -> UserRecord:
        record = UserRecord(identity=identity, display_name=display_name, role=role)
        async with self._lock:
            try:
                async with self._session_factory() as session:
                    await UserRepo(session).upsert(
                        identity=identity,
                        display_name=display_name,
                        role=role.value if role is not None else None,
                    )
                    await session.commit()
            except SQLAlchemyError as e:
                log.error("role_store_write_failed", identity=identity, error=str(e))
                raise RoleStoreError(f"failed to persist user {identity}") from e
            self._records[identity] = record
        return record

    async def remove(self, identity: str) -> UserRecord | None:
        async with self._lock:
            try:
                async with self._session_factory() as session:
                    await UserRepo(session).delete(identity)
                    await session.commit()
            except SQLAlchemyError as e:
                log.error("role_store_write_failed", identity=identity, error=str(e))
                raise RoleStoreError(f"failed to remove user {identity}") from e
            return self._records.pop(identity, None)


# --- Module Notes -----------------------------------------------------------
# Reads are synchronous against the cache so the connection registry can consult
# roles while holding its own lock without awaiting the database.
