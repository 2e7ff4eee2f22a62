from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soar_socket.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> list[User]:
        stmt = select(User).order_by(User.created_at)
        return list((await self._session.execute(stmt)).scalars().all())

    async def upsert(self, *, identity: str, display_name: str | None, role: str | None) -> User:
        existing = await self._session.get(User, identity)
        if existing is not None:
            existing.display_name = display_name
            existing.role = role
            await self._session.flush()
            return existing

        user = User(identity=identity, display_name=display_name, role=role)
        self._session.add(user)
        await self._session.flush()
        return user

    async def delete(self, identity: str) -> bool:
        existing = await self._session.get(User, identity)
        if existing is None:
            return False
        await self._session.delete(existing)
        await self._session.flush()
        return True
