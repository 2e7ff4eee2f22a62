"""
soar_socket.db.init_db

Schema bootstrap.

Responsibilities:
- Create the `users` table on startup when missing, which yields an empty role store
  on first boot.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from soar_socket.db import models  # noqa: F401  # register models on Base.metadata
from soar_socket.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
