"""
soar_socket.api.routers.health

Health, readiness, and client handshake endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from soar_socket.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    # Readiness: the role store's database must be reachable.
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}


@router.get("/v1/handshake")
async def handshake() -> dict[str, object]:
    return {"success": True, "message": "Handshake successful"}
