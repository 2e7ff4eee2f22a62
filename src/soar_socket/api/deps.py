"""
soar_socket.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions, and the realtime hub.
- Encapsulate app.state access patterns.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from soar_socket.realtime.hub import SocketHub
from soar_socket.services.role_service import RoleService
from soar_socket.settings import Settings, get_settings


def settings_dep(settings: Settings = Depends(get_settings)) -> Settings:
    return settings


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def hub_dep(request: Request) -> SocketHub:
    # Created in the app lifespan (`soar_socket.api.app.create_app`).
    return request.app.state.hub  # type: ignore[attr-defined]


def role_service_dep(hub: SocketHub = Depends(hub_dep)) -> RoleService:
    return hub.roles
