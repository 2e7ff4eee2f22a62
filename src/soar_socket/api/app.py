"""
soar_socket.api.app

FastAPI app factory for the Soar Socket service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine, role store, realtime hub,
  websocket listener).
- Provide a single composition root where cross-cutting concerns live.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.status import HTTP_500_INTERNAL_SERVER_ERROR

from soar_socket.api.routers.admin import router as admin_router
from soar_socket.api.routers.health import router as health_router
from soar_socket.api.routers.users import router as users_router
from soar_socket.db.init_db import init_db
from soar_socket.db.session import create_engine, create_sessionmaker
from soar_socket.observability.logging import configure_logging, get_logger
from soar_socket.observability.middleware import RequestContextMiddleware
from soar_socket.realtime.hub import SocketHub
from soar_socket.realtime.server import SocketServer
from soar_socket.services.role_store import RoleStore, RoleStoreError
from soar_socket.settings import Settings, get_settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        level=settings.log_level,
        cache_loggers=settings.env != "test",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        # Missing table == empty store; created on first boot.
        await init_db(engine)

        store = RoleStore(app.state.sessionmaker)
        await store.load()
        hub = SocketHub(store=store, settings=settings)
        app.state.hub = hub
        await hub.start()
        socket_server = SocketServer(hub, settings)
        app.state.socket_server = socket_server
        await socket_server.start()
        try:
            yield
        finally:
            await hub.stop()
            await socket_server.stop()
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Soar Socket",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    # Routes and the admin guard resolve settings through `get_settings`; pin them to ours.
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router, tags=["health"])
    app.include_router(users_router)
    app.include_router(admin_router)

    @app.exception_handler(StarletteHTTPException)
    async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RoleStoreError)
    async def _store_error(_: Request, exc: RoleStoreError) -> JSONResponse:
        log.error("role_store_unavailable", error=str(exc))
        return JSONResponse(
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": "Failed to persist user record"},
        )

    return app


# --- Module Notes -----------------------------------------------------------
# Routers never build infrastructure themselves; everything long-lived hangs off
# app.state and is reached through `api.deps`.
