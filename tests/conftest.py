"""
tests.conftest

Shared fixtures: a temporary SQLite-backed role store and in-memory websocket transports.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest
import pytest_asyncio

from soar_socket.db.init_db import init_db
from soar_socket.db.session import create_engine, create_sessionmaker
from soar_socket.realtime.connection import Connection
from soar_socket.services.role_store import RoleStore
from soar_socket.settings import Settings


class FakeTransport:
    """
    Records outbound text frames; `fail_sends` simulates a broken peer.

    Pings are answered at once, like a real websocket stack, unless `answer_pings` is
    False, in which case the pong never arrives.
    """

    def __init__(self, *, fail_sends: bool = False, answer_pings: bool = True) -> None:
        self.open = True
        self.fail_sends = fail_sends
        self.answer_pings = answer_pings
        self.pings = 0
        self.sent: list[str] = []
        self.close_codes: list[int] = []

    @property
    def is_open(self) -> bool:
        return self.open

    async def send_text(self, data: str) -> None:
        if self.fail_sends:
            raise ConnectionResetError("peer reset")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.open = False
        self.close_codes.append(code)

    async def ping(self) -> None:
        if not self.open:
            raise ConnectionError("transport closed")
        self.pings += 1
        if not self.answer_pings:
            await asyncio.Event().wait()

    @property
    def frames(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]

    @property
    def types(self) -> list[str]:
        return [f["type"] for f in self.frames]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'users.db'}",
        admin_key="test-admin-key",
        jwt_secret="test-secret",
        heartbeat_interval_secs=3600,
        websocket_host="127.0.0.1",
        websocket_port=0,
        welcome_message="Welcome to Soar Socket!",
    )


@pytest_asyncio.fixture
async def sessionmaker(settings: Settings):
    engine = create_engine(settings)
    await init_db(engine)
    try:
        yield create_sessionmaker(engine)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def store(sessionmaker) -> RoleStore:
    role_store = RoleStore(sessionmaker)
    await role_store.load()
    return role_store


@pytest_asyncio.fixture
async def connect():
    """Factory for started connections over fake transports; terminated on teardown."""
    created: list[Connection] = []

    def _connect(
        *,
        remote: str = "127.0.0.1:5000",
        fail_sends: bool = False,
        answer_pings: bool = True,
    ):
        transport = FakeTransport(fail_sends=fail_sends, answer_pings=answer_pings)
        connection = Connection(transport, remote=remote)
        connection.start()
        created.append(connection)
        return connection, transport

    yield _connect
    for connection in created:
        await connection.terminate()
