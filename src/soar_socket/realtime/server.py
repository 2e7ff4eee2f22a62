"""
soar_socket.realtime.server

Websocket listener for the realtime hub.

Responsibilities:
- Serve websocket upgrades (via `websockets`) on the configured host/port/path.
- Wrap each socket as a `Connection` and drive the hub's lifecycle hooks
  (open, message, close) from the receive loop.

The library's own keepalive is disabled: the hub's heartbeat sends the protocol pings
and decides eviction.
"""

from __future__ import annotations

from http import HTTPStatus
from urllib.parse import urlsplit

from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.exceptions import ConnectionClosedError
from websockets.http11 import Request, Response

from soar_socket.observability.logging import (
    bind_connection_context,
    clear_connection_context,
    get_logger,
)
from soar_socket.realtime.connection import Connection, WebsocketsTransport
from soar_socket.realtime.hub import SocketHub
from soar_socket.settings import Settings

log = get_logger(__name__)


def _fmt_remote(websocket: ServerConnection) -> str:
    address = websocket.remote_address
    if not address:
        return "unknown"
    return f"{address[0]}:{address[1]}"


class SocketServer:
    def __init__(self, hub: SocketHub, settings: Settings) -> None:
        self._hub = hub
        self._host = settings.websocket_host
        self._port = settings.websocket_port
        self._path = settings.websocket_path
        self._queue_size = settings.outbound_queue_size
        self._server: Server | None = None

    @property
    def port(self) -> int | None:
        """Bound port (useful when configured with port 0)."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    async def start(self) -> None:
        self._server = await serve(
            self._handle,
            self._host,
            self._port,
            process_request=self._check_path,
            ping_interval=None,
        )
        log.info("websocket_listening", host=self._host, port=self.port, path=self._path)

    async def stop(self) -> None:
        server, self._server = self._server, None
        if server is None:
            return
        server.close()
        await server.wait_closed()

    def _check_path(self, connection: ServerConnection, request: Request) -> Response | None:
        if urlsplit(request.path).path != self._path:
            return connection.respond(HTTPStatus.NOT_FOUND, "Not Found\n")
        return None

    async def _handle(self, websocket: ServerConnection) -> None:
        connection = Connection(
            WebsocketsTransport(websocket),
            remote=_fmt_remote(websocket),
            queue_size=self._queue_size,
        )
        bind_connection_context(connection_id=connection.id, remote=connection.remote)
        await self._hub.on_open(connection)
        try:
            async for raw in websocket:
                await self._hub.on_message(connection, raw)
        except ConnectionClosedError as e:
            log.debug("connection_lost", connection_id=connection.id, code=e.rcvd.code if e.rcvd else None)
        finally:
            await self._hub.on_close(connection)
            clear_connection_context()
