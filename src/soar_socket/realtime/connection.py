"""
soar_socket.realtime.connection

Transport-agnostic live connection.

Responsibilities:
- Wrap a websocket transport behind a small protocol (send text, close, open state).
- Queue outbound frames and drain them from a per-connection writer task, so callers
  (registry, broadcast) never block on network I/O.
- Carry the heartbeat liveness flag and run protocol-level ping round trips.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable
from typing import Any, Protocol

from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from soar_socket.observability.logging import get_logger
from soar_socket.realtime import messages

log = get_logger(__name__)


class Transport(Protocol):
    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...

    async def ping(self) -> None:
        """Send a protocol ping and wait for its pong. Raises `ConnectionError` if the peer is gone."""
        ...


class WebsocketsTransport:
    """Adapter from a `websockets` server connection to `Transport`."""

    def __init__(self, websocket: ServerConnection) -> None:
        self._ws = websocket

    @property
    def is_open(self) -> bool:
        return self._ws.state is State.OPEN

    async def send_text(self, data: str) -> None:
        await self._ws.send(data)

    async def close(self, code: int = 1000) -> None:
        await self._ws.close(code=code)

    async def ping(self) -> None:
        try:
            pong_waiter = await self._ws.ping()
            await pong_waiter
        except ConnectionClosed as e:
            raise ConnectionError(str(e)) from e


class Connection:
    def __init__(
        self,
        transport: Transport,
        *,
        remote: str = "unknown",
        queue_size: int = 256,
    ) -> None:
        self.id = uuid.uuid4().hex
        self.remote = remote
        # Heartbeat flag: cleared on each ping, set again when the pong arrives.
        self.is_alive = True

        self._transport = transport
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=queue_size)
        self._writer: asyncio.Task[None] | None = None
        self._pings: set[asyncio.Task[None]] = set()
        self._closed = False
        self._terminated = False

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, remote={self.remote!r})"

    @property
    def is_open(self) -> bool:
        return not self._closed and self._transport.is_open

    def start(self) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._pump(), name=f"ws-writer-{self.id}")

    def send(self, frame: dict[str, Any]) -> bool:
        """Queue a frame for delivery. Returns False when the frame was dropped."""
        if self._closed:
            return False
        try:
            self._outbox.put_nowait(messages.encode(frame))
        except asyncio.QueueFull:
            log.warning("outbox_full", connection_id=self.id, frame_type=frame.get("type"))
            return False
        return True

    def ping(self, on_pong: Callable[[Connection], None]) -> bool:
        """Start a protocol ping; `on_pong` runs once the peer answers. Returns False when closed."""
        if self._closed:
            return False
        ping_task = asyncio.create_task(self._await_pong(on_pong), name=f"ws-ping-{self.id}")
        self._pings.add(ping_task)
        ping_task.add_done_callback(self._pings.discard)
        return True

    async def flush(self) -> None:
        """Wait until every queued frame has been handed to the transport."""
        if self._closed or self._writer is None or self._writer.done():
            return
        await self._outbox.join()

    async def terminate(self, code: int = 1000) -> None:
        """Forcibly close: drop pending frames, stop the writer, close the transport."""
        if self._terminated:
            return
        self._terminated = True
        self._closed = True
        pings, self._pings = list(self._pings), set()
        for ping_task in pings:
            ping_task.cancel()
        writer, self._writer = self._writer, None
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
        if pings:
            await asyncio.gather(*pings, return_exceptions=True)
        if not self._transport.is_open:
            return
        try:
            await self._transport.close(code)
        except (RuntimeError, OSError) as e:
            # Transport already gone (client hung up first).
            log.debug("transport_close_failed", connection_id=self.id, error=str(e))

    async def _await_pong(self, on_pong: Callable[[Connection], None]) -> None:
        try:
            await self._transport.ping()
        except ConnectionError as e:
            log.debug("ping_failed", connection_id=self.id, error=str(e))
            return
        if not self._closed:
            on_pong(self)

    async def _pump(self) -> None:
        while True:
            data = await self._outbox.get()
            try:
                if not self._closed:
                    await self._transport.send_text(data)
            except Exception as e:
                self._closed = True
                log.warning("send_failed", connection_id=self.id, remote=self.remote, error=str(e))
            finally:
                self._outbox.task_done()


# --- Module Notes -----------------------------------------------------------
# A failed send marks the connection closed; the heartbeat's closed-connection sweep
# (or the close event) then unbinds it from the registry.
