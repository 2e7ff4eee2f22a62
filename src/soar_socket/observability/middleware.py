"""
soar_socket.observability.middleware

Request-scoped logging context for the HTTP API.

Responsibilities:
- Honor an incoming `x-request-id` (or mint one) and echo it on the response.
- Bind request id, route, method and caller address into structlog contextvars, so
  admin actions and role mutations logged downstream carry them.

Websocket sessions are served by a separate listener (`realtime.server`) and bind
`connection_id`/`remote` through `observability.logging.bind_connection_context`.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_HEADER = "x-request-id"


def _remote(request: Request) -> str:
    if request.client is None:
        return "unknown"
    return f"{request.client.host}:{request.client.port}"


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
            remote=_remote(request),
        )
        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
