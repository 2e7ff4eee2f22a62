"""
soar_socket.observability.logging

Structured JSON logging for the HTTP API and the websocket listener.

Responsibilities:
- Configure `structlog` once per app instance (JSON lines on stdout).
- Bind per-connection context for websocket sessions, mirroring what the HTTP
  middleware does per request.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(*, service_name: str, level: str, cache_loggers: bool = True) -> None:
    """
    `cache_loggers=False` keeps module-level loggers following later reconfiguration
    (tests build many apps and capture logs between them).
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    # websockets logs every handshake failure at INFO; keep those at WARNING unless debugging.
    if level.upper() != "DEBUG":
        logging.getLogger("websockets").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=cache_loggers,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def bind_connection_context(*, connection_id: str, remote: str) -> None:
    # Each websocket handler runs in its own task, so this context is per connection.
    structlog.contextvars.bind_contextvars(connection_id=connection_id, remote=remote)


def clear_connection_context() -> None:
    structlog.contextvars.unbind_contextvars("connection_id", "remote")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
