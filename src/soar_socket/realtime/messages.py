"""
soar_socket.realtime.messages

Websocket frame codec.

Responsibilities:
- Decode inbound text frames into typed messages, validated at the boundary.
- Build outbound frames (one JSON object per frame).

Frame types:
- server -> client: `request_uuid`, `role_update`, `server_message`,
  `sws-soar-user-data`
- client -> server: `user_uuid`

Liveness probing uses websocket protocol ping/pong control frames, not JSON frames.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

REQUEST_IDENTITY = "request_uuid"
IDENTITY_ANNOUNCEMENT = "user_uuid"
ROLE_UPDATE = "role_update"
SERVER_MESSAGE = "server_message"
USER_DIRECTORY = "sws-soar-user-data"


class MalformedFrame(ValueError):
    """Inbound frame could not be decoded or failed validation for its type."""


class IdentityAnnouncement(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: Literal["user_uuid"]
    identity: str = Field(alias="uuid", min_length=1, max_length=128)
    display_name: str | None = Field(default=None, alias="name", max_length=256)


_inbound = TypeAdapter(IdentityAnnouncement)
_KNOWN_INBOUND = frozenset({IDENTITY_ANNOUNCEMENT})


@dataclass(frozen=True, slots=True)
class UnknownMessage:
    # Well-formed JSON object whose type this layer does not handle.
    type: str | None
    payload: dict[str, Any] = field(default_factory=dict)


def decode_inbound(raw: str | bytes) -> IdentityAnnouncement | UnknownMessage:
    try:
        data = json.loads(raw)
    except (ValueError, UnicodeDecodeError) as e:
        raise MalformedFrame(f"invalid_json: {e}") from e

    if not isinstance(data, dict):
        raise MalformedFrame("frame_not_object")

    kind = data.get("type")
    if kind not in _KNOWN_INBOUND:
        return UnknownMessage(type=kind if isinstance(kind, str) else None, payload=data)

    try:
        return _inbound.validate_python(data)
    except ValidationError as e:
        raise MalformedFrame(f"invalid_{kind}: {e.error_count()} error(s)") from e


def encode(frame: dict[str, Any]) -> str:
    return json.dumps(frame, separators=(",", ":"))


def request_identity() -> dict[str, Any]:
    return {"type": REQUEST_IDENTITY}


def role_update(role: str) -> dict[str, Any]:
    return {"type": ROLE_UPDATE, "role": role}


def server_message(message: str) -> dict[str, Any]:
    return {"type": SERVER_MESSAGE, "message": message}


def user_directory(users: list[dict[str, str]]) -> dict[str, Any]:
    return {"type": USER_DIRECTORY, "users": users}
