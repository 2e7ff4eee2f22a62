from __future__ import annotations

import json

import pytest

from soar_socket.realtime import messages


def test_identity_announcement_decodes_aliases() -> None:
    msg = messages.decode_inbound(json.dumps({"type": "user_uuid", "uuid": "u-1", "name": "Alice"}))

    assert isinstance(msg, messages.IdentityAnnouncement)
    assert msg.identity == "u-1"
    assert msg.display_name == "Alice"


def test_identity_announcement_name_is_optional() -> None:
    msg = messages.decode_inbound(b'{"type": "user_uuid", "uuid": "u-1"}')

    assert isinstance(msg, messages.IdentityAnnouncement)
    assert msg.display_name is None


def test_pong_json_frame_is_not_a_protocol_message() -> None:
    # Liveness uses websocket control frames; a JSON "pong" is just an unknown type.
    assert isinstance(messages.decode_inbound('{"type": "pong"}'), messages.UnknownMessage)


def test_unknown_type_is_not_an_error() -> None:
    msg = messages.decode_inbound('{"type": "chat", "text": "hi"}')

    assert isinstance(msg, messages.UnknownMessage)
    assert msg.type == "chat"
    assert msg.payload["text"] == "hi"


def test_missing_type_is_unknown() -> None:
    msg = messages.decode_inbound('{"uuid": "u-1"}')

    assert isinstance(msg, messages.UnknownMessage)
    assert msg.type is None


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[1, 2, 3]",
        '"just a string"',
        '{"type": "user_uuid"}',
        '{"type": "user_uuid", "uuid": ""}',
        '{"type": "user_uuid", "uuid": 42}',
    ],
)
def test_malformed_frames_raise(raw: str) -> None:
    with pytest.raises(messages.MalformedFrame):
        messages.decode_inbound(raw)


def test_outbound_frames_shape() -> None:
    assert messages.request_identity() == {"type": "request_uuid"}
    assert messages.role_update("Staff") == {"type": "role_update", "role": "Staff"}
    assert messages.server_message("hi") == {"type": "server_message", "message": "hi"}
    assert messages.user_directory([]) == {"type": "sws-soar-user-data", "users": []}
    assert json.loads(messages.encode(messages.role_update("Owner"))) == {"type": "role_update", "role": "Owner"}
