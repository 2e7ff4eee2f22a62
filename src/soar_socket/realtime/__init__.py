"""
soar_socket.realtime

Realtime package: live connections bound to identities.

Responsibilities:
- Wire codec for websocket frames.
- Connection registry, identity binding, heartbeat reaping, and broadcast fan-out.
- The `websockets` listener that feeds connections into the hub.
"""

# Package marker.
