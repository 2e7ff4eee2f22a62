"""
soar_socket.services

Service-layer package.

Responsibilities:
- Own persistence decisions for user records (role store).
- Sequence role mutations across store, registry, and broadcast.
"""

# Package marker.
