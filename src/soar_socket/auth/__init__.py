"""
soar_socket.auth

Admin authentication package.

Responsibilities:
- JWT helpers and validation for admin tokens.
- FastAPI dependency guarding admin endpoints.
"""

# Package marker.
