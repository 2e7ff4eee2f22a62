"""
soar_socket.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories backing the role store.
"""

# Package marker.
