"""
soar_socket.db.models

Persistence schema for the role store.

Responsibilities:
- Define the `Role` tiers attached to identities.
- Define the `User` row: identity -> {display name, role}.
"""

from __future__ import annotations

import enum

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from soar_socket.db.base import Base, TimestampMixin


class Role(enum.StrEnum):
    # Values travel on the wire and are stored in DB; treat as stable API contract.
    normal = "Normal"
    premium = "Premium"
    staff = "Staff"
    famous = "Famous"
    owner = "Owner"


class User(TimestampMixin, Base):
    __tablename__ = "users"

    identity: Mapped[str] = mapped_column(String(128), primary_key=True)

    # Both nullable: legacy rows may carry neither, and readers apply their own fallbacks.
    display_name: Mapped[str | None] = mapped_column(String(256), nullable=True)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)


# --- Module Notes -----------------------------------------------------------
# `role` is a plain string column rather than `Enum(Role)` so a row with an unknown
# or missing role still loads; `services.role_store` decides how to interpret it.
