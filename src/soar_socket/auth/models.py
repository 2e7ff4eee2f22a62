"""
soar_socket.auth.models

Admin caller identity.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

AuthMethod = Literal["jwt", "admin_key"]


@dataclass(frozen=True, slots=True)
class AdminPrincipal:
    """
    Caller of an admin endpoint.

    `method` records how the caller proved itself: a bearer token from `/v1/admin/verify`
    or the shared admin key sent with the request.
    """

    subject: str
    roles: frozenset[str]
    method: AuthMethod

    @property
    def is_admin(self) -> bool:
        return "admin" in self.roles

    def log_fields(self) -> dict[str, str]:
        return {"actor": self.subject, "auth_method": self.method}
