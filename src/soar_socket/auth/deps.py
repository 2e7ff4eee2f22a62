"""
soar_socket.auth.deps

FastAPI dependency guarding admin endpoints.

Responsibilities:
- Accept either a bearer JWT carrying the `admin` role, or the shared admin key
  (`x-admin-key` header, `adminKey` query parameter, or `adminKey` JSON body field).
- Normalize both into a typed `AdminPrincipal`.
"""

from __future__ import annotations

import hmac
import json

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_403_FORBIDDEN

from soar_socket.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from soar_socket.auth.models import AdminPrincipal
from soar_socket.settings import Settings, get_settings

_bearer = HTTPBearer(auto_error=False)

INVALID_ADMIN_KEY = "Invalid admin key"


def check_admin_key(provided: str | None, settings: Settings) -> bool:
    # An unset admin key never matches, including an empty submission.
    if not settings.admin_key or not provided:
        return False
    return hmac.compare_digest(provided.encode(), settings.admin_key.encode())


async def _admin_key_from_request(request: Request) -> str | None:
    key = request.headers.get("x-admin-key") or request.query_params.get("adminKey")
    if key:
        return key
    if request.method in ("POST", "PUT", "PATCH"):
        try:
            body = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return None
        if isinstance(body, dict) and isinstance(body.get("adminKey"), str):
            return body["adminKey"]
    return None


async def require_admin(
    request: Request,
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> AdminPrincipal:
    if creds is not None and creds.credentials:
        try:
            payload = decode_and_validate(cfg=JwtConfig.from_settings(settings), token=creds.credentials)
        except JwtValidationError as e:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=f"Invalid token: {e}") from e
        roles_raw = payload.get("roles", [])
        roles = frozenset(str(r) for r in roles_raw) if isinstance(roles_raw, list) else frozenset()
        principal = AdminPrincipal(subject=str(payload.get("sub", "")), roles=roles, method="jwt")
        if not principal.is_admin:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Insufficient role")
        return principal

    if not check_admin_key(await _admin_key_from_request(request), settings):
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=INVALID_ADMIN_KEY)
    return AdminPrincipal(subject="admin-key", roles=frozenset({"admin"}), method="admin_key")
