"""
soar_socket.api.routers.admin

Administrative endpoints: role mutations, listings, and operator broadcast.

Every route except `/verify` requires `require_admin` (admin JWT or admin key).
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from starlette.status import HTTP_403_FORBIDDEN

from soar_socket.api.deps import hub_dep, role_service_dep, settings_dep
from soar_socket.auth.deps import INVALID_ADMIN_KEY, check_admin_key, require_admin
from soar_socket.auth.jwt import JwtConfig, issue_token
from soar_socket.auth.models import AdminPrincipal
from soar_socket.db.models import Role
from soar_socket.observability.logging import get_logger
from soar_socket.realtime import messages
from soar_socket.realtime.hub import SocketHub
from soar_socket.services.role_service import RoleChange, RoleService
from soar_socket.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/v1/admin", tags=["admin"])


class _AdminBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    admin_key: str | None = Field(default=None, alias="adminKey")


class VerifyRequest(_AdminBody):
    pass


class IdentityRequest(_AdminBody):
    identity: str = Field(alias="uuid", min_length=1, max_length=128)


class UpdateRoleRequest(IdentityRequest):
    # Plain string so an unknown role maps to 403 "Invalid request" rather than 422.
    role: str


class BroadcastRequest(_AdminBody):
    message: str = Field(min_length=1, max_length=2000)


@router.post("/verify")
async def verify_admin_key(
    body: VerifyRequest,
    settings: Settings = Depends(settings_dep),
) -> dict[str, object]:
    if not check_admin_key(body.admin_key, settings):
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=INVALID_ADMIN_KEY)
    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject="admin",
        roles=["admin"],
        ttl=timedelta(minutes=settings.admin_token_ttl_minutes),
    )
    return {"success": True, "message": "Admin key verified", "access_token": token}


@router.post("/addSpecialUser")
async def add_special_user(
    body: IdentityRequest,
    principal: AdminPrincipal = Depends(require_admin),
    roles: RoleService = Depends(role_service_dep),
) -> dict[str, object]:
    await roles.mutate_role(body.identity, RoleChange(role=Role.premium))
    log.info("admin_add_special_user", **principal.log_fields(), identity=body.identity)
    return {"success": True, "message": "User added as premium user"}


@router.get("/premiumUsers", dependencies=[Depends(require_admin)])
async def premium_users(
    roles: RoleService = Depends(role_service_dep),
) -> dict[str, object]:
    return {"success": True, "users": roles.list_special_users()}


@router.post("/removePremium")
async def remove_premium(
    body: IdentityRequest,
    principal: AdminPrincipal = Depends(require_admin),
    roles: RoleService = Depends(role_service_dep),
) -> dict[str, object]:
    await roles.mutate_role(body.identity, RoleChange(remove=True))
    log.info("admin_remove_premium", **principal.log_fields(), identity=body.identity)
    return {"success": True, "message": "Premium status removed"}


@router.post("/updateUserRole")
async def update_user_role(
    body: UpdateRoleRequest,
    principal: AdminPrincipal = Depends(require_admin),
    roles: RoleService = Depends(role_service_dep),
) -> dict[str, object]:
    try:
        role = Role(body.role)
    except ValueError as e:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Invalid request") from e
    await roles.mutate_role(body.identity, RoleChange(role=role))
    log.info("admin_update_role", **principal.log_fields(), identity=body.identity, role=role.value)
    return {"success": True, "message": "User role updated"}


@router.post("/broadcast")
async def broadcast_message(
    body: BroadcastRequest,
    principal: AdminPrincipal = Depends(require_admin),
    hub: SocketHub = Depends(hub_dep),
) -> dict[str, object]:
    delivered = await hub.broadcaster.broadcast(messages.server_message(body.message))
    log.info("admin_broadcast", **principal.log_fields(), recipients=delivered)
    return {"success": True, "recipients": delivered}


@router.get("/connectedUsers", dependencies=[Depends(require_admin)])
async def connected_users(hub: SocketHub = Depends(hub_dep)) -> dict[str, object]:
    sessions = [s for s in await hub.registry.all_sessions() if s.connection.is_open]
    connections = await hub.registry.connections()
    return {
        "success": True,
        "users": [
            {"uuid": s.identity, "name": s.display_name or "Unknown", "role": s.role.value}
            for s in sessions
        ],
        "total": len(connections),
    }
