"""
soar_socket.api.routers.users

Public user endpoints: special-role lookup and the premium shop hand-off.

No admin auth here; `createPremium` grants Premium only to identities without a role.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query

from soar_socket.api.deps import role_service_dep, settings_dep
from soar_socket.services.role_service import RoleChange, RoleService
from soar_socket.settings import Settings

router = APIRouter(prefix="/v1", tags=["users"])


@router.get("/user/isSpecialUser")
async def is_special_user(
    # A missing uuid is simply not special.
    identity: str = Query(default="", alias="uuid", max_length=128),
    roles: RoleService = Depends(role_service_dep),
) -> dict[str, object]:
    return {"success": True, "special": roles.is_special_role(identity)}


@router.get("/shop/createPremium")
async def create_premium(
    identity: str = Query(alias="uuid", min_length=1, max_length=128),
    name: str | None = Query(default=None, max_length=256),
    roles: RoleService = Depends(role_service_dep),
    settings: Settings = Depends(settings_dep),
) -> dict[str, object]:
    # Keeps an existing role (e.g. Staff); otherwise the identity becomes Premium.
    await roles.mutate_role(identity, RoleChange(display_name=name))
    link = f"{settings.shop_base_url.rstrip('/')}/{uuid.uuid4()}"
    return {"success": True, "url": link}
