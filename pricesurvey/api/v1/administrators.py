"""
Administrator management. Creation lives at POST /auth/register/admin.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from pricesurvey.api.deps import Authorize, Identity
from pricesurvey.kernel.models.actor import Actor, ActorType
from pricesurvey.schemas.actors import AdministratorResponse, ToggleStatusRequest
from pricesurvey.schemas.common import PaginatedResponse, SuccessResponse

router = APIRouter()


@router.get("", response_model=PaginatedResponse[AdministratorResponse])
async def list_administrators(
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("administrators.list"))],
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    items, total = await identity.list_actors(ActorType.ADMIN, page=page, limit=limit)
    return PaginatedResponse[AdministratorResponse].create(
        data=[AdministratorResponse.model_validate(a) for a in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.patch("/{admin_id}/status", response_model=AdministratorResponse)
async def toggle_administrator_status(
    admin_id: uuid.UUID,
    data: ToggleStatusRequest,
    identity: Identity,
    admin: Annotated[Actor, Depends(Authorize("administrators.toggle_status"))],
):
    """Enable or disable another administrator."""
    target = await identity.set_enabled(ActorType.ADMIN, admin_id, data.enable, acting=admin)
    return AdministratorResponse.model_validate(target)


@router.delete("/{admin_id}", response_model=SuccessResponse)
async def delete_administrator(
    admin_id: uuid.UUID,
    identity: Identity,
    admin: Annotated[Actor, Depends(Authorize("administrators.delete"))],
):
    await identity.soft_delete(ActorType.ADMIN, admin_id, acting=admin)
    return SuccessResponse(message="Administrator deleted")
