"""
Operative user management (administrators only).

Operative users are created with an initial password, can be edited,
enabled/disabled with immediate effect, and soft-deleted. There is no
self-registration path for them.
"""

import uuid
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query, status

from pricesurvey.api.deps import Authorize, Identity
from pricesurvey.kernel.models.actor import Actor, ActorType
from pricesurvey.schemas.actors import (
    CreateOperativeUserRequest,
    OperativeUserDetailResponse,
    OperativeUserResponse,
    ToggleStatusRequest,
    UpdateOperativeUserRequest,
)
from pricesurvey.schemas.common import PaginatedResponse, SuccessResponse

router = APIRouter()


@router.get("", response_model=PaginatedResponse[OperativeUserResponse])
async def list_operative_users(
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("operative_users.list"))],
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    created_by_id: Optional[uuid.UUID] = Query(None, alias="createdById"),
    active_only: bool = Query(False, alias="activeOnly"),
):
    """List operative users, optionally only those a given administrator created."""
    items, total = await identity.list_actors(
        ActorType.OPERATIVE_USER,
        page=page,
        limit=limit,
        enabled_only=active_only,
        created_by_id=created_by_id,
    )
    return PaginatedResponse[OperativeUserResponse].create(
        data=[OperativeUserResponse.model_validate(u) for u in items],
        total=total,
        page=page,
        limit=limit,
    )


@router.get("/{user_id}", response_model=OperativeUserDetailResponse)
async def get_operative_user(
    user_id: uuid.UUID,
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("operative_users.get"))],
):
    operative = await identity.get_actor(ActorType.OPERATIVE_USER, user_id)
    return OperativeUserDetailResponse.model_validate(operative)


@router.post("", response_model=OperativeUserResponse, status_code=status.HTTP_201_CREATED)
async def create_operative_user(
    data: CreateOperativeUserRequest,
    identity: Identity,
    admin: Annotated[Actor, Depends(Authorize("operative_users.create"))],
):
    """Create an operative user; the calling administrator is recorded as its creator."""
    operative = await identity.create_operative_user(
        acting=admin,
        full_name=data.full_name,
        email=data.email,
        username=data.username,
        password=data.password,
    )
    return OperativeUserResponse.model_validate(operative)


@router.put("/{user_id}", response_model=OperativeUserResponse)
async def update_operative_user(
    user_id: uuid.UUID,
    data: UpdateOperativeUserRequest,
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("operative_users.update"))],
):
    operative = await identity.update_profile(
        ActorType.OPERATIVE_USER,
        user_id,
        full_name=data.full_name,
        email=data.email,
    )
    return OperativeUserResponse.model_validate(operative)


@router.patch("/{user_id}/status", response_model=OperativeUserResponse)
async def toggle_operative_user_status(
    user_id: uuid.UUID,
    data: ToggleStatusRequest,
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("operative_users.toggle_status"))],
):
    """Enable or disable; a disabled operative user's session ends immediately."""
    operative = await identity.set_enabled(ActorType.OPERATIVE_USER, user_id, data.enable)
    return OperativeUserResponse.model_validate(operative)


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_operative_user(
    user_id: uuid.UUID,
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("operative_users.delete"))],
):
    await identity.soft_delete(ActorType.OPERATIVE_USER, user_id)
    return SuccessResponse(message="Operative user deleted")
