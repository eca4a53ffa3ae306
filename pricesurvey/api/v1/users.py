"""
Self-registered user moderation by administrators.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends

from pricesurvey.api.deps import Authorize, Identity
from pricesurvey.kernel.models.actor import Actor, ActorType
from pricesurvey.schemas.actors import ToggleStatusRequest, UserResponse
from pricesurvey.schemas.common import SuccessResponse

router = APIRouter()


@router.patch("/{user_id}/status", response_model=UserResponse)
async def toggle_user_status(
    user_id: uuid.UUID,
    data: ToggleStatusRequest,
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("users.toggle_status"))],
):
    user = await identity.set_enabled(ActorType.USER, user_id, data.enable)
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: uuid.UUID,
    identity: Identity,
    _: Annotated[Actor, Depends(Authorize("users.delete"))],
):
    await identity.soft_delete(ActorType.USER, user_id)
    return SuccessResponse(message="User deleted")
