"""
Authentication endpoints.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from pricesurvey.api.deps import Authorize, Identity
from pricesurvey.kernel.identity.identity_service import AuthResult
from pricesurvey.kernel.models.actor import Actor
from pricesurvey.schemas.auth import (
    ActorSummary,
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterAdminRequest,
    RegisterUserRequest,
)
from pricesurvey.schemas.common import SuccessResponse

router = APIRouter()


def _auth_response(result: AuthResult) -> AuthResponse:
    return AuthResponse(
        actor=ActorSummary.from_actor(result.actor),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
        token_type=result.tokens.token_type,
        expires_in=result.tokens.expires_in,
    )


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, identity: Identity):
    """
    Log in as a user, operative user or administrator.

    Every failure returns the same 401 body.
    """
    result = await identity.login(
        email=data.email,
        password=data.password,
        actor_type=data.actor_type,
    )
    return _auth_response(result)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterUserRequest, identity: Identity):
    """
    Register a new end user.

    Returns access and refresh tokens on successful registration.
    """
    result = await identity.register_user(
        full_name=data.full_name,
        email=data.email,
        username=data.username,
        password=data.password,
        language=data.language,
    )
    return _auth_response(result)


@router.post("/register/admin", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register_admin(
    data: RegisterAdminRequest,
    identity: Identity,
    admin: Annotated[Actor, Depends(Authorize("auth.register_admin"))],
):
    """Register a new administrator (requires an administrator with the administrators.write grant)."""
    result = await identity.register_admin(
        acting=admin,
        full_name=data.full_name,
        email=data.email,
        username=data.username,
        password=data.password,
        modules=data.modules,
    )
    return _auth_response(result)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(data: RefreshTokenRequest, identity: Identity):
    """
    Exchange a refresh token for a new pair.

    The presented refresh token stops working once this succeeds.
    """
    result = await identity.refresh(data.refresh_token)
    return _auth_response(result)


@router.post("/logout", response_model=SuccessResponse)
async def logout(
    identity: Identity,
    actor: Annotated[Actor, Depends(Authorize("auth.logout"))],
):
    """Revoke the caller's refresh session."""
    await identity.logout(actor)
    return SuccessResponse(message="Logged out successfully")


@router.get("/me", response_model=ActorSummary)
async def get_current_actor_profile(
    actor: Annotated[Actor, Depends(Authorize("auth.me"))],
):
    """Get the caller's public profile."""
    return ActorSummary.from_actor(actor)


@router.patch("/me", response_model=ActorSummary)
async def update_profile(
    data: ProfileUpdate,
    identity: Identity,
    actor: Annotated[Actor, Depends(Authorize("auth.update_me"))],
):
    """Update the caller's name, email or (users only) language."""
    updated = await identity.update_profile(
        actor.actor_type,
        actor.id,
        full_name=data.full_name,
        email=data.email,
        language=data.language,
    )
    return ActorSummary.from_actor(updated)
