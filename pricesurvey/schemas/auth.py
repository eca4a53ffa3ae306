"""
Authentication schemas.
"""

import uuid
from typing import Dict, Optional

from pydantic import EmailStr, Field, field_validator

from pricesurvey.kernel.models.actor import Actor, ActorType
from pricesurvey.schemas.common import CamelModel


def strip_not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Must not be blank")
    return v


class LoginRequest(CamelModel):
    """Login request; the actor kind selects which accounts are searched."""

    email: EmailStr
    password: str
    actor_type: ActorType


class RegisterUserRequest(CamelModel):
    """Self-service registration request."""

    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    language: Optional[str] = Field(None, min_length=2, max_length=10)

    strip_names = field_validator("full_name", "username")(strip_not_blank)


class RegisterAdminRequest(CamelModel):
    """Administrator creation request."""

    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)
    modules: Optional[Dict[str, Dict[str, bool]]] = None

    strip_names = field_validator("full_name", "username")(strip_not_blank)


class RefreshTokenRequest(CamelModel):
    """Token refresh request."""

    refresh_token: str = Field(..., min_length=1)


class ActorSummary(CamelModel):
    """Public view of an authenticated actor."""

    id: uuid.UUID
    email: str
    username: str
    full_name: str
    type: ActorType

    @classmethod
    def from_actor(cls, actor: Actor) -> "ActorSummary":
        return cls(
            id=actor.id,
            email=actor.email,
            username=actor.username,
            full_name=actor.full_name,
            type=actor.actor_type,
        )


class AuthResponse(CamelModel):
    """Login / registration / refresh response."""

    actor: ActorSummary
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class ProfileUpdate(CamelModel):
    """Own-profile update request."""

    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    language: Optional[str] = Field(None, min_length=2, max_length=10)
