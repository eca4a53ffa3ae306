"""
Actor management schemas (administrator console).
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from pricesurvey.schemas.auth import strip_not_blank
from pricesurvey.schemas.common import CamelModel


class CreateOperativeUserRequest(CamelModel):
    """Operative user creation with an initial password."""

    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=100)
    password: str = Field(..., min_length=8, max_length=128)

    strip_names = field_validator("full_name", "username")(strip_not_blank)


class UpdateOperativeUserRequest(CamelModel):
    full_name: Optional[str] = Field(None, min_length=2, max_length=255)
    email: Optional[EmailStr] = None


class ToggleStatusRequest(CamelModel):
    """Enable (true) or disable (false); disabling takes effect immediately."""

    enable: bool


class OperativeUserResponse(CamelModel):
    id: uuid.UUID
    full_name: str
    email: str
    username: str
    enabled: bool
    created_by_id: Optional[uuid.UUID] = None


class OperativeUserDetailResponse(OperativeUserResponse):
    created_at: datetime
    updated_at: datetime


class AdministratorResponse(CamelModel):
    id: uuid.UUID
    full_name: str
    email: str
    username: str
    enabled: bool
    created_at: datetime


class UserResponse(CamelModel):
    id: uuid.UUID
    full_name: str
    email: str
    username: str
    enabled: bool
    language: str
