"""
Pydantic schemas for API request/response validation.
"""

from pricesurvey.schemas.common import (
    CamelModel,
    HealthResponse,
    PaginatedResponse,
    SuccessResponse,
)
from pricesurvey.schemas.auth import (
    ActorSummary,
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RefreshTokenRequest,
    RegisterAdminRequest,
    RegisterUserRequest,
)
from pricesurvey.schemas.actors import (
    AdministratorResponse,
    CreateOperativeUserRequest,
    OperativeUserDetailResponse,
    OperativeUserResponse,
    ToggleStatusRequest,
    UpdateOperativeUserRequest,
    UserResponse,
)

__all__ = [
    "CamelModel",
    "HealthResponse",
    "PaginatedResponse",
    "SuccessResponse",
    "ActorSummary",
    "AuthResponse",
    "LoginRequest",
    "ProfileUpdate",
    "RefreshTokenRequest",
    "RegisterAdminRequest",
    "RegisterUserRequest",
    "AdministratorResponse",
    "CreateOperativeUserRequest",
    "OperativeUserDetailResponse",
    "OperativeUserResponse",
    "ToggleStatusRequest",
    "UpdateOperativeUserRequest",
    "UserResponse",
]
