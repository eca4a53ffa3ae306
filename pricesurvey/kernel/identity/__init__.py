"""
Identity Core - credentials, tokens, actor persistence and session lifecycle.
"""

from pricesurvey.kernel.identity.password import PasswordHasher, verify_password, hash_password
from pricesurvey.kernel.identity.jwt import (
    AccessTokenPayload,
    RefreshTokenPayload,
    TokenClaims,
    TokenIssuer,
    TokenPair,
    TokenVerificationError,
)
from pricesurvey.kernel.identity.store import ActorStore, DuplicateActorError, SqlActorStore
from pricesurvey.kernel.identity.guard import AuthenticationGuard
from pricesurvey.kernel.identity.identity_service import AuthResult, IdentityService

__all__ = [
    "PasswordHasher",
    "verify_password",
    "hash_password",
    "AccessTokenPayload",
    "RefreshTokenPayload",
    "TokenClaims",
    "TokenIssuer",
    "TokenPair",
    "TokenVerificationError",
    "ActorStore",
    "DuplicateActorError",
    "SqlActorStore",
    "AuthenticationGuard",
    "AuthResult",
    "IdentityService",
]
