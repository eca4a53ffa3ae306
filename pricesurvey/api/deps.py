"""
FastAPI dependencies for authentication, authorization, and database sessions.
"""

from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pricesurvey.config import AuthConfig, get_auth_config
from pricesurvey.database import get_db
from pricesurvey.kernel.identity.guard import AuthenticationGuard
from pricesurvey.kernel.identity.identity_service import IdentityService
from pricesurvey.kernel.identity.jwt import TokenIssuer
from pricesurvey.kernel.identity.store import stores_for_session
from pricesurvey.kernel.models.actor import Actor
from pricesurvey.kernel.permissions.policy import authorize

# Security scheme
security = HTTPBearer(auto_error=False)

DbSession = Annotated[AsyncSession, Depends(get_db)]


def get_token_issuer(config: Annotated[AuthConfig, Depends(get_auth_config)]) -> TokenIssuer:
    return TokenIssuer(config)


Issuer = Annotated[TokenIssuer, Depends(get_token_issuer)]


def get_identity_service(db: DbSession, issuer: Issuer) -> IdentityService:
    return IdentityService.for_session(db, issuer)


Identity = Annotated[IdentityService, Depends(get_identity_service)]


async def get_current_actor(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    db: DbSession,
    issuer: Issuer,
) -> Actor:
    """Authenticated, live actor behind the bearer token, or 401."""
    guard = AuthenticationGuard(issuer, stores_for_session(db))
    return await guard.authenticate(credentials.credentials if credentials else None)


CurrentActor = Annotated[Actor, Depends(get_current_actor)]


class Authorize:
    """
    Dependency that authenticates, then checks the named operation's policy.

    Usage:
        @router.post("/operative-users")
        async def create(
            admin: Annotated[Actor, Depends(Authorize("operative_users.create"))],
        ):
            ...
    """

    def __init__(self, operation: str):
        self.operation = operation

    async def __call__(self, actor: CurrentActor) -> Actor:
        authorize(actor, self.operation)
        return actor
