"""
Per-request authentication.

    no token                         -> Unauthorized
    bad signature / expired          -> Unauthorized
    actor missing, deleted, disabled -> Unauthorized
    actor live                       -> Authenticated(actor)

The whole chain runs on every request. Nothing about a token's earlier
success is remembered, so a disable or delete is seen by the very next
request.
"""

import uuid
from typing import Mapping, Optional

from pricesurvey.kernel.errors import INVALID_TOKEN, UnauthorizedError
from pricesurvey.kernel.identity.jwt import TokenIssuer, TokenVerificationError
from pricesurvey.kernel.identity.store import ActorStore
from pricesurvey.kernel.models.actor import Actor, ActorType
from pricesurvey.logging_config import get_logger

logger = get_logger(__name__)


def parse_subject(sub: str) -> uuid.UUID:
    try:
        return uuid.UUID(sub)
    except (ValueError, TypeError) as e:
        raise UnauthorizedError(INVALID_TOKEN) from e


class AuthenticationGuard:
    """Verifies a bearer token and re-loads the live actor behind it."""

    def __init__(self, issuer: TokenIssuer, stores: Mapping[ActorType, ActorStore]):
        self.issuer = issuer
        self.stores = stores

    async def authenticate(self, token: Optional[str]) -> Actor:
        if not token:
            raise UnauthorizedError("Not authenticated")

        try:
            payload = self.issuer.verify_access(token)
        except TokenVerificationError as e:
            logger.debug("Access token rejected", extra={"reason": str(e)})
            raise UnauthorizedError(INVALID_TOKEN) from e

        actor = await self.stores[payload.type].find_by_id(parse_subject(payload.sub))

        # Missing, deleted and disabled all look the same from outside
        if actor is None or not actor.is_live:
            logger.info(
                "Token for non-live actor rejected",
                extra={"actor_id": payload.sub, "actor_type": payload.type.value},
            )
            raise UnauthorizedError(INVALID_TOKEN)

        return actor
