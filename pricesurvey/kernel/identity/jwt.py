"""
JWT token issuing and verification.

Access tokens carry ``{sub, email, username, type, iat, exp}``. Refresh tokens
carry the same claims plus a per-issuance ``tokenId``; that claim is what tells
the two kinds apart. Verification here is signature and expiry only; whether
the actor is still allowed in is decided by the guard's re-fetch.
"""

import hashlib
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, Field

from pricesurvey.config import AuthConfig
from pricesurvey.kernel.models.actor import ActorType


class TokenVerificationError(Exception):
    """Bad signature, expired, malformed, or the wrong kind of token."""


class TokenClaims(BaseModel):
    """Identity claims a token pair is minted from."""

    sub: str
    email: str
    username: str
    type: ActorType


class AccessTokenPayload(TokenClaims):
    """Verified access token payload."""

    iat: datetime
    exp: datetime


class RefreshTokenPayload(AccessTokenPayload):
    """Verified refresh token payload."""

    model_config = ConfigDict(populate_by_name=True)

    token_id: str = Field(alias="tokenId")


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until access token expires


class TokenIssuer:
    """
    Mints and verifies signed token pairs.

    Holds no state beyond its configuration and never touches storage.
    """

    def __init__(self, config: AuthConfig):
        self.config = config

    def _encode(self, claims: dict[str, Any]) -> str:
        return jwt.encode(claims, self.config.secret_key, algorithm=self.config.algorithm)

    def issue(self, claims: TokenClaims) -> TokenPair:
        """
        Create an access/refresh pair for the given actor claims.

        Every call draws a fresh ``tokenId`` for the refresh token, so two
        pairs issued in the same second still have distinct refresh tokens.
        """
        now = datetime.now(timezone.utc)
        base = {
            "sub": claims.sub,
            "email": claims.email,
            "username": claims.username,
            "type": claims.type.value,
            "iat": now,
        }

        access_token = self._encode({**base, "exp": now + self.config.access_token_ttl})
        refresh_token = self._encode({
            **base,
            "exp": now + self.config.refresh_token_ttl,
            "tokenId": str(uuid.uuid4()),
        })

        return TokenPair(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=int(self.config.access_token_ttl.total_seconds()),
        )

    def verify(self, token: str) -> dict[str, Any]:
        """
        Check signature and expiry and return the raw claims.

        Raises:
            TokenVerificationError: on any failure
        """
        try:
            payload = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
            )
        except JWTError as e:
            raise TokenVerificationError(str(e)) from e

        missing = {"sub", "email", "username", "type", "iat", "exp"} - payload.keys()
        if missing:
            raise TokenVerificationError(f"Missing claims: {sorted(missing)}")
        try:
            ActorType(payload["type"])
        except ValueError as e:
            raise TokenVerificationError("Unknown actor type") from e
        return payload

    def verify_access(self, token: str) -> AccessTokenPayload:
        """Verify a token and require it to be an access token."""
        payload = self.verify(token)
        if "tokenId" in payload:
            raise TokenVerificationError("Refresh token used as access token")
        return AccessTokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            username=payload["username"],
            type=ActorType(payload["type"]),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )

    def verify_refresh(self, token: str) -> RefreshTokenPayload:
        """Verify a token and require it to be a refresh token."""
        payload = self.verify(token)
        if not payload.get("tokenId"):
            raise TokenVerificationError("Access token used as refresh token")
        return RefreshTokenPayload(
            sub=payload["sub"],
            email=payload["email"],
            username=payload["username"],
            type=ActorType(payload["type"]),
            iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            token_id=payload["tokenId"],
        )

    @staticmethod
    def decode(token: str) -> Optional[dict[str, Any]]:
        """
        Read claims without checking the signature.

        For diagnostics only; never base an authorization decision on this.
        """
        try:
            return jwt.get_unverified_claims(token)
        except JWTError:
            return None

    @staticmethod
    def hash_token(token: str) -> str:
        """SHA-256 hex digest of a token, the only form a refresh token is stored in."""
        return hashlib.sha256(token.encode()).hexdigest()
