"""
Identity service: login, registration, token rotation and revocation.
"""

import hmac
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from pricesurvey.config import Settings
from pricesurvey.kernel.errors import (
    INVALID_CREDENTIALS,
    INVALID_REFRESH_TOKEN,
    ConflictError,
    ForbiddenError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from pricesurvey.kernel.identity.guard import parse_subject
from pricesurvey.kernel.identity.jwt import TokenClaims, TokenIssuer, TokenPair, TokenVerificationError
from pricesurvey.kernel.identity.password import (
    DUMMY_PASSWORD_HASH,
    PasswordHasher,
    hash_password,
    verify_password,
)
from pricesurvey.kernel.identity.store import ActorStore, DuplicateActorError, stores_for_session
from pricesurvey.kernel.models.actor import Actor, ActorType, Administrator, OperativeUser
from pricesurvey.kernel.permissions.policy import Action, Module, full_module_grants, has_module_permission
from pricesurvey.logging_config import get_logger

logger = get_logger(__name__)

_ACTOR_LABELS = {
    ActorType.ADMIN: "Administrator",
    ActorType.USER: "User",
    ActorType.OPERATIVE_USER: "OperativeUser",
}

_DUPLICATE_SUBJECTS = {
    ActorType.ADMIN: "An administrator",
    ActorType.USER: "A user",
    ActorType.OPERATIVE_USER: "An operative user",
}


def _duplicate(actor_type: ActorType, field: str) -> ConflictError:
    return ConflictError(f"{_DUPLICATE_SUBJECTS[actor_type]} with this {field} already exists")


@dataclass
class AuthResult:
    """An authenticated actor and the token pair just issued to it."""

    actor: Actor
    tokens: TokenPair


def claims_for(actor: Actor) -> TokenClaims:
    return TokenClaims(
        sub=str(actor.id),
        email=actor.email,
        username=actor.username,
        type=actor.actor_type,
    )


class IdentityService:
    """
    Orchestrates the state-changing identity operations.

    Handles login, registration of every actor kind, refresh-token rotation,
    logout, and enable/disable/delete with immediate session revocation.
    Holds no state of its own: everything durable goes through the stores.
    """

    def __init__(self, stores: Mapping[ActorType, ActorStore], issuer: TokenIssuer):
        self.stores = stores
        self.issuer = issuer

    @classmethod
    def for_session(cls, session: AsyncSession, issuer: TokenIssuer) -> "IdentityService":
        return cls(stores_for_session(session), issuer)

    def store(self, actor_type: ActorType) -> ActorStore:
        return self.stores[actor_type]

    # ------------------------------------------------------------------ login

    async def login(self, email: str, password: str, actor_type: ActorType) -> AuthResult:
        """
        Authenticate with email and password within one actor kind.

        Raises:
            UnauthorizedError: the same "Invalid credentials" for unknown
                email, wrong password, disabled or deleted actor
        """
        actor = await self.store(actor_type).find_by_email(email)

        if actor is None:
            # Same bcrypt cost as a real check so timing does not reveal the email
            verify_password(password, DUMMY_PASSWORD_HASH)
            logger.info("Login failed", extra={"actor_type": actor_type.value, "reason": "unknown"})
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if not verify_password(password, actor.password_hash) or not actor.is_live:
            logger.info(
                "Login failed",
                extra={"actor_id": str(actor.id), "actor_type": actor_type.value},
            )
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if PasswordHasher.needs_rehash(actor.password_hash):
            await self.store(actor_type).update(actor.id, password_hash=hash_password(password))
            logger.info("Password rehashed", extra={"actor_id": str(actor.id)})

        tokens = await self._start_session(actor)
        logger.info("Login succeeded", extra={"actor_id": str(actor.id), "actor_type": actor_type.value})
        return AuthResult(actor=actor, tokens=tokens)

    async def _start_session(self, actor: Actor) -> TokenPair:
        """Issue a pair and overwrite the actor's single refresh slot."""
        tokens = self.issuer.issue(claims_for(actor))
        await self.store(actor.actor_type).update_refresh_token_hash(
            actor.id, TokenIssuer.hash_token(tokens.refresh_token)
        )
        actor.refresh_token_hash = TokenIssuer.hash_token(tokens.refresh_token)
        return tokens

    # ------------------------------------------------------------ registration

    async def _ensure_available(self, actor_type: ActorType, email: str, username: str) -> None:
        """Advisory duplicate check; the unique constraints have the final word."""
        store = self.store(actor_type)
        if await store.exists_by_email(email):
            raise _duplicate(actor_type, "email")
        if await store.exists_by_username(username):
            raise _duplicate(actor_type, "username")

    async def _create(self, actor_type: ActorType, **fields: Any) -> Actor:
        try:
            return await self.store(actor_type).create(**fields)
        except DuplicateActorError as e:
            # Lost a race with a concurrent registration after the advisory check
            logger.info("Duplicate rejected by storage", extra={"actor_type": actor_type.value})
            raise ConflictError() from e

    async def _create_with_session(self, actor_type: ActorType, **fields: Any) -> AuthResult:
        """Create an actor and its first session in a single insert."""
        actor_id = uuid.uuid4()
        tokens = self.issuer.issue(TokenClaims(
            sub=str(actor_id),
            email=fields["email"].lower().strip(),
            username=fields["username"].strip(),
            type=actor_type,
        ))
        actor = await self._create(
            actor_type,
            id=actor_id,
            refresh_token_hash=TokenIssuer.hash_token(tokens.refresh_token),
            **fields,
        )
        return AuthResult(actor=actor, tokens=tokens)

    async def register_user(
        self,
        full_name: str,
        email: str,
        username: str,
        password: str,
        language: Optional[str] = None,
    ) -> AuthResult:
        """
        Self-service registration of an end user.

        Returns the new user already logged in.

        Raises:
            ConflictError: email or username taken
        """
        await self._ensure_available(ActorType.USER, email, username)
        fields: dict[str, Any] = {
            "full_name": full_name.strip(),
            "email": email,
            "username": username.strip(),
            "password_hash": hash_password(password),
        }
        if language:
            fields["language"] = language
        result = await self._create_with_session(ActorType.USER, **fields)
        logger.info("User registered", extra={"actor_id": str(result.actor.id)})
        return result

    @staticmethod
    def _require_admin(acting: Actor) -> None:
        if acting.actor_type != ActorType.ADMIN or not acting.is_live:
            raise ForbiddenError("Administrator access required")

    @staticmethod
    def _require_grants_held(acting: Actor, modules: Optional[dict[str, dict[str, bool]]]) -> None:
        """An administrator can only hand out grants it holds itself."""
        for module_name, actions in (modules or {}).items():
            for action_name, granted in (actions or {}).items():
                if granted is not True:
                    continue
                try:
                    module, action = Module(module_name), Action(action_name)
                except ValueError as e:
                    raise InvalidRequestError(
                        f"Unknown permission: {module_name}.{action_name}"
                    ) from e
                if not has_module_permission(getattr(acting, "modules", None), module, action):
                    raise ForbiddenError(f"Cannot grant {module.value}.{action.value}")

    async def register_admin(
        self,
        acting: Actor,
        full_name: str,
        email: str,
        username: str,
        password: str,
        modules: Optional[dict[str, dict[str, bool]]] = None,
    ) -> AuthResult:
        """
        Create another administrator on behalf of an authenticated one.

        The new administrator's token pair is returned and its refresh hash
        is written with the row itself.

        Raises:
            ForbiddenError: the acting administrator does not hold every
                grant requested for the new one
            ConflictError: email or username taken
        """
        self._require_admin(acting)
        self._require_grants_held(acting, modules)
        await self._ensure_available(ActorType.ADMIN, email, username)
        result = await self._create_with_session(
            ActorType.ADMIN,
            full_name=full_name.strip(),
            email=email,
            username=username.strip(),
            password_hash=hash_password(password),
            modules=modules or {},
        )
        logger.info(
            "Administrator registered",
            extra={"actor_id": str(result.actor.id), "created_by": str(acting.id)},
        )
        return result

    async def create_operative_user(
        self,
        acting: Actor,
        full_name: str,
        email: str,
        username: str,
        password: str,
    ) -> OperativeUser:
        """Provision a field operative with an initial password."""
        self._require_admin(acting)
        await self._ensure_available(ActorType.OPERATIVE_USER, email, username)
        operative = await self._create(
            ActorType.OPERATIVE_USER,
            full_name=full_name.strip(),
            email=email,
            username=username.strip(),
            password_hash=hash_password(password),
            created_by_id=acting.id,
        )
        logger.info(
            "Operative user created",
            extra={"actor_id": str(operative.id), "created_by": str(acting.id)},
        )
        return operative

    async def ensure_bootstrap_admin(self, settings: Settings) -> Optional[Administrator]:
        """
        Create the configured first administrator if it does not exist yet.

        This is the only way an administrator comes to exist without another
        administrator creating it.
        """
        if not settings.bootstrap_admin_email or not settings.bootstrap_admin_password:
            return None
        store = self.store(ActorType.ADMIN)
        if await store.exists_by_email(settings.bootstrap_admin_email):
            return None
        admin = await self._create(
            ActorType.ADMIN,
            full_name=settings.bootstrap_admin_full_name,
            email=settings.bootstrap_admin_email,
            username=settings.bootstrap_admin_username,
            password_hash=hash_password(settings.bootstrap_admin_password),
            modules=full_module_grants(),
        )
        logger.info("Bootstrap administrator created", extra={"actor_id": str(admin.id)})
        return admin

    # ---------------------------------------------------------------- sessions

    async def refresh(self, refresh_token: str) -> AuthResult:
        """
        Exchange a refresh token for a new pair.

        The presented token is single-use: the stored hash is swapped only if
        it still matches, so a replayed or concurrently reused token fails.

        Raises:
            UnauthorizedError: invalid, expired, superseded or revoked token
        """
        try:
            payload = self.issuer.verify_refresh(refresh_token)
        except TokenVerificationError as e:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN) from e

        store = self.store(payload.type)
        actor = await store.find_by_id(parse_subject(payload.sub))
        if actor is None or not actor.is_live:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        presented_hash = TokenIssuer.hash_token(refresh_token)
        if not actor.refresh_token_hash or not hmac.compare_digest(
            actor.refresh_token_hash, presented_hash
        ):
            logger.warning(
                "Refresh token does not match the live session",
                extra={"actor_id": str(actor.id), "actor_type": payload.type.value},
            )
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        tokens = self.issuer.issue(claims_for(actor))
        new_hash = TokenIssuer.hash_token(tokens.refresh_token)
        if not await store.swap_refresh_token_hash(actor.id, presented_hash, new_hash):
            logger.warning(
                "Refresh token rotated concurrently",
                extra={"actor_id": str(actor.id), "actor_type": payload.type.value},
            )
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        actor.refresh_token_hash = new_hash
        logger.info("Tokens rotated", extra={"actor_id": str(actor.id)})
        return AuthResult(actor=actor, tokens=tokens)

    async def logout(self, actor: Actor) -> None:
        """Drop the actor's refresh session."""
        await self.store(actor.actor_type).update_refresh_token_hash(actor.id, None)
        actor.refresh_token_hash = None
        logger.info("Logged out", extra={"actor_id": str(actor.id)})

    # -------------------------------------------------------------- management

    async def get_actor(self, actor_type: ActorType, actor_id: uuid.UUID) -> Actor:
        actor = await self.store(actor_type).find_by_id(actor_id)
        if actor is None or actor.is_deleted:
            raise NotFoundError(_ACTOR_LABELS[actor_type], actor_id)
        return actor

    async def list_actors(
        self,
        actor_type: ActorType,
        page: int = 1,
        limit: int = 10,
        enabled_only: bool = False,
        created_by_id: Optional[uuid.UUID] = None,
    ) -> tuple[Sequence[Actor], int]:
        return await self.store(actor_type).list(
            page=page,
            limit=limit,
            enabled_only=enabled_only,
            created_by_id=created_by_id,
        )

    async def update_profile(
        self,
        actor_type: ActorType,
        actor_id: uuid.UUID,
        full_name: Optional[str] = None,
        email: Optional[str] = None,
        language: Optional[str] = None,
    ) -> Actor:
        """
        Change name, email or (users only) language.

        Raises:
            NotFoundError: no live row with that ID
            ConflictError: the new email belongs to another actor of the kind
        """
        actor = await self.get_actor(actor_type, actor_id)
        changes: dict[str, Any] = {}
        if full_name is not None:
            changes["full_name"] = full_name.strip()
        if email is not None and email.lower().strip() != actor.email:
            if await self.store(actor_type).exists_by_email(email):
                raise _duplicate(actor_type, "email")
            changes["email"] = email
        if language is not None:
            if actor_type != ActorType.USER:
                raise InvalidRequestError("Only users have a preferred language")
            changes["language"] = language
        if not changes:
            return actor
        try:
            updated = await self.store(actor_type).update(actor_id, **changes)
        except DuplicateActorError as e:
            raise ConflictError() from e
        return updated or actor

    async def set_enabled(
        self,
        actor_type: ActorType,
        actor_id: uuid.UUID,
        enabled: bool,
        acting: Optional[Actor] = None,
    ) -> Actor:
        """
        Enable or disable an actor. Disabling revokes its session at once.

        Raises:
            NotFoundError: no live row with that ID
            ForbiddenError: an administrator disabling itself
        """
        if acting is not None and acting.actor_type == actor_type and acting.id == actor_id and not enabled:
            raise ForbiddenError("Administrators cannot disable themselves")
        actor = await self.store(actor_type).set_enabled(actor_id, enabled)
        if actor is None:
            raise NotFoundError(_ACTOR_LABELS[actor_type], actor_id)
        logger.info(
            "Actor enabled" if enabled else "Actor disabled",
            extra={"actor_id": str(actor_id), "actor_type": actor_type.value},
        )
        return actor

    async def soft_delete(
        self,
        actor_type: ActorType,
        actor_id: uuid.UUID,
        acting: Optional[Actor] = None,
    ) -> None:
        """
        Soft-delete an actor; it can no longer authenticate or refresh.

        Raises:
            NotFoundError: no live row with that ID
            ForbiddenError: an administrator deleting itself
        """
        if acting is not None and acting.actor_type == actor_type and acting.id == actor_id:
            raise ForbiddenError("Administrators cannot delete themselves")
        if not await self.store(actor_type).soft_delete(actor_id):
            raise NotFoundError(_ACTOR_LABELS[actor_type], actor_id)
        logger.info(
            "Actor deleted",
            extra={"actor_id": str(actor_id), "actor_type": actor_type.value},
        )
