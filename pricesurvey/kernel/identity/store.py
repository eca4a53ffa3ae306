"""
Actor persistence: the port the identity flows depend on, and its
SQLAlchemy adapter.

One store instance serves one actor kind. Disabling and soft-deleting clear
the refresh-token hash in the same UPDATE statement that flips the flag, so a
revoked actor never keeps a usable refresh token between two writes.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol, Sequence

from sqlalchemy import exists, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from pricesurvey.kernel.models.actor import ACTOR_MODELS, Actor, ActorType


class DuplicateActorError(Exception):
    """A uniqueness constraint on email or username rejected the write."""


class ActorStore(Protocol):
    """Persistence operations for one actor kind."""

    actor_type: ActorType

    async def find_by_id(self, actor_id: uuid.UUID) -> Optional[Actor]: ...

    async def find_by_email(self, email: str) -> Optional[Actor]: ...

    async def find_by_username(self, username: str) -> Optional[Actor]: ...

    async def exists_by_email(self, email: str) -> bool: ...

    async def exists_by_username(self, username: str) -> bool: ...

    async def create(self, **fields: Any) -> Actor: ...

    async def update(self, actor_id: uuid.UUID, **changes: Any) -> Optional[Actor]: ...

    async def set_enabled(self, actor_id: uuid.UUID, enabled: bool) -> Optional[Actor]: ...

    async def soft_delete(self, actor_id: uuid.UUID) -> bool: ...

    async def update_refresh_token_hash(self, actor_id: uuid.UUID, token_hash: Optional[str]) -> None: ...

    async def swap_refresh_token_hash(
        self,
        actor_id: uuid.UUID,
        expected: str,
        new: str,
    ) -> bool: ...

    async def list(
        self,
        page: int = 1,
        limit: int = 10,
        enabled_only: bool = False,
        created_by_id: Optional[uuid.UUID] = None,
    ) -> tuple[Sequence[Actor], int]: ...


def normalize_email(email: str) -> str:
    return email.lower().strip()


class SqlActorStore:
    """
    ``ActorStore`` over an async SQLAlchemy session.

    Writes are flushed but not committed; the request's session commits or
    rolls back as a whole.
    """

    # Columns callers may change through update()
    UPDATABLE_FIELDS = frozenset({
        "full_name",
        "email",
        "username",
        "password_hash",
        "language",
        "modules",
        "recover_password_id",
    })

    def __init__(self, session: AsyncSession, actor_type: ActorType):
        self.session = session
        self.actor_type = actor_type
        self.model = ACTOR_MODELS[actor_type]

    async def find_by_id(self, actor_id: uuid.UUID) -> Optional[Actor]:
        """Get an actor by ID, soft-deleted rows included."""
        return await self.session.get(self.model, actor_id, populate_existing=True)

    async def find_by_email(self, email: str) -> Optional[Actor]:
        query = select(self.model).where(self.model.email == normalize_email(email))
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def find_by_username(self, username: str) -> Optional[Actor]:
        query = select(self.model).where(self.model.username == username.strip())
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        query = select(exists().where(self.model.email == normalize_email(email)))
        return bool(await self.session.scalar(query))

    async def exists_by_username(self, username: str) -> bool:
        query = select(exists().where(self.model.username == username.strip()))
        return bool(await self.session.scalar(query))

    async def create(self, **fields: Any) -> Actor:
        """
        Insert a new actor.

        Raises:
            DuplicateActorError: if the email or username is already taken
        """
        if "email" in fields:
            fields["email"] = normalize_email(fields["email"])
        actor = self.model(**fields)
        self.session.add(actor)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateActorError(str(e.orig)) from e
        return actor

    async def update(self, actor_id: uuid.UUID, **changes: Any) -> Optional[Actor]:
        """
        Apply a partial update.

        Raises:
            DuplicateActorError: if a new email or username is already taken
            ValueError: for fields that must go through a dedicated operation
        """
        unknown = set(changes) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable here: {sorted(unknown)}")
        actor = await self.find_by_id(actor_id)
        if actor is None:
            return None
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        for key, value in changes.items():
            setattr(actor, key, value)
        try:
            await self.session.flush()
        except IntegrityError as e:
            raise DuplicateActorError(str(e.orig)) from e
        return actor

    async def set_enabled(self, actor_id: uuid.UUID, enabled: bool) -> Optional[Actor]:
        """Enable or disable. Disabling clears the refresh-token hash in the same statement."""
        values: dict[str, Any] = {"enabled": enabled}
        if not enabled:
            values["refresh_token_hash"] = None
        result = await self.session.execute(
            update(self.model)
            .where(self.model.id == actor_id, self.model.deleted_at.is_(None))
            .values(**values)
        )
        if result.rowcount == 0:
            return None
        return await self.find_by_id(actor_id)

    async def soft_delete(self, actor_id: uuid.UUID) -> bool:
        """Mark deleted, disable and drop the session in one statement."""
        result = await self.session.execute(
            update(self.model)
            .where(self.model.id == actor_id, self.model.deleted_at.is_(None))
            .values(
                deleted_at=datetime.now(timezone.utc),
                enabled=False,
                refresh_token_hash=None,
            )
        )
        return result.rowcount > 0

    async def update_refresh_token_hash(self, actor_id: uuid.UUID, token_hash: Optional[str]) -> None:
        await self.session.execute(
            update(self.model)
            .where(self.model.id == actor_id)
            .values(refresh_token_hash=token_hash)
        )

    async def swap_refresh_token_hash(self, actor_id: uuid.UUID, expected: str, new: str) -> bool:
        """
        Replace the stored hash only if it still equals ``expected``.

        Returns False when another request rotated (or revoked) first.
        """
        result = await self.session.execute(
            update(self.model)
            .where(
                self.model.id == actor_id,
                self.model.refresh_token_hash == expected,
                self.model.enabled.is_(True),
                self.model.deleted_at.is_(None),
            )
            .values(refresh_token_hash=new)
        )
        return result.rowcount == 1

    async def list(
        self,
        page: int = 1,
        limit: int = 10,
        enabled_only: bool = False,
        created_by_id: Optional[uuid.UUID] = None,
    ) -> tuple[Sequence[Actor], int]:
        """Page through non-deleted actors, newest first."""
        conditions = [self.model.deleted_at.is_(None)]
        if enabled_only:
            conditions.append(self.model.enabled.is_(True))
        if created_by_id is not None:
            if self.actor_type != ActorType.OPERATIVE_USER:
                raise ValueError("created_by_id filter applies to operative users only")
            conditions.append(self.model.created_by_id == created_by_id)

        total = await self.session.scalar(
            select(func.count()).select_from(self.model).where(*conditions)
        )
        result = await self.session.execute(
            select(self.model)
            .where(*conditions)
            .order_by(self.model.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return result.scalars().all(), total or 0


def stores_for_session(session: AsyncSession) -> dict[ActorType, SqlActorStore]:
    """One SQL store per actor kind, sharing the request session."""
    return {actor_type: SqlActorStore(session, actor_type) for actor_type in ActorType}
