"""
Actor models: the three kinds of identity that can authenticate.

Each mapped class carries its kind in the ``actor_type`` class attribute, so
code that receives "some actor" dispatches on that single tag instead of on
the Python class.
"""

import uuid
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Union

from sqlalchemy import JSON, Boolean, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from pricesurvey.kernel.models.base import Base, SoftDeleteMixin, TimestampMixin, generate_uuid


class ActorType(str, Enum):
    """Discriminator shared by tokens, stores and the authorization policy."""
    ADMIN = "ADMIN"
    USER = "USER"
    OPERATIVE_USER = "OPERATIVE_USER"


class ActorMixin(TimestampMixin, SoftDeleteMixin):
    """Columns every actor kind has."""

    actor_type: ClassVar[ActorType]

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    # unique=True puts the duplicate check in the database, where it is race-free
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    username: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    enabled: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )
    # Single slot: at most one live refresh token per actor
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
    )

    @property
    def is_live(self) -> bool:
        """True when the actor may authenticate."""
        return self.enabled and self.deleted_at is None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.email}>"


class Administrator(Base, ActorMixin):
    """Platform administrator with a per-module permission map."""

    __tablename__ = "administrators"
    actor_type = ActorType.ADMIN

    # {"operative_users": {"read": true, "write": true, "delete": false}, ...}
    modules: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSON,
        nullable=True,
    )
    recover_password_id: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
    )


class User(Base, ActorMixin):
    """Self-registered end user."""

    __tablename__ = "users"
    actor_type = ActorType.USER

    language: Mapped[str] = mapped_column(
        String(10),
        default="es",
        nullable=False,
    )


class OperativeUser(Base, ActorMixin):
    """Field operative provisioned by an administrator."""

    __tablename__ = "operative_users"
    actor_type = ActorType.OPERATIVE_USER

    created_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("administrators.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )


Actor = Union[Administrator, User, OperativeUser]

ACTOR_MODELS: Dict[ActorType, type] = {
    ActorType.ADMIN: Administrator,
    ActorType.USER: User,
    ActorType.OPERATIVE_USER: OperativeUser,
}
