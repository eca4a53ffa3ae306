"""
Kernel Data Models

SQLAlchemy models for the authenticatable actors.
"""

from pricesurvey.kernel.models.base import Base, TimestampMixin, SoftDeleteMixin, generate_uuid
from pricesurvey.kernel.models.actor import (
    ACTOR_MODELS,
    Actor,
    ActorMixin,
    ActorType,
    Administrator,
    OperativeUser,
    User,
)

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "SoftDeleteMixin",
    "generate_uuid",
    # Actors
    "ACTOR_MODELS",
    "Actor",
    "ActorMixin",
    "ActorType",
    "Administrator",
    "OperativeUser",
    "User",
]
