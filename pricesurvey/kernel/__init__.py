"""
Kernel Layer

Authentication and authorization core shared by every route:
- Identity Core (actor kinds, credentials, token pairs, sessions)
- Permission Core (actor-type allow-lists, administrator module grants)

Invariants:
- A token's signature alone never authorizes; the live actor is re-loaded
- Disabling or deleting an actor clears its refresh session in the same write
- Only hashes of passwords and refresh tokens are stored
"""

from pricesurvey.kernel.models import (
    Actor,
    ActorType,
    Administrator,
    OperativeUser,
    User,
)

__all__ = [
    "Actor",
    "ActorType",
    "Administrator",
    "OperativeUser",
    "User",
]
