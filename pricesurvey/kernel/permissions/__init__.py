"""
Permission Core - actor-type allow-lists and administrator module grants.
"""

from pricesurvey.kernel.permissions.policy import (
    POLICIES,
    Action,
    Module,
    Policy,
    authorize,
    full_module_grants,
    has_module_permission,
)

__all__ = [
    "POLICIES",
    "Action",
    "Module",
    "Policy",
    "authorize",
    "full_module_grants",
    "has_module_permission",
]
