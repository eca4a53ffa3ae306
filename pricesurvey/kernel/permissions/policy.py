"""
Authorization policy: which actor kinds may run which operation.

The table below is the whole policy. Every protected operation names itself
here; ``authorize`` is the only code that reads it. Administrator management
operations additionally name a module and action that the acting
administrator's permission map must grant.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional

from pricesurvey.kernel.errors import ForbiddenError
from pricesurvey.kernel.models.actor import Actor, ActorType


class Module(str, Enum):
    """Administrator permission modules."""
    ADMINISTRATORS = "administrators"
    OPERATIVE_USERS = "operative_users"
    USERS = "users"
    PRODUCTS = "products"
    STORES = "stores"
    PRICE_RECORDS = "price_records"


class Action(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


@dataclass(frozen=True)
class Policy:
    allowed_types: FrozenSet[ActorType]
    module: Optional[Module] = None
    action: Optional[Action] = None


ANY_ACTOR = frozenset(ActorType)
ADMIN_ONLY = frozenset({ActorType.ADMIN})


def _admin(module: Module, action: Action) -> Policy:
    return Policy(ADMIN_ONLY, module, action)


POLICIES: Dict[str, Policy] = {
    # Own session
    "auth.me": Policy(ANY_ACTOR),
    "auth.update_me": Policy(ANY_ACTOR),
    "auth.logout": Policy(ANY_ACTOR),
    # Administrators
    "auth.register_admin": _admin(Module.ADMINISTRATORS, Action.WRITE),
    "administrators.list": _admin(Module.ADMINISTRATORS, Action.READ),
    "administrators.toggle_status": _admin(Module.ADMINISTRATORS, Action.WRITE),
    "administrators.delete": _admin(Module.ADMINISTRATORS, Action.DELETE),
    # Operative users
    "operative_users.create": _admin(Module.OPERATIVE_USERS, Action.WRITE),
    "operative_users.list": _admin(Module.OPERATIVE_USERS, Action.READ),
    "operative_users.get": _admin(Module.OPERATIVE_USERS, Action.READ),
    "operative_users.update": _admin(Module.OPERATIVE_USERS, Action.WRITE),
    "operative_users.toggle_status": _admin(Module.OPERATIVE_USERS, Action.WRITE),
    "operative_users.delete": _admin(Module.OPERATIVE_USERS, Action.DELETE),
    # Self-registered users
    "users.toggle_status": _admin(Module.USERS, Action.WRITE),
    "users.delete": _admin(Module.USERS, Action.DELETE),
}


def full_module_grants() -> Dict[str, Dict[str, bool]]:
    """A permission map granting every action on every module."""
    return {module.value: {action.value: True for action in Action} for module in Module}


def has_module_permission(
    modules: Optional[Mapping[str, Any]],
    module: Module,
    action: Action,
) -> bool:
    """Absent maps, modules or actions grant nothing."""
    if not modules:
        return False
    grants = modules.get(module.value)
    if not isinstance(grants, Mapping):
        return False
    return grants.get(action.value) is True


def authorize(actor: Actor, operation: str, policies: Mapping[str, Policy] = POLICIES) -> None:
    """
    Check an authenticated actor against the operation's policy.

    Raises:
        ForbiddenError: wrong actor kind, missing module grant, or an
            operation the table does not know
    """
    policy = policies.get(operation)
    if policy is None:
        raise ForbiddenError(f"No policy for operation {operation!r}")

    if actor.actor_type not in policy.allowed_types:
        raise ForbiddenError("Actor type not allowed for this operation")

    if policy.module is not None and policy.action is not None:
        if actor.actor_type != ActorType.ADMIN or not has_module_permission(
            getattr(actor, "modules", None), policy.module, policy.action
        ):
            raise ForbiddenError(
                f"Missing permission: {policy.module.value}.{policy.action.value}"
            )
