"""Unit tests for the authorization policy table."""

import uuid

import pytest

from pricesurvey.kernel.errors import ForbiddenError
from pricesurvey.kernel.models.actor import ActorType, Administrator, OperativeUser, User
from pricesurvey.kernel.permissions.policy import (
    ADMIN_ONLY,
    POLICIES,
    Action,
    Module,
    Policy,
    authorize,
    full_module_grants,
    has_module_permission,
)


def _admin(modules=None) -> Administrator:
    return Administrator(
        id=uuid.uuid4(),
        full_name="Admin",
        email="admin@example.com",
        username="admin",
        password_hash="x",
        enabled=True,
        modules=modules,
    )


def _user() -> User:
    return User(
        id=uuid.uuid4(),
        full_name="Shopper",
        email="shopper@example.com",
        username="shopper",
        password_hash="x",
        enabled=True,
    )


def _operative() -> OperativeUser:
    return OperativeUser(
        id=uuid.uuid4(),
        full_name="Field",
        email="field@example.com",
        username="field",
        password_hash="x",
        enabled=True,
    )


class TestModulePermission:

    def test_full_grants_cover_everything(self):
        grants = full_module_grants()

        for module in Module:
            for action in Action:
                assert has_module_permission(grants, module, action)

    @pytest.mark.parametrize("modules", [None, {}, {"operative_users": None}, {"operative_users": {}}])
    def test_absent_grants_deny(self, modules):
        assert not has_module_permission(modules, Module.OPERATIVE_USERS, Action.READ)

    def test_grants_are_per_action(self):
        modules = {"operative_users": {"read": True, "write": False}}

        assert has_module_permission(modules, Module.OPERATIVE_USERS, Action.READ)
        assert not has_module_permission(modules, Module.OPERATIVE_USERS, Action.WRITE)
        assert not has_module_permission(modules, Module.OPERATIVE_USERS, Action.DELETE)

    def test_truthy_non_bool_does_not_grant(self):
        assert not has_module_permission({"users": {"read": "yes"}}, Module.USERS, Action.READ)


class TestAuthorize:

    def test_any_actor_operations(self):
        for actor in (_admin(), _user(), _operative()):
            authorize(actor, "auth.me")
            authorize(actor, "auth.logout")

    @pytest.mark.parametrize("operation", ["operative_users.create", "auth.register_admin", "users.delete"])
    def test_non_admins_forbidden(self, operation):
        for actor in (_user(), _operative()):
            with pytest.raises(ForbiddenError):
                authorize(actor, operation)

    def test_admin_with_grant_allowed(self):
        authorize(_admin(full_module_grants()), "operative_users.create")

    def test_admin_without_grant_forbidden(self):
        admin = _admin({"operative_users": {"read": True}})

        authorize(admin, "operative_users.list")
        with pytest.raises(ForbiddenError):
            authorize(admin, "operative_users.create")

    def test_admin_with_no_modules_forbidden(self):
        with pytest.raises(ForbiddenError):
            authorize(_admin(None), "administrators.list")

    def test_unknown_operation_forbidden(self):
        with pytest.raises(ForbiddenError):
            authorize(_admin(full_module_grants()), "products.nuke")

    def test_custom_table(self):
        table = {"reports.view": Policy(frozenset({ActorType.OPERATIVE_USER}))}

        authorize(_operative(), "reports.view", table)
        with pytest.raises(ForbiddenError):
            authorize(_user(), "reports.view", table)

    def test_every_admin_policy_names_a_grant(self):
        for name, policy in POLICIES.items():
            if policy.allowed_types == ADMIN_ONLY:
                assert policy.module is not None and policy.action is not None, name
