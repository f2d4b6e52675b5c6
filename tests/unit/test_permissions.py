import dataclasses

import pytest

from app.domain.models import Role
from app.domain.permissions import PERMISSION_NAMES, ROLE_PERMISSIONS, RolePermissions, RolePolicy


@pytest.fixture
def policy():
    return RolePolicy(ROLE_PERMISSIONS)


def test_user_can_only_access_app(policy):
    assert policy.has_permission(Role.USER, "can_access_app")
    for name in PERMISSION_NAMES - {"can_access_app"}:
        assert not policy.has_permission(Role.USER, name)


def test_admin_cannot_manage_admins(policy):
    assert policy.has_permission("ADMIN", "can_manage_orders")
    assert policy.has_permission("ADMIN", "can_access_backoffice")
    assert not policy.has_permission("ADMIN", "can_manage_admins")
    assert policy.is_admin(Role.ADMIN)
    assert not policy.is_super_admin(Role.ADMIN)


def test_super_admin_has_everything(policy):
    for name in PERMISSION_NAMES:
        assert policy.has_permission(Role.SUPER_ADMIN, name)
    assert policy.is_super_admin(Role.SUPER_ADMIN)


def test_unknown_role_or_permission_is_denied(policy):
    assert not policy.has_permission("GUEST", "can_access_app")
    assert not policy.has_permission(Role.SUPER_ADMIN, "can_fly")
    assert not policy.is_admin("GUEST")


def test_table_is_immutable():
    with pytest.raises(TypeError):
        ROLE_PERMISSIONS[Role.USER] = RolePermissions(can_access_app=True, can_manage_admins=True)
    with pytest.raises(dataclasses.FrozenInstanceError):
        ROLE_PERMISSIONS[Role.USER].can_manage_admins = True


def test_policy_accepts_custom_table():
    policy = RolePolicy({Role.USER: RolePermissions(can_manage_orders=True)})

    assert policy.has_permission(Role.USER, "can_manage_orders")
    assert not policy.has_permission(Role.ADMIN, "can_manage_orders")
