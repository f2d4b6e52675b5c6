from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Mapping

from app.domain.models import Role


@dataclass(frozen=True)
class RolePermissions:
    can_access_app: bool = False
    can_access_backoffice: bool = False
    can_manage_users: bool = False
    can_manage_orders: bool = False
    can_manage_admins: bool = False


PERMISSION_NAMES = frozenset(f.name for f in fields(RolePermissions))

ROLE_PERMISSIONS: Mapping[Role, RolePermissions] = MappingProxyType({
    Role.USER: RolePermissions(can_access_app=True),
    Role.ADMIN: RolePermissions(
        can_access_app=True,
        can_access_backoffice=True,
        can_manage_users=True,
        can_manage_orders=True,
    ),
    Role.SUPER_ADMIN: RolePermissions(
        can_access_app=True,
        can_access_backoffice=True,
        can_manage_users=True,
        can_manage_orders=True,
        can_manage_admins=True,
    ),
})


class RolePolicy:
    """Решения об авторизации по неизменяемой таблице ролей"""

    def __init__(self, table: Mapping[Role, RolePermissions] = ROLE_PERMISSIONS):
        self._table = table

    def permissions_for(self, role) -> RolePermissions:
        try:
            return self._table.get(Role(role), RolePermissions())
        except ValueError:
            return RolePermissions()

    def has_permission(self, role, permission: str) -> bool:
        if permission not in PERMISSION_NAMES:
            return False
        return getattr(self.permissions_for(role), permission)

    def is_admin(self, role) -> bool:
        return self.permissions_for(role).can_access_backoffice

    def is_super_admin(self, role) -> bool:
        return self.permissions_for(role).can_manage_admins
