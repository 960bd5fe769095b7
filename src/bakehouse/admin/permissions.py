"""Admin roles and capability records.

Authentication happens upstream; by the time a request reaches the core the
caller is an ``AdminSession`` with a role and a fixed set of permissions.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AdminRole(Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    MANAGER = "manager"


class Permission(Enum):
    PRODUCTS = "products"
    ORDERS = "orders"
    CUSTOMERS = "customers"
    ANALYTICS = "analytics"
    SETTINGS = "settings"
    USERS = "users"


class AdminPermissions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    products: bool = True
    orders: bool = True
    customers: bool = True
    analytics: bool = True
    settings: bool = False
    users: bool = False

    def allows(self, permission: Permission) -> bool:
        return getattr(self, permission.value)


class AdminSession(BaseModel):
    model_config = ConfigDict(frozen=True)

    admin_id: str = Field(min_length=1, max_length=100)
    username: str = Field(min_length=1, max_length=100)
    role: AdminRole = AdminRole.ADMIN
    permissions: AdminPermissions = Field(default_factory=AdminPermissions)
    is_active: bool = True

    @property
    def is_super_admin(self) -> bool:
        return self.role == AdminRole.SUPER_ADMIN

    def has_permission(self, permission: Permission) -> bool:
        """Super admins hold every permission regardless of their record."""
        if self.is_super_admin:
            return True
        return self.permissions.allows(permission)
