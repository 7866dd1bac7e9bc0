"""Authentication and Authorization module.

Provides:
- Authentication: Registration, login, profile name updates
- Session resolution: session user id -> immutable Identity
- RBAC (Role-Based Access Control) over the three roles
"""

from .identity import Identity, SessionResolver
from .auth_service import AuthService
from .rbac import (
    RBACService,
    Role,
    Permission,
    ROLE_PERMISSIONS,
    get_rbac_service,
)

__all__ = [
    # Identity
    "Identity",
    "SessionResolver",
    # Authentication
    "AuthService",
    # RBAC
    "RBACService",
    "Role",
    "Permission",
    "ROLE_PERMISSIONS",
    "get_rbac_service",
]
