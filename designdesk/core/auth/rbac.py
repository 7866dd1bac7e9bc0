"""RBAC (Role-Based Access Control) for DesignDesk.

Every service call receives the caller's Identity and checks it here,
so access rules hold regardless of which route reached the service.

Roles:
- client: Creates projects, sees own projects
- project_manager: Sees everything, edits and deletes projects, assigns designers
- designer: Sees projects assigned to them

Permissions:
- create_project: Create projects owned by self
- view_all: View any project
- edit_all: Edit any project and its files
- delete_all: Delete any project
- assign_designer: Assign and unassign designers
- view_own: View projects owned by self
- view_assigned: View projects assigned to self
"""

import logging
from enum import Enum
from typing import Dict, FrozenSet

from sqlalchemy import false
from sqlalchemy.orm import Query

from ..constants import ROLE_CLIENT, ROLE_DESIGNER, ROLE_PROJECT_MANAGER
from ..db.models import Project
from ..exceptions import AuthorizationError
from .identity import Identity

logger = logging.getLogger(__name__)


class Role(str, Enum):
    """Identity roles. The role is fixed at registration."""
    CLIENT = ROLE_CLIENT
    PROJECT_MANAGER = ROLE_PROJECT_MANAGER
    DESIGNER = ROLE_DESIGNER


class Permission(str, Enum):
    """System permissions."""
    # Project manager permissions
    VIEW_ALL = "view_all"
    EDIT_ALL = "edit_all"
    DELETE_ALL = "delete_all"
    ASSIGN_DESIGNER = "assign_designer"

    # Client permissions
    CREATE_PROJECT = "create_project"
    VIEW_OWN = "view_own"

    # Designer permissions
    VIEW_ASSIGNED = "view_assigned"


ROLE_PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.CLIENT: frozenset({Permission.CREATE_PROJECT, Permission.VIEW_OWN}),
    Role.PROJECT_MANAGER: frozenset({
        Permission.VIEW_ALL,
        Permission.EDIT_ALL,
        Permission.DELETE_ALL,
        Permission.ASSIGN_DESIGNER,
    }),
    Role.DESIGNER: frozenset({Permission.VIEW_ASSIGNED}),
}

_PERMISSION_DENIED_MESSAGES = {
    Permission.CREATE_PROJECT: "Only clients can create projects",
    Permission.EDIT_ALL: "Only project managers can edit projects",
    Permission.DELETE_ALL: "Only project managers can delete projects",
    Permission.ASSIGN_DESIGNER: "Only project managers can assign designers",
}


class RBACService:
    """Role-Based Access Control checks over a resolved Identity."""

    # ========== Permissions ==========

    @staticmethod
    def get_permissions(identity: Identity) -> FrozenSet[Permission]:
        try:
            return ROLE_PERMISSIONS[Role(identity.role)]
        except ValueError:
            logger.warning(f"Unknown role '{identity.role}' for user {identity.id}")
            return frozenset()

    def has_permission(self, identity: Identity, permission: Permission) -> bool:
        return permission in self.get_permissions(identity)

    def require_permission(self, identity: Identity, permission: Permission) -> None:
        """Raise AuthorizationError unless ``identity`` holds ``permission``."""
        if not self.has_permission(identity, permission):
            logger.info(f"Denied {permission.value} to user {identity.id} ({identity.role})")
            raise AuthorizationError(
                _PERMISSION_DENIED_MESSAGES.get(permission, f"Permission denied: {permission.value}")
            )

    # ========== Project Access ==========

    def can_view_project(self, identity: Identity, project: Project) -> bool:
        if self.has_permission(identity, Permission.VIEW_ALL):
            return True
        if str(project.client_id) == identity.id and self.has_permission(identity, Permission.VIEW_OWN):
            return True
        if project.designer_id is not None and str(project.designer_id) == identity.id:
            return self.has_permission(identity, Permission.VIEW_ASSIGNED)
        return False

    def require_project_view(self, identity: Identity, project: Project) -> None:
        if not self.can_view_project(identity, project):
            raise AuthorizationError("You don't have permission to view this project")

    def scope_projects(self, query: Query, identity: Identity) -> Query:
        """Restrict a Project query to the rows ``identity`` may see."""
        if self.has_permission(identity, Permission.VIEW_ALL):
            return query
        if self.has_permission(identity, Permission.VIEW_OWN):
            return query.filter(Project.client_id == identity.uuid)
        if self.has_permission(identity, Permission.VIEW_ASSIGNED):
            return query.filter(Project.designer_id == identity.uuid)
        # Unknown role sees nothing
        return query.filter(false())


_rbac_service = RBACService()


def get_rbac_service() -> RBACService:
    """Return the shared RBACService (it holds no state)."""
    return _rbac_service
