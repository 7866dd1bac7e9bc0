"""Designer assignment workflow.

A project's assignment is either Unassigned or Assigned(designer_id).
Only project managers may move it. Each transition is committed first;
the caller then receives the project as re-read from the database, so
what it shows is always what was stored.
"""

from typing import Dict, List, Optional
from uuid import UUID

from ..auth import Identity, Permission, RBACService
from ..constants import ROLE_DESIGNER
from ..db import DatabaseManager
from ..db.models import Profile, Project, User
from ..exceptions import DesignDeskError, NotFoundError, ServiceError, ValidationError
from ..project import ProjectManager
from ..services.base import BaseService


class AssignmentService(BaseService):
    """Assigns and unassigns designers on projects."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        project_manager: ProjectManager,
        rbac: Optional[RBACService] = None,
    ):
        super().__init__(db_manager, rbac)
        self.project_manager = project_manager

    def list_designers(self, identity: Identity) -> List[Dict]:
        """Every identity with role designer, unpaginated, ordered by name."""
        self.rbac.require_permission(identity, Permission.ASSIGN_DESIGNER)

        try:
            with self.db_manager.get_session() as session:
                rows = session.query(Profile, User).join(
                    User, User.user_id == Profile.user_id
                ).filter(
                    Profile.role == ROLE_DESIGNER
                ).order_by(Profile.name).all()

                designers = []
                for profile, user in rows:
                    designer_id = str(user.user_id)
                    designers.append({
                        "id": designer_id,
                        "email": user.email,
                        "name": profile.name or f"Designer {designer_id[:4]}",
                        "role": profile.role,
                        "created_at": profile.created_at.isoformat() if profile.created_at else None,
                    })

        except Exception as e:
            self._log_error("list_designers", e, user_id=identity.id)
            raise ServiceError(str(e)) from e

        if not designers:
            self.logger.info("No designers registered")
        return designers

    def assign_designer(self, identity: Identity, project_id: str, designer_id: str) -> Dict:
        """Set the project's designer and return the confirmed project.

        Re-assigning the current designer is allowed and changes nothing.

        Raises:
            AuthorizationError: Caller is not a project manager
            NotFoundError: Project does not exist
            ValidationError: Target is not a registered designer
        """
        self.rbac.require_permission(identity, Permission.ASSIGN_DESIGNER)

        try:
            designer_uuid = UUID(str(designer_id))
        except ValueError:
            raise ValidationError("Selected user is not a designer")

        self._set_designer(project_id, designer_uuid)
        self._log_operation("assign_designer", project_id=project_id, designer_id=designer_id)
        return self.project_manager.get_project(identity, project_id)

    def unassign_designer(self, identity: Identity, project_id: str) -> Dict:
        """Clear the project's designer. A no-op when none is assigned."""
        self.rbac.require_permission(identity, Permission.ASSIGN_DESIGNER)

        self._set_designer(project_id, None)
        self._log_operation("unassign_designer", project_id=project_id)
        return self.project_manager.get_project(identity, project_id)

    def _set_designer(self, project_id: str, designer_uuid: Optional[UUID]) -> None:
        project_uuid = self._parse_uuid(project_id, "Project")

        try:
            with self.db_manager.get_session() as session:
                project = session.query(Project).filter(
                    Project.project_id == project_uuid
                ).first()
                if not project:
                    raise NotFoundError("Project not found")

                if designer_uuid is not None:
                    profile = session.query(Profile).filter(
                        Profile.user_id == designer_uuid
                    ).first()
                    if not profile or profile.role != ROLE_DESIGNER:
                        raise ValidationError("Selected user is not a designer")

                if project.designer_id != designer_uuid:
                    project.designer_id = designer_uuid

        except DesignDeskError:
            raise
        except Exception as e:
            self._log_error("set_designer", e, project_id=project_id)
            raise ServiceError(str(e)) from e
