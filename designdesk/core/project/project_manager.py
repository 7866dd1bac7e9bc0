"""Project Manager for DesignDesk.

Provides role-scoped CRUD operations for projects and their files.
Records live in the database; file bytes live in the blob store.
Every method takes the caller's Identity and enforces RBAC itself.
"""

import logging
import mimetypes
import os
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence
from uuid import UUID, uuid4

from ..auth import Identity, Permission, RBACService
from ..constants import ASSIGNED_LABEL, STORED_NAME_LENGTH, UNNAMED_DESIGNER
from ..db import DatabaseManager
from ..db.models import Profile, Project, ProjectFile
from ..exceptions import (
    DesignDeskError,
    NotFoundError,
    PartialFailureError,
    ServiceError,
    ValidationError,
)
from ..services.base import BaseService
from ..storage import BlobStore

logger = logging.getLogger(__name__)

_BASE36 = string.ascii_lowercase + string.digits


@dataclass
class FileUpload:
    """An uploaded file as received from the client."""
    file_name: str
    content: bytes


@dataclass
class DownloadedFile:
    """File bytes ready to be served under their original name."""
    file_name: str
    content: bytes
    media_type: str


def generate_stored_name(file_name: str) -> str:
    """Random base36 token that keeps the original extension."""
    token = "".join(secrets.choice(_BASE36) for _ in range(STORED_NAME_LENGTH))
    _, ext = os.path.splitext(file_name or "")
    return f"{token}{ext}"


class ProjectManager(BaseService):
    """Manages projects and their files with database and blob persistence."""

    def __init__(
        self,
        db_manager: DatabaseManager,
        blob_store: BlobStore,
        rbac: Optional[RBACService] = None,
    ):
        super().__init__(db_manager, rbac)
        self.blobs = blob_store
        logger.info("ProjectManager initialized")

    # =========================================================================
    # Project Queries
    # =========================================================================

    def list_projects(self, identity: Identity) -> List[Dict]:
        """List the projects visible to ``identity``, newest first.

        Designer names are resolved with one batch lookup; if that lookup
        fails the projects are still returned without names.
        """
        try:
            with self.db_manager.get_session() as session:
                query = self.rbac.scope_projects(session.query(Project), identity)
                projects = query.order_by(Project.created_at.desc()).all()
                result = [self._project_to_dict(p) for p in projects]

        except Exception as e:
            logger.error(f"Failed to list projects for user {identity.id}: {e}")
            raise ServiceError(str(e)) from e

        designer_ids = {p["designer_id"] for p in result if p["designer_id"]}
        if designer_ids:
            try:
                names = self.resolve_designer_names(designer_ids)
            except Exception as e:
                logger.warning(f"Designer name lookup failed, listing without names: {e}")
                names = {}

            for project in result:
                if project["designer_id"]:
                    self._attach_designer_name(project, names.get(project["designer_id"]))

        return result

    def get_project(self, identity: Identity, project_id: str) -> Dict:
        """Fetch one project the caller may view, with its files.

        Raises:
            NotFoundError: Project does not exist
            AuthorizationError: Caller is neither PM, owner, nor assigned designer
        """
        project_uuid = self._parse_uuid(project_id, "Project")
        try:
            with self.db_manager.get_session() as session:
                project = session.query(Project).filter(
                    Project.project_id == project_uuid
                ).first()

                if not project:
                    raise NotFoundError("Project not found")

                self.rbac.require_project_view(identity, project)
                result = self._project_to_dict(project)

        except DesignDeskError:
            raise
        except Exception as e:
            logger.error(f"Failed to get project {project_id}: {e}")
            raise ServiceError(str(e)) from e

        if result["designer_id"]:
            try:
                names = self.resolve_designer_names([result["designer_id"]])
                self._attach_designer_name(result, names.get(result["designer_id"]))
            except Exception as e:
                logger.warning(f"Designer name lookup failed for project {project_id}: {e}")
                self._attach_designer_name(result, None)

        result["files"] = self.get_project_files(project_id)
        return result

    def get_project_files(self, project_id: str) -> List[Dict]:
        """List file records of a project. Callers must authorize first."""
        try:
            with self.db_manager.get_session() as session:
                files = session.query(ProjectFile).filter(
                    ProjectFile.project_id == UUID(project_id)
                ).order_by(ProjectFile.created_at).all()

                return [self._file_to_dict(f) for f in files]

        except Exception as e:
            logger.error(f"Failed to get files for project {project_id}: {e}")
            raise ServiceError(str(e)) from e

    def resolve_designer_names(self, designer_ids: Iterable[str]) -> Dict[str, str]:
        """Map designer ids to display names in a single query."""
        ids = [UUID(d) for d in designer_ids]
        if not ids:
            return {}
        with self.db_manager.get_session() as session:
            profiles = session.query(Profile).filter(Profile.user_id.in_(ids)).all()
            return {str(p.user_id): p.name or UNNAMED_DESIGNER for p in profiles}

    # =========================================================================
    # Project Mutations
    # =========================================================================

    def create_project(
        self,
        identity: Identity,
        title: str,
        description: str,
        files: Sequence[FileUpload] = (),
    ) -> Dict:
        """Create a project owned by the calling client, then upload its files.

        The project row is committed before any upload. A failed upload
        raises PartialFailureError and leaves the project and the files
        uploaded before it in place.
        """
        self.rbac.require_permission(identity, Permission.CREATE_PROJECT)

        title = (title or "").strip()
        description = (description or "").strip()
        if not title or not description:
            raise ValidationError("Please fill in all required fields")

        try:
            with self.db_manager.get_session() as session:
                now = datetime.utcnow()
                project = Project(
                    project_id=uuid4(),
                    title=title,
                    description=description,
                    client_id=identity.uuid,
                    created_at=now,
                    updated_at=now,
                )
                session.add(project)
                session.flush()

                logger.info(f"Created project: {project.project_id} ({title})")
                result = self._project_to_dict(project)

        except Exception as e:
            logger.error(f"Failed to create project: {e}")
            raise ServiceError(str(e)) from e

        result["files"] = self._upload_files(identity, result["id"], files)
        return result

    def update_project(
        self,
        identity: Identity,
        project_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
    ) -> Dict:
        """Update project title/description and bump updated_at."""
        self.rbac.require_permission(identity, Permission.EDIT_ALL)
        project_uuid = self._parse_uuid(project_id, "Project")

        if title is not None and not title.strip():
            raise ValidationError("Title cannot be empty")
        if description is not None and not description.strip():
            raise ValidationError("Description cannot be empty")

        try:
            with self.db_manager.get_session() as session:
                project = session.query(Project).filter(
                    Project.project_id == project_uuid
                ).first()

                if not project:
                    raise NotFoundError("Project not found")

                if title is not None:
                    project.title = title.strip()
                if description is not None:
                    project.description = description.strip()

                project.updated_at = datetime.utcnow()
                logger.info(f"Updated project: {project_id}")
                return self._project_to_dict(project)

        except DesignDeskError:
            raise
        except Exception as e:
            logger.error(f"Failed to update project {project_id}: {e}")
            raise ServiceError(str(e)) from e

    def delete_project(self, identity: Identity, project_id: str) -> bool:
        """Delete a project after removing its file blobs and file records.

        Each step commits on its own. If the file records are gone but the
        project row cannot be deleted, PartialFailureError is raised and the
        caller has to retry.
        """
        self.rbac.require_permission(identity, Permission.DELETE_ALL)
        project_uuid = self._parse_uuid(project_id, "Project")

        try:
            with self.db_manager.get_session() as session:
                project = session.query(Project).filter(
                    Project.project_id == project_uuid
                ).first()

                if not project:
                    raise NotFoundError("Project not found")

                paths = [
                    f.file_path for f in session.query(ProjectFile).filter(
                        ProjectFile.project_id == project_uuid
                    ).all()
                ]

            if paths:
                self.blobs.remove(paths)

            with self.db_manager.get_session() as session:
                removed = session.query(ProjectFile).filter(
                    ProjectFile.project_id == project_uuid
                ).delete(synchronize_session=False)
                logger.info(f"Deleted {removed} file records of project {project_id}")

        except DesignDeskError:
            raise
        except Exception as e:
            logger.error(f"Failed to delete files of project {project_id}: {e}")
            raise ServiceError(str(e)) from e

        try:
            with self.db_manager.get_session() as session:
                session.query(Project).filter(
                    Project.project_id == project_uuid
                ).delete(synchronize_session=False)
                logger.info(f"Deleted project: {project_id}")
                return True

        except Exception as e:
            logger.error(f"Project {project_id} lost its files but was not deleted: {e}")
            raise PartialFailureError(
                f"Failed to delete project: {e}",
                completed=[f"files:{project_id}"],
            ) from e

    # =========================================================================
    # Project Files
    # =========================================================================

    def add_files(
        self,
        identity: Identity,
        project_id: str,
        files: Sequence[FileUpload],
    ) -> List[Dict]:
        """Append files to an existing project (project managers only)."""
        self.rbac.require_permission(identity, Permission.EDIT_ALL)
        project_uuid = self._parse_uuid(project_id, "Project")

        try:
            with self.db_manager.get_session() as session:
                exists = session.query(Project.project_id).filter(
                    Project.project_id == project_uuid
                ).first()

        except Exception as e:
            logger.error(f"Failed to look up project {project_id}: {e}")
            raise ServiceError(str(e)) from e

        if not exists:
            raise NotFoundError("Project not found")

        return self._upload_files(identity, str(project_uuid), files)

    def delete_file(self, identity: Identity, project_id: str, file_id: str) -> bool:
        """Remove a file's blob, then its record.

        The record is kept when the blob removal fails.
        """
        self.rbac.require_permission(identity, Permission.EDIT_ALL)
        project_uuid = self._parse_uuid(project_id, "Project")
        file_uuid = self._parse_uuid(file_id, "File")

        record = self._get_file_record(project_uuid, file_uuid)
        try:
            self.blobs.remove([record["file_path"]])

        except DesignDeskError:
            raise
        except Exception as e:
            logger.error(f"Failed to remove blob {record['file_path']}: {e}")
            raise ServiceError(str(e)) from e

        try:
            with self.db_manager.get_session() as session:
                session.query(ProjectFile).filter(
                    ProjectFile.file_id == file_uuid
                ).delete(synchronize_session=False)
                logger.info(f"Deleted file {file_id} from project {project_id}")
                return True

        except Exception as e:
            logger.error(f"Failed to delete file record {file_id}: {e}")
            raise ServiceError(str(e)) from e

    def download_file(self, identity: Identity, project_id: str, file_id: str) -> DownloadedFile:
        """Fetch a file's bytes for a caller allowed to view its project."""
        project_uuid = self._parse_uuid(project_id, "Project")
        file_uuid = self._parse_uuid(file_id, "File")

        try:
            with self.db_manager.get_session() as session:
                project = session.query(Project).filter(
                    Project.project_id == project_uuid
                ).first()
                if not project:
                    raise NotFoundError("Project not found")
                self.rbac.require_project_view(identity, project)

            record = self._get_file_record(project_uuid, file_uuid)
            content = self.blobs.download(record["file_path"])

        except DesignDeskError:
            raise
        except Exception as e:
            logger.error(f"Failed to download file {file_id} of project {project_id}: {e}")
            raise ServiceError(str(e)) from e

        media_type = mimetypes.guess_type(record["file_name"])[0] or "application/octet-stream"
        return DownloadedFile(file_name=record["file_name"], content=content, media_type=media_type)

    def _get_file_record(self, project_uuid: UUID, file_uuid: UUID) -> Dict:
        try:
            with self.db_manager.get_session() as session:
                record = session.query(ProjectFile).filter(
                    ProjectFile.file_id == file_uuid,
                    ProjectFile.project_id == project_uuid,
                ).first()
                if not record:
                    raise NotFoundError("File not found")
                return self._file_to_dict(record)

        except DesignDeskError:
            raise
        except Exception as e:
            logger.error(f"Failed to load file record {file_uuid}: {e}")
            raise ServiceError(str(e)) from e

    def _upload_files(
        self,
        identity: Identity,
        project_id: str,
        files: Sequence[FileUpload],
    ) -> List[Dict]:
        """Store files one after another; stop at the first failure."""
        stored: List[Dict] = []
        for upload in files:
            try:
                stored.append(self._store_file(identity, project_id, upload))
            except Exception as e:
                message = e.message if isinstance(e, DesignDeskError) else str(e)
                logger.error(
                    f"Upload of '{upload.file_name}' to project {project_id} failed "
                    f"after {len(stored)} file(s): {message}"
                )
                raise PartialFailureError(
                    message,
                    completed=[f["file_name"] for f in stored],
                ) from e
        return stored

    def _store_file(self, identity: Identity, project_id: str, upload: FileUpload) -> Dict:
        file_path = f"{project_id}/{generate_stored_name(upload.file_name)}"
        self.blobs.upload(file_path, upload.content)

        with self.db_manager.get_session() as session:
            record = ProjectFile(
                file_id=uuid4(),
                project_id=UUID(project_id),
                file_path=file_path,
                file_name=upload.file_name,
                uploaded_by=identity.uuid,
            )
            session.add(record)
            session.flush()
            logger.info(f"Stored file '{upload.file_name}' at {file_path}")
            return self._file_to_dict(record)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _attach_designer_name(project: Dict, name: Optional[str]) -> None:
        project["designer_name"] = name
        project["designer_label"] = name or ASSIGNED_LABEL

    @staticmethod
    def _project_to_dict(project: Project) -> Dict:
        """Convert a Project ORM object to a dict."""
        return {
            "id": str(project.project_id),
            "project_id": str(project.project_id),
            "title": project.title,
            "description": project.description or "",
            "client_id": str(project.client_id),
            "designer_id": str(project.designer_id) if project.designer_id else None,
            "designer_name": None,
            "designer_label": None,
            "created_at": project.created_at.isoformat() if project.created_at else None,
            "updated_at": project.updated_at.isoformat() if project.updated_at else None,
        }

    @staticmethod
    def _file_to_dict(record: ProjectFile) -> Dict:
        return {
            "id": str(record.file_id),
            "file_id": str(record.file_id),
            "project_id": str(record.project_id),
            "file_path": record.file_path,
            "file_name": record.file_name,
            "uploaded_by": str(record.uploaded_by) if record.uploaded_by else None,
            "created_at": record.created_at.isoformat() if record.created_at else None,
        }
