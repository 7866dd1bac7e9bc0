"""Project management API routes (FastAPI).

Provides role-scoped listing, detail, create (with file upload), edit,
delete, and per-file upload/delete/download for design projects.
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile
from pydantic import BaseModel

from designdesk.core.auth import Identity
from designdesk.core.project import FileUpload
from ..core import success_response
from ..deps import (
    get_current_user,
    get_project_manager,
    get_settings,
    require_client,
    require_project_manager,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])


# ── Request/Response models ──────────────────────────────────────────────

class ProjectUpdate(BaseModel):
    title: str | None = None
    description: str | None = None


class FileResponse(BaseModel):
    id: str
    file_id: str
    project_id: str
    file_path: str
    file_name: str
    uploaded_by: str | None = None
    created_at: str | None = None


class ProjectResponse(BaseModel):
    id: str
    project_id: str
    title: str
    description: str
    client_id: str
    designer_id: str | None = None
    designer_name: str | None = None
    designer_label: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


class ProjectDetailResponse(ProjectResponse):
    files: list[FileResponse] = []


# ── Helpers ──────────────────────────────────────────────────────────────

async def _read_uploads(files: list[UploadFile] | None, max_size_mb: int) -> list[FileUpload]:
    """Read uploaded files into memory, rejecting oversized ones."""
    uploads = []
    for file in files or []:
        if not file.filename:
            continue
        content = await file.read()

        size_mb = len(content) / (1024 * 1024)
        if size_mb > max_size_mb:
            raise HTTPException(
                status_code=400,
                detail=f"File '{file.filename}' too large ({size_mb:.1f}MB). Maximum is {max_size_mb}MB.",
            )

        uploads.append(FileUpload(file_name=file.filename, content=content))
    return uploads


# ── Routes ───────────────────────────────────────────────────────────────

@router.get("", response_model=list[ProjectResponse])
async def list_projects(
    user: Identity = Depends(get_current_user),
    pm=Depends(get_project_manager),
):
    """List the projects visible to the current user, newest first."""
    projects = pm.list_projects(user)
    return [ProjectResponse(**p) for p in projects]


@router.post("", response_model=ProjectDetailResponse, status_code=201)
async def create_project(
    title: str = Form(""),
    description: str = Form(""),
    files: list[UploadFile] | None = File(None),
    user: Identity = Depends(require_client),
    pm=Depends(get_project_manager),
    settings=Depends(get_settings),
):
    """Create a project owned by the calling client, with optional files."""
    uploads = await _read_uploads(files, settings.max_upload_size_mb)
    project = pm.create_project(user, title=title, description=description, files=uploads)
    return ProjectDetailResponse(**project)


@router.get("/{project_id}", response_model=ProjectDetailResponse)
async def get_project(
    project_id: str,
    user: Identity = Depends(get_current_user),
    pm=Depends(get_project_manager),
):
    """Get project details and files by ID."""
    return ProjectDetailResponse(**pm.get_project(user, project_id))


@router.patch("/{project_id}", response_model=ProjectDetailResponse)
async def update_project(
    project_id: str,
    data: ProjectUpdate,
    user: Identity = Depends(require_project_manager),
    pm=Depends(get_project_manager),
):
    """Update project title or description."""
    pm.update_project(
        user,
        project_id,
        title=data.title,
        description=data.description,
    )
    return ProjectDetailResponse(**pm.get_project(user, project_id))


@router.delete("/{project_id}")
async def delete_project(
    project_id: str,
    user: Identity = Depends(require_project_manager),
    pm=Depends(get_project_manager),
):
    """Delete a project together with its files."""
    pm.delete_project(user, project_id)
    return success_response(f"Project {project_id} deleted")


@router.post("/{project_id}/files", response_model=list[FileResponse], status_code=201)
async def upload_files(
    project_id: str,
    files: list[UploadFile] = File(...),
    user: Identity = Depends(require_project_manager),
    pm=Depends(get_project_manager),
    settings=Depends(get_settings),
):
    """Append files to an existing project."""
    uploads = await _read_uploads(files, settings.max_upload_size_mb)
    if not uploads:
        raise HTTPException(status_code=400, detail="No files provided")
    stored = pm.add_files(user, project_id, uploads)
    return [FileResponse(**f) for f in stored]


@router.delete("/{project_id}/files/{file_id}")
async def delete_file(
    project_id: str,
    file_id: str,
    user: Identity = Depends(require_project_manager),
    pm=Depends(get_project_manager),
):
    """Remove a file from storage, then its record."""
    pm.delete_file(user, project_id, file_id)
    return success_response("File deleted")


@router.get("/{project_id}/files/{file_id}/download")
async def download_file(
    project_id: str,
    file_id: str,
    user: Identity = Depends(get_current_user),
    pm=Depends(get_project_manager),
):
    """Download a file under its original name."""
    downloaded = pm.download_file(user, project_id, file_id)
    disposition = f"attachment; filename*=UTF-8''{quote(downloaded.file_name)}"
    return Response(
        content=downloaded.content,
        media_type=downloaded.media_type,
        headers={"Content-Disposition": disposition},
    )
