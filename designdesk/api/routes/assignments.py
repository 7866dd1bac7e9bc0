"""Designer assignment API routes (FastAPI).

Responses carry the project as re-read after the change was committed,
plus a short message for a transient notification.
"""

import logging

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from designdesk.core.auth import Identity
from designdesk.core.exceptions import DesignDeskError
from ..core import error_response
from ..deps import get_assignment_service, require_project_manager
from .projects import ProjectDetailResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["assignments"])


class AssignDesignerRequest(BaseModel):
    designer_id: str


class DesignerResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    created_at: str | None = None


@router.get("/designers", response_model=list[DesignerResponse])
async def list_designers(
    user: Identity = Depends(require_project_manager),
    assignments=Depends(get_assignment_service),
):
    """List every designer eligible for assignment."""
    return [DesignerResponse(**d) for d in assignments.list_designers(user)]


@router.put("/projects/{project_id}/designer")
async def assign_designer(
    project_id: str,
    data: AssignDesignerRequest,
    user: Identity = Depends(require_project_manager),
    assignments=Depends(get_assignment_service),
):
    """Assign (or reassign) a designer to a project."""
    try:
        project = assignments.assign_designer(user, project_id, data.designer_id)
    except DesignDeskError as e:
        return error_response(e.message, e.status_code, notification="Failed to assign designer")

    return {
        "success": True,
        "message": "Designer assigned successfully!",
        "project": ProjectDetailResponse(**project),
    }


@router.delete("/projects/{project_id}/designer")
async def unassign_designer(
    project_id: str,
    request: Request,
    user: Identity = Depends(require_project_manager),
    assignments=Depends(get_assignment_service),
):
    """Clear a project's designer."""
    try:
        project = assignments.unassign_designer(user, project_id)
    except DesignDeskError as e:
        logger.warning(f"{request.method} {request.url.path}: {e.message}")
        return error_response(e.message, e.status_code, notification="Failed to unassign designer")

    return {
        "success": True,
        "message": "Designer unassigned successfully!",
        "project": ProjectDetailResponse(**project),
    }
