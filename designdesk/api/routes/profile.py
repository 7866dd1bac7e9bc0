"""Profile routes: view and rename the signed-in identity."""

import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from designdesk.core.auth import AuthService, Identity
from ..core import success_response
from ..deps import get_current_user, get_db_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileUpdate(BaseModel):
    name: str


@router.get("")
async def get_profile(user: Identity = Depends(get_current_user)):
    """Return the caller's identity (email and role are read-only)."""
    return success_response(user=user.to_dict())


@router.patch("")
async def update_profile(
    data: ProfileUpdate,
    user: Identity = Depends(get_current_user),
    db_manager=Depends(get_db_manager),
):
    """Change the caller's display name."""
    with db_manager.get_session() as db_session:
        auth_service = AuthService(db_session)
        profile = auth_service.get_profile(user.id)
        if profile is not None and profile.name == data.name.strip():
            return success_response("No changes to update", user=user.to_dict())

        profile = auth_service.update_name(user.id, data.name)
        name = profile.name

    updated = {**user.to_dict(), "name": name}
    return success_response("Profile updated successfully", user=updated)
