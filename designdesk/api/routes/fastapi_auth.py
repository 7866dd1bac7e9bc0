"""FastAPI authentication routes.

Provides endpoints for registration, login, logout and the current user.
The session stores only the user id; role and name are re-read from the
profile on every request.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from designdesk.core.auth import AuthService, Identity
from designdesk.core.auth.identity import identity_from_rows
from designdesk.core.constants import ROLE_CLIENT
from ..deps import get_db_manager, get_optional_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# ── Request/Response models ──────────────────────────────────────────────

class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str
    role: str = ROLE_CLIENT


class LoginRequest(BaseModel):
    email: str
    password: str


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: str
    created_at: str | None = None


# ── Routes ───────────────────────────────────────────────────────────────

@router.post("/register", status_code=201)
async def register(data: RegisterRequest, db_manager=Depends(get_db_manager)):
    """Create an account and its profile. Does not sign the user in."""
    with db_manager.get_session() as db_session:
        auth_service = AuthService(db_session)
        identity = auth_service.sign_up(data.email, data.password, data.name, data.role)

    return {
        "success": True,
        "message": "Registration successful, please sign in",
        "user": UserResponse(**identity.to_dict()),
    }


@router.post("/login")
async def login(data: LoginRequest, request: Request, db_manager=Depends(get_db_manager)):
    """Authenticate with email and password."""
    with db_manager.get_session() as db_session:
        auth_service = AuthService(db_session)
        user = auth_service.login(data.email, data.password)

        if not user:
            raise HTTPException(status_code=401, detail="Invalid email or password")

        if user.profile is None:
            raise HTTPException(status_code=401, detail="Account has no profile")

        identity = identity_from_rows(user, user.profile)

    # Store in session
    request.session["user_id"] = identity.id

    return {"success": True, "user": UserResponse(**identity.to_dict())}


@router.post("/logout")
async def logout(request: Request):
    """Logout current user."""
    request.session.clear()
    return {"success": True, "message": "Logged out successfully"}


@router.get("/me")
async def get_me(user: Identity | None = Depends(get_optional_user)):
    """Get current logged-in user info."""
    if user is None:
        return {"success": True, "authenticated": False, "user": None}

    return {
        "success": True,
        "authenticated": True,
        "user": UserResponse(**user.to_dict()),
    }
