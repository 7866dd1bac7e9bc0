"""Resolved caller identity and the session resolver that builds it.

The resolver turns a session's ``user_id`` into an immutable Identity,
or into nothing at all: a user without a profile row is treated exactly
like a missing session.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from ..constants import DEFAULT_IDENTITY_NAME, ROLE_CLIENT, ROLE_PROJECT_MANAGER
from ..db import DatabaseManager
from ..db.models import Profile, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated user plus profile attributes."""
    id: str
    email: str
    role: str
    name: str = DEFAULT_IDENTITY_NAME
    created_at: Optional[str] = None

    @property
    def uuid(self) -> UUID:
        return UUID(self.id)

    @property
    def is_client(self) -> bool:
        return self.role == ROLE_CLIENT

    @property
    def is_project_manager(self) -> bool:
        return self.role == ROLE_PROJECT_MANAGER

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at,
        }


def identity_from_rows(user: User, profile: Profile) -> Identity:
    return Identity(
        id=str(user.user_id),
        email=user.email,
        role=profile.role,
        name=profile.name or DEFAULT_IDENTITY_NAME,
        created_at=user.created_at.isoformat() if user.created_at else None,
    )


class SessionResolver:
    """Resolves a session user id into an Identity."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def resolve(self, user_id: Optional[str]) -> Optional[Identity]:
        """Return the Identity for ``user_id``, or None when it cannot be built."""
        if not user_id:
            return None

        try:
            user_uuid = UUID(str(user_id))
        except ValueError:
            logger.warning(f"Session carries a malformed user id: {user_id!r}")
            return None

        try:
            with self.db.get_session() as session:
                user = session.query(User).filter(User.user_id == user_uuid).first()
                if not user:
                    return None

                profile = session.query(Profile).filter(Profile.user_id == user_uuid).first()
                if not profile:
                    logger.warning(f"User {user_id} has no profile; treating as signed out")
                    return None

                return identity_from_rows(user, profile)

        except Exception as e:
            logger.error(f"Failed to resolve session identity for {user_id}: {e}")
            return None
