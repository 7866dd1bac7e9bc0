"""Authentication service: registration, login, and profile updates."""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from passlib.context import CryptContext
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..constants import ALL_ROLES, MIN_PASSWORD_LENGTH
from ..db.models import Profile, User
from ..exceptions import ConflictError, NotFoundError, ValidationError
from .identity import Identity, identity_from_rows

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:
    """Credential storage and verification over a database session."""

    def __init__(self, db_session: Session):
        self._session = db_session

    @staticmethod
    def hash_password(password: str) -> str:
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        try:
            return pwd_context.verify(password, password_hash)
        except (ValueError, TypeError):
            return False

    def sign_up(self, email: str, password: str, name: str, role: str) -> Identity:
        """Create a user and upsert its profile.

        Raises:
            ValidationError: Missing fields, short password, or unknown role
            ConflictError: Email already registered
        """
        email = (email or "").strip().lower()
        name = (name or "").strip()
        if not email or not (password or "").strip() or not name:
            raise ValidationError("Please fill in all required fields")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if role not in ALL_ROLES:
            raise ValidationError(f"Invalid role: {role}")

        existing = self._session.query(User).filter(User.email == email).first()
        if existing:
            raise ConflictError("User already registered")

        user = User(
            user_id=uuid4(),
            email=email,
            password_hash=self.hash_password(password),
        )
        self._session.add(user)
        try:
            self._session.flush()
        except IntegrityError as e:
            # A concurrent sign-up took the email after the check above
            logger.info(f"Duplicate registration for {email}: {e.orig}")
            raise ConflictError("User already registered") from e

        profile = self._session.merge(Profile(user_id=user.user_id, role=role, name=name))
        self._session.flush()

        logger.info(f"Registered user {user.user_id} as {role}")
        return identity_from_rows(user, profile)

    def login(self, email: str, password: str) -> Optional[User]:
        """Return the user when the credentials match, else None."""
        email = (email or "").strip().lower()
        user = self._session.query(User).filter(User.email == email).first()
        if not user or not self.verify_password(password, user.password_hash):
            logger.info(f"Failed login for {email}")
            return None

        user.last_active = datetime.utcnow()
        return user

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        try:
            user_uuid = UUID(str(user_id))
        except ValueError:
            return None
        return self._session.query(User).filter(User.user_id == user_uuid).first()

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self._session.query(Profile).filter(Profile.user_id == UUID(user_id)).first()

    def update_name(self, user_id: str, name: str) -> Profile:
        """Change the display name on the caller's own profile."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name cannot be empty")

        profile = self.get_profile(user_id)
        if not profile:
            raise NotFoundError("Profile not found")

        profile.name = name
        profile.updated_at = datetime.utcnow()
        logger.info(f"Updated name for user {user_id}")
        return profile
