"""
SQLAlchemy ORM Models for DesignDesk

Role-based project coordination models:
- User: Authentication record (email, password hash)
- Profile: Display name and role attached to a user
- Project: Client-owned project with an optional assigned designer
- ProjectFile: Uploaded file metadata; the bytes live in the blob store
"""

from sqlalchemy import (
    Column, String, Text, TIMESTAMP, ForeignKey, Index, TypeDecorator,
)
from sqlalchemy.orm import relationship, declarative_base
from sqlalchemy.dialects.postgresql import UUID as PostgreSQL_UUID
import uuid
from datetime import datetime

Base = declarative_base()


# UUID type that works with both PostgreSQL and SQLite
class UUID(TypeDecorator):
    """Platform-independent UUID type.

    Uses PostgreSQL's UUID type when available, otherwise stores as String(36).
    """
    impl = String
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgreSQL_UUID(as_uuid=True))
        else:
            return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return value
        else:
            if isinstance(value, uuid.UUID):
                return str(value)
            else:
                return str(uuid.UUID(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        elif dialect.name == 'postgresql':
            return value
        else:
            if isinstance(value, uuid.UUID):
                return value
            else:
                return uuid.UUID(value)


# =============================================================================
# Identity Models
# =============================================================================

class User(Base):
    """Authenticated account. Role and name live on the Profile."""
    __tablename__ = "users"

    user_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    last_active = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<User(user_id={self.user_id}, email='{self.email}')>"


class Profile(Base):
    """Profile row keyed by user id.

    Roles:
    - client: Creates projects and sees only their own
    - project_manager: Sees and edits everything, assigns designers
    - designer: Sees only projects assigned to them
    """
    __tablename__ = "profiles"
    __table_args__ = (
        Index('idx_profiles_role', 'role'),
    )

    user_id = Column(UUID(), ForeignKey("users.user_id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False)       # client, project_manager, designer
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="profile")

    def __repr__(self):
        return f"<Profile(user_id={self.user_id}, role='{self.role}')>"


# =============================================================================
# Project Models
# =============================================================================

class Project(Base):
    """Design project owned by a client."""
    __tablename__ = "projects"
    __table_args__ = (
        Index('idx_client_projects', 'client_id', 'created_at'),
        Index('idx_designer_projects', 'designer_id', 'created_at'),
    )

    project_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    client_id = Column(UUID(), ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    designer_id = Column(UUID(), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)
    updated_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Project(project_id={self.project_id}, title='{self.title}', designer={self.designer_id})>"


class ProjectFile(Base):
    """File attached to a project."""
    __tablename__ = "project_files"
    __table_args__ = (
        Index('idx_project_files_project', 'project_id'),
    )

    file_id = Column(UUID(), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(), ForeignKey("projects.project_id", ondelete="CASCADE"), nullable=False)
    file_path = Column(String(1024), unique=True, nullable=False)    # <project_id>/<stored name>
    file_name = Column(String(255), nullable=False)                  # original upload name
    uploaded_by = Column(UUID(), ForeignKey("users.user_id", ondelete="SET NULL"), nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<ProjectFile(file_id={self.file_id}, name='{self.file_name}')>"
