"""SQLAlchemy ORM models and enums.

This module defines the domain schema using UUID primary keys and explicit
relationships. Authentication secrets are stored in a separate
`auth_credentials` table to keep the domain `users` table clean.

Membership collections (`Workspace.members`, `Project.roles`) are stored as
JSON documents so that rows written before the `{userId, role}` format
existed can still be loaded. They are decoded once, at the edge, by
`workhub.access.membership`.
"""

import uuid
from datetime import datetime, timezone
import enum

from sqlalchemy import Column, String, DateTime, Enum, Integer, ForeignKey, JSON, Text, Boolean
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, declarative_base


# Single Base used by the entire application
Base = declarative_base()


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _enum_values(obj):
    return [e.value for e in obj]


# Enums ---------------------------------------------------------

class WorkspaceRoleEnum(str, enum.Enum):
    owner = "owner"
    admin = "admin"
    member = "member"


class ProjectRoleEnum(str, enum.Enum):
    """Project-level roles. Capitalised to match persisted project documents."""
    owner = "Owner"
    admin = "Admin"
    member = "Member"


class ProjectStatusEnum(str, enum.Enum):
    on_track = "on-track"
    at_risk = "at-risk"
    off_track = "off-track"
    completed = "completed"


class VisibilityEnum(str, enum.Enum):
    public = "public"
    invite_only = "invite-only"


class InviteStatusEnum(str, enum.Enum):
    pending = "pending"
    accepted = "accepted"
    expired = "expired"
    revoked = "revoked"


class InviteRevokeReasonEnum(str, enum.Enum):
    """Who terminated a revoked invite."""
    cancelled = "cancelled"  # inviter withdrew it
    rejected = "rejected"    # invitee declined it


class NotificationTypeEnum(str, enum.Enum):
    invite_received = "invite_received"
    invite_accepted = "invite_accepted"
    invite_rejected = "invite_rejected"
    invite_cancelled = "invite_cancelled"
    invite_expired = "invite_expired"
    member_added = "member_added"


class ActivityTypeEnum(str, enum.Enum):
    created = "created"
    updated = "updated"
    commented = "commented"
    completed = "completed"


class GoalStatusEnum(str, enum.Enum):
    on_track = "on-track"
    at_risk = "at-risk"
    off_track = "off-track"
    achieved = "achieved"
    no_status = "no-status"


class PortfolioStatusEnum(str, enum.Enum):
    on_track = "on-track"
    at_risk = "at-risk"
    off_track = "off-track"
    completed = "completed"
    no_status = "no-status"


# Core models ----------------------------------------------------

class User(Base):
    """User represents a person who can access the system.

    Every user gets a workspace of their own at registration time
    (`default_workspace_id`) and may join any number of other workspaces
    through invites or direct adds.
    """
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)

    # Not a foreign key: workspaces reference users through owner_id and a
    # second FK in the other direction would make the schema cyclic.
    default_workspace_id = Column(UUID(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    # 1:1 credential for local password-based auth
    credential = relationship("AuthCredential", back_populates="user", uselist=False, cascade="all, delete-orphan")

    def __str__(self):
        return f"{self.name} ({self.email})"


class AuthCredential(Base):
    """Password hash for local authentication, keyed by user."""
    __tablename__ = "auth_credentials"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), primary_key=True)
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    user = relationship("User", back_populates="credential")


class Workspace(Base):
    """Workspace is the top-level container for projects, goals and portfolios.

    `members` holds an ordered list of `{"userId": ..., "role": ...}`
    documents. Older rows may still hold a bare list of user ids; see
    `workhub.access.membership.decode_members`.

    `version` is a SQLAlchemy version counter: concurrent writers that both
    read the same version cannot both commit a membership change.
    """
    __tablename__ = "workspaces"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    members = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    owner = relationship("User")
    projects = relationship("Project", back_populates="workspace", cascade="all, delete-orphan")
    invites = relationship("Invite", back_populates="workspace", cascade="all, delete-orphan")
    goals = relationship("Goal", back_populates="workspace", cascade="all, delete-orphan")
    portfolios = relationship("Portfolio", back_populates="workspace", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    def __str__(self):
        return self.name


class Project(Base):
    """Project inside a workspace.

    `roles` holds `{"userId": ..., "role": "Owner"|"Admin"|"Member"}`
    documents. Users reach a project either through a direct role or through
    the visibility gate (`workhub.access.visibility`).
    """
    __tablename__ = "projects"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String, nullable=False, default="#4a6cf7")
    status = Column(
        Enum(ProjectStatusEnum, values_callable=_enum_values),
        default=ProjectStatusEnum.on_track,
        nullable=False,
    )
    visibility = Column(
        Enum(VisibilityEnum, values_callable=_enum_values),
        default=VisibilityEnum.public,
        nullable=False,
    )
    roles = Column(JSON, nullable=False, default=list)
    created_by = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), default=utc_now)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now)

    workspace = relationship("Workspace", back_populates="projects")
    sections = relationship("Section", back_populates="project", cascade="all, delete-orphan")
    tasks = relationship("Task", back_populates="project", cascade="all, delete-orphan")
    activity_logs = relationship("ActivityLog", back_populates="project", cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}

    def __str__(self):
        return self.name


class Section(Base):
    """Board column inside a project."""
    __tablename__ = "sections"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    project = relationship("Project", back_populates="sections")
    tasks = relationship("Task", back_populates="section")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False, index=True)
    section_id = Column(UUID(as_uuid=True), ForeignKey("sections.id"), nullable=True)
    title = Column(String, nullable=False)
    assignee_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)
    completed = Column(Boolean, default=False, nullable=False)

    project = relationship("Project", back_populates="tasks")
    section = relationship("Section", back_populates="tasks")


class ActivityLog(Base):
    """Per-project activity feed entry. Written best-effort."""
    __tablename__ = "activity_logs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id = Column(UUID(as_uuid=True), ForeignKey("projects.id"), nullable=False, index=True)
    type = Column(Enum(ActivityTypeEnum, values_callable=_enum_values), nullable=False)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=True)
    user_name = Column(String, nullable=False, default="System")
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, index=True)

    project = relationship("Project", back_populates="activity_logs")


class Invite(Base):
    """Invitation of an existing user into a workspace (and optionally projects).

    Status moves pending -> accepted | expired | revoked and never leaves a
    terminal state. Expiry is detected lazily whenever the invite is read.
    """
    __tablename__ = "invites"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    inviter_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    invitee_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    selected_projects = Column(JSON, nullable=False, default=list)
    role = Column(
        Enum(WorkspaceRoleEnum, values_callable=_enum_values),
        default=WorkspaceRoleEnum.member,
        nullable=False,
    )
    status = Column(
        Enum(InviteStatusEnum, values_callable=_enum_values),
        default=InviteStatusEnum.pending,
        nullable=False,
    )
    invite_token = Column(String, unique=True, index=True, nullable=False)
    invite_time = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    expiration_time = Column(DateTime(timezone=True), nullable=False)
    responded_at = Column(DateTime(timezone=True), nullable=True)
    revoked_reason = Column(Enum(InviteRevokeReasonEnum, values_callable=_enum_values), nullable=True)
    revoked_by = Column(UUID(as_uuid=True), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    workspace = relationship("Workspace", back_populates="invites")
    inviter = relationship("User", foreign_keys=[inviter_id])
    invitee = relationship("User", foreign_keys=[invitee_id])

    __mapper_args__ = {"version_id_col": version}


class Notification(Base):
    """Stored, per-user notification. Written best-effort."""
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(NotificationTypeEnum, values_callable=_enum_values), nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    context = Column(JSON, nullable=True)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class Goal(Base):
    """Roll-up goal. Private goals are visible to their owner and members only."""
    __tablename__ = "goals"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    parent_goal_id = Column(UUID(as_uuid=True), ForeignKey("goals.id"), nullable=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(GoalStatusEnum, values_callable=_enum_values),
        default=GoalStatusEnum.no_status,
        nullable=False,
    )
    progress = Column(Integer, default=0, nullable=False)
    is_private = Column(Boolean, default=False, nullable=False)
    members = Column(JSON, nullable=False, default=list)
    projects = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    workspace = relationship("Workspace", back_populates="goals")
    parent = relationship("Goal", remote_side=[id])


class Portfolio(Base):
    """Roll-up of projects inside a workspace."""
    __tablename__ = "portfolios"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    workspace_id = Column(UUID(as_uuid=True), ForeignKey("workspaces.id"), nullable=False, index=True)
    owner_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(
        Enum(PortfolioStatusEnum, values_callable=_enum_values),
        default=PortfolioStatusEnum.no_status,
        nullable=False,
    )
    progress = Column(Integer, default=0, nullable=False)
    projects = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=utc_now)

    workspace = relationship("Workspace", back_populates="portfolios")
