"""Pydantic schemas for request/response payloads."""

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, constr

from .models import (
    ActivityTypeEnum,
    GoalStatusEnum,
    InviteRevokeReasonEnum,
    InviteStatusEnum,
    PortfolioStatusEnum,
    ProjectRoleEnum,
    ProjectStatusEnum,
    VisibilityEnum,
    WorkspaceRoleEnum,
)


# Auth ----------------------------------------------------------

class UserCreate(BaseModel):
    """Payload for user registration."""

    email: EmailStr = Field(description="User email address")
    name: str = Field(description="User full name")
    password: constr(min_length=8) = Field(description="Password (minimum 8 characters)")

    model_config = {
        "json_schema_extra": {
            "example": {
                "email": "john.doe@company.com",
                "name": "John Doe",
                "password": "securePassword123"
            }
        }
    }


class UserLogin(BaseModel):
    """Payload for user login."""

    email: EmailStr = Field(description="User email address")
    password: str = Field(description="User password")


class UserOut(BaseModel):
    """Public representation of a user."""

    id: UUID = Field(description="Unique user identifier")
    email: EmailStr = Field(description="User email address")
    name: str = Field(description="User display name")
    default_workspace_id: Optional[UUID] = Field(
        default=None,
        description="Workspace created for the user at registration"
    )

    model_config = {"from_attributes": True}


class LoginResponse(BaseModel):
    """Response returned after successful login."""

    user: UserOut = Field(description="Authenticated user")
    access_token: str = Field(description="JWT, also set as the `access_token` cookie")


# Generic -------------------------------------------------------

class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str = Field(description="Error message")

    model_config = {
        "json_schema_extra": {
            "example": {"detail": "Insufficient permissions to inviteMember"}
        }
    }


class SuccessResponse(BaseModel):
    """Standard success response."""

    status: str = Field(default="ok", description="Status message")
    detail: str | None = Field(default=None, description="Success message")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status")


# Workspaces ----------------------------------------------------

class WorkspaceCreate(BaseModel):
    """Payload for creating a new workspace."""

    name: str = Field(min_length=1, max_length=100, description="Workspace name")


class WorkspaceUpdate(BaseModel):
    """Payload for updating workspace information."""

    name: Optional[str] = Field(default=None, min_length=1, max_length=100, description="New workspace name")


class WorkspaceMemberOut(BaseModel):
    """A decoded workspace member."""

    user_id: str = Field(description="Member user id")
    role: WorkspaceRoleEnum = Field(description="Member role")


class WorkspaceOut(BaseModel):
    """Workspace details."""

    id: UUID = Field(description="Unique workspace identifier")
    name: str = Field(description="Workspace name")
    owner_id: UUID = Field(description="Workspace owner")
    created_at: Optional[datetime] = Field(default=None, description="Creation timestamp")

    model_config = {"from_attributes": True}


class WorkspaceWithRole(WorkspaceOut):
    """Workspace plus the current user's role in it."""

    role: WorkspaceRoleEnum = Field(description="Current user's role")


class WorkspaceListResponse(BaseModel):
    """Response for listing workspaces."""

    workspaces: List[WorkspaceWithRole] = Field(description="Workspaces the user belongs to")
    total: int = Field(description="Total number of workspaces")


class WorkspaceMemberCreate(BaseModel):
    """Payload for adding a member directly (without an invite)."""

    user_id: UUID = Field(description="User to add")
    role: WorkspaceRoleEnum = Field(default=WorkspaceRoleEnum.member, description="Role to grant")


class WorkspaceMemberUpdate(BaseModel):
    """Payload for changing a member's role."""

    role: WorkspaceRoleEnum = Field(description="New role (admin or member)")


# Projects ------------------------------------------------------

class ProjectCreate(BaseModel):
    workspace_id: UUID = Field(description="Owning workspace")
    name: str = Field(min_length=1, max_length=200, description="Project name")
    description: Optional[str] = Field(default=None, description="Project description")
    color: Optional[str] = Field(default=None, description="Display colour, e.g. #4a6cf7")
    visibility: VisibilityEnum = Field(default=VisibilityEnum.public, description="public or invite-only")
    status: ProjectStatusEnum = Field(default=ProjectStatusEnum.on_track, description="Project status")


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    color: Optional[str] = None
    status: Optional[ProjectStatusEnum] = None
    visibility: Optional[VisibilityEnum] = None


class ProjectRoleOut(BaseModel):
    userId: str = Field(description="User id")
    role: ProjectRoleEnum = Field(description="Owner, Admin or Member")


class ProjectOut(BaseModel):
    id: UUID
    workspace_id: UUID
    name: str
    description: Optional[str] = None
    color: str
    status: ProjectStatusEnum
    visibility: VisibilityEnum
    roles: List[ProjectRoleOut] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ProjectMemberCreate(BaseModel):
    user_id: UUID = Field(description="Workspace member to add to the project")
    role: ProjectRoleEnum = Field(default=ProjectRoleEnum.member, description="Project role")


class ActivityLogOut(BaseModel):
    """One entry of a project's activity feed."""

    id: UUID
    project_id: UUID
    type: ActivityTypeEnum
    user_id: Optional[UUID] = None
    user_name: str
    content: str
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


# Invites -------------------------------------------------------

class InviteCreate(BaseModel):
    """Payload for inviting an existing user to a workspace."""

    workspace_id: UUID = Field(description="Workspace to invite into")
    invitee_id: Optional[UUID] = Field(default=None, description="Invitee user id")
    invitee_email: Optional[EmailStr] = Field(default=None, description="Invitee email (alternative to id)")
    selected_projects: List[UUID] = Field(default_factory=list, description="Projects granted on acceptance")
    role: WorkspaceRoleEnum = Field(default=WorkspaceRoleEnum.member, description="Workspace role to grant")


class InviteAccept(BaseModel):
    token: str = Field(min_length=1, description="Invite token")


class InviteOut(BaseModel):
    id: UUID
    inviter_id: UUID
    invitee_id: UUID
    workspace_id: UUID
    selected_projects: List[str] = Field(default_factory=list)
    role: WorkspaceRoleEnum
    status: InviteStatusEnum
    invite_time: datetime
    expiration_time: datetime
    responded_at: Optional[datetime] = None
    revoked_reason: Optional[InviteRevokeReasonEnum] = None

    model_config = {"from_attributes": True}


class InviteCreatedOut(InviteOut):
    """Returned to the inviter only: includes the secret token."""

    invite_token: str


class InviteValidationOut(BaseModel):
    valid: bool
    status: Optional[InviteStatusEnum] = None
    reason: Optional[str] = None
    workspace_id: Optional[UUID] = None
    expiration_time: Optional[datetime] = None


InviteDirection = Literal["sent", "received"]


# Goals / portfolios --------------------------------------------

class GoalCreate(BaseModel):
    workspace_id: UUID
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    is_private: bool = False
    members: List[UUID] = Field(default_factory=list)
    projects: List[UUID] = Field(default_factory=list)
    parent_goal_id: Optional[UUID] = None
    status: GoalStatusEnum = GoalStatusEnum.no_status


class GoalUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[GoalStatusEnum] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    is_private: Optional[bool] = None
    members: Optional[List[UUID]] = None


class GoalOut(BaseModel):
    id: UUID
    workspace_id: UUID
    owner_id: UUID
    parent_goal_id: Optional[UUID] = None
    title: str
    description: Optional[str] = None
    status: GoalStatusEnum
    progress: int
    is_private: bool
    members: List[str] = Field(default_factory=list)
    projects: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class PortfolioCreate(BaseModel):
    workspace_id: UUID
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    projects: List[UUID] = Field(default_factory=list)


class PortfolioUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    projects: Optional[List[UUID]] = None


class PortfolioOut(BaseModel):
    id: UUID
    workspace_id: UUID
    owner_id: UUID
    name: str
    description: Optional[str] = None
    status: PortfolioStatusEnum
    progress: int
    projects: List[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}
