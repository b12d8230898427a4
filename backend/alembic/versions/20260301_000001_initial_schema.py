"""Initial schema: users, workspaces, projects, invites, notifications, goals, portfolios.

Revision ID: 20260301_000001
Revises:
Create Date: 2026-03-01 09:00:00.000000
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20260301_000001"
down_revision = None
branch_labels = None
depends_on = None


workspace_role_enum = sa.Enum("owner", "admin", "member", name="workspaceroleenum")
project_status_enum = sa.Enum("on-track", "at-risk", "off-track", "completed", name="projectstatusenum")
visibility_enum = sa.Enum("public", "invite-only", name="visibilityenum")
invite_status_enum = sa.Enum("pending", "accepted", "expired", "revoked", name="invitestatusenum")
invite_revoke_reason_enum = sa.Enum("cancelled", "rejected", name="inviterevokereasonenum")
notification_type_enum = sa.Enum(
    "invite_received",
    "invite_accepted",
    "invite_rejected",
    "invite_cancelled",
    "invite_expired",
    "member_added",
    name="notificationtypeenum",
)
goal_status_enum = sa.Enum("on-track", "at-risk", "off-track", "achieved", "no-status", name="goalstatusenum")
portfolio_status_enum = sa.Enum(
    "on-track", "at-risk", "off-track", "completed", "no-status", name="portfoliostatusenum"
)

_ENUMS = (
    workspace_role_enum,
    project_status_enum,
    visibility_enum,
    invite_status_enum,
    invite_revoke_reason_enum,
    notification_type_enum,
    goal_status_enum,
    portfolio_status_enum,
)


def _uuid():
    return postgresql.UUID(as_uuid=True)


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("default_workspace_id", _uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "auth_credentials",
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), primary_key=True, nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "workspaces",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("owner_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("members", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_workspaces_owner_id", "workspaces", ["owner_id"])

    op.create_table(
        "projects",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("workspace_id", _uuid(), sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("color", sa.String(), nullable=False, server_default="#4a6cf7"),
        sa.Column("status", project_status_enum, nullable=False, server_default="on-track"),
        sa.Column("visibility", visibility_enum, nullable=False, server_default="public"),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("created_by", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_projects_workspace_id", "projects", ["workspace_id"])

    op.create_table(
        "sections",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("project_id", _uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_sections_project_id", "sections", ["project_id"])

    op.create_table(
        "tasks",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("project_id", _uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("section_id", _uuid(), sa.ForeignKey("sections.id"), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("assignee_id", _uuid(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("due_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_tasks_project_id", "tasks", ["project_id"])

    op.create_table(
        "invites",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("inviter_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("invitee_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("workspace_id", _uuid(), sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("selected_projects", sa.JSON(), nullable=False),
        sa.Column("role", workspace_role_enum, nullable=False, server_default="member"),
        sa.Column("status", invite_status_enum, nullable=False, server_default="pending"),
        sa.Column("invite_token", sa.String(), nullable=False),
        sa.Column("invite_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiration_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("responded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_reason", invite_revoke_reason_enum, nullable=True),
        sa.Column("revoked_by", _uuid(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_index("ix_invites_invite_token", "invites", ["invite_token"], unique=True)
    op.create_index("ix_invites_invitee_id", "invites", ["invitee_id"])
    op.create_index("ix_invites_workspace_id", "invites", ["workspace_id"])

    op.create_table(
        "notifications",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("user_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("type", notification_type_enum, nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("context", sa.JSON(), nullable=True),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_notifications_user_id", "notifications", ["user_id"])

    op.create_table(
        "goals",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("workspace_id", _uuid(), sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("owner_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("parent_goal_id", _uuid(), sa.ForeignKey("goals.id"), nullable=True),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", goal_status_enum, nullable=False, server_default="no-status"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_private", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("members", sa.JSON(), nullable=False),
        sa.Column("projects", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_goals_workspace_id", "goals", ["workspace_id"])

    op.create_table(
        "portfolios",
        sa.Column("id", _uuid(), primary_key=True, nullable=False),
        sa.Column("workspace_id", _uuid(), sa.ForeignKey("workspaces.id"), nullable=False),
        sa.Column("owner_id", _uuid(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", portfolio_status_enum, nullable=False, server_default="no-status"),
        sa.Column("progress", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("projects", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_portfolios_workspace_id", "portfolios", ["workspace_id"])


def downgrade():
    op.drop_table("portfolios")
    op.drop_table("goals")
    op.drop_table("notifications")
    op.drop_table("invites")
    op.drop_table("tasks")
    op.drop_table("sections")
    op.drop_table("projects")
    op.drop_table("workspaces")
    op.drop_table("auth_credentials")
    op.drop_table("users")

    bind = op.get_bind()
    for enum_type in _ENUMS:
        enum_type.drop(bind, checkfirst=True)
