"""Workspace Service - workspace lifecycle and membership management.

WHAT:
    Creates, reads, updates and deletes workspaces and manages their
    `members` document. Every permission decision is delegated to
    `workhub.access.permissions`; every membership write goes through the
    compare-and-swap helpers in `membership_store`.

WHY:
    Routers stay thin and the same rules apply to HTTP requests, scripts
    and tests.

REFERENCES:
    - workhub/access/roles.py (resolve_workspace_role)
    - workhub/access/permissions.py (rule table)
    - workhub/routers/workspaces.py (HTTP adapter)
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ..access.errors import InvariantViolation, NotFound, PermissionDenied
from ..access.membership import (
    MemberEntry,
    decode_members,
    encode_members,
    find_member,
    normalize_user_id,
    remove_member_entry,
    repair_owner_membership,
    upsert_member,
)
from ..access.permissions import WorkspaceAction, require_permission
from ..access.roles import resolve_workspace_role
from ..access.visibility import remove_project_role
from ..models import NotificationTypeEnum, User, Workspace, WorkspaceRoleEnum
from .membership_store import mutate_workspace
from .notification_service import NotificationService
from .workspace_factory import create_workspace_for_user, create_workspace_with_owner


logger = logging.getLogger(__name__)


class WorkspaceService:
    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _load(self, workspace_id: UUID) -> Workspace:
        workspace = self.db.query(Workspace).filter(Workspace.id == workspace_id).first()
        if not workspace:
            raise NotFound("Workspace not found", resource="workspace")
        return workspace

    def _load_user(self, user_id: UUID) -> User:
        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFound("User not found", resource="user")
        return user

    def get_user_role(self, workspace_id: UUID, user_id: UUID) -> Optional[WorkspaceRoleEnum]:
        """Resolve the user's current role; None if they are not a member."""
        return resolve_workspace_role(self._load(workspace_id), user_id)

    def get_workspace(self, workspace_id: UUID, user_id: UUID) -> Workspace:
        """Return the workspace if `user_id` belongs to it."""
        workspace = self._load(workspace_id)
        if resolve_workspace_role(workspace, user_id) is None:
            raise PermissionDenied("Access denied to this workspace")
        return workspace

    def list_workspaces_for_user(self, user_id: UUID) -> List[Tuple[Workspace, WorkspaceRoleEnum]]:
        """Workspaces the user owns or belongs to, with their role in each.

        Membership lives in a JSON document (in two historical shapes), so
        the filter runs over decoded documents rather than in SQL.
        """
        results = []
        for workspace in self.db.query(Workspace).order_by(Workspace.created_at).all():
            role = resolve_workspace_role(workspace, user_id)
            if role is not None:
                results.append((workspace, role))
        return results

    def list_members(self, workspace_id: UUID, user_id: UUID) -> List[MemberEntry]:
        """Decoded members of the workspace, owner guaranteed first-class."""
        workspace = self.get_workspace(workspace_id, user_id)
        entries = decode_members(workspace.members)
        owner_key = normalize_user_id(workspace.owner_id)
        if find_member(entries, owner_key) is None:
            entries = [MemberEntry(user_id=owner_key, role=WorkspaceRoleEnum.owner)] + entries
        return [
            MemberEntry(user_id=e.user_id, role=resolve_workspace_role(workspace, e.user_id))
            for e in entries
        ]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def create_workspace(self, name: str, owner_id: UUID) -> Workspace:
        """Create a workspace owned (and joined) by `owner_id`."""
        self._load_user(owner_id)
        workspace = create_workspace_with_owner(self.db, name=name, owner_user_id=owner_id, flush_only=False)
        logger.info("[MEMBERS] Workspace %s created by %s", workspace.id, owner_id)
        return workspace

    def create_default_workspace_for_user(self, user: User) -> Workspace:
        """Registration flow: every new user gets "<First>'s Workspace"."""
        workspace = create_workspace_for_user(self.db, owner_user_id=user.id, full_name=user.name)
        user.default_workspace_id = workspace.id
        self.db.commit()
        self.db.refresh(workspace)
        return workspace

    def update_workspace(self, workspace_id: UUID, user_id: UUID, name: Optional[str] = None) -> Workspace:
        workspace = self._load(workspace_id)
        require_permission(resolve_workspace_role(workspace, user_id), WorkspaceAction.update_workspace)

        if name is not None:
            workspace.name = name
        self.db.commit()
        self.db.refresh(workspace)
        return workspace

    def delete_workspace(self, workspace_id: UUID, user_id: UUID) -> None:
        """Owner only. Cascades to projects (with sections and tasks), invites, goals and portfolios."""
        workspace = self._load(workspace_id)
        require_permission(resolve_workspace_role(workspace, user_id), WorkspaceAction.delete_workspace)

        (
            self.db.query(User)
            .filter(User.default_workspace_id == workspace_id)
            .update({User.default_workspace_id: None}, synchronize_session=False)
        )
        self.db.delete(workspace)
        self.db.commit()
        logger.info("[MEMBERS] Workspace %s deleted by %s", workspace_id, user_id)

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add_member(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        user_id: UUID,
        role: WorkspaceRoleEnum = WorkspaceRoleEnum.member,
    ) -> Workspace:
        """Add `user_id` directly (no invite). Adding an existing member is a no-op."""
        workspace = self._load(workspace_id)
        require_permission(resolve_workspace_role(workspace, actor_id), WorkspaceAction.add_member_direct, role)
        target = self._load_user(user_id)

        if resolve_workspace_role(workspace, user_id) is not None:
            logger.info("[MEMBERS] User %s already in workspace %s, nothing to add", user_id, workspace_id)
            return workspace

        def _add(ws: Workspace) -> bool:
            entries = decode_members(ws.members)
            if find_member(entries, user_id) is not None:
                return False
            entries, _ = upsert_member(entries, user_id, role)
            ws.members = encode_members(entries)
            return True

        added = mutate_workspace(self.db, workspace_id, _add)
        workspace = self._load(workspace_id)

        if added:
            logger.info("[MEMBERS] Added %s to workspace %s as %s", user_id, workspace_id, role.value)
            NotificationService(self.db).notify(
                target.id,
                NotificationTypeEnum.member_added,
                title="Added to workspace",
                message=f"You were added to {workspace.name} as {role.value}",
                context={"workspaceId": str(workspace_id), "role": role.value},
            )
        return workspace

    def update_member_role(
        self,
        workspace_id: UUID,
        actor_id: UUID,
        user_id: UUID,
        role: WorkspaceRoleEnum,
    ) -> Workspace:
        """Promote or demote between `admin` and `member` (owner only)."""
        workspace = self._load(workspace_id)
        require_permission(resolve_workspace_role(workspace, actor_id), WorkspaceAction.promote_to_admin, role)

        if normalize_user_id(user_id) == normalize_user_id(workspace.owner_id):
            raise InvariantViolation("The owner's role cannot be changed")
        if resolve_workspace_role(workspace, user_id) is None:
            raise NotFound("Member not found", resource="member")

        def _update(ws: Workspace) -> None:
            entries = decode_members(ws.members)
            if find_member(entries, user_id) is None:
                raise NotFound("Member not found", resource="member")
            entries, changed = upsert_member(entries, user_id, role)
            if changed:
                ws.members = encode_members(entries)

        mutate_workspace(self.db, workspace_id, _update)
        logger.info("[MEMBERS] %s set role of %s to %s in workspace %s", actor_id, user_id, role.value, workspace_id)
        return self._load(workspace_id)

    def remove_member(self, workspace_id: UUID, actor_id: UUID, user_id: UUID) -> Workspace:
        """Remove a member and their direct roles on the workspace's projects.

        The required actor role depends on the target's role. Removing a
        user who is not a member is a no-op.
        """
        workspace = self._load(workspace_id)
        actor_role = resolve_workspace_role(workspace, actor_id)

        if normalize_user_id(user_id) == normalize_user_id(workspace.owner_id):
            target_role = WorkspaceRoleEnum.owner
        else:
            target_role = resolve_workspace_role(workspace, user_id)

        if target_role is None:
            require_permission(actor_role, WorkspaceAction.remove_member, WorkspaceRoleEnum.member)
            return workspace

        require_permission(actor_role, WorkspaceAction.remove_member, target_role)

        def _remove(ws: Workspace) -> None:
            entries, changed = remove_member_entry(decode_members(ws.members), user_id)
            if changed:
                ws.members = encode_members(entries)
            for project in ws.projects:
                remove_project_role(project, user_id)

        mutate_workspace(self.db, workspace_id, _remove)
        logger.info("[MEMBERS] %s removed %s from workspace %s", actor_id, user_id, workspace_id)
        return self._load(workspace_id)

    def leave_workspace(self, workspace_id: UUID, user_id: UUID) -> None:
        """A non-owner member removes themselves."""
        workspace = self._load(workspace_id)
        role = resolve_workspace_role(workspace, user_id)
        if role is None:
            raise NotFound("Member not found", resource="member")
        if role == WorkspaceRoleEnum.owner:
            raise InvariantViolation("The owner cannot leave their own workspace")

        def _leave(ws: Workspace) -> None:
            entries, changed = remove_member_entry(decode_members(ws.members), user_id)
            if changed:
                ws.members = encode_members(entries)
            for project in ws.projects:
                remove_project_role(project, user_id)

        mutate_workspace(self.db, workspace_id, _leave)

    def repair_membership(self, workspace_id: UUID) -> Workspace:
        """Run owner-membership repair for one workspace and persist it."""
        return mutate_workspace(self.db, workspace_id, repair_owner_membership)
