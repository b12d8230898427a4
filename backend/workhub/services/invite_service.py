"""Invite Service - workspace invitations and their state machine.

WHAT:
    pending -> accepted   (invitee accepts before expiry)
    pending -> expired    (detected lazily on any read, accept or validation)
    pending -> revoked    (inviter cancels, or invitee rejects; the reason is
                           recorded in `revoked_reason`)

    Terminal states have no exits. Expiry is never swept in the background.

WHY:
    Acceptance grants workspace membership, so it is checked strictly:
    unknown token -> NotFound, wrong user -> Unauthorized, expired or
    already handled -> BadRequest. Enrolling the invitee into the selected
    projects is best-effort: one failing project never blocks the others.

REFERENCES:
    - workhub/security.py (generate_invite_token)
    - workhub/services/membership_store.py (compare-and-swap membership write)
    - workhub/services/project_service.py (enroll_member)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..access.errors import BadRequest, Conflict, InvariantViolation, NotFound, Unauthorized
from ..access.membership import decode_members, encode_members, find_member, normalize_user_id, upsert_member
from ..access.permissions import WorkspaceAction, require_permission
from ..access.roles import resolve_workspace_role
from ..models import (
    Invite,
    InviteRevokeReasonEnum,
    InviteStatusEnum,
    NotificationTypeEnum,
    Project,
    ProjectRoleEnum,
    User,
    Workspace,
    WorkspaceRoleEnum,
)
from ..security import generate_invite_token
from .membership_store import mutate_workspace
from .notification_service import NotificationService
from .project_service import ProjectService


logger = logging.getLogger(__name__)

DIRECTION_SENT = "sent"
DIRECTION_RECEIVED = "received"


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class TokenValidation:
    valid: bool
    status: Optional[InviteStatusEnum]
    invite: Optional[Invite] = None
    reason: Optional[str] = None


class InviteService:
    def __init__(
        self,
        db: Session,
        ttl_hours: Optional[int] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        if ttl_hours is None:
            from ..deps import get_settings
            ttl_hours = get_settings().INVITE_TTL_HOURS
        self.db = db
        self.ttl = timedelta(hours=ttl_hours)
        self.clock = clock
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _now(self) -> datetime:
        return as_utc(self.clock())

    def _by_token(self, token: str) -> Optional[Invite]:
        if not token:
            return None
        return self.db.query(Invite).filter(Invite.invite_token == token).first()

    def _by_id(self, invite_id: UUID) -> Invite:
        invite = self.db.query(Invite).filter(Invite.id == invite_id).first()
        if not invite:
            raise NotFound("Invite not found", resource="invite")
        return invite

    def is_expired(self, invite: Invite) -> bool:
        return self._now() > as_utc(invite.expiration_time)

    def _expire_if_due(self, invite: Invite) -> bool:
        """Lazily move a pending, past-due invite to `expired`. Returns True if it did."""
        if invite.status != InviteStatusEnum.pending or not self.is_expired(invite):
            return False

        invite.status = InviteStatusEnum.expired
        self.db.commit()
        logger.info("[INVITE] Invite %s expired (was due %s)", invite.id, invite.expiration_time)
        self.notifications.notify(
            invite.inviter_id,
            NotificationTypeEnum.invite_expired,
            title="Invite expired",
            message="An invitation you sent expired before it was answered",
            context={"inviteId": str(invite.id), "workspaceId": str(invite.workspace_id)},
        )
        return True

    def _require_pending(self, invite: Invite) -> None:
        if self._expire_if_due(invite):
            raise BadRequest("Invite has expired")
        if invite.status != InviteStatusEnum.pending:
            raise BadRequest(f"Invite is already {invite.status.value}")

    def _selected_project_ids(self, invite: Invite) -> List[UUID]:
        ids = []
        for raw in invite.selected_projects or []:
            try:
                ids.append(raw if isinstance(raw, UUID) else UUID(str(raw)))
            except ValueError:
                logger.warning("[INVITE] Invite %s references malformed project id %r", invite.id, raw)
        return ids

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create_invite(
        self,
        inviter_id: UUID,
        invitee_id: UUID,
        workspace_id: UUID,
        selected_projects: Optional[Iterable[UUID]] = None,
        role: WorkspaceRoleEnum = WorkspaceRoleEnum.member,
    ) -> Invite:
        """Invite an existing user into a workspace (and optionally some of its projects).

        Raises:
            NotFound: workspace or invitee does not exist
            PermissionDenied: inviter may not invite (or may not grant `admin`)
            InvariantViolation: `role` is `owner`
            Conflict: invitee is already a member, or already has a pending invite
            BadRequest: a selected project is not part of the workspace
        """
        workspace = self.db.query(Workspace).filter(Workspace.id == workspace_id).first()
        if not workspace:
            raise NotFound("Workspace not found", resource="workspace")

        if role == WorkspaceRoleEnum.owner:
            raise InvariantViolation("Invites cannot grant the owner role")

        inviter_role = resolve_workspace_role(workspace, inviter_id)
        require_permission(inviter_role, WorkspaceAction.invite_member)
        if role == WorkspaceRoleEnum.admin:
            require_permission(inviter_role, WorkspaceAction.promote_to_admin, role)

        invitee = self.db.query(User).filter(User.id == invitee_id).first()
        if not invitee:
            raise NotFound("Invitee not found", resource="user")

        if resolve_workspace_role(workspace, invitee_id) is not None:
            raise Conflict("User is already a member of this workspace")

        pending = (
            self.db.query(Invite)
            .filter(
                Invite.workspace_id == workspace_id,
                Invite.invitee_id == invitee_id,
                Invite.status == InviteStatusEnum.pending,
            )
            .all()
        )
        for existing in pending:
            if not self._expire_if_due(existing):
                raise Conflict("A pending invite already exists for this user")

        project_ids = [p if isinstance(p, UUID) else UUID(str(p)) for p in (selected_projects or [])]
        if project_ids:
            found = (
                self.db.query(Project.id)
                .filter(Project.id.in_(project_ids), Project.workspace_id == workspace_id)
                .all()
            )
            if len({row[0] for row in found}) != len(set(project_ids)):
                raise BadRequest("Selected projects must belong to the workspace")

        now = self._now()
        invite = Invite(
            inviter_id=inviter_id,
            invitee_id=invitee_id,
            workspace_id=workspace_id,
            selected_projects=[str(pid) for pid in dict.fromkeys(project_ids)],
            role=role,
            status=InviteStatusEnum.pending,
            invite_token=generate_invite_token(),
            invite_time=now,
            expiration_time=now + self.ttl,
        )
        self.db.add(invite)
        self.db.commit()
        self.db.refresh(invite)
        logger.info("[INVITE] %s invited %s to workspace %s as %s", inviter_id, invitee_id, workspace_id, role.value)

        self.notifications.notify(
            invitee_id,
            NotificationTypeEnum.invite_received,
            title="Workspace invitation",
            message=f"You were invited to join {workspace.name}",
            context={"inviteId": str(invite.id), "workspaceId": str(workspace_id), "token": invite.invite_token},
        )
        return invite

    def validate_token(self, token: str) -> TokenValidation:
        """Check whether a token can still be accepted.

        Side effect: a pending invite past its expiration is moved to
        `expired`.
        """
        invite = self._by_token(token)
        if invite is None:
            return TokenValidation(valid=False, status=None, reason="not_found")

        if self._expire_if_due(invite):
            return TokenValidation(valid=False, status=invite.status, invite=invite, reason="expired")
        if invite.status != InviteStatusEnum.pending:
            return TokenValidation(valid=False, status=invite.status, invite=invite, reason=invite.status.value)
        return TokenValidation(valid=True, status=invite.status, invite=invite)

    def accept_invite(self, token: str, user_id: UUID) -> Invite:
        """Accept an invite on behalf of `user_id`.

        Adds the invitee to the workspace with the invite's role, then
        enrolls them in each selected project as `Member`.
        """
        invite = self._by_token(token)
        if invite is None:
            raise NotFound("Invite not found", resource="invite")
        if normalize_user_id(invite.invitee_id) != normalize_user_id(user_id):
            raise Unauthorized("This invite is addressed to another user")
        self._require_pending(invite)

        invite_id = invite.id

        def _join(workspace: Workspace) -> None:
            current = self._by_id(invite_id)
            if current.status != InviteStatusEnum.pending:
                raise BadRequest(f"Invite is already {current.status.value}")

            entries = decode_members(workspace.members)
            # A user added directly in the meantime keeps their existing role
            if find_member(entries, user_id) is None and normalize_user_id(user_id) != normalize_user_id(workspace.owner_id):
                entries, _ = upsert_member(entries, user_id, current.role)
                workspace.members = encode_members(entries)

            current.status = InviteStatusEnum.accepted
            current.responded_at = self._now()

        mutate_workspace(self.db, invite.workspace_id, _join)
        invite = self._by_id(invite_id)
        logger.info("[INVITE] Invite %s accepted by %s", invite.id, user_id)

        self._enroll_selected_projects(invite, user_id)

        self.notifications.notify(
            invite.inviter_id,
            NotificationTypeEnum.invite_accepted,
            title="Invite accepted",
            message="Your workspace invitation was accepted",
            context={"inviteId": str(invite.id), "workspaceId": str(invite.workspace_id), "userId": str(user_id)},
        )
        self.db.refresh(invite)
        return invite

    def _enroll_selected_projects(self, invite: Invite, user_id: UUID) -> List[UUID]:
        """Best-effort enrollment; returns the project ids that failed."""
        projects = ProjectService(self.db)
        failed = []
        for project_id in self._selected_project_ids(invite):
            try:
                project = self.db.query(Project).filter(Project.id == project_id).first()
                if project is None or project.workspace_id != invite.workspace_id:
                    raise NotFound("Project not found in invite workspace", resource="project")
                projects.enroll_member(project_id, user_id, ProjectRoleEnum.member)
            except Exception:
                self.db.rollback()
                failed.append(project_id)
                logger.exception("[INVITE] Could not add %s to project %s for invite %s", user_id, project_id, invite.id)
        return failed

    def cancel_invite(self, invite_id: UUID, user_id: UUID) -> Invite:
        """Inviter withdraws a pending invite."""
        invite = self._by_id(invite_id)
        if normalize_user_id(invite.inviter_id) != normalize_user_id(user_id):
            raise Unauthorized("Only the inviter can cancel this invite")
        return self._revoke(invite, user_id, InviteRevokeReasonEnum.cancelled)

    def reject_invite(self, invite_id: UUID, user_id: UUID) -> Invite:
        """Invitee declines a pending invite."""
        invite = self._by_id(invite_id)
        if normalize_user_id(invite.invitee_id) != normalize_user_id(user_id):
            raise Unauthorized("Only the invitee can reject this invite")
        return self._revoke(invite, user_id, InviteRevokeReasonEnum.rejected)

    def _revoke(self, invite: Invite, user_id: UUID, reason: InviteRevokeReasonEnum) -> Invite:
        self._require_pending(invite)

        invite.status = InviteStatusEnum.revoked
        invite.revoked_reason = reason
        invite.revoked_by = user_id
        invite.responded_at = self._now()
        self.db.commit()
        self.db.refresh(invite)
        logger.info("[INVITE] Invite %s revoked (%s) by %s", invite.id, reason.value, user_id)

        if reason == InviteRevokeReasonEnum.cancelled:
            recipient, notification_type, message = (
                invite.invitee_id, NotificationTypeEnum.invite_cancelled, "An invitation you received was cancelled",
            )
        else:
            recipient, notification_type, message = (
                invite.inviter_id, NotificationTypeEnum.invite_rejected, "Your workspace invitation was declined",
            )
        self.notifications.notify(
            recipient,
            notification_type,
            title="Invite " + ("cancelled" if reason == InviteRevokeReasonEnum.cancelled else "declined"),
            message=message,
            context={"inviteId": str(invite.id), "workspaceId": str(invite.workspace_id)},
        )
        return invite

    def get_invite(self, invite_id: UUID, user_id: UUID) -> Invite:
        """Inviter or invitee only. Applies lazy expiry."""
        invite = self._by_id(invite_id)
        key = normalize_user_id(user_id)
        if key not in (normalize_user_id(invite.inviter_id), normalize_user_id(invite.invitee_id)):
            raise Unauthorized("This invite belongs to other users")
        self._expire_if_due(invite)
        return invite

    def list_invites(
        self,
        user_id: UUID,
        direction: str = DIRECTION_RECEIVED,
        status: Optional[InviteStatusEnum] = None,
    ) -> List[Invite]:
        """Invites sent or received by the user, newest first, with lazy expiry applied."""
        if direction not in (DIRECTION_SENT, DIRECTION_RECEIVED):
            raise BadRequest("direction must be 'sent' or 'received'")

        column = Invite.inviter_id if direction == DIRECTION_SENT else Invite.invitee_id
        invites = (
            self.db.query(Invite)
            .filter(column == user_id)
            .order_by(Invite.invite_time.desc())
            .all()
        )
        for invite in invites:
            self._expire_if_due(invite)
        if status is not None:
            invites = [invite for invite in invites if invite.status == status]
        return invites
