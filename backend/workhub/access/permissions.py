"""Workspace permission evaluator.

Every "is this user owner or admin?" decision in the services goes through
`can_perform` / `require_permission` so the rule table below is the single
source of truth.

Rule table (actor role -> allowed):

    action                          owner  admin  member
    updateWorkspace                  yes    yes    no
    inviteMember                     yes    yes    no
    addMemberDirect (target=member)  yes    yes    no
    addMemberDirect (target=admin)   yes    no     no
    removeMember (target=admin)      yes    no     no
    removeMember (target=member)     yes    yes    no
    promoteToAdmin                   yes    no     no
    deleteWorkspace                  yes    no     no
    createProject                    yes    yes    no
    changeProjectVisibility          yes    yes    no
    manageRollup                     yes    yes    no

The owner role is never assigned or removed through these actions.
"""

import enum
from typing import Any, Dict, FrozenSet, Optional

from ..models import WorkspaceRoleEnum
from .errors import InvariantViolation, PermissionDenied


class WorkspaceAction(str, enum.Enum):
    update_workspace = "updateWorkspace"
    invite_member = "inviteMember"
    add_member_direct = "addMemberDirect"
    promote_to_admin = "promoteToAdmin"
    remove_member = "removeMember"
    delete_workspace = "deleteWorkspace"
    create_project = "createProject"
    change_project_visibility = "changeProjectVisibility"
    manage_rollup = "manageRollup"


_OWNER = frozenset({WorkspaceRoleEnum.owner})
_OWNER_ADMIN = frozenset({WorkspaceRoleEnum.owner, WorkspaceRoleEnum.admin})

# Actions whose outcome does not depend on a target member
_ROLE_GATED: Dict[WorkspaceAction, FrozenSet[WorkspaceRoleEnum]] = {
    WorkspaceAction.update_workspace: _OWNER_ADMIN,
    WorkspaceAction.invite_member: _OWNER_ADMIN,
    WorkspaceAction.promote_to_admin: _OWNER,
    WorkspaceAction.delete_workspace: _OWNER,
    WorkspaceAction.create_project: _OWNER_ADMIN,
    WorkspaceAction.change_project_visibility: _OWNER_ADMIN,
    WorkspaceAction.manage_rollup: _OWNER_ADMIN,
}

# Actions keyed additionally by the target member's role
_TARGET_GATED: Dict[WorkspaceAction, Dict[WorkspaceRoleEnum, FrozenSet[WorkspaceRoleEnum]]] = {
    WorkspaceAction.add_member_direct: {
        WorkspaceRoleEnum.member: _OWNER_ADMIN,
        WorkspaceRoleEnum.admin: _OWNER,
    },
    WorkspaceAction.remove_member: {
        WorkspaceRoleEnum.member: _OWNER_ADMIN,
        WorkspaceRoleEnum.admin: _OWNER,
    },
}

# Actions that assign or strip a role; `owner` is never a legal target
_ROLE_CHANGING = frozenset({
    WorkspaceAction.add_member_direct,
    WorkspaceAction.remove_member,
    WorkspaceAction.promote_to_admin,
})


def _as_role(value: Any) -> Optional[WorkspaceRoleEnum]:
    if value is None or isinstance(value, WorkspaceRoleEnum):
        return value
    try:
        return WorkspaceRoleEnum(str(value).lower())
    except ValueError:
        return None


def _as_action(value: Any) -> Optional[WorkspaceAction]:
    if isinstance(value, WorkspaceAction):
        return value
    try:
        return WorkspaceAction(value)
    except ValueError:
        return None


def can_perform(actor_role: Any, action: Any, target_role: Any = None) -> bool:
    """Return whether `actor_role` may perform `action` (on a member holding `target_role`).

    Pure and total over roles and actions: a missing or unknown actor role
    and an unknown action both evaluate to False. A missing target role is
    treated as `member`.

    Raises:
        InvariantViolation: the action would assign or remove the owner role.
    """
    role = _as_role(actor_role)
    act = _as_action(action)
    target = _as_role(target_role) or WorkspaceRoleEnum.member

    if act in _ROLE_CHANGING and target == WorkspaceRoleEnum.owner:
        raise InvariantViolation(f"The owner role cannot be assigned or removed via {act.value}")

    if role is None or act is None:
        return False

    if act in _TARGET_GATED:
        return role in _TARGET_GATED[act].get(target, frozenset())
    return role in _ROLE_GATED.get(act, frozenset())


def require_permission(actor_role: Any, action: Any, target_role: Any = None) -> None:
    """Raise PermissionDenied unless `can_perform` allows the action."""
    if not can_perform(actor_role, action, target_role):
        act = _as_action(action)
        role = _as_role(actor_role)
        raise PermissionDenied(
            f"Insufficient permissions to {act.value if act else action}",
            action=act.value if act else str(action),
            role=role.value if role else None,
        )
