"""Project visibility gate and project role documents.

WHAT:
    Decides whether a user may open a project, given the project's
    visibility, the user's direct project role and their workspace role.

    Decision order (first match wins):
        1. direct project role present        -> allowed, no change
        2. workspace owner / admin            -> allowed, enroll as Owner / Admin
        3. public project + any workspace role -> allowed, enroll as Member
        4. otherwise                          -> denied

WHY:
    Access checks used to write `project.roles` as a side effect. Here the
    enrollment is returned as data (`AccessDecision.granted_role`) and the
    caller decides whether to apply it with `enroll_project_member`.

REFERENCES:
    - workhub/services/project_service.py (applies or suppresses enrollment)
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from ..models import ProjectRoleEnum, VisibilityEnum, WorkspaceRoleEnum
from .membership import normalize_user_id
from .permissions import WorkspaceAction, can_perform


logger = logging.getLogger(__name__)

# Workspace role -> project role granted on lazy enrollment
WORKSPACE_TO_PROJECT_ROLE = {
    WorkspaceRoleEnum.owner: ProjectRoleEnum.owner,
    WorkspaceRoleEnum.admin: ProjectRoleEnum.admin,
}

_PROJECT_ROLE_LOOKUP = {role.value.lower(): role for role in ProjectRoleEnum}


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    granted_role: Optional[ProjectRoleEnum] = None

    @property
    def requires_enrollment(self) -> bool:
        return self.allowed and self.granted_role is not None


@dataclass(frozen=True)
class ProjectRoleEntry:
    user_id: str
    role: ProjectRoleEnum

    def to_document(self) -> dict:
        return {"userId": self.user_id, "role": self.role.value}


def _coerce_project_role(raw_role: Any) -> ProjectRoleEnum:
    if isinstance(raw_role, ProjectRoleEnum):
        return raw_role
    if isinstance(raw_role, str) and raw_role.strip().lower() in _PROJECT_ROLE_LOOKUP:
        return _PROJECT_ROLE_LOOKUP[raw_role.strip().lower()]
    logger.warning("[PROJECT_ACCESS] Unknown project role %r, treating as Member", raw_role)
    return ProjectRoleEnum.member


def decode_project_roles(raw: Any) -> List[ProjectRoleEntry]:
    """Decode `Project.roles`, skipping malformed elements; first occurrence wins."""
    if not isinstance(raw, (list, tuple)):
        return []
    entries: List[ProjectRoleEntry] = []
    seen = set()
    for element in raw:
        if not isinstance(element, dict):
            logger.warning("[PROJECT_ACCESS] Skipping malformed project role element: %r", element)
            continue
        user_id = normalize_user_id(element.get("userId", element.get("user_id")))
        if user_id is None or user_id in seen:
            continue
        seen.add(user_id)
        entries.append(ProjectRoleEntry(user_id=user_id, role=_coerce_project_role(element.get("role"))))
    return entries


def direct_project_role_for(project, user_id: Any) -> Optional[ProjectRoleEnum]:
    key = normalize_user_id(user_id)
    if key is None:
        return None
    for entry in decode_project_roles(getattr(project, "roles", None)):
        if entry.user_id == key:
            return entry.role
    return None


def _visibility_of(project) -> VisibilityEnum:
    value = getattr(project, "visibility", None)
    if value is None:
        return VisibilityEnum.public
    if isinstance(value, VisibilityEnum):
        return value
    try:
        return VisibilityEnum(value)
    except ValueError:
        # Unknown visibility never widens access
        return VisibilityEnum.invite_only


def authorize_project_access(
    project,
    workspace_role: Optional[WorkspaceRoleEnum],
    direct_project_role: Optional[ProjectRoleEnum],
) -> AccessDecision:
    """Decide project access. Pure: never mutates `project`."""
    if direct_project_role is not None:
        return AccessDecision(allowed=True)

    if workspace_role in WORKSPACE_TO_PROJECT_ROLE:
        return AccessDecision(allowed=True, granted_role=WORKSPACE_TO_PROJECT_ROLE[workspace_role])

    if workspace_role is not None and _visibility_of(project) == VisibilityEnum.public:
        return AccessDecision(allowed=True, granted_role=ProjectRoleEnum.member)

    return AccessDecision(allowed=False)


def upsert_project_role(project, user_id: Any, role: ProjectRoleEnum) -> Tuple[bool, Optional[ProjectRoleEnum]]:
    """Give `user_id` `role` on `project`. Returns `(changed, previous_role)`.

    Rewrites `project.roles` in the structured shape only when something
    actually changed.
    """
    key = normalize_user_id(user_id)
    if key is None:
        raise ValueError(f"Invalid user id: {user_id!r}")

    entries = decode_project_roles(project.roles)
    previous = None
    updated = []
    for entry in entries:
        if entry.user_id == key:
            previous = entry.role
            entry = ProjectRoleEntry(user_id=key, role=role)
        updated.append(entry)
    if previous is None:
        updated.append(ProjectRoleEntry(user_id=key, role=role))
    elif previous == role:
        return False, previous

    project.roles = [entry.to_document() for entry in updated]
    return True, previous


def enroll_project_member(project, user_id: Any, role: ProjectRoleEnum) -> bool:
    """Add `user_id` to `project.roles` unless they already hold any role.

    Idempotent: an existing entry is never downgraded or duplicated.
    """
    if direct_project_role_for(project, user_id) is not None:
        return False
    changed, _ = upsert_project_role(project, user_id, role)
    if changed:
        logger.info(
            "[PROJECT_ACCESS] Enrolled user %s in project %s as %s",
            normalize_user_id(user_id),
            getattr(project, "id", None),
            role.value,
        )
    return changed


def remove_project_role(project, user_id: Any) -> bool:
    key = normalize_user_id(user_id)
    entries = decode_project_roles(project.roles)
    remaining = [entry for entry in entries if entry.user_id != key]
    if len(remaining) == len(entries):
        return False
    project.roles = [entry.to_document() for entry in remaining]
    return True


def can_manage_project(workspace_role: Optional[WorkspaceRoleEnum], direct_project_role: Optional[ProjectRoleEnum]) -> bool:
    """Project Owner/Admin or workspace owner/admin may change visibility or delete."""
    if direct_project_role in (ProjectRoleEnum.owner, ProjectRoleEnum.admin):
        return True
    return can_perform(workspace_role, WorkspaceAction.change_project_visibility)


def can_change_project_role(
    workspace_role: Optional[WorkspaceRoleEnum],
    actor_project_role: Optional[ProjectRoleEnum],
    current_role: Optional[ProjectRoleEnum],
    new_role: ProjectRoleEnum,
) -> bool:
    """Whether an actor with project access may set a user's role to `new_role`.

    Plain members may only add users as `Member` when the target holds no
    elevated role. Granting or replacing `Admin` needs management rights.
    Granting or replacing `Owner` needs the project `Owner` or a workspace
    owner/admin; a project `Admin` cannot demote the project `Owner`.
    """
    if current_role == new_role:
        return True
    if ProjectRoleEnum.owner in (current_role, new_role):
        if actor_project_role == ProjectRoleEnum.owner:
            return True
        return can_perform(workspace_role, WorkspaceAction.change_project_visibility)
    if current_role == ProjectRoleEnum.admin or new_role != ProjectRoleEnum.member:
        return can_manage_project(workspace_role, actor_project_role)
    return True
