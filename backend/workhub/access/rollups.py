"""Access rules for goals and portfolios.

Goals and portfolios carry no roles of their own:
    - a goal is visible to any workspace member unless it is private, in
      which case only its owner and its `members` may see it;
    - a portfolio is visible to any workspace member;
    - both may be edited by their owner or by a workspace owner/admin.
"""

import math
from typing import Any, Iterable, List, Optional, Tuple

from ..models import PortfolioStatusEnum, ProjectStatusEnum, WorkspaceRoleEnum
from .membership import normalize_user_id
from .permissions import WorkspaceAction, can_perform


def goal_member_ids(goal) -> List[str]:
    ids = []
    for raw in getattr(goal, "members", None) or []:
        key = normalize_user_id(raw)
        if key is not None and key not in ids:
            ids.append(key)
    return ids


def ensure_goal_owner_member(goal) -> bool:
    """Add the goal owner to `goal.members` if missing. Returns True if changed."""
    owner_key = normalize_user_id(goal.owner_id)
    members = goal_member_ids(goal)
    if owner_key is None or owner_key in members:
        if members != list(goal.members or []):
            goal.members = members
            return True
        return False
    goal.members = members + [owner_key]
    return True


def _is_owner(resource, user_id: Any) -> bool:
    key = normalize_user_id(user_id)
    return key is not None and key == normalize_user_id(getattr(resource, "owner_id", None))


def can_view_goal(goal, workspace_role: Optional[WorkspaceRoleEnum], user_id: Any) -> bool:
    if getattr(goal, "is_private", False):
        return _is_owner(goal, user_id) or normalize_user_id(user_id) in goal_member_ids(goal)
    return workspace_role is not None


def can_edit_rollup(resource, workspace_role: Optional[WorkspaceRoleEnum], user_id: Any) -> bool:
    if workspace_role is None:
        return False
    return _is_owner(resource, user_id) or can_perform(workspace_role, WorkspaceAction.manage_rollup)


def can_view_portfolio(portfolio, workspace_role: Optional[WorkspaceRoleEnum]) -> bool:
    return workspace_role is not None


def compute_portfolio_metrics(project_statuses: Iterable[Any]) -> Tuple[PortfolioStatusEnum, int]:
    """Derive a portfolio's status and progress from its projects' statuses.

    Progress is the rounded share of completed projects. Status is
    `completed` when all are, otherwise the worst of off-track / at-risk /
    on-track present, otherwise `no-status`.
    """
    statuses = [getattr(s, "value", s) for s in project_statuses]
    if not statuses:
        return PortfolioStatusEnum.no_status, 0

    completed = statuses.count(ProjectStatusEnum.completed.value)
    progress = math.floor(completed * 100 / len(statuses) + 0.5)

    if completed == len(statuses):
        return PortfolioStatusEnum.completed, progress
    for candidate in (PortfolioStatusEnum.off_track, PortfolioStatusEnum.at_risk, PortfolioStatusEnum.on_track):
        if candidate.value in statuses:
            return candidate, progress
    return PortfolioStatusEnum.no_status, progress
