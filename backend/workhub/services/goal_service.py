"""Goal and Portfolio services - roll-up entities inside a workspace.

WHAT:
    CRUD for goals and portfolios, gated by `workhub.access.rollups`.
    Portfolio status/progress is recomputed from its projects whenever the
    project list changes.

REFERENCES:
    - workhub/access/rollups.py (visibility and edit rules, metrics)
"""

import logging
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..access.errors import BadRequest, NotFound, PermissionDenied
from ..access.membership import normalize_user_id
from ..access.roles import resolve_workspace_role
from ..access.rollups import (
    can_edit_rollup,
    can_view_goal,
    can_view_portfolio,
    compute_portfolio_metrics,
    ensure_goal_owner_member,
)
from ..models import Goal, GoalStatusEnum, Portfolio, Project, Workspace


logger = logging.getLogger(__name__)


def _load_workspace(db: Session, workspace_id: UUID) -> Workspace:
    workspace = db.query(Workspace).filter(Workspace.id == workspace_id).first()
    if not workspace:
        raise NotFound("Workspace not found", resource="workspace")
    return workspace


def _require_member(workspace: Workspace, user_id: UUID):
    role = resolve_workspace_role(workspace, user_id)
    if role is None:
        raise PermissionDenied("Access denied to this workspace")
    return role


def _workspace_project_ids(db: Session, workspace_id: UUID, project_ids: Iterable) -> List[str]:
    ids = []
    for raw in project_ids or []:
        try:
            ids.append(raw if isinstance(raw, UUID) else UUID(str(raw)))
        except ValueError:
            raise BadRequest(f"Invalid project id: {raw!r}")
    ids = list(dict.fromkeys(ids))
    if not ids:
        return []
    found = {
        row[0]
        for row in db.query(Project.id).filter(Project.id.in_(ids), Project.workspace_id == workspace_id).all()
    }
    if len(found) != len(ids):
        raise BadRequest("Projects must belong to the workspace")
    return [str(pid) for pid in ids]


class GoalService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, goal_id: UUID) -> Goal:
        goal = self.db.query(Goal).filter(Goal.id == goal_id).first()
        if not goal:
            raise NotFound("Goal not found", resource="goal")
        return goal

    def create_goal(
        self,
        workspace_id: UUID,
        user_id: UUID,
        title: str,
        description: Optional[str] = None,
        is_private: bool = False,
        members: Optional[Iterable[UUID]] = None,
        projects: Optional[Iterable[UUID]] = None,
        parent_goal_id: Optional[UUID] = None,
        status: GoalStatusEnum = GoalStatusEnum.no_status,
    ) -> Goal:
        """Create a goal; its owner is always one of its members."""
        workspace = _load_workspace(self.db, workspace_id)
        _require_member(workspace, user_id)

        if parent_goal_id is not None:
            parent = self._load(parent_goal_id)
            if parent.workspace_id != workspace.id:
                raise BadRequest("Parent goal belongs to another workspace")

        goal = Goal(
            workspace_id=workspace.id,
            owner_id=user_id,
            title=title,
            description=description,
            is_private=is_private,
            status=status,
            parent_goal_id=parent_goal_id,
            members=[normalize_user_id(m) for m in (members or []) if normalize_user_id(m)],
            projects=_workspace_project_ids(self.db, workspace.id, projects),
        )
        ensure_goal_owner_member(goal)
        self.db.add(goal)
        self.db.commit()
        self.db.refresh(goal)
        return goal

    def list_goals(self, workspace_id: UUID, user_id: UUID) -> List[Goal]:
        workspace = _load_workspace(self.db, workspace_id)
        role = _require_member(workspace, user_id)
        goals = (
            self.db.query(Goal)
            .filter(Goal.workspace_id == workspace_id)
            .order_by(Goal.created_at)
            .all()
        )
        return [goal for goal in goals if can_view_goal(goal, role, user_id)]

    def get_goal(self, goal_id: UUID, user_id: UUID) -> Goal:
        goal = self._load(goal_id)
        role = resolve_workspace_role(goal.workspace, user_id)
        if not can_view_goal(goal, role, user_id):
            raise PermissionDenied("You do not have access to this goal")
        return goal

    def update_goal(
        self,
        goal_id: UUID,
        user_id: UUID,
        title: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[GoalStatusEnum] = None,
        progress: Optional[int] = None,
        is_private: Optional[bool] = None,
        members: Optional[Iterable[UUID]] = None,
    ) -> Goal:
        goal = self.get_goal(goal_id, user_id)
        if not can_edit_rollup(goal, resolve_workspace_role(goal.workspace, user_id), user_id):
            raise PermissionDenied("Only the goal owner or a workspace admin can edit this goal")

        if title is not None:
            goal.title = title
        if description is not None:
            goal.description = description
        if status is not None:
            goal.status = status
        if progress is not None:
            if not 0 <= progress <= 100:
                raise BadRequest("Progress must be between 0 and 100")
            goal.progress = progress
        if is_private is not None:
            goal.is_private = is_private
        if members is not None:
            goal.members = [normalize_user_id(m) for m in members if normalize_user_id(m)]
            ensure_goal_owner_member(goal)

        self.db.commit()
        self.db.refresh(goal)
        return goal

    def delete_goal(self, goal_id: UUID, user_id: UUID) -> None:
        goal = self.get_goal(goal_id, user_id)
        if not can_edit_rollup(goal, resolve_workspace_role(goal.workspace, user_id), user_id):
            raise PermissionDenied("Only the goal owner or a workspace admin can delete this goal")

        # Children become top-level goals
        self.db.query(Goal).filter(Goal.parent_goal_id == goal.id).update(
            {Goal.parent_goal_id: None}, synchronize_session=False
        )
        self.db.delete(goal)
        self.db.commit()


class PortfolioService:
    def __init__(self, db: Session):
        self.db = db

    def _load(self, portfolio_id: UUID) -> Portfolio:
        portfolio = self.db.query(Portfolio).filter(Portfolio.id == portfolio_id).first()
        if not portfolio:
            raise NotFound("Portfolio not found", resource="portfolio")
        return portfolio

    def _recalculate(self, portfolio: Portfolio) -> None:
        ids = []
        for raw in portfolio.projects or []:
            try:
                ids.append(UUID(str(raw)))
            except ValueError:
                logger.warning("[ROLLUP] Portfolio %s references malformed project id %r", portfolio.id, raw)
        statuses = [row[0] for row in self.db.query(Project.status).filter(Project.id.in_(ids)).all()] if ids else []
        portfolio.status, portfolio.progress = compute_portfolio_metrics(statuses)

    def _require_edit(self, portfolio: Portfolio, user_id: UUID) -> None:
        role = resolve_workspace_role(portfolio.workspace, user_id)
        if not can_edit_rollup(portfolio, role, user_id):
            raise PermissionDenied("Only the portfolio owner or a workspace admin can edit this portfolio")

    def create_portfolio(
        self,
        workspace_id: UUID,
        user_id: UUID,
        name: str,
        description: Optional[str] = None,
        projects: Optional[Iterable[UUID]] = None,
    ) -> Portfolio:
        workspace = _load_workspace(self.db, workspace_id)
        _require_member(workspace, user_id)

        portfolio = Portfolio(
            workspace_id=workspace.id,
            owner_id=user_id,
            name=name,
            description=description,
            projects=_workspace_project_ids(self.db, workspace.id, projects),
        )
        self._recalculate(portfolio)
        self.db.add(portfolio)
        self.db.commit()
        self.db.refresh(portfolio)
        return portfolio

    def list_portfolios(self, workspace_id: UUID, user_id: UUID) -> List[Portfolio]:
        workspace = _load_workspace(self.db, workspace_id)
        _require_member(workspace, user_id)
        return self.db.query(Portfolio).filter(Portfolio.workspace_id == workspace_id).all()

    def get_portfolio(self, portfolio_id: UUID, user_id: UUID) -> Portfolio:
        portfolio = self._load(portfolio_id)
        if not can_view_portfolio(portfolio, resolve_workspace_role(portfolio.workspace, user_id)):
            raise PermissionDenied("You do not have access to this portfolio")
        # Project statuses change independently; keep the roll-up current on read
        self._recalculate(portfolio)
        self.db.commit()
        return portfolio

    def update_portfolio(
        self,
        portfolio_id: UUID,
        user_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        projects: Optional[Iterable[UUID]] = None,
    ) -> Portfolio:
        portfolio = self._load(portfolio_id)
        self._require_edit(portfolio, user_id)

        if name is not None:
            portfolio.name = name
        if description is not None:
            portfolio.description = description
        if projects is not None:
            portfolio.projects = _workspace_project_ids(self.db, portfolio.workspace_id, projects)
        self._recalculate(portfolio)
        self.db.commit()
        self.db.refresh(portfolio)
        return portfolio

    def add_project(self, portfolio_id: UUID, user_id: UUID, project_id: UUID) -> Portfolio:
        portfolio = self._load(portfolio_id)
        current = list(portfolio.projects or [])
        if str(project_id) in current:
            return portfolio
        return self.update_portfolio(portfolio_id, user_id, projects=current + [project_id])

    def remove_project(self, portfolio_id: UUID, user_id: UUID, project_id: UUID) -> Portfolio:
        portfolio = self._load(portfolio_id)
        remaining = [pid for pid in (portfolio.projects or []) if pid != str(project_id)]
        return self.update_portfolio(portfolio_id, user_id, projects=remaining)

    def delete_portfolio(self, portfolio_id: UUID, user_id: UUID) -> None:
        portfolio = self._load(portfolio_id)
        self._require_edit(portfolio, user_id)
        self.db.delete(portfolio)
        self.db.commit()
