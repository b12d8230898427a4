"""Goals and portfolios: visibility, edit rights and roll-up metrics."""

import pytest

from workhub.access.errors import BadRequest, PermissionDenied
from workhub.access.membership import normalize_user_id
from workhub.models import PortfolioStatusEnum, ProjectStatusEnum
from workhub.services.goal_service import GoalService, PortfolioService


@pytest.fixture
def goal_service(test_db_session):
    return GoalService(test_db_session)


@pytest.fixture
def portfolio_service(test_db_session):
    return PortfolioService(test_db_session)


def test_goal_owner_is_always_a_member(goal_service, workspace, member):
    goal = goal_service.create_goal(workspace.id, member.id, "Ship v2")

    assert goal.members == [normalize_user_id(member.id)]


def test_private_goal_hidden_from_non_members(goal_service, workspace, member, admin):
    goal = goal_service.create_goal(workspace.id, member.id, "Private plan", is_private=True)

    with pytest.raises(PermissionDenied):
        goal_service.get_goal(goal.id, admin.id)
    assert goal_service.list_goals(workspace.id, admin.id) == []
    assert [g.id for g in goal_service.list_goals(workspace.id, member.id)] == [goal.id]


def test_outsider_cannot_create_goal(goal_service, workspace, outsider):
    with pytest.raises(PermissionDenied):
        goal_service.create_goal(workspace.id, outsider.id, "Sneaky")


def test_goal_edit_rights(goal_service, workspace, member, admin, make_user, workspace_service, owner):
    colleague = make_user("colleague")
    workspace_service.add_member(workspace.id, owner.id, colleague.id)
    goal = goal_service.create_goal(workspace.id, member.id, "Grow")

    with pytest.raises(PermissionDenied):
        goal_service.update_goal(goal.id, colleague.id, title="Mine now")

    assert goal_service.update_goal(goal.id, admin.id, progress=40).progress == 40
    with pytest.raises(BadRequest):
        goal_service.update_goal(goal.id, member.id, progress=101)


def test_parent_goal_must_share_workspace(goal_service, workspace_service, workspace, owner):
    elsewhere = workspace_service.create_workspace("Elsewhere", owner.id)
    foreign_parent = goal_service.create_goal(elsewhere.id, owner.id, "Foreign")

    with pytest.raises(BadRequest):
        goal_service.create_goal(workspace.id, owner.id, "Child", parent_goal_id=foreign_parent.id)


def test_deleting_parent_promotes_children(test_db_session, goal_service, workspace, owner):
    parent = goal_service.create_goal(workspace.id, owner.id, "Parent")
    child = goal_service.create_goal(workspace.id, owner.id, "Child", parent_goal_id=parent.id)

    goal_service.delete_goal(parent.id, owner.id)

    test_db_session.refresh(child)
    assert child.parent_goal_id is None


def test_portfolio_metrics_follow_project_statuses(portfolio_service, project_service, workspace, owner):
    done = project_service.create_project(workspace.id, owner.id, "Done", status=ProjectStatusEnum.completed)
    risky = project_service.create_project(workspace.id, owner.id, "Risky", status=ProjectStatusEnum.at_risk)
    fine = project_service.create_project(workspace.id, owner.id, "Fine", status=ProjectStatusEnum.on_track)

    portfolio = portfolio_service.create_portfolio(workspace.id, owner.id, "Q3", projects=[done.id, risky.id, fine.id])

    assert portfolio.status == PortfolioStatusEnum.at_risk
    assert portfolio.progress == 33

    project_service.update_project(risky.id, owner.id, status=ProjectStatusEnum.completed)
    project_service.update_project(fine.id, owner.id, status=ProjectStatusEnum.completed)
    refreshed = portfolio_service.get_portfolio(portfolio.id, owner.id)

    assert refreshed.status == PortfolioStatusEnum.completed
    assert refreshed.progress == 100


def test_portfolio_add_and_remove_project(portfolio_service, project_service, workspace, owner, member):
    project = project_service.create_project(workspace.id, owner.id, "Late", status=ProjectStatusEnum.off_track)
    portfolio = portfolio_service.create_portfolio(workspace.id, owner.id, "Empty")
    assert portfolio.status == PortfolioStatusEnum.no_status

    with pytest.raises(PermissionDenied):
        portfolio_service.add_project(portfolio.id, member.id, project.id)

    portfolio = portfolio_service.add_project(portfolio.id, owner.id, project.id)
    assert portfolio.status == PortfolioStatusEnum.off_track

    portfolio = portfolio_service.remove_project(portfolio.id, owner.id, project.id)
    assert portfolio.projects == []
    assert portfolio.progress == 0
