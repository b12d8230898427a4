"""
Roll-up Rules Tests (Unit)
==========================

WHAT: Portfolio status/progress derivation and goal/portfolio access rules.
WHY: Portfolio cards show these numbers directly; rounding and the
     "worst status wins" ordering are easy to break.

REFERENCES:
- backend/workhub/access/rollups.py
"""

from types import SimpleNamespace

import pytest

from workhub.access.rollups import (
    can_edit_rollup,
    can_view_goal,
    can_view_portfolio,
    compute_portfolio_metrics,
    ensure_goal_owner_member,
)
from workhub.models import PortfolioStatusEnum, ProjectStatusEnum, WorkspaceRoleEnum

OWNER = "c0ffee00-0000-4000-8000-000000000001"
OTHER = "c0ffee00-0000-4000-8000-000000000002"


def test_empty_portfolio_has_no_status() -> None:
    assert compute_portfolio_metrics([]) == (PortfolioStatusEnum.no_status, 0)


@pytest.mark.parametrize(
    "statuses, expected_status, expected_progress",
    [
        (["completed", "completed"], PortfolioStatusEnum.completed, 100),
        (["completed", "on-track", "at-risk"], PortfolioStatusEnum.at_risk, 33),
        (["completed", "completed", "on-track"], PortfolioStatusEnum.on_track, 67),
        (["on-track", "off-track", "at-risk"], PortfolioStatusEnum.off_track, 0),
        (["completed", "on-track"], PortfolioStatusEnum.on_track, 50),
    ],
)
def test_status_and_progress(statuses, expected_status, expected_progress) -> None:
    assert compute_portfolio_metrics(statuses) == (expected_status, expected_progress)


def test_accepts_enum_members() -> None:
    status, progress = compute_portfolio_metrics([ProjectStatusEnum.completed, ProjectStatusEnum.at_risk])

    assert status == PortfolioStatusEnum.at_risk
    assert progress == 50


def test_private_goal_visible_to_owner_and_members_only() -> None:
    goal = SimpleNamespace(owner_id=OWNER, is_private=True, members=[OWNER])

    assert can_view_goal(goal, WorkspaceRoleEnum.member, OWNER) is True
    assert can_view_goal(goal, WorkspaceRoleEnum.admin, OTHER) is False

    goal.members.append(OTHER)
    assert can_view_goal(goal, WorkspaceRoleEnum.member, OTHER) is True


def test_public_goal_visible_to_any_workspace_member() -> None:
    goal = SimpleNamespace(owner_id=OWNER, is_private=False, members=[])

    assert can_view_goal(goal, WorkspaceRoleEnum.member, OTHER) is True
    assert can_view_goal(goal, None, OTHER) is False


def test_edit_rights() -> None:
    goal = SimpleNamespace(owner_id=OWNER)

    assert can_edit_rollup(goal, WorkspaceRoleEnum.member, OWNER) is True
    assert can_edit_rollup(goal, WorkspaceRoleEnum.admin, OTHER) is True
    assert can_edit_rollup(goal, WorkspaceRoleEnum.member, OTHER) is False
    # A former workspace member keeps no rights even on their own goal
    assert can_edit_rollup(goal, None, OWNER) is False


def test_portfolio_visibility() -> None:
    portfolio = SimpleNamespace(owner_id=OWNER)

    assert can_view_portfolio(portfolio, WorkspaceRoleEnum.member) is True
    assert can_view_portfolio(portfolio, None) is False


def test_goal_owner_added_to_members() -> None:
    goal = SimpleNamespace(owner_id=OWNER, members=[OTHER, OTHER])

    assert ensure_goal_owner_member(goal) is True
    assert goal.members == [OTHER, OWNER]
    assert ensure_goal_owner_member(goal) is False
