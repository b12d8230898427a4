"""
Permission Evaluator Tests (Unit)
=================================

WHAT: Exhaustive checks of the workspace action table in `can_perform`.
WHY: Every owner/admin decision in the services routes through this table; a
     regression here silently widens or narrows access everywhere.

REFERENCES:
- backend/workhub/access/permissions.py
"""

import pytest

from workhub.access.errors import InvariantViolation, PermissionDenied
from workhub.access.permissions import WorkspaceAction, can_perform, require_permission
from workhub.models import WorkspaceRoleEnum

OWNER = WorkspaceRoleEnum.owner
ADMIN = WorkspaceRoleEnum.admin
MEMBER = WorkspaceRoleEnum.member


@pytest.mark.parametrize(
    "action, allowed",
    [
        (WorkspaceAction.update_workspace, {OWNER, ADMIN}),
        (WorkspaceAction.invite_member, {OWNER, ADMIN}),
        (WorkspaceAction.promote_to_admin, {OWNER}),
        (WorkspaceAction.delete_workspace, {OWNER}),
        (WorkspaceAction.create_project, {OWNER, ADMIN}),
        (WorkspaceAction.change_project_visibility, {OWNER, ADMIN}),
        (WorkspaceAction.manage_rollup, {OWNER, ADMIN}),
    ],
)
def test_role_gated_actions(action, allowed) -> None:
    for role in WorkspaceRoleEnum:
        assert can_perform(role, action) is (role in allowed), (role, action)


@pytest.mark.parametrize("action", [WorkspaceAction.add_member_direct, WorkspaceAction.remove_member])
def test_target_gated_actions(action) -> None:
    assert can_perform(OWNER, action, MEMBER) is True
    assert can_perform(ADMIN, action, MEMBER) is True
    assert can_perform(MEMBER, action, MEMBER) is False

    assert can_perform(OWNER, action, ADMIN) is True
    assert can_perform(ADMIN, action, ADMIN) is False
    assert can_perform(MEMBER, action, ADMIN) is False


def test_missing_target_is_treated_as_member() -> None:
    assert can_perform(ADMIN, WorkspaceAction.remove_member) is True


@pytest.mark.parametrize(
    "action",
    [WorkspaceAction.add_member_direct, WorkspaceAction.remove_member, WorkspaceAction.promote_to_admin],
)
def test_owner_role_is_never_a_legal_target(action) -> None:
    for role in (OWNER, ADMIN, MEMBER, None):
        with pytest.raises(InvariantViolation):
            can_perform(role, action, OWNER)


def test_non_members_and_unknown_values_are_denied() -> None:
    for action in WorkspaceAction:
        assert can_perform(None, action) is False
    assert can_perform("superuser", WorkspaceAction.update_workspace) is False
    assert can_perform(OWNER, "launchMissiles") is False


def test_accepts_raw_strings() -> None:
    assert can_perform("admin", "inviteMember") is True
    assert can_perform("Owner", "deleteWorkspace") is True


def test_require_permission_raises_with_context() -> None:
    with pytest.raises(PermissionDenied) as excinfo:
        require_permission(MEMBER, WorkspaceAction.invite_member)

    assert excinfo.value.status_code == 403
    assert "inviteMember" in excinfo.value.message


def test_require_permission_passes_silently() -> None:
    require_permission(OWNER, WorkspaceAction.delete_workspace)
