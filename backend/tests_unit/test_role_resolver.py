"""
Role Resolver Tests (Unit)
==========================

WHAT: Unit tests for workspace role resolution over both membership shapes.
WHY: Legacy rows (bare id arrays) and structured rows must resolve identically,
     and the owner must never be locked out by a damaged members document.

NOTE:
These tests live outside `backend/workhub/tests/` to avoid loading the
integration-test `conftest.py`; they only need plain objects.

REFERENCES:
- backend/workhub/access/roles.py:resolve_workspace_role
- backend/workhub/access/membership.py:decode_members
"""

from types import SimpleNamespace
from uuid import UUID

from workhub.access.membership import decode_members, detect_members_format, normalize_user_id
from workhub.access.roles import is_workspace_member, resolve_workspace_role
from workhub.models import WorkspaceRoleEnum

OWNER = "6f1c1c9e-0000-4000-8000-000000000001"
ADMIN = "6f1c1c9e-0000-4000-8000-000000000002"
MEMBER = "6f1c1c9e-0000-4000-8000-000000000003"
STRANGER = "6f1c1c9e-0000-4000-8000-000000000004"


def _workspace(members, owner_id=OWNER):
    return SimpleNamespace(id="ws-1", owner_id=owner_id, members=members)


def test_owner_resolves_even_when_missing_from_members() -> None:
    workspace = _workspace([])

    assert resolve_workspace_role(workspace, OWNER) == WorkspaceRoleEnum.owner


def test_owner_id_wins_over_a_lower_stored_role() -> None:
    workspace = _workspace([{"userId": OWNER, "role": "member"}])

    assert resolve_workspace_role(workspace, OWNER) == WorkspaceRoleEnum.owner


def test_legacy_entries_resolve_to_member() -> None:
    workspace = _workspace([OWNER, MEMBER])

    assert resolve_workspace_role(workspace, MEMBER) == WorkspaceRoleEnum.member
    assert resolve_workspace_role(workspace, STRANGER) is None


def test_structured_entries_carry_their_role() -> None:
    workspace = _workspace([
        {"userId": OWNER, "role": "owner"},
        {"userId": ADMIN, "role": "admin"},
        {"userId": MEMBER, "role": "member"},
    ])

    assert resolve_workspace_role(workspace, ADMIN) == WorkspaceRoleEnum.admin
    assert resolve_workspace_role(workspace, MEMBER) == WorkspaceRoleEnum.member


def test_mixed_document_is_decoded_per_element() -> None:
    """A bare id first must not make later structured entries unreadable."""
    workspace = _workspace([MEMBER, {"userId": ADMIN, "role": "admin"}])

    assert detect_members_format(workspace.members) == "mixed"
    assert resolve_workspace_role(workspace, ADMIN) == WorkspaceRoleEnum.admin
    assert resolve_workspace_role(workspace, MEMBER) == WorkspaceRoleEnum.member


def test_same_answer_in_both_shapes() -> None:
    legacy = _workspace([OWNER, MEMBER])
    structured = _workspace([{"userId": OWNER, "role": "owner"}, {"userId": MEMBER, "role": "member"}])

    for user_id in (OWNER, MEMBER, STRANGER):
        assert resolve_workspace_role(legacy, user_id) == resolve_workspace_role(structured, user_id)


def test_uuid_objects_and_uppercase_strings_match_stored_ids() -> None:
    workspace = _workspace([{"userId": ADMIN.upper(), "role": "admin"}])

    assert resolve_workspace_role(workspace, UUID(ADMIN)) == WorkspaceRoleEnum.admin
    assert normalize_user_id(UUID(ADMIN)) == ADMIN


def test_missing_role_defaults_to_member() -> None:
    workspace = _workspace([{"userId": ADMIN}])

    assert resolve_workspace_role(workspace, ADMIN) == WorkspaceRoleEnum.member


def test_stray_owner_role_on_non_owner_is_downgraded() -> None:
    workspace = _workspace([{"userId": ADMIN, "role": "owner"}])

    assert resolve_workspace_role(workspace, ADMIN) == WorkspaceRoleEnum.member


def test_malformed_documents_never_raise() -> None:
    for members in (None, "not-a-list", 42, [None, 7, {"role": "admin"}, ""]):
        workspace = _workspace(members)
        assert resolve_workspace_role(workspace, MEMBER) is None
        assert resolve_workspace_role(workspace, OWNER) == WorkspaceRoleEnum.owner


def test_first_occurrence_wins_on_duplicates() -> None:
    entries = decode_members([{"userId": MEMBER, "role": "admin"}, MEMBER])

    assert [(e.user_id, e.role) for e in entries] == [(MEMBER, WorkspaceRoleEnum.admin)]


def test_none_inputs() -> None:
    assert resolve_workspace_role(None, OWNER) is None
    assert resolve_workspace_role(_workspace([MEMBER]), None) is None
    assert is_workspace_member(_workspace([MEMBER]), MEMBER) is True
