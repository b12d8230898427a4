"""Compare-and-swap retries on concurrent membership writes."""

from uuid import uuid4

import pytest

from workhub.access.errors import Conflict, NotFound
from workhub.access.membership import decode_members, encode_members, normalize_user_id, upsert_member
from workhub.models import Workspace, WorkspaceRoleEnum
from workhub.services.membership_store import mutate_workspace


def _bump_version_behind_orm(db, workspace_id):
    """Simulate another writer committing between our read and our write."""
    db.query(Workspace).filter(Workspace.id == workspace_id).update(
        {Workspace.version: Workspace.version + 1}, synchronize_session=False
    )


def test_retry_reapplies_mutation_after_stale_write(test_db_session, workspace, outsider):
    calls = []

    def _add(ws):
        calls.append(ws.version)
        if len(calls) == 1:
            _bump_version_behind_orm(test_db_session, ws.id)
        entries, _ = upsert_member(decode_members(ws.members), outsider.id, WorkspaceRoleEnum.member)
        ws.members = encode_members(entries)
        return True

    assert mutate_workspace(test_db_session, workspace.id, _add, retries=3) is True

    assert len(calls) == 2
    stored = test_db_session.query(Workspace).filter(Workspace.id == workspace.id).one()
    keys = [entry["userId"] for entry in stored.members]
    assert keys.count(normalize_user_id(outsider.id)) == 1


def test_exhausted_retries_raise_conflict(test_db_session, workspace, outsider):
    def _always_stale(ws):
        _bump_version_behind_orm(test_db_session, ws.id)
        entries, _ = upsert_member(decode_members(ws.members), outsider.id, WorkspaceRoleEnum.member)
        ws.members = encode_members(entries)

    with pytest.raises(Conflict):
        mutate_workspace(test_db_session, workspace.id, _always_stale, retries=2)

    stored = test_db_session.query(Workspace).filter(Workspace.id == workspace.id).one()
    assert normalize_user_id(outsider.id) not in [entry["userId"] for entry in stored.members]


def test_mutation_error_rolls_back_and_propagates(test_db_session, workspace):
    def _explode(ws):
        ws.name = "half-written"
        raise ValueError("boom")

    with pytest.raises(ValueError):
        mutate_workspace(test_db_session, workspace.id, _explode)

    stored = test_db_session.query(Workspace).filter(Workspace.id == workspace.id).one()
    assert stored.name == "Acme"


def test_unknown_workspace_is_not_found(test_db_session):
    with pytest.raises(NotFound):
        mutate_workspace(test_db_session, uuid4(), lambda ws: None)
