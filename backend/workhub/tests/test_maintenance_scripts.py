"""Maintenance scripts run against the test database.

The scripts open their own session through `workhub.database.get_sync_session`;
here it is swapped for the test session so they see the fixture rows.
"""

import importlib.util
import sys
from contextlib import contextmanager
from pathlib import Path

import pytest

from workhub.access.membership import decode_members, detect_members_format, normalize_user_id
from workhub.models import Workspace, WorkspaceRoleEnum

SCRIPTS_DIR = Path(__file__).resolve().parents[2] / "scripts"


def _load_script(name):
    path = SCRIPTS_DIR / f"{name}.py"
    module_spec = importlib.util.spec_from_file_location(f"workhub_script_{name}", path)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def script_session(monkeypatch, test_db_session):
    import workhub.database

    @contextmanager
    def _session():
        yield test_db_session

    monkeypatch.setattr(workhub.database, "get_sync_session", _session)
    return test_db_session


@pytest.fixture
def legacy_workspace(test_db_session, owner, member):
    ws = Workspace(name="Legacy", owner_id=owner.id, members=[str(owner.id), str(member.id)])
    test_db_session.add(ws)
    test_db_session.commit()
    test_db_session.refresh(ws)
    return ws


def _run_check_main(monkeypatch, module, *args):
    monkeypatch.setattr(sys, "argv", ["check_workspace_members.py", *args])
    with pytest.raises(SystemExit) as exc:
        module.main()
    return exc.value.code


def test_check_reports_legacy_workspace_and_exits_nonzero(monkeypatch, workspace, legacy_workspace):
    check = _load_script("check_workspace_members")

    formats = check.check_workspaces()

    assert formats["structured"] == 1
    assert formats["legacy"] == 1
    assert formats["needs_repair"] == 1
    assert _run_check_main(monkeypatch, check, "--only-problems") == 1


def test_check_exits_zero_when_healthy(monkeypatch, workspace):
    check = _load_script("check_workspace_members")

    assert _run_check_main(monkeypatch, check) == 0


def test_migrate_dry_run_writes_nothing(test_db_session, legacy_workspace):
    migrate = _load_script("migrate_workspace_members")

    assert migrate.migrate(dry_run=True) == 1

    test_db_session.refresh(legacy_workspace)
    assert detect_members_format(legacy_workspace.members) == "legacy"


def test_migrate_rewrites_legacy_rows_and_is_rerunnable(
    monkeypatch, test_db_session, workspace, legacy_workspace, owner, member
):
    migrate = _load_script("migrate_workspace_members")
    check = _load_script("check_workspace_members")

    assert migrate.migrate(batch_size=1) == 1

    test_db_session.refresh(legacy_workspace)
    roles = {e.user_id: e.role for e in decode_members(legacy_workspace.members)}
    assert detect_members_format(legacy_workspace.members) == "structured"
    assert roles == {
        normalize_user_id(owner.id): WorkspaceRoleEnum.owner,
        normalize_user_id(member.id): WorkspaceRoleEnum.member,
    }
    assert migrate.migrate() == 0
    assert _run_check_main(monkeypatch, check) == 0


def test_repair_adds_missing_owner(test_db_session, owner):
    ws = Workspace(name="Orphaned", owner_id=owner.id, members=[])
    test_db_session.add(ws)
    test_db_session.commit()
    repair = _load_script("repair_workspace_members")

    assert repair.repair_all(dry_run=True) == 1
    assert repair.repair_all() == 1
    assert repair.repair_all() == 0

    test_db_session.refresh(ws)
    assert [(e.user_id, e.role) for e in decode_members(ws.members)] == [
        (normalize_user_id(owner.id), WorkspaceRoleEnum.owner)
    ]
