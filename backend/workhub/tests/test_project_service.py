"""Project visibility gate and lazy enrollment."""

import pytest

from workhub.access.errors import BadRequest, NotFound, PermissionDenied
from workhub.access.membership import normalize_user_id
from workhub.models import ActivityTypeEnum, ProjectRoleEnum, ProjectStatusEnum, VisibilityEnum


def _roles(project):
    return {entry["userId"]: entry["role"] for entry in project.roles}


@pytest.fixture
def public_project(project_service, workspace, owner):
    return project_service.create_project(workspace.id, owner.id, "Launch")


@pytest.fixture
def private_project(project_service, workspace, owner):
    return project_service.create_project(
        workspace.id, owner.id, "Secret", visibility=VisibilityEnum.invite_only
    )


def test_create_project_enrolls_creator_as_owner(public_project, owner):
    assert _roles(public_project) == {normalize_user_id(owner.id): "Owner"}
    assert [s.name for s in sorted(public_project.sections, key=lambda s: s.position)] == [
        "To do", "In progress", "Done",
    ]


def test_create_project_requires_workspace_membership(project_service, workspace, outsider):
    with pytest.raises(PermissionDenied):
        project_service.create_project(workspace.id, outsider.id, "Nope")


def test_member_opening_public_project_is_enrolled_as_member(project_service, public_project, member):
    project = project_service.get_project(public_project.id, member.id)

    assert _roles(project)[normalize_user_id(member.id)] == "Member"


def test_enroll_false_leaves_roles_untouched(project_service, public_project, member):
    project = project_service.get_project(public_project.id, member.id, enroll=False)

    assert normalize_user_id(member.id) not in _roles(project)


def test_member_denied_on_invite_only_project(project_service, private_project, member):
    with pytest.raises(PermissionDenied):
        project_service.get_project(private_project.id, member.id)

    assert normalize_user_id(member.id) not in _roles(project_service._load(private_project.id))


def test_admin_opening_invite_only_project_is_enrolled_as_admin(project_service, private_project, admin):
    project = project_service.get_project(private_project.id, admin.id)

    assert _roles(project)[normalize_user_id(admin.id)] == "Admin"


def test_outsider_denied_even_on_public_project(project_service, public_project, outsider):
    with pytest.raises(PermissionDenied):
        project_service.get_project(public_project.id, outsider.id)


def test_enrollment_is_idempotent(project_service, public_project, member):
    project_service.get_project(public_project.id, member.id)
    project = project_service.get_project(public_project.id, member.id)

    keys = [entry["userId"] for entry in project.roles]
    assert keys.count(normalize_user_id(member.id)) == 1


def test_enrollment_does_not_overwrite_existing_role(project_service, private_project, owner, admin):
    project_service.add_project_member(private_project.id, owner.id, admin.id, ProjectRoleEnum.member)

    project = project_service.get_project(private_project.id, admin.id)

    assert _roles(project)[normalize_user_id(admin.id)] == "Member"


def test_direct_role_grants_access_to_invite_only_project(project_service, private_project, owner, member):
    project_service.add_project_member(private_project.id, owner.id, member.id)

    project = project_service.get_project(private_project.id, member.id)

    assert project.id == private_project.id


def test_list_workspace_projects_filters_and_never_enrolls(
    project_service, workspace, public_project, private_project, member
):
    visible = project_service.list_workspace_projects(workspace.id, member.id)

    assert [p.id for p in visible] == [public_project.id]
    assert normalize_user_id(member.id) not in _roles(project_service._load(public_project.id))


def test_list_workspace_projects_rejects_non_members(project_service, workspace, outsider):
    with pytest.raises(PermissionDenied):
        project_service.list_workspace_projects(workspace.id, outsider.id)


def test_list_user_projects_uses_direct_roles(project_service, public_project, private_project, owner, member):
    assert {p.id for p in project_service.list_user_projects(owner.id)} == {public_project.id, private_project.id}
    assert project_service.list_user_projects(member.id) == []


def test_add_project_member_requires_workspace_membership(project_service, public_project, owner, outsider):
    with pytest.raises(BadRequest):
        project_service.add_project_member(public_project.id, owner.id, outsider.id)


def test_add_project_member_unknown_user(project_service, public_project, owner):
    from uuid import uuid4

    with pytest.raises(NotFound):
        project_service.add_project_member(public_project.id, owner.id, uuid4())


def test_plain_member_cannot_grant_elevated_project_role(project_service, public_project, member, admin):
    with pytest.raises(PermissionDenied):
        project_service.add_project_member(public_project.id, member.id, admin.id, ProjectRoleEnum.admin)


def test_visibility_change_needs_management_rights(project_service, public_project, member, admin):
    with pytest.raises(PermissionDenied):
        project_service.update_project(public_project.id, member.id, visibility=VisibilityEnum.invite_only)

    updated = project_service.update_project(public_project.id, admin.id, visibility=VisibilityEnum.invite_only)
    assert updated.visibility == VisibilityEnum.invite_only


def test_member_can_update_status(project_service, public_project, member):
    updated = project_service.update_project(public_project.id, member.id, status=ProjectStatusEnum.at_risk)

    assert updated.status == ProjectStatusEnum.at_risk


def test_remove_project_member_revokes_invite_only_access(project_service, private_project, owner, member):
    project_service.add_project_member(private_project.id, owner.id, member.id)
    project_service.remove_project_member(private_project.id, owner.id, member.id)

    with pytest.raises(PermissionDenied):
        project_service.get_project(private_project.id, member.id)


def test_delete_project_requires_management_rights(project_service, public_project, member, owner):
    with pytest.raises(PermissionDenied):
        project_service.delete_project(public_project.id, member.id)

    project_service.delete_project(public_project.id, owner.id)

    with pytest.raises(NotFound):
        project_service.get_project(public_project.id, owner.id)


def test_add_task_rejects_foreign_section(project_service, workspace, owner, public_project):
    other = project_service.create_project(workspace.id, owner.id, "Other")

    with pytest.raises(BadRequest):
        project_service.add_task(public_project.id, owner.id, "Misfiled", section_id=other.sections[0].id)


def test_add_section_appends_at_end(project_service, public_project, owner):
    section = project_service.add_section(public_project.id, owner.id, "Blocked")

    assert section.position == 3


def test_member_cannot_demote_project_owner(project_service, public_project, owner, member):
    with pytest.raises(PermissionDenied):
        project_service.add_project_member(public_project.id, member.id, owner.id, ProjectRoleEnum.member)

    assert _roles(project_service._load(public_project.id))[normalize_user_id(owner.id)] == "Owner"


def test_member_cannot_demote_project_admin(project_service, public_project, owner, admin, member):
    project_service.add_project_member(public_project.id, owner.id, admin.id, ProjectRoleEnum.admin)

    with pytest.raises(PermissionDenied):
        project_service.add_project_member(public_project.id, member.id, admin.id, ProjectRoleEnum.member)

    assert _roles(project_service._load(public_project.id))[normalize_user_id(admin.id)] == "Admin"


def test_project_admin_cannot_demote_project_owner(project_service, public_project, owner, member):
    project_service.add_project_member(public_project.id, owner.id, member.id, ProjectRoleEnum.admin)

    with pytest.raises(PermissionDenied):
        project_service.add_project_member(public_project.id, member.id, owner.id, ProjectRoleEnum.admin)

    assert _roles(project_service._load(public_project.id))[normalize_user_id(owner.id)] == "Owner"


def test_workspace_admin_can_change_project_owner_role(project_service, public_project, owner, admin):
    project = project_service.add_project_member(public_project.id, admin.id, owner.id, ProjectRoleEnum.admin)

    assert _roles(project)[normalize_user_id(owner.id)] == "Admin"


def test_member_can_readd_plain_member(project_service, public_project, owner, member, make_user, workspace_service):
    colleague = make_user("colleague")
    workspace_service.add_member(public_project.workspace_id, owner.id, colleague.id)
    project_service.add_project_member(public_project.id, owner.id, colleague.id)

    project = project_service.add_project_member(public_project.id, member.id, colleague.id)

    assert _roles(project)[normalize_user_id(colleague.id)] == "Member"


def test_add_task_rejects_assignee_outside_workspace(project_service, public_project, owner, outsider):
    with pytest.raises(BadRequest):
        project_service.add_task(public_project.id, owner.id, "Ship it", assignee_id=outsider.id)


def test_add_task_accepts_workspace_member_assignee(project_service, public_project, owner, member):
    task = project_service.add_task(public_project.id, owner.id, "Ship it", assignee_id=member.id)

    assert task.assignee_id == member.id


def _activity(project_service, project_id, user_id):
    return [(a.type, a.content) for a in project_service.list_activity(project_id, user_id)]


def test_create_project_logs_activity(project_service, public_project, owner):
    entries = project_service.list_activity(public_project.id, owner.id)

    assert [(e.type, e.content) for e in entries] == [(ActivityTypeEnum.created, "Created new project")]
    assert entries[0].user_id == owner.id
    assert entries[0].user_name == "Olivia Owner"


def test_updates_and_member_changes_are_logged(project_service, public_project, owner, admin):
    project_service.update_project(public_project.id, owner.id, status=ProjectStatusEnum.at_risk, description="New")
    project_service.update_project(public_project.id, owner.id, status=ProjectStatusEnum.completed)
    project_service.add_project_member(public_project.id, owner.id, admin.id, ProjectRoleEnum.admin)

    entries = set(_activity(project_service, public_project.id, owner.id))

    assert entries == {
        (ActivityTypeEnum.created, "Created new project"),
        (ActivityTypeEnum.updated, "Updated project status to at-risk"),
        (ActivityTypeEnum.updated, "Updated project description"),
        (ActivityTypeEnum.completed, "Updated project status to completed"),
        (ActivityTypeEnum.updated, "Added or updated member with role Admin"),
    }


def test_unchanged_fields_are_not_logged(project_service, public_project, owner):
    project_service.update_project(public_project.id, owner.id, status=ProjectStatusEnum.on_track, name="Renamed")

    assert len(project_service.list_activity(public_project.id, owner.id)) == 1


def test_activity_requires_project_access(project_service, private_project, member):
    with pytest.raises(PermissionDenied):
        project_service.list_activity(private_project.id, member.id)


def test_failed_activity_write_does_not_fail_update(project_service, public_project, owner, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(project_service.db, "add", _boom)

    updated = project_service.update_project(public_project.id, owner.id, description="Still saved")

    assert updated.description == "Still saved"


def test_delete_project_removes_activity(test_db_session, project_service, public_project, owner):
    from workhub.models import ActivityLog

    project_service.delete_project(public_project.id, owner.id)

    assert test_db_session.query(ActivityLog).count() == 0
