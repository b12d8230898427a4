"""Project Service - project CRUD behind the visibility gate.

WHAT:
    Every read of a project runs `authorize_project_access`. When the
    decision carries a `granted_role` (workspace owner/admin, or any member
    opening a public project) the user is enrolled in `project.roles`
    unless the caller passes `enroll=False`. Listing never enrolls.

WHY:
    Enrollment used to be a hidden write inside the access check; here it
    is an explicit, suppressible step applied through the compare-and-swap
    store.

REFERENCES:
    - workhub/access/visibility.py (decision table)
    - workhub/services/membership_store.py (mutate_project)
"""

import logging
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from ..access.errors import BadRequest, NotFound, PermissionDenied
from ..access.membership import normalize_user_id
from ..access.permissions import WorkspaceAction, require_permission
from ..access.roles import resolve_workspace_role
from ..access.visibility import (
    AccessDecision,
    authorize_project_access,
    can_change_project_role,
    can_manage_project,
    direct_project_role_for,
    enroll_project_member,
    remove_project_role,
    upsert_project_role,
)
from ..models import (
    ActivityLog,
    ActivityTypeEnum,
    Project,
    ProjectRoleEnum,
    ProjectStatusEnum,
    Section,
    Task,
    User,
    VisibilityEnum,
    Workspace,
    WorkspaceRoleEnum,
)
from .activity_log_service import ActivityLogService
from .membership_store import mutate_project


logger = logging.getLogger(__name__)

DEFAULT_SECTIONS = ("To do", "In progress", "Done")


class ProjectService:
    def __init__(self, db: Session):
        self.db = db
        self.activity = ActivityLogService(db)

    def _load(self, project_id: UUID) -> Project:
        project = self.db.query(Project).filter(Project.id == project_id).first()
        if not project:
            raise NotFound("Project not found", resource="project")
        return project

    def _load_workspace(self, workspace_id: UUID) -> Workspace:
        workspace = self.db.query(Workspace).filter(Workspace.id == workspace_id).first()
        if not workspace:
            raise NotFound("Workspace not found", resource="workspace")
        return workspace

    def evaluate_access(
        self, project: Project, user_id: UUID
    ) -> Tuple[AccessDecision, Optional[WorkspaceRoleEnum], Optional[ProjectRoleEnum]]:
        """Run the visibility gate for `user_id` on an already-loaded project."""
        workspace_role = resolve_workspace_role(project.workspace, user_id)
        direct_role = direct_project_role_for(project, user_id)
        return authorize_project_access(project, workspace_role, direct_role), workspace_role, direct_role

    def _user(self, user_id: UUID) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def _require_access(self, project: Project, user_id: UUID):
        decision, workspace_role, direct_role = self.evaluate_access(project, user_id)
        if not decision.allowed:
            raise PermissionDenied("You do not have access to this project")
        return decision, workspace_role, direct_role

    def create_project(
        self,
        workspace_id: UUID,
        user_id: UUID,
        name: str,
        description: Optional[str] = None,
        color: Optional[str] = None,
        visibility: VisibilityEnum = VisibilityEnum.public,
        status: ProjectStatusEnum = ProjectStatusEnum.on_track,
        with_default_sections: bool = True,
    ) -> Project:
        """Create a project; the creator is enrolled as `Owner`."""
        workspace = self._load_workspace(workspace_id)
        require_permission(resolve_workspace_role(workspace, user_id), WorkspaceAction.create_project)

        project = Project(
            workspace_id=workspace.id,
            name=name,
            description=description,
            visibility=visibility,
            status=status,
            roles=[{"userId": normalize_user_id(user_id), "role": ProjectRoleEnum.owner.value}],
            created_by=user_id,
        )
        if color:
            project.color = color
        self.db.add(project)
        self.db.flush()

        if with_default_sections:
            for position, section_name in enumerate(DEFAULT_SECTIONS):
                self.db.add(Section(project_id=project.id, name=section_name, position=position))

        self.db.commit()
        self.db.refresh(project)
        logger.info("[PROJECT_ACCESS] Project %s created in workspace %s by %s", project.id, workspace_id, user_id)
        self.activity.record(project.id, ActivityTypeEnum.created, "Created new project", self._user(user_id))
        return project

    def get_project(self, project_id: UUID, user_id: UUID, enroll: bool = True) -> Project:
        """Return the project if the gate allows it, applying lazy enrollment."""
        project = self._load(project_id)
        decision, _, _ = self._require_access(project, user_id)

        if enroll and decision.requires_enrollment:
            mutate_project(
                self.db,
                project.id,
                lambda p: enroll_project_member(p, user_id, decision.granted_role),
            )
            project = self._load(project_id)
        return project

    def list_workspace_projects(self, workspace_id: UUID, user_id: UUID) -> List[Project]:
        """Projects in the workspace the user may open. Never enrolls."""
        workspace = self._load_workspace(workspace_id)
        workspace_role = resolve_workspace_role(workspace, user_id)
        if workspace_role is None:
            raise PermissionDenied("Access denied to this workspace")

        visible = []
        for project in workspace.projects:
            decision = authorize_project_access(project, workspace_role, direct_project_role_for(project, user_id))
            if decision.allowed:
                visible.append(project)
        return visible

    def list_user_projects(self, user_id: UUID) -> List[Project]:
        """Projects where the user holds a direct role, across all workspaces."""
        return [p for p in self.db.query(Project).all() if direct_project_role_for(p, user_id) is not None]

    def add_project_member(
        self,
        project_id: UUID,
        actor_id: UUID,
        user_id: UUID,
        role: ProjectRoleEnum = ProjectRoleEnum.member,
    ) -> Project:
        """Give a workspace member a direct role on the project (upsert).

        Any user with access may add plain members. Granting, replacing or
        demoting an elevated role goes through `can_change_project_role`,
        checked against the target's role as stored at write time.
        """
        project = self._load(project_id)
        _, workspace_role, direct_role = self._require_access(project, actor_id)
        if not can_change_project_role(workspace_role, direct_role, None, role):
            raise PermissionDenied("Only project owners and admins can grant elevated project roles")

        if self._user(user_id) is None:
            raise NotFound("User not found", resource="user")
        if resolve_workspace_role(project.workspace, user_id) is None:
            raise BadRequest("User is not a member of this workspace")

        def _apply(p: Project):
            current = direct_project_role_for(p, user_id)
            if not can_change_project_role(workspace_role, direct_role, current, role):
                raise PermissionDenied(f"You cannot change the role of a project {current.value}")
            return upsert_project_role(p, user_id, role)

        changed, _ = mutate_project(self.db, project.id, _apply)
        logger.info("[PROJECT_ACCESS] %s set %s as %s on project %s", actor_id, user_id, role.value, project_id)
        if changed:
            self.activity.record(
                project.id,
                ActivityTypeEnum.updated,
                f"Added or updated member with role {role.value}",
                self._user(actor_id),
            )
        return self._load(project_id)

    def remove_project_member(self, project_id: UUID, actor_id: UUID, user_id: UUID) -> Project:
        project = self._load(project_id)
        _, workspace_role, direct_role = self._require_access(project, actor_id)
        if not can_manage_project(workspace_role, direct_role):
            raise PermissionDenied("Only project owners and admins can remove project members")

        mutate_project(self.db, project.id, lambda p: remove_project_role(p, user_id))
        return self._load(project_id)

    def enroll_member(self, project_id: UUID, user_id: UUID, role: ProjectRoleEnum = ProjectRoleEnum.member) -> bool:
        """Enroll without a permission check (caller already authorized it)."""
        return mutate_project(self.db, project_id, lambda p: enroll_project_member(p, user_id, role))

    def update_project(
        self,
        project_id: UUID,
        user_id: UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        color: Optional[str] = None,
        status: Optional[ProjectStatusEnum] = None,
        visibility: Optional[VisibilityEnum] = None,
    ) -> Project:
        """Update fields. Changing visibility needs management rights."""
        project = self._load(project_id)
        _, workspace_role, direct_role = self._require_access(project, user_id)

        if visibility is not None and visibility != project.visibility:
            if not can_manage_project(workspace_role, direct_role):
                raise PermissionDenied("Only project owners and admins can change visibility")

        def _apply(p: Project) -> Project:
            if name is not None:
                p.name = name
            if description is not None:
                p.description = description
            if color is not None:
                p.color = color
            if status is not None:
                p.status = status
            if visibility is not None:
                p.visibility = visibility
            return p

        previous_status = project.status
        previous_description = project.description
        mutate_project(self.db, project.id, _apply)

        actor = self._user(user_id)
        if status is not None and status != previous_status:
            activity_type = ActivityTypeEnum.updated
            if status == ProjectStatusEnum.completed:
                activity_type = ActivityTypeEnum.completed
            self.activity.record(project.id, activity_type, f"Updated project status to {status.value}", actor)
        if description is not None and description != previous_description:
            self.activity.record(project.id, ActivityTypeEnum.updated, "Updated project description", actor)
        return self._load(project_id)

    def list_activity(self, project_id: UUID, user_id: UUID) -> List[ActivityLog]:
        """Activity feed of a project the user may open, newest first."""
        project = self._load(project_id)
        self._require_access(project, user_id)
        return self.activity.list_for_project(project.id)

    def delete_project(self, project_id: UUID, user_id: UUID) -> None:
        """Delete the project with its sections, tasks and activity log."""
        project = self._load(project_id)
        _, workspace_role, direct_role = self._require_access(project, user_id)
        if not can_manage_project(workspace_role, direct_role):
            raise PermissionDenied("Only project owners and admins can delete a project")

        self.db.delete(project)
        self.db.commit()
        logger.info("[PROJECT_ACCESS] Project %s deleted by %s", project_id, user_id)

    def add_section(self, project_id: UUID, user_id: UUID, name: str) -> Section:
        project = self.get_project(project_id, user_id, enroll=False)
        section = Section(project_id=project.id, name=name, position=len(project.sections))
        self.db.add(section)
        self.db.commit()
        self.db.refresh(section)
        return section

    def add_task(
        self,
        project_id: UUID,
        user_id: UUID,
        title: str,
        section_id: Optional[UUID] = None,
        assignee_id: Optional[UUID] = None,
    ) -> Task:
        project = self.get_project(project_id, user_id, enroll=False)
        if section_id is not None and not any(s.id == section_id for s in project.sections):
            raise BadRequest("Section does not belong to this project")
        if assignee_id is not None and resolve_workspace_role(project.workspace, assignee_id) is None:
            raise BadRequest("Assignee is not a member of this workspace")
        task = Task(project_id=project.id, section_id=section_id, title=title, assignee_id=assignee_id)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task
