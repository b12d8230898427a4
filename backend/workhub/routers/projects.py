"""Project endpoints. Reads go through the visibility gate in `ProjectService`."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..access.visibility import decode_project_roles
from ..database import get_db
from ..deps import get_current_user
from ..models import Project, User
from ..services.project_service import ProjectService


router = APIRouter(
    prefix="/projects",
    tags=["Projects"],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
        404: {"model": schemas.ErrorResponse, "description": "Not Found"},
    }
)


def _project_out(project: Project) -> schemas.ProjectOut:
    return schemas.ProjectOut(
        id=project.id,
        workspace_id=project.workspace_id,
        name=project.name,
        description=project.description,
        color=project.color,
        status=project.status,
        visibility=project.visibility,
        roles=[schemas.ProjectRoleOut(userId=e.user_id, role=e.role) for e in decode_project_roles(project.roles)],
        created_at=project.created_at,
    )


@router.post("", response_model=schemas.ProjectOut, status_code=status.HTTP_201_CREATED, summary="Create project")
def create_project(
    payload: schemas.ProjectCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = ProjectService(db).create_project(
        workspace_id=payload.workspace_id,
        user_id=current_user.id,
        name=payload.name,
        description=payload.description,
        color=payload.color,
        visibility=payload.visibility,
        status=payload.status,
    )
    return _project_out(project)


@router.get("", response_model=List[schemas.ProjectOut], summary="List projects visible in a workspace")
def list_projects(
    workspace_id: UUID = Query(..., description="Workspace to list"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return [_project_out(p) for p in ProjectService(db).list_workspace_projects(workspace_id, current_user.id)]


@router.get(
    "/{project_id}",
    response_model=schemas.ProjectOut,
    summary="Get project",
    description="Opening a project may enroll the caller in its roles (workspace owner/admin, or public projects).",
)
def get_project(
    project_id: UUID,
    enroll: bool = Query(True, description="Apply lazy enrollment"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _project_out(ProjectService(db).get_project(project_id, current_user.id, enroll=enroll))


@router.patch("/{project_id}", response_model=schemas.ProjectOut, summary="Update project")
def update_project(
    project_id: UUID,
    payload: schemas.ProjectUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = ProjectService(db).update_project(project_id, current_user.id, **payload.model_dump(exclude_unset=True))
    return _project_out(project)


@router.delete("/{project_id}", response_model=schemas.SuccessResponse, summary="Delete project")
def delete_project(
    project_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    ProjectService(db).delete_project(project_id, current_user.id)
    return schemas.SuccessResponse(status="ok", detail="Project deleted successfully")


@router.post("/{project_id}/members", response_model=schemas.ProjectOut, summary="Add project member")
def add_project_member(
    project_id: UUID,
    payload: schemas.ProjectMemberCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = ProjectService(db).add_project_member(project_id, current_user.id, payload.user_id, payload.role)
    return _project_out(project)


@router.delete("/{project_id}/members/{user_id}", response_model=schemas.ProjectOut, summary="Remove project member")
def remove_project_member(
    project_id: UUID,
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _project_out(ProjectService(db).remove_project_member(project_id, current_user.id, user_id))


@router.get(
    "/{project_id}/activity",
    response_model=List[schemas.ActivityLogOut],
    summary="Project activity feed",
    description="Newest first. Requires access to the project; never enrolls the caller.",
)
def list_project_activity(
    project_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return ProjectService(db).list_activity(project_id, current_user.id)
