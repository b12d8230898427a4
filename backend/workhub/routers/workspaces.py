"""Workspace management endpoints.

Thin HTTP adapter over `WorkspaceService`. Access-control errors raised by
the service are rendered by the handler registered in `workhub.main`.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..deps import get_current_user
from ..models import User
from ..services.workspace_service import WorkspaceService


router = APIRouter(
    prefix="/workspaces",
    tags=["Workspaces"],
    responses={
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
        404: {"model": schemas.ErrorResponse, "description": "Not Found"},
        409: {"model": schemas.ErrorResponse, "description": "Conflict"},
        422: {"model": schemas.ErrorResponse, "description": "Invariant violation"},
    }
)


def _with_role(workspace, role) -> schemas.WorkspaceWithRole:
    return schemas.WorkspaceWithRole(
        id=workspace.id,
        name=workspace.name,
        owner_id=workspace.owner_id,
        created_at=workspace.created_at,
        role=role,
    )


@router.get(
    "",
    response_model=schemas.WorkspaceListResponse,
    summary="List workspaces",
    description="Workspaces the current user owns or belongs to, in either membership format.",
)
def list_workspaces(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    items = [_with_role(ws, role) for ws, role in WorkspaceService(db).list_workspaces_for_user(current_user.id)]
    return schemas.WorkspaceListResponse(workspaces=items, total=len(items))


@router.post(
    "",
    response_model=schemas.WorkspaceWithRole,
    status_code=status.HTTP_201_CREATED,
    summary="Create workspace",
)
def create_workspace(
    payload: schemas.WorkspaceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    workspace = WorkspaceService(db).create_workspace(payload.name, current_user.id)
    return _with_role(workspace, "owner")


@router.get("/{workspace_id}", response_model=schemas.WorkspaceWithRole, summary="Get workspace details")
def get_workspace(
    workspace_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = WorkspaceService(db)
    workspace = service.get_workspace(workspace_id, current_user.id)
    return _with_role(workspace, service.get_user_role(workspace_id, current_user.id))


@router.put("/{workspace_id}", response_model=schemas.WorkspaceOut, summary="Update workspace")
def update_workspace(
    workspace_id: UUID,
    payload: schemas.WorkspaceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return WorkspaceService(db).update_workspace(workspace_id, current_user.id, name=payload.name)


@router.delete("/{workspace_id}", response_model=schemas.SuccessResponse, summary="Delete workspace")
def delete_workspace(
    workspace_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    WorkspaceService(db).delete_workspace(workspace_id, current_user.id)
    return schemas.SuccessResponse(status="ok", detail="Workspace deleted successfully")


@router.get(
    "/{workspace_id}/members",
    response_model=List[schemas.WorkspaceMemberOut],
    summary="List workspace members",
)
def list_members(
    workspace_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entries = WorkspaceService(db).list_members(workspace_id, current_user.id)
    return [schemas.WorkspaceMemberOut(user_id=e.user_id, role=e.role) for e in entries]


@router.post(
    "/{workspace_id}/members",
    response_model=List[schemas.WorkspaceMemberOut],
    status_code=status.HTTP_201_CREATED,
    summary="Add workspace member",
    description="Add an existing user directly. Adding someone who is already a member is a no-op.",
)
def add_member(
    workspace_id: UUID,
    payload: schemas.WorkspaceMemberCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = WorkspaceService(db)
    service.add_member(workspace_id, current_user.id, payload.user_id, payload.role)
    return [schemas.WorkspaceMemberOut(user_id=e.user_id, role=e.role) for e in service.list_members(workspace_id, current_user.id)]


@router.patch(
    "/{workspace_id}/members/{user_id}",
    response_model=List[schemas.WorkspaceMemberOut],
    summary="Update member role",
)
def update_member_role(
    workspace_id: UUID,
    user_id: UUID,
    payload: schemas.WorkspaceMemberUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = WorkspaceService(db)
    service.update_member_role(workspace_id, current_user.id, user_id, payload.role)
    return [schemas.WorkspaceMemberOut(user_id=e.user_id, role=e.role) for e in service.list_members(workspace_id, current_user.id)]


@router.delete(
    "/{workspace_id}/members/{user_id}",
    response_model=schemas.SuccessResponse,
    summary="Remove workspace member",
)
def remove_member(
    workspace_id: UUID,
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    service = WorkspaceService(db)
    if user_id == current_user.id:
        service.leave_workspace(workspace_id, current_user.id)
        return schemas.SuccessResponse(status="ok", detail="Left workspace")
    service.remove_member(workspace_id, current_user.id, user_id)
    return schemas.SuccessResponse(status="ok", detail="Member removed")
