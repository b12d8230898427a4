"""Workspace invite endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..deps import get_current_user
from ..models import InviteStatusEnum, User
from ..services.invite_service import InviteService


router = APIRouter(
    prefix="/invites",
    tags=["Invites"],
    responses={
        400: {"model": schemas.ErrorResponse, "description": "Bad Request"},
        401: {"model": schemas.ErrorResponse, "description": "Unauthorized"},
        403: {"model": schemas.ErrorResponse, "description": "Forbidden"},
        404: {"model": schemas.ErrorResponse, "description": "Not Found"},
        409: {"model": schemas.ErrorResponse, "description": "Conflict"},
    }
)


@router.post(
    "",
    response_model=schemas.InviteCreatedOut,
    status_code=status.HTTP_201_CREATED,
    summary="Invite an existing user",
    description="Invitee must already have an account. The token is only returned here.",
)
def create_invite(
    payload: schemas.InviteCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invitee_id = payload.invitee_id
    if invitee_id is None:
        if payload.invitee_email is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invitee_id or invitee_email is required")
        invitee = db.query(User).filter(User.email == payload.invitee_email).first()
        if not invitee:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invitee must already have an account")
        invitee_id = invitee.id

    return InviteService(db).create_invite(
        inviter_id=current_user.id,
        invitee_id=invitee_id,
        workspace_id=payload.workspace_id,
        selected_projects=payload.selected_projects,
        role=payload.role,
    )


@router.get("", response_model=List[schemas.InviteOut], summary="List my invites")
def list_invites(
    direction: schemas.InviteDirection = Query("received"),
    invite_status: Optional[InviteStatusEnum] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return InviteService(db).list_invites(current_user.id, direction=direction, status=invite_status)


@router.get(
    "/validate/{token}",
    response_model=schemas.InviteValidationOut,
    summary="Validate invite token",
    description="Checks whether the token can still be accepted. Expired invites are marked expired.",
)
def validate_token(token: str, db: Session = Depends(get_db)):
    result = InviteService(db).validate_token(token)
    return schemas.InviteValidationOut(
        valid=result.valid,
        status=result.status,
        reason=result.reason,
        workspace_id=result.invite.workspace_id if result.invite else None,
        expiration_time=result.invite.expiration_time if result.invite else None,
    )


@router.post("/accept", response_model=schemas.InviteOut, summary="Accept invite")
def accept_invite(
    payload: schemas.InviteAccept,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return InviteService(db).accept_invite(payload.token, current_user.id)


@router.get("/{invite_id}", response_model=schemas.InviteOut, summary="Get invite")
def get_invite(
    invite_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return InviteService(db).get_invite(invite_id, current_user.id)


@router.post("/{invite_id}/cancel", response_model=schemas.InviteOut, summary="Cancel invite (inviter)")
def cancel_invite(
    invite_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return InviteService(db).cancel_invite(invite_id, current_user.id)


@router.post("/{invite_id}/reject", response_model=schemas.InviteOut, summary="Reject invite (invitee)")
def reject_invite(
    invite_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return InviteService(db).reject_invite(invite_id, current_user.id)
