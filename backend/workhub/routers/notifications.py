"""Notification inbox endpoints."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import schemas
from ..database import get_db
from ..deps import get_current_user
from ..models import NotificationTypeEnum, User
from ..services.notification_service import NotificationService


router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
    responses={401: {"model": schemas.ErrorResponse, "description": "Unauthorized"}},
)


class NotificationOut(BaseModel):
    id: UUID
    type: NotificationTypeEnum
    title: str
    message: str
    context: Optional[Dict[str, Any]] = None
    read: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


@router.get("", response_model=List[NotificationOut], summary="List my notifications")
def list_notifications(
    unread_only: bool = Query(False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return NotificationService(db).list_for_user(current_user.id, unread_only=unread_only)


@router.post("/{notification_id}/read", response_model=schemas.SuccessResponse, summary="Mark notification read")
def mark_read(
    notification_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not NotificationService(db).mark_read(notification_id, current_user.id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return schemas.SuccessResponse(status="ok")
