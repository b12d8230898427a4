"""Notification Service - create-and-store user notifications.

WHAT: Persists one `Notification` row per event for the recipient.
WHY: Invite and membership flows tell users what happened to them. Delivery
     is a side channel: a failure here must never undo or fail the
     operation that triggered it, so every write is best-effort.

REFERENCES:
    - workhub/services/invite_service.py (invite lifecycle events)
    - workhub/services/workspace_service.py (member_added)
"""

import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..models import Notification, NotificationTypeEnum


logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, db: Session):
        self.db = db

    def notify(
        self,
        user_id: UUID,
        notification_type: NotificationTypeEnum,
        title: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> Optional[Notification]:
        """Store a notification. Returns None (and logs) if it could not be stored."""
        try:
            notification = Notification(
                user_id=user_id,
                type=notification_type,
                title=title,
                message=message,
                context=context or {},
            )
            self.db.add(notification)
            self.db.commit()
            logger.info("[NOTIFY] %s -> user %s", notification_type.value, user_id)
            return notification
        except Exception:
            self.db.rollback()
            logger.exception("[NOTIFY] Failed to store %s notification for user %s", notification_type.value, user_id)
            return None

    def list_for_user(self, user_id: UUID, unread_only: bool = False) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.read.is_(False))
        return query.order_by(Notification.created_at.desc()).all()

    def mark_read(self, notification_id: UUID, user_id: UUID) -> bool:
        notification = (
            self.db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )
        if not notification:
            return False
        notification.read = True
        self.db.commit()
        return True
