"""Activity Log Service - per-project activity feed.

WHAT: Stores one `ActivityLog` row per notable project change (created,
      status or description updated, member added) and lists them newest
      first.
WHY: The feed is informational. Like notifications, a failed write is
     logged and dropped; it never fails the project operation.

REFERENCES:
    - workhub/services/project_service.py (writes)
    - workhub/services/notification_service.py (same best-effort contract)
"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from ..models import ActivityLog, ActivityTypeEnum, User


logger = logging.getLogger(__name__)

SYSTEM_USER_NAME = "System"


class ActivityLogService:
    def __init__(self, db: Session):
        self.db = db

    def record(
        self,
        project_id: UUID,
        activity_type: ActivityTypeEnum,
        content: str,
        user: Optional[User] = None,
    ) -> Optional[ActivityLog]:
        """Store an activity entry. Without a user it is attributed to the system."""
        try:
            entry = ActivityLog(
                project_id=project_id,
                type=activity_type,
                user_id=user.id if user is not None else None,
                user_name=(user.name if user is not None else None) or SYSTEM_USER_NAME,
                content=content,
            )
            self.db.add(entry)
            self.db.commit()
            logger.info("[ACTIVITY] %s on project %s: %s", activity_type.value, project_id, content)
            return entry
        except Exception:
            self.db.rollback()
            logger.exception("[ACTIVITY] Failed to store %s entry for project %s", activity_type.value, project_id)
            return None

    def list_for_project(self, project_id: UUID) -> List[ActivityLog]:
        return (
            self.db.query(ActivityLog)
            .filter(ActivityLog.project_id == project_id)
            .order_by(ActivityLog.created_at.desc())
            .all()
        )
