"""
Activity logging service for auditing authentication events
"""

import logging
from typing import Optional

from fastapi import Request
from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.utils.error_handler import get_client_ip

logger = logging.getLogger(__name__)


class ActivityLogger:
    """Service for logging user activities"""

    def __init__(self, db: Session):
        self.db = db

    async def log_activity(
        self,
        endpoint: str,
        method: str,
        status_code: int,
        user_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        error_message: Optional[str] = None
    ) -> Optional[ActivityLog]:
        """Write an audit row; never fails the calling request"""
        try:
            activity_log = ActivityLog(
                endpoint=endpoint,
                method=method,
                status_code=status_code,
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
                error_message=error_message
            )

            self.db.add(activity_log)
            self.db.commit()
            return activity_log

        except Exception as e:
            logger.error(f"Failed to log activity: {e}")
            self.db.rollback()
            return None

    async def log_request(
        self,
        request: Request,
        status_code: int,
        user_id: Optional[int] = None,
        error_message: Optional[str] = None
    ) -> Optional[ActivityLog]:
        return await self.log_activity(
            endpoint=request.url.path,
            method=request.method,
            status_code=status_code,
            user_id=user_id,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("user-agent"),
            error_message=error_message,
        )

    def get_recent_activities(self, limit: int = 100) -> list[ActivityLog]:
        return (
            self.db.query(ActivityLog)
            .order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc())
            .limit(limit)
            .all()
        )
