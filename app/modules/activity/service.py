from sqlalchemy.orm import Session
from sqlalchemy import desc
from typing import List, Optional
import logging

from app.modules.activity.models import ActivityLog

logger = logging.getLogger(__name__)

INVOICE_GENERATED = "invoice_generated"


class ActivityService:
    def __init__(self, db: Session):
        self.db = db

    def log_activity(self, action: str, description: str, reference: Optional[str] = None) -> ActivityLog:
        entry = ActivityLog(action=action, description=description, reference=reference)
        try:
            self.db.add(entry)
            self.db.commit()
            self.db.refresh(entry)
        except Exception:
            self.db.rollback()
            raise
        logger.debug(f"Activity logged: {action} ({reference})")
        return entry

    def get_activities(self, action: Optional[str] = None, limit: int = 50) -> List[ActivityLog]:
        query = self.db.query(ActivityLog)
        if action:
            query = query.filter(ActivityLog.action == action)
        return query.order_by(desc(ActivityLog.created_at)).limit(limit).all()
