from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from ..models.models import FieldTask, utcnow
from ..schemas.analytics import UserStats
from .time_rules import day_window, local_today


def _count(db: Session, user_id: str, *conditions) -> int:
    return (
        db.query(func.count(FieldTask.id))
        .filter(FieldTask.assigned_to_id == user_id, *conditions)
        .scalar()
        or 0
    )


def get_user_stats(db: Session, user_id: str, now: Optional[datetime] = None) -> UserStats:
    """
    Task counts for one assignee, read straight from the store.

    - today: scheduled within the current calendar day in the service timezone
    - completed / pending: by status, all time
    - weekly: scheduled on or after ``now - 7 days``, any status
    """
    now = now or utcnow()
    today_start, today_end = day_window(local_today(now))
    week_start = now - timedelta(days=7)

    return UserStats(
        today_tasks=_count(db, user_id, FieldTask.scheduled_date >= today_start, FieldTask.scheduled_date < today_end),
        completed_tasks=_count(db, user_id, FieldTask.status == "completed"),
        pending_tasks=_count(db, user_id, FieldTask.status == "pending"),
        weekly_tasks=_count(db, user_id, FieldTask.scheduled_date >= week_start),
    )
