"""
Recent-activity feed for the admin dashboard.

Merges the most recently completed tasks with the most recently created
reports. Nothing is persisted; the feed is rebuilt on every call.
"""
from typing import List

from sqlalchemy.orm import Session

from ..models.models import FieldReport, FieldTask, User
from ..schemas.analytics import ActivityEvent
from ..schemas.users import UserOut


FEED_LIMIT = 10


def _user(u):
    return UserOut.model_validate(u) if u is not None else None


def get_recent_activities(db: Session, limit: int = FEED_LIMIT) -> List[ActivityEvent]:
    completed = (
        db.query(FieldTask, User)
        .outerjoin(User, FieldTask.assigned_to_id == User.id)
        .filter(FieldTask.status == "completed")
        .order_by(FieldTask.updated_at.desc())
        .limit(limit)
        .all()
    )
    reports = (
        db.query(FieldReport, User)
        .outerjoin(User, FieldReport.user_id == User.id)
        .order_by(FieldReport.created_at.desc())
        .limit(limit)
        .all()
    )

    events = [
        ActivityEvent(
            id=str(task.id),
            type="task",
            action=task.status,
            location=task.location,
            timestamp=task.updated_at,
            user=_user(assignee),
        )
        for task, assignee in completed
    ]
    events.extend(
        ActivityEvent(
            id=str(report.id),
            type="report",
            action=report.status,
            location=report.location,
            timestamp=report.created_at,
            user=_user(author),
        )
        for report, author in reports
    )
    events.sort(key=lambda e: e.timestamp, reverse=True)
    return events[:limit]
