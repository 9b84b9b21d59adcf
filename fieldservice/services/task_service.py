import uuid
from datetime import date
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from ..errors import NotFound, field_error
from ..models.models import FieldTask, User, utcnow
from ..schemas.tasks import FieldTaskOut, TaskWithAssignee
from ..schemas.users import UserOut
from .time_rules import day_window


logger = structlog.get_logger(__name__)


def _to_view(task: FieldTask, assignee: Optional[User]) -> TaskWithAssignee:
    return TaskWithAssignee(
        **FieldTaskOut.model_validate(task).model_dump(),
        assigned_to=UserOut.model_validate(assignee) if assignee is not None else None,
    )


def _task_query(db: Session):
    return db.query(FieldTask, User).outerjoin(User, FieldTask.assigned_to_id == User.id)


def _parse_task_id(task_id: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(task_id))
    except ValueError:
        # Malformed ids can never match a row
        raise NotFound("Task not found")


def build_task_filters(
    owner_id: Optional[str] = None,
    *,
    status: Optional[str] = None,
    day: Optional[date] = None,
    search: Optional[str] = None,
) -> list:
    """Predicate list for a task listing; all entries are ANDed together."""
    conditions = []
    if owner_id:
        conditions.append(FieldTask.assigned_to_id == owner_id)
    if status:
        conditions.append(FieldTask.status == status)
    if day:
        start, end = day_window(day)
        conditions.append(and_(FieldTask.scheduled_date >= start, FieldTask.scheduled_date < end))
    if search and search.strip():
        term = search.strip()
        # Literal substring match; % and _ in the term are escaped
        conditions.append(
            or_(
                FieldTask.title.icontains(term, autoescape=True),
                FieldTask.location.icontains(term, autoescape=True),
                FieldTask.customer_name.icontains(term, autoescape=True),
            )
        )
    return conditions


def list_field_tasks(
    db: Session,
    owner_id: Optional[str] = None,
    *,
    status: Optional[str] = None,
    day: Optional[date] = None,
    search: Optional[str] = None,
) -> List[TaskWithAssignee]:
    query = _task_query(db)
    conditions = build_task_filters(owner_id, status=status, day=day, search=search)
    if conditions:
        query = query.filter(and_(*conditions))
    rows = query.order_by(
        FieldTask.scheduled_date.desc().nulls_last(),
        FieldTask.created_at.desc(),
    ).all()
    return [_to_view(task, assignee) for task, assignee in rows]


def get_task_row(db: Session, task_id: str) -> FieldTask:
    task = db.query(FieldTask).filter(FieldTask.id == _parse_task_id(task_id)).first()
    if not task:
        raise NotFound("Task not found")
    return task


def get_field_task(db: Session, task_id: str) -> TaskWithAssignee:
    row = _task_query(db).filter(FieldTask.id == _parse_task_id(task_id)).first()
    if not row:
        raise NotFound("Task not found")
    task, assignee = row
    return _to_view(task, assignee)


def _ensure_assignee_exists(db: Session, assigned_to_id: Optional[str]) -> None:
    if assigned_to_id is None:
        return
    if not db.query(User.id).filter(User.id == assigned_to_id).first():
        raise field_error("assignedToId", "Assigned user does not exist")


def create_field_task(db: Session, data: Dict[str, Any], *, created_by: Optional[str] = None) -> FieldTask:
    _ensure_assignee_exists(db, data.get("assigned_to_id"))
    if data.get("status") == "completed" and not data.get("completed_at"):
        data["completed_at"] = utcnow()
    now = utcnow()
    task = FieldTask(**data, created_at=now, updated_at=now)
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info("field_task_created", task_id=str(task.id), assigned_to_id=task.assigned_to_id, created_by=created_by)
    return task


def update_field_task(db: Session, task: FieldTask, updates: Dict[str, Any], *, updated_by: Optional[str] = None) -> FieldTask:
    """Apply a partial update. Keys absent from ``updates`` are left untouched."""
    if "assigned_to_id" in updates:
        _ensure_assignee_exists(db, updates["assigned_to_id"])
    for field, value in updates.items():
        setattr(task, field, value)
    task.updated_at = utcnow()
    db.commit()
    db.refresh(task)
    logger.info("field_task_updated", task_id=str(task.id), fields=sorted(updates.keys()), updated_by=updated_by)
    return task


def delete_field_task(db: Session, task: FieldTask, *, deleted_by: Optional[str] = None) -> None:
    task_id = str(task.id)
    # Reports keep their content; only the task reference is cleared
    for report in task.reports:
        report.task_id = None
    db.delete(task)
    db.commit()
    logger.info("field_task_deleted", task_id=task_id, deleted_by=deleted_by)
