from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user, require_admin
from ..db import get_db
from ..errors import field_error
from ..models.models import TASK_STATUSES, FieldTask, User
from ..schemas.tasks import FieldTaskCreate, FieldTaskOut, FieldTaskUpdate, TaskWithAssignee
from ..services import task_service
from ..services.permissions import ensure_task_access, listing_owner_id


router = APIRouter(prefix="/api/field-tasks", tags=["field-tasks"])


def _blank(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _parse_status(value: Optional[str]) -> Optional[str]:
    value = _blank(value)
    if value is not None and value not in TASK_STATUSES:
        raise field_error("status", f"Status must be one of: {', '.join(TASK_STATUSES)}")
    return value


def _parse_day(value: Optional[str]) -> Optional[date]:
    value = _blank(value)
    if value is None:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise field_error("date", "Date must be formatted as YYYY-MM-DD")


def get_owned_task(task_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)) -> FieldTask:
    """Task the caller may access. 404 and 403 are raised before the body is validated."""
    task = task_service.get_task_row(db, task_id)
    ensure_task_access(me, task)
    return task


@router.get("", response_model=List[TaskWithAssignee])
def list_tasks(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    date_filter: Optional[str] = Query(default=None, alias="date"),
    search: Optional[str] = None,
    all_tasks: Optional[str] = Query(default=None, alias="all"),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    """
    List field tasks.
    - Technicians see only tasks assigned to them
    - Admins see their own tasks, or every task with ``all=true``
    """
    owner_id = listing_owner_id(me, (all_tasks or "").lower() == "true")
    return task_service.list_field_tasks(
        db,
        owner_id,
        status=_parse_status(status_filter),
        day=_parse_day(date_filter),
        search=_blank(search),
    )


@router.get("/{task_id}", response_model=TaskWithAssignee)
def get_task(task: FieldTask = Depends(get_owned_task), db: Session = Depends(get_db)):
    return task_service.get_field_task(db, str(task.id))


@router.post("", response_model=FieldTaskOut, status_code=status.HTTP_201_CREATED)
def create_task(payload: FieldTaskCreate, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    return task_service.create_field_task(db, payload.model_dump(), created_by=admin.id)


@router.patch("/{task_id}", response_model=FieldTaskOut)
def update_task(
    payload: FieldTaskUpdate,
    task: FieldTask = Depends(get_owned_task),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return task_service.update_field_task(db, task, payload.model_dump(exclude_unset=True), updated_by=me.id)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task(task_id: str, db: Session = Depends(get_db), admin: User = Depends(require_admin)):
    task = task_service.get_task_row(db, task_id)
    task_service.delete_field_task(db, task, deleted_by=admin.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
