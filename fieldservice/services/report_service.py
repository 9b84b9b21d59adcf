import uuid
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy import and_
from sqlalchemy.orm import Session, aliased

from ..errors import NotFound, field_error
from ..models.models import FieldReport, FieldTask, User, utcnow
from ..schemas.reports import FieldReportOut, ReportWithRelations
from ..schemas.tasks import FieldTaskOut
from ..schemas.users import UserOut


logger = structlog.get_logger(__name__)

Author = aliased(User, name="author")


def _to_view(report: FieldReport, task: Optional[FieldTask], author: Optional[User]) -> ReportWithRelations:
    return ReportWithRelations(
        **FieldReportOut.model_validate(report).model_dump(),
        task=FieldTaskOut.model_validate(task) if task is not None else None,
        user=UserOut.model_validate(author) if author is not None else None,
    )


def _report_query(db: Session):
    return (
        db.query(FieldReport, FieldTask, Author)
        .outerjoin(FieldTask, FieldReport.task_id == FieldTask.id)
        .outerjoin(Author, FieldReport.user_id == Author.id)
    )


def _parse_uuid(value: str, not_found: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise NotFound(not_found)


def list_field_reports(
    db: Session,
    owner_id: Optional[str] = None,
    *,
    status: Optional[str] = None,
    task_id: Optional[uuid.UUID] = None,
) -> List[ReportWithRelations]:
    conditions = []
    if owner_id:
        conditions.append(FieldReport.user_id == owner_id)
    if status:
        conditions.append(FieldReport.status == status)
    if task_id:
        conditions.append(FieldReport.task_id == task_id)

    query = _report_query(db)
    if conditions:
        query = query.filter(and_(*conditions))
    rows = query.order_by(FieldReport.created_at.desc()).all()
    return [_to_view(report, task, author) for report, task, author in rows]


def get_report_row(db: Session, report_id: str) -> FieldReport:
    report = db.query(FieldReport).filter(FieldReport.id == _parse_uuid(report_id, "Report not found")).first()
    if not report:
        raise NotFound("Report not found")
    return report


def get_field_report(db: Session, report_id: str) -> ReportWithRelations:
    row = _report_query(db).filter(FieldReport.id == _parse_uuid(report_id, "Report not found")).first()
    if not row:
        raise NotFound("Report not found")
    return _to_view(*row)


def _ensure_task_exists(db: Session, task_id: Optional[uuid.UUID]) -> None:
    if task_id is None:
        return
    if not db.query(FieldTask.id).filter(FieldTask.id == task_id).first():
        raise field_error("taskId", "Task does not exist")


def create_field_report(db: Session, data: Dict[str, Any], *, author_id: str) -> FieldReport:
    # Offline clients may replay a submission; duplicates are stored as sent
    _ensure_task_exists(db, data.get("task_id"))
    now = utcnow()
    report = FieldReport(**data, user_id=author_id, created_at=now, updated_at=now)
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("field_report_created", report_id=str(report.id), user_id=author_id, status=report.status)
    return report


def update_field_report(db: Session, report: FieldReport, updates: Dict[str, Any], *, updated_by: Optional[str] = None) -> FieldReport:
    """Apply a partial update; the author never changes."""
    if "task_id" in updates:
        _ensure_task_exists(db, updates["task_id"])
    for field, value in updates.items():
        setattr(report, field, value)
    report.updated_at = utcnow()
    db.commit()
    db.refresh(report)
    logger.info(
        "field_report_updated",
        report_id=str(report.id),
        fields=sorted(updates.keys()),
        status=report.status,
        updated_by=updated_by,
    )
    return report
