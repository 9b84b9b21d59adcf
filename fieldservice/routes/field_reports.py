import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..errors import field_error
from ..models.models import REPORT_STATUSES, FieldReport, User
from ..schemas.reports import FieldReportCreate, FieldReportOut, FieldReportUpdate, ReportWithRelations
from ..services import report_service
from ..services.permissions import ensure_report_access, listing_owner_id


router = APIRouter(prefix="/api/field-reports", tags=["field-reports"])


def _parse_status(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    value = value.strip()
    if value not in REPORT_STATUSES:
        raise field_error("status", f"Status must be one of: {', '.join(REPORT_STATUSES)}")
    return value


def _parse_task_id(value: Optional[str]) -> Optional[uuid.UUID]:
    if value is None or not value.strip():
        return None
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        raise field_error("taskId", "Invalid task id")


def get_owned_report(report_id: str, db: Session = Depends(get_db), me: User = Depends(get_current_user)) -> FieldReport:
    report = report_service.get_report_row(db, report_id)
    ensure_report_access(me, report)
    return report


@router.get("", response_model=List[ReportWithRelations])
def list_reports(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    task_id: Optional[str] = Query(default=None, alias="taskId"),
    all_reports: Optional[str] = Query(default=None, alias="all"),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    owner_id = listing_owner_id(me, (all_reports or "").lower() == "true")
    return report_service.list_field_reports(
        db,
        owner_id,
        status=_parse_status(status_filter),
        task_id=_parse_task_id(task_id),
    )


@router.get("/{report_id}", response_model=ReportWithRelations)
def get_report(report: FieldReport = Depends(get_owned_report), db: Session = Depends(get_db)):
    return report_service.get_field_report(db, str(report.id))


@router.post("", response_model=FieldReportOut, status_code=status.HTTP_201_CREATED)
def create_report(payload: FieldReportCreate, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return report_service.create_field_report(db, payload.model_dump(), author_id=me.id)


@router.patch("/{report_id}", response_model=FieldReportOut)
def update_report(
    payload: FieldReportUpdate,
    report: FieldReport = Depends(get_owned_report),
    db: Session = Depends(get_db),
    me: User = Depends(get_current_user),
):
    return report_service.update_field_report(db, report, payload.model_dump(exclude_unset=True), updated_by=me.id)
