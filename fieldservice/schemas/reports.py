import uuid
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from .common import CamelModel, CamelResponse, InputDatetime, UtcDatetime
from .tasks import FieldTaskOut
from .users import UserOut


ReportStatus = Literal["draft", "submitted"]


class FieldReportCreate(CamelModel):
    """Report body; the author is always the caller and is never read from the body."""

    task_id: Optional[uuid.UUID] = None
    location: str = Field(min_length=1)
    vehicle_plate: str = Field(min_length=1, max_length=20)
    operation_type: str = Field(min_length=1, max_length=100)
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_phone: Optional[str] = Field(default=None, max_length=20)
    details: Optional[str] = None
    photos: Optional[List[str]] = None
    report_date: InputDatetime
    report_time: str = Field(min_length=1, max_length=10)
    status: ReportStatus = "draft"


class FieldReportUpdate(CamelModel):
    task_id: Optional[uuid.UUID] = None
    location: Optional[str] = Field(default=None, min_length=1)
    vehicle_plate: Optional[str] = Field(default=None, min_length=1, max_length=20)
    operation_type: Optional[str] = Field(default=None, min_length=1, max_length=100)
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_phone: Optional[str] = Field(default=None, max_length=20)
    details: Optional[str] = None
    photos: Optional[List[str]] = None
    report_date: Optional[InputDatetime] = None
    report_time: Optional[str] = Field(default=None, min_length=1, max_length=10)
    status: Optional[ReportStatus] = None

    @field_validator(
        "location", "vehicle_plate", "operation_type", "report_date", "report_time", "status",
        mode="before",
    )
    @classmethod
    def _required_not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class FieldReportOut(CamelResponse):
    id: uuid.UUID
    task_id: Optional[uuid.UUID] = None
    user_id: str
    location: str
    vehicle_plate: str
    operation_type: str
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    details: Optional[str] = None
    photos: Optional[List[str]] = None
    report_date: UtcDatetime
    report_time: str
    status: str
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class ReportWithRelations(FieldReportOut):
    task: Optional[FieldTaskOut] = None
    user: Optional[UserOut] = None
