import uuid
from typing import Literal, Optional

from pydantic import Field, field_validator

from .common import CamelModel, CamelResponse, InputDatetime, UtcDatetime
from .users import UserOut


TaskStatus = Literal["pending", "in_progress", "completed"]
TaskPriority = Literal["low", "medium", "high"]


class FieldTaskCreate(CamelModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    status: TaskStatus = "pending"
    priority: TaskPriority = "medium"
    location: str = Field(min_length=1)
    assigned_to_id: Optional[str] = None
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_phone: Optional[str] = Field(default=None, max_length=20)
    vehicle_plate: Optional[str] = Field(default=None, max_length=20)
    scheduled_date: Optional[InputDatetime] = None
    scheduled_start_time: Optional[str] = Field(default=None, max_length=10)
    scheduled_end_time: Optional[str] = Field(default=None, max_length=10)
    completed_at: Optional[InputDatetime] = None


class FieldTaskUpdate(CamelModel):
    """Partial update: only keys present in the body are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    location: Optional[str] = Field(default=None, min_length=1)
    assigned_to_id: Optional[str] = None
    customer_name: Optional[str] = Field(default=None, max_length=255)
    customer_phone: Optional[str] = Field(default=None, max_length=20)
    vehicle_plate: Optional[str] = Field(default=None, max_length=20)
    scheduled_date: Optional[InputDatetime] = None
    scheduled_start_time: Optional[str] = Field(default=None, max_length=10)
    scheduled_end_time: Optional[str] = Field(default=None, max_length=10)
    completed_at: Optional[InputDatetime] = None

    # Only runs for keys the client actually sent
    @field_validator("title", "status", "priority", "location", mode="before")
    @classmethod
    def _required_not_null(cls, v):
        if v is None:
            raise ValueError("Field cannot be null")
        return v


class FieldTaskOut(CamelResponse):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    status: str
    priority: str
    location: str
    assigned_to_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    vehicle_plate: Optional[str] = None
    scheduled_date: Optional[UtcDatetime] = None
    scheduled_start_time: Optional[str] = None
    scheduled_end_time: Optional[str] = None
    completed_at: Optional[UtcDatetime] = None
    created_at: Optional[UtcDatetime] = None
    updated_at: Optional[UtcDatetime] = None


class TaskWithAssignee(FieldTaskOut):
    assigned_to: Optional[UserOut] = None
