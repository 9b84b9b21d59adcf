import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    ForeignKey,
    JSON,
    Text,
    Index,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship, Mapped, mapped_column

from ..db import Base


USER_ROLES = ("technician", "admin")
TASK_STATUSES = ("pending", "in_progress", "completed")
TASK_PRIORITIES = ("low", "medium", "high")
REPORT_STATUSES = ("draft", "submitted")


def utcnow() -> datetime:
    # Stored as naive UTC so SQLite and PostgreSQL compare the same way
    return datetime.now(timezone.utc).replace(tzinfo=None)


def uuid_pk() -> Mapped[uuid.UUID]:
    return mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)


class User(Base):
    __tablename__ = "users"

    # Subject id issued by the identity provider
    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, index=True)
    first_name: Mapped[Optional[str]] = mapped_column(String(255))
    last_name: Mapped[Optional[str]] = mapped_column(String(255))
    profile_image_url: Mapped[Optional[str]] = mapped_column(String(1024))
    role: Mapped[str] = mapped_column(String(20), default="technician", nullable=False)  # technician|admin
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    assigned_tasks = relationship("FieldTask", back_populates="assigned_to")
    reports = relationship("FieldReport", back_populates="user")


class FieldTask(Base):
    __tablename__ = "field_tasks"

    id: Mapped[uuid.UUID] = uuid_pk()
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(50), default="pending", nullable=False, index=True)  # pending|in_progress|completed
    priority: Mapped[str] = mapped_column(String(20), default="medium", nullable=False)  # low|medium|high
    location: Mapped[str] = mapped_column(Text, nullable=False)

    assigned_to_id: Mapped[Optional[str]] = mapped_column(
        String(255), ForeignKey("users.id", ondelete="SET NULL"), index=True
    )

    customer_name: Mapped[Optional[str]] = mapped_column(String(255))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20))
    vehicle_plate: Mapped[Optional[str]] = mapped_column(String(20))

    scheduled_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), index=True)
    scheduled_start_time: Mapped[Optional[str]] = mapped_column(String(10))
    scheduled_end_time: Mapped[Optional[str]] = mapped_column(String(10))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)

    assigned_to = relationship("User", back_populates="assigned_tasks")
    reports = relationship("FieldReport", back_populates="task")

    __table_args__ = (
        Index("idx_field_tasks_assignee_status", "assigned_to_id", "status"),
    )


class FieldReport(Base):
    __tablename__ = "field_reports"

    id: Mapped[uuid.UUID] = uuid_pk()
    task_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), ForeignKey("field_tasks.id", ondelete="SET NULL"), index=True
    )
    user_id: Mapped[str] = mapped_column(String(255), ForeignKey("users.id"), nullable=False, index=True)

    location: Mapped[str] = mapped_column(Text, nullable=False)
    vehicle_plate: Mapped[str] = mapped_column(String(20), nullable=False)
    operation_type: Mapped[str] = mapped_column(String(100), nullable=False)
    customer_name: Mapped[Optional[str]] = mapped_column(String(255))
    customer_phone: Mapped[Optional[str]] = mapped_column(String(20))
    details: Mapped[Optional[str]] = mapped_column(Text)
    photos: Mapped[Optional[list]] = mapped_column(JSON)  # ordered list of photo URLs/paths

    report_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    report_time: Mapped[str] = mapped_column(String(10), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default="draft", nullable=False, index=True)  # draft|submitted

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    task = relationship("FieldTask", back_populates="reports")
    user = relationship("User", back_populates="reports")
