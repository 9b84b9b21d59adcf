"""
Seed the local database with an admin, two technicians, tasks and reports.

Usage:
  python scripts/seed_demo_data.py

This script is idempotent: users are upserted by id and tasks by title,
so running it twice does not duplicate rows.
"""
import os
import sys
from datetime import timedelta

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from fieldservice.config import settings
from fieldservice.db import SessionLocal, Base, engine
from fieldservice.models.models import FieldReport, FieldTask, User, utcnow


def _email(local_part: str) -> str:
    return f"{local_part}{settings.corporate_email_domain}"


def ensure_user(session, user_id: str, first_name: str, last_name: str, role: str) -> User:
    user = session.query(User).filter(User.id == user_id).first()
    if user is None:
        user = User(id=user_id, created_at=utcnow())
        session.add(user)
    user.email = _email(f"{first_name}.{last_name}".lower())
    user.first_name = first_name
    user.last_name = last_name
    user.role = role
    user.updated_at = utcnow()
    session.flush()
    return user


def ensure_task(session, title: str, **fields) -> FieldTask:
    task = session.query(FieldTask).filter(FieldTask.title == title).first()
    if task is None:
        task = FieldTask(title=title, created_at=utcnow())
        session.add(task)
    for key, value in fields.items():
        setattr(task, key, value)
    task.updated_at = utcnow()
    session.flush()
    return task


def main():
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        now = utcnow()
        ensure_user(session, "demo-admin", "Ayse", "Yilmaz", "admin")
        ali = ensure_user(session, "demo-tech-1", "Ali", "Demir", "technician")
        mehmet = ensure_user(session, "demo-tech-2", "Mehmet", "Kaya", "technician")

        fiber = ensure_task(
            session,
            "Fiber splice repair",
            location="Kadikoy, Istanbul",
            status="pending",
            priority="high",
            assigned_to_id=ali.id,
            customer_name="Moda Residence",
            customer_phone="+90 216 555 0101",
            vehicle_plate="34 ABC 123",
            scheduled_date=now,
            scheduled_start_time="09:00",
            scheduled_end_time="11:00",
        )
        ensure_task(
            session,
            "Router replacement",
            location="Besiktas, Istanbul",
            status="in_progress",
            priority="medium",
            assigned_to_id=mehmet.id,
            customer_name="Levent Plaza",
            scheduled_date=now + timedelta(days=1),
            scheduled_start_time="13:00",
        )
        ensure_task(
            session,
            "Site survey",
            location="Uskudar, Istanbul",
            status="completed",
            priority="low",
            assigned_to_id=ali.id,
            scheduled_date=now - timedelta(days=2),
            completed_at=now - timedelta(days=2),
        )

        if not session.query(FieldReport).filter(FieldReport.task_id == fiber.id).first():
            session.add(FieldReport(
                task_id=fiber.id,
                user_id=ali.id,
                location=fiber.location,
                vehicle_plate="34 ABC 123",
                operation_type="Fiber splice",
                customer_name=fiber.customer_name,
                details="Splice closure replaced, signal verified.",
                photos=[],
                report_date=now,
                report_time="10:45",
                status="submitted",
                created_at=now,
                updated_at=now,
            ))

        session.commit()
        print("Seed completed: users, tasks and reports upserted.")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
