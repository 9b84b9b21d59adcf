"""
Authorization policy for field tasks and reports.

- Only accounts on the corporate mail domain may act at all
- Admins bypass ownership checks
- Technicians only see and change tasks assigned to them and reports they wrote
"""
from typing import Optional

import structlog

from ..config import settings
from ..errors import AccessDenied
from ..models.models import FieldReport, FieldTask, User


logger = structlog.get_logger(__name__)


def is_corporate_email(email: Optional[str]) -> bool:
    if not email:
        return False
    return email.lower().endswith(settings.corporate_email_domain.lower())


def is_admin(user: User) -> bool:
    return (user.role or "").lower() == "admin"


def ensure_corporate(user: Optional[User], message: str = "Access denied") -> User:
    if user is None or not is_corporate_email(user.email):
        logger.warning("access_denied", reason="domain", user_id=getattr(user, "id", None))
        raise AccessDenied(message)
    return user


def ensure_admin(user: Optional[User]) -> User:
    ensure_corporate(user, "Admin access required")
    if not is_admin(user):
        logger.warning("access_denied", reason="role", user_id=user.id)
        raise AccessDenied("Admin access required")
    return user


def can_access_task(user: User, task: FieldTask) -> bool:
    if is_admin(user):
        return True
    return task.assigned_to_id is not None and task.assigned_to_id == user.id


def can_access_report(user: User, report: FieldReport) -> bool:
    if is_admin(user):
        return True
    return report.user_id == user.id


def ensure_task_access(user: User, task: FieldTask) -> None:
    if not can_access_task(user, task):
        logger.warning("access_denied", reason="not_assignee", user_id=user.id, task_id=str(task.id))
        raise AccessDenied()


def ensure_report_access(user: User, report: FieldReport) -> None:
    if not can_access_report(user, report):
        logger.warning("access_denied", reason="not_author", user_id=user.id, report_id=str(report.id))
        raise AccessDenied()


def listing_owner_id(user: User, all_requested: bool) -> Optional[str]:
    """Owner id to scope a listing by; None only for an admin asking for everything."""
    if is_admin(user) and all_requested:
        return None
    return user.id
