from typing import List

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import require_admin
from ..db import get_db
from ..errors import NotFound
from ..models.models import User, utcnow
from ..schemas.analytics import ActivityEvent
from ..schemas.users import UserOut, UserUpdate
from ..services.activity import get_recent_activities


router = APIRouter(prefix="/api/admin", tags=["admin"])
logger = structlog.get_logger(__name__)


@router.get("/users", response_model=List[UserOut])
def list_users(db: Session = Depends(get_db), _=Depends(require_admin)):
    return db.query(User).order_by(User.first_name.asc(), User.last_name.asc()).all()


@router.patch("/users/{user_id}", response_model=UserOut)
def update_user(
    user_id: str,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    u = db.query(User).filter(User.id == user_id).first()
    if not u:
        raise NotFound("User not found")
    updates = payload.model_dump(exclude_unset=True)
    for field, value in updates.items():
        setattr(u, field, value)
    u.updated_at = utcnow()
    db.commit()
    db.refresh(u)
    logger.info("user_updated", user_id=u.id, fields=sorted(updates.keys()), updated_by=admin.id)
    return u


@router.get("/recent-activities", response_model=List[ActivityEvent])
def recent_activities(db: Session = Depends(get_db), _=Depends(require_admin)):
    return get_recent_activities(db)
