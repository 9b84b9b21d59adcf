from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth.security import get_current_user
from ..db import get_db
from ..models.models import User
from ..schemas.analytics import UserStats
from ..services.stats import get_user_stats


router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.get("/user-stats", response_model=UserStats)
def user_stats(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return get_user_stats(db, me.id)
