from typing import Literal, Optional

from .common import CamelResponse, UtcDatetime
from .users import UserOut


class UserStats(CamelResponse):
    today_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    weekly_tasks: int = 0


class ActivityEvent(CamelResponse):
    id: str
    type: Literal["task", "report"]
    action: Optional[str] = None
    location: str
    timestamp: UtcDatetime
    user: Optional[UserOut] = None
