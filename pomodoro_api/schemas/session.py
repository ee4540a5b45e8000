from datetime import datetime

from pydantic import Field

from pomodoro_api.schemas.base import CamelModel


class SessionCreate(CamelModel):
    task_name: str = Field(default="", max_length=500)
    duration: int = Field(ge=1, le=1440)  # minutes


class SessionResponse(CamelModel):
    id: int
    user_id: str
    task_name: str
    start_time: datetime
    end_time: datetime | None
    duration: int
    is_completed: bool
