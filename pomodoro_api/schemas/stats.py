from datetime import datetime

from pomodoro_api.schemas.base import CamelModel


class ProductiveDay(CamelModel):
    date: str  # ISO date string
    pomodoros: int
    minutes: int
    hours: float


# --- Daily detail ---


class SessionSlot(CamelModel):
    id: int
    start_time: str  # HH:mm
    end_time: str | None
    duration: int


class DailyTaskGroup(CamelModel):
    task_name: str
    pomodoros: int
    minutes: int
    hours: float
    percentage: float
    sessions: list[SessionSlot]


class HourlyBucket(CamelModel):
    hour: int  # 0-23
    pomodoros: int
    minutes: int


class DailySessionEntry(CamelModel):
    id: int
    task_name: str
    duration: int
    start_time: str  # HH:mm
    end_time: str | None
    full_start_time: datetime
    full_end_time: datetime | None


class DailyDetail(CamelModel):
    date: str
    day_name: str
    total_pomodoros: int
    total_minutes: int
    total_hours: float
    average_session_duration: float
    tasks: list[DailyTaskGroup]
    hourly_distribution: list[HourlyBucket]
    sessions: list[DailySessionEntry]


# --- Weekly ---


class WeeklyDay(CamelModel):
    date: str
    day: str  # localized day name
    pomodoros: int
    minutes: int
    hours: float


# --- Monthly ---


class TopTask(CamelModel):
    task_name: str
    pomodoros: int
    minutes: int
    percentage: float


class MonthlyStats(CamelModel):
    month: int
    year: int
    total_pomodoros: int
    total_minutes: int
    total_hours: float
    active_days: int
    average_per_day: float
    most_productive_day: ProductiveDay | None
    top_tasks: list[TopTask]


# --- Calendar ---


class CalendarSession(CamelModel):
    id: int
    task_name: str
    duration: int
    start_time: datetime
    end_time: datetime | None


class CalendarDay(CamelModel):
    date: str
    pomodoros: int
    minutes: int
    hours: float
    sessions: list[CalendarSession]


class CalendarSummary(CamelModel):
    total_pomodoros: int
    total_minutes: int
    total_hours: float
    active_days: int


class CalendarData(CamelModel):
    start_date: str
    end_date: str
    data: list[CalendarDay]
    summary: CalendarSummary


# --- Overall ---


class OverallStatistics(CamelModel):
    total_pomodoros: int
    total_minutes: int
    total_tasks: int
    completed_tasks: int
    average_per_day: float
    today_pomodoros: int
    today_minutes: int
    average_session_duration: float
    most_productive_day: ProductiveDay | None
