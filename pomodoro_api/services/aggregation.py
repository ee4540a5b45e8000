"""Pure report builders over a snapshot of pomodoro sessions.

Every builder takes the sessions it may consider (a superset is fine, each
one applies its own selection), the report parameters and the calendar
timezone, and returns a fully populated schema record. Nothing in this
module touches the database or logs; the async wrappers in
``stats_service`` do both around these calls.

Stored timestamps without tzinfo are treated as UTC.
"""
import calendar
from collections import defaultdict
from collections.abc import Iterable
from datetime import MAXYEAR, MINYEAR, date, datetime, timedelta, timezone, tzinfo
from typing import Protocol

from pomodoro_api.exceptions import InvalidRangeError
from pomodoro_api.schemas.stats import (
    CalendarData,
    CalendarDay,
    CalendarSession,
    CalendarSummary,
    DailyDetail,
    DailySessionEntry,
    DailyTaskGroup,
    HourlyBucket,
    MonthlyStats,
    OverallStatistics,
    ProductiveDay,
    SessionSlot,
    TopTask,
    WeeklyDay,
)

# Monday=0 .. Sunday=6, matching date.weekday()
DAY_NAMES = (
    "Pazartesi",
    "Salı",
    "Çarşamba",
    "Perşembe",
    "Cuma",
    "Cumartesi",
    "Pazar",
)

WEEK_DAYS = 7
TOP_TASK_LIMIT = 5
RECENT_WINDOW_DAYS = 30


class SessionLike(Protocol):
    id: int
    task_name: str
    start_time: datetime
    end_time: datetime | None
    duration: int
    is_completed: bool


# --- Helpers ---


def to_local(ts: datetime, tz: tzinfo) -> datetime:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(tz)


def local_date(ts: datetime, tz: tzinfo) -> date:
    return to_local(ts, tz).date()


def clock(ts: datetime | None, tz: tzinfo) -> str | None:
    """Format as HH:mm in the calendar timezone."""
    if ts is None:
        return None
    return to_local(ts, tz).strftime("%H:%M")


def day_name(day: date) -> str:
    return DAY_NAMES[day.weekday()]


def hours(minutes: int) -> float:
    return round(minutes / 60, 1)


def ratio(numerator: float, denominator: float) -> float:
    """One-decimal average, 0 when there is nothing to divide by."""
    if not denominator:
        return 0.0
    return round(numerator / denominator, 1)


def percentage(part: int, total: int) -> float:
    # Each share is rounded on its own, so a full set can sum to 100.1
    if not total:
        return 0.0
    return round(part / total * 100, 1)


def is_countable(session: SessionLike) -> bool:
    """A pomodoro counts once it is completed and has an end time."""
    return bool(session.is_completed) and session.end_time is not None


def completed_between(
    sessions: Iterable[SessionLike], start: date, end: date, tz: tzinfo
) -> list[SessionLike]:
    """Countable sessions whose completion date falls in [start, end]."""
    return [
        s for s in sessions
        if is_countable(s) and start <= local_date(s.end_time, tz) <= end
    ]


def _by_start(sessions: Iterable[SessionLike], tz: tzinfo) -> list[SessionLike]:
    return sorted(sessions, key=lambda s: (to_local(s.start_time, tz), s.id or 0))


def group_by_day(
    sessions: Iterable[SessionLike], tz: tzinfo
) -> dict[date, list[SessionLike]]:
    groups: dict[date, list[SessionLike]] = defaultdict(list)
    for s in sessions:
        groups[local_date(s.end_time, tz)].append(s)
    return dict(groups)


def rank_tasks(sessions: Iterable[SessionLike]) -> list[tuple[str, list[SessionLike]]]:
    """Group by task name; most pomodoros first, ties by task name."""
    groups: dict[str, list[SessionLike]] = defaultdict(list)
    for s in sessions:
        groups[s.task_name or ""].append(s)
    return sorted(groups.items(), key=lambda item: (-len(item[1]), item[0]))


def _minutes(sessions: Iterable[SessionLike]) -> int:
    return sum(s.duration for s in sessions)


def most_productive_day(
    sessions: Iterable[SessionLike], tz: tzinfo
) -> ProductiveDay | None:
    """Day with the most pomodoros. Ties go to the earliest date."""
    by_day = group_by_day(sessions, tz)
    if not by_day:
        return None
    best = min(by_day, key=lambda day: (-len(by_day[day]), day))
    minutes = _minutes(by_day[best])
    return ProductiveDay(
        date=best.isoformat(),
        pomodoros=len(by_day[best]),
        minutes=minutes,
        hours=hours(minutes),
    )


# --- Daily detail ---


def build_daily_detail(
    sessions: Iterable[SessionLike], day: date, tz: tzinfo = timezone.utc
) -> DailyDetail:
    selected = _by_start(completed_between(sessions, day, day, tz), tz)
    total = len(selected)
    total_minutes = _minutes(selected)

    tasks = []
    for task_name, group in rank_tasks(selected):
        minutes = _minutes(group)
        tasks.append(DailyTaskGroup(
            task_name=task_name,
            pomodoros=len(group),
            minutes=minutes,
            hours=hours(minutes),
            percentage=percentage(len(group), total),
            sessions=[
                SessionSlot(
                    id=s.id,
                    start_time=clock(s.start_time, tz),
                    end_time=clock(s.end_time, tz),
                    duration=s.duration,
                )
                for s in group
            ],
        ))

    hourly: dict[int, list[SessionLike]] = defaultdict(list)
    for s in selected:
        hourly[to_local(s.start_time, tz).hour].append(s)

    return DailyDetail(
        date=day.isoformat(),
        day_name=day_name(day),
        total_pomodoros=total,
        total_minutes=total_minutes,
        total_hours=hours(total_minutes),
        average_session_duration=ratio(total_minutes, total),
        tasks=tasks,
        hourly_distribution=[
            HourlyBucket(hour=hour, pomodoros=len(group), minutes=_minutes(group))
            for hour, group in sorted(hourly.items())
        ],
        sessions=[
            DailySessionEntry(
                id=s.id,
                task_name=s.task_name,
                duration=s.duration,
                start_time=clock(s.start_time, tz),
                end_time=clock(s.end_time, tz),
                full_start_time=s.start_time,
                full_end_time=s.end_time,
            )
            for s in selected
        ],
    )


# --- Weekly ---


def week_window(today: date) -> list[date]:
    """The seven dates ending today, oldest first."""
    return [today - timedelta(days=offset) for offset in range(WEEK_DAYS - 1, -1, -1)]


def build_weekly_stats(
    sessions: Iterable[SessionLike], today: date, tz: tzinfo = timezone.utc
) -> list[WeeklyDay]:
    days = week_window(today)
    by_day = group_by_day(completed_between(sessions, days[0], days[-1], tz), tz)

    weekly = []
    for day in days:
        group = by_day.get(day, [])
        minutes = _minutes(group)
        weekly.append(WeeklyDay(
            date=day.isoformat(),
            day=day_name(day),
            pomodoros=len(group),
            minutes=minutes,
            hours=hours(minutes),
        ))
    return weekly


# --- Monthly ---


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of the month, inclusive."""
    if not 1 <= month <= 12:
        raise InvalidRangeError(f"Month must be between 1 and 12, got {month}")
    if not MINYEAR <= year <= MAXYEAR:
        raise InvalidRangeError(f"Year must be between {MINYEAR} and {MAXYEAR}, got {year}")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def build_monthly_stats(
    sessions: Iterable[SessionLike], year: int, month: int, tz: tzinfo = timezone.utc
) -> MonthlyStats:
    first, last = month_bounds(year, month)
    selected = completed_between(sessions, first, last, tz)
    total = len(selected)
    total_minutes = _minutes(selected)
    active_days = len(group_by_day(selected, tz))

    top_tasks = [
        TopTask(
            task_name=task_name,
            pomodoros=len(group),
            minutes=_minutes(group),
            percentage=percentage(len(group), total),
        )
        for task_name, group in rank_tasks(selected)[:TOP_TASK_LIMIT]
    ]

    return MonthlyStats(
        month=month,
        year=year,
        total_pomodoros=total,
        total_minutes=total_minutes,
        total_hours=hours(total_minutes),
        active_days=active_days,
        average_per_day=ratio(total, active_days),
        most_productive_day=most_productive_day(selected, tz),
        top_tasks=top_tasks,
    )


# --- Calendar ---


def resolve_calendar_range(
    start: date | None,
    end: date | None,
    today: date,
    default_days: int = 90,
    max_days: int | None = None,
) -> tuple[date, date]:
    """Fill in defaults (end=today, start=end-default_days) and validate.

    The default start is clamped to date.min.
    """
    end = end or today
    if start is None:
        start = end - timedelta(days=min(default_days, (end - date.min).days))
    if start > end:
        raise InvalidRangeError(
            f"startDate {start.isoformat()} is after endDate {end.isoformat()}"
        )
    span = (end - start).days + 1
    if max_days is not None and span > max_days:
        raise InvalidRangeError(f"Date range spans {span} days, maximum is {max_days}")
    return start, end


def build_calendar_data(
    sessions: Iterable[SessionLike], start: date, end: date, tz: tzinfo = timezone.utc
) -> CalendarData:
    if start > end:
        raise InvalidRangeError(
            f"startDate {start.isoformat()} is after endDate {end.isoformat()}"
        )
    selected = completed_between(sessions, start, end, tz)
    by_day = group_by_day(selected, tz)

    data = []
    for offset in range((end - start).days + 1):
        day = start + timedelta(days=offset)
        group = _by_start(by_day.get(day, []), tz)
        minutes = _minutes(group)
        data.append(CalendarDay(
            date=day.isoformat(),
            pomodoros=len(group),
            minutes=minutes,
            hours=hours(minutes),
            sessions=[
                CalendarSession(
                    id=s.id,
                    task_name=s.task_name,
                    duration=s.duration,
                    start_time=s.start_time,
                    end_time=s.end_time,
                )
                for s in group
            ],
        ))

    total_minutes = _minutes(selected)
    return CalendarData(
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        data=data,
        summary=CalendarSummary(
            total_pomodoros=len(selected),
            total_minutes=total_minutes,
            total_hours=hours(total_minutes),
            active_days=len(by_day),
        ),
    )


# --- Overall ---


def build_overall_statistics(
    sessions: Iterable[SessionLike], today: date, tz: tzinfo = timezone.utc
) -> OverallStatistics:
    every = list(sessions)
    completed = [s for s in every if is_countable(s)]
    today_sessions = [s for s in completed if local_date(s.end_time, tz) == today]

    window_start = today - timedelta(days=RECENT_WINDOW_DAYS)
    recent = [s for s in completed if local_date(s.end_time, tz) >= window_start]
    recent_active_days = len(group_by_day(recent, tz))

    total_minutes = _minutes(completed)
    return OverallStatistics(
        total_pomodoros=len(completed),
        total_minutes=total_minutes,
        total_tasks=len(every),
        completed_tasks=len(completed),
        average_per_day=ratio(len(recent), recent_active_days),
        today_pomodoros=len(today_sessions),
        today_minutes=_minutes(today_sessions),
        average_session_duration=ratio(total_minutes, len(completed)),
        most_productive_day=most_productive_day(recent, tz),
    )
