import logging
from datetime import date, datetime, tzinfo

from sqlalchemy.ext.asyncio import AsyncSession

from pomodoro_api.config import settings
from pomodoro_api.schemas.stats import (
    CalendarData,
    DailyDetail,
    MonthlyStats,
    OverallStatistics,
    WeeklyDay,
)
from pomodoro_api.services import aggregation
from pomodoro_api.services.session_service import find_sessions

logger = logging.getLogger(__name__)


def today(tz: tzinfo | None = None) -> date:
    """Current date in the configured calendar timezone."""
    return datetime.now(tz or settings.tz).date()


async def get_statistics(db: AsyncSession, user_id: str) -> OverallStatistics:
    tz = settings.tz
    logger.info("Computing overall statistics for user %s", user_id)
    # totalTasks counts unfinished sessions too, so no completion filter here
    sessions = await find_sessions(db, user_id, tz=tz)
    stats = aggregation.build_overall_statistics(sessions, today(tz), tz)
    logger.info("User %s has %d completed sessions", user_id, stats.total_pomodoros)
    return stats


async def get_weekly_stats(db: AsyncSession, user_id: str) -> list[WeeklyDay]:
    tz = settings.tz
    days = aggregation.week_window(today(tz))
    logger.info(
        "Computing weekly stats for user %s (%s to %s)", user_id, days[0], days[-1]
    )
    sessions = await find_sessions(
        db, user_id, completed=True, end_from=days[0], end_to=days[-1], tz=tz
    )
    return aggregation.build_weekly_stats(sessions, days[-1], tz)


async def get_monthly_stats(
    db: AsyncSession, user_id: str, year: int, month: int
) -> MonthlyStats:
    tz = settings.tz
    first, last = aggregation.month_bounds(year, month)
    logger.info("Computing monthly stats for user %s (%d/%02d)", user_id, year, month)
    sessions = await find_sessions(
        db, user_id, completed=True, end_from=first, end_to=last, tz=tz
    )
    return aggregation.build_monthly_stats(sessions, year, month, tz)


async def get_calendar_data(
    db: AsyncSession,
    user_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> CalendarData:
    tz = settings.tz
    start, end = aggregation.resolve_calendar_range(
        start_date,
        end_date,
        today(tz),
        default_days=settings.CALENDAR_DEFAULT_DAYS,
        max_days=settings.CALENDAR_MAX_DAYS,
    )
    logger.info("Computing calendar data for user %s (%s to %s)", user_id, start, end)
    sessions = await find_sessions(
        db, user_id, completed=True, end_from=start, end_to=end, tz=tz
    )
    return aggregation.build_calendar_data(sessions, start, end, tz)


async def get_daily_detail(
    db: AsyncSession, user_id: str, day: date | None = None
) -> DailyDetail:
    tz = settings.tz
    day = day or today(tz)
    logger.info("Computing daily detail for user %s on %s", user_id, day)
    sessions = await find_sessions(
        db, user_id, completed=True, end_from=day, end_to=day, tz=tz
    )
    detail = aggregation.build_daily_detail(sessions, day, tz)
    logger.info("Found %d sessions on %s", detail.total_pomodoros, day)
    return detail
