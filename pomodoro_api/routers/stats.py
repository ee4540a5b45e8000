from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pomodoro_api.database import get_db
from pomodoro_api.dependencies import get_current_user
from pomodoro_api.models.user import User
from pomodoro_api.schemas.stats import (
    CalendarData,
    DailyDetail,
    MonthlyStats,
    OverallStatistics,
    WeeklyDay,
)
from pomodoro_api.services import stats_service

router = APIRouter(tags=["stats"])


@router.get("/statistics", response_model=OverallStatistics)
async def get_statistics(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.get_statistics(db, user.id)


@router.get("/weekly-stats", response_model=list[WeeklyDay])
async def get_weekly_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.get_weekly_stats(db, user.id)


@router.get("/monthly-stats", response_model=MonthlyStats)
async def get_monthly_stats(
    year: int | None = Query(default=None, ge=1, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Monthly report; year and month default to the current ones."""
    current = stats_service.today()
    return await stats_service.get_monthly_stats(
        db, user.id, year=year or current.year, month=month or current.month
    )


@router.get("/calendar-data", response_model=CalendarData)
async def get_calendar_data(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.get_calendar_data(
        db, user.id, start_date=start_date, end_date=end_date
    )


@router.get("/daily-detail", response_model=DailyDetail)
async def get_daily_detail(
    day: date | None = Query(default=None, alias="date"),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await stats_service.get_daily_detail(db, user.id, day)
