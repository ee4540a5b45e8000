import logging
from datetime import date, datetime, time, timedelta, timezone, tzinfo

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from pomodoro_api.exceptions import SessionAlreadyCompletedError, SessionNotFoundError
from pomodoro_api.models.session import PomodoroSession

logger = logging.getLogger(__name__)


def day_start_utc(day: date, tz: tzinfo) -> datetime | None:
    """Midnight of a calendar day in tz, as a UTC instant.

    None when that instant falls outside the datetime range, which happens
    only at the first and last representable days.
    """
    try:
        return datetime.combine(day, time.min, tzinfo=tz).astimezone(timezone.utc)
    except OverflowError:
        return None


async def get_sessions(
    db: AsyncSession,
    user_id: str,
    limit: int = 50,
    offset: int = 0,
    task_name: str | None = None,
    completed: bool | None = None,
) -> list[PomodoroSession]:
    logger.info("Listing sessions for user %s", user_id)
    query = select(PomodoroSession).where(PomodoroSession.user_id == user_id)
    if task_name is not None:
        query = query.where(PomodoroSession.task_name == task_name)
    if completed is not None:
        query = query.where(PomodoroSession.is_completed == completed)
    query = query.order_by(
        PomodoroSession.start_time.desc(), PomodoroSession.id.desc()
    ).limit(limit).offset(offset)
    result = await db.execute(query)
    return list(result.scalars().all())


async def find_sessions(
    db: AsyncSession,
    user_id: str,
    completed: bool | None = None,
    end_from: date | None = None,
    end_to: date | None = None,
    tz: tzinfo = timezone.utc,
) -> list[PomodoroSession]:
    """Sessions whose completion date lies in [end_from, end_to] in tz.

    Either bound may be omitted. With a bound, sessions without an end time
    are excluded.
    """
    query = select(PomodoroSession).where(PomodoroSession.user_id == user_id)
    if completed is not None:
        query = query.where(PomodoroSession.is_completed == completed)
    if end_from is not None or end_to is not None:
        query = query.where(PomodoroSession.end_time.is_not(None))
    if end_from is not None:
        lower = day_start_utc(end_from, tz)
        if lower is not None:
            query = query.where(PomodoroSession.end_time >= lower)
    # date.max has no following day; the upper bound is open there
    if end_to is not None and end_to < date.max:
        upper = day_start_utc(end_to + timedelta(days=1), tz)
        if upper is not None:
            query = query.where(PomodoroSession.end_time < upper)
    query = query.order_by(PomodoroSession.start_time.asc(), PomodoroSession.id.asc())
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_session(db: AsyncSession, user_id: str, session_id: int) -> PomodoroSession:
    result = await db.execute(
        select(PomodoroSession).where(
            PomodoroSession.id == session_id, PomodoroSession.user_id == user_id
        )
    )
    session = result.scalar_one_or_none()
    if session is None:
        logger.warning("Session %s not found for user %s", session_id, user_id)
        raise SessionNotFoundError(session_id)
    return session


async def create_session(db: AsyncSession, user_id: str, data: dict) -> PomodoroSession:
    # Owner, timestamps and state are server-controlled
    session = PomodoroSession(
        task_name=data.get("task_name") or "",
        duration=data["duration"],
        user_id=user_id,
        start_time=datetime.now(timezone.utc),
        end_time=None,
        is_completed=False,
    )
    logger.info("Creating session for user %s: %r", user_id, session.task_name)
    db.add(session)
    await db.flush()
    await db.refresh(session)
    return session


async def complete_session(db: AsyncSession, user_id: str, session_id: int) -> PomodoroSession:
    session = await get_session(db, user_id, session_id)
    if session.is_completed:
        logger.warning("Session %s is already completed", session_id)
        raise SessionAlreadyCompletedError(session_id)

    session.end_time = datetime.now(timezone.utc)
    session.is_completed = True
    logger.info("Completing session %s for user %s", session_id, user_id)

    await db.flush()
    await db.refresh(session)
    return session


async def delete_session(db: AsyncSession, user_id: str, session_id: int) -> None:
    session = await get_session(db, user_id, session_id)
    logger.info("Deleting session %s for user %s", session_id, user_id)
    await db.delete(session)
    await db.flush()
