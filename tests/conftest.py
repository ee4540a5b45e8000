import uuid
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import StaticPool
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from pomodoro_api.database import get_db
from pomodoro_api.dependencies import get_current_user
from pomodoro_api.main import app
from pomodoro_api.models import Base
from pomodoro_api.models.session import PomodoroSession
from pomodoro_api.models.user import User
from pomodoro_api.services.auth_service import hash_password

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = User(
        id=str(uuid.uuid4()),
        username="testuser",
        email="test@example.com",
        display_name="Test User",
        password_hash=hash_password("correct-horse"),
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def second_user(db_session: AsyncSession) -> User:
    user = User(
        id=str(uuid.uuid4()),
        username="otheruser",
        email="other@example.com",
        display_name="Other User",
        password_hash=hash_password("battery-staple"),
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
def add_session(db_session: AsyncSession):
    """Insert a session row directly, bypassing the API's server-side timestamps."""

    async def _add(
        user: User,
        end_time: datetime | None,
        duration: int = 25,
        task_name: str = "",
        start_time: datetime | None = None,
        is_completed: bool = True,
    ) -> PomodoroSession:
        if start_time is None:
            start_time = (end_time or datetime.now(timezone.utc)) - timedelta(minutes=duration)
        session = PomodoroSession(
            user_id=user.id,
            task_name=task_name,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            is_completed=is_completed,
        )
        db_session.add(session)
        await db_session.commit()
        await db_session.refresh(session)
        return session

    return _add


def _override_db(db_engine):
    session_factory = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    return override_get_db


@pytest.fixture
async def client(db_engine, test_user: User) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = _override_db(db_engine)
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def anon_client(db_engine) -> AsyncGenerator[AsyncClient, None]:
    """Client that goes through real bearer-token authentication."""
    app.dependency_overrides[get_db] = _override_db(db_engine)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
