from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy.ext.asyncio import AsyncSession

from pomodoro_api.config import settings
from pomodoro_api.exceptions import UserAlreadyExistsError
from pomodoro_api.services.auth_service import (
    authenticate,
    decode_access_token,
    issue_access_token,
    register_user,
)


@pytest.mark.asyncio
async def test_issue_and_decode_token(test_user):
    tokens = issue_access_token(test_user)
    assert tokens["token_type"] == "bearer"
    assert tokens["expires_in"] == settings.ACCESS_TOKEN_EXPIRE_DAYS * 86400
    assert tokens["user_id"] == test_user.id
    assert tokens["username"] == "testuser"
    assert decode_access_token(tokens["token"]) == test_user.id


def test_decode_rejects_tampered_and_foreign_tokens():
    with pytest.raises(ValueError):
        decode_access_token("not-a-jwt")

    foreign = jwt.encode(
        {"sub": "someone", "exp": datetime.now(timezone.utc) + timedelta(hours=1)},
        "another-secret",
        algorithm="HS256",
    )
    with pytest.raises(ValueError):
        decode_access_token(foreign)


def test_decode_rejects_expired_token():
    now = datetime.now(timezone.utc)
    expired = jwt.encode(
        {
            "sub": "someone",
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
            "iat": now - timedelta(days=2),
            "exp": now - timedelta(days=1),
        },
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )
    with pytest.raises(ValueError):
        decode_access_token(expired)


@pytest.mark.asyncio
async def test_register_user(db_session: AsyncSession):
    user = await register_user(
        db=db_session,
        username="newuser",
        email="new@example.com",
        password="long-enough",
    )
    assert user.username == "newuser"
    assert user.display_name == "newuser"
    assert user.password_hash != "long-enough"


@pytest.mark.asyncio
async def test_register_duplicate_rejected(db_session: AsyncSession, test_user):
    with pytest.raises(UserAlreadyExistsError):
        await register_user(db_session, "testuser", "fresh@example.com", "long-enough")
    with pytest.raises(UserAlreadyExistsError):
        await register_user(db_session, "fresh", "test@example.com", "long-enough")


@pytest.mark.asyncio
async def test_authenticate_by_username_or_email(db_session: AsyncSession, test_user):
    assert (await authenticate(db_session, "testuser", "correct-horse")).id == test_user.id
    assert (await authenticate(db_session, "test@example.com", "correct-horse")).id == test_user.id
    assert await authenticate(db_session, "testuser", "wrong-password") is None
    assert await authenticate(db_session, "nobody", "correct-horse") is None


@pytest.mark.asyncio
async def test_register_login_profile_flow(anon_client):
    response = await anon_client.post("/auth/register", json={
        "username": "pomo",
        "email": "pomo@example.com",
        "password": "tomato-timer",
    })
    assert response.status_code == 201

    response = await anon_client.post("/auth/login", json={
        "username": "pomo@example.com",
        "password": "tomato-timer",
    })
    assert response.status_code == 200
    login = response.json()
    assert login["username"] == "pomo"
    assert login["email"] == "pomo@example.com"
    headers = {"Authorization": f"Bearer {login['token']}"}

    response = await anon_client.get("/auth/profile", headers=headers)
    assert response.status_code == 200
    assert response.json()["id"] == login["userId"]

    created = await anon_client.post("/sessions", json={"duration": 25}, headers=headers)
    assert created.status_code == 201
    assert created.json()["userId"] == login["userId"]


@pytest.mark.asyncio
async def test_register_duplicate_via_api(anon_client, test_user):
    response = await anon_client.post("/auth/register", json={
        "username": "testuser",
        "email": "another@example.com",
        "password": "tomato-timer",
    })
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_login_wrong_password(anon_client, test_user):
    response = await anon_client.post("/auth/login", json={
        "username": "testuser",
        "password": "nope-nope",
    })
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_invalid_bearer_token(anon_client):
    response = await anon_client.get("/sessions", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_missing_credentials(anon_client):
    response = await anon_client.get("/sessions")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_legacy_single_user_mode(anon_client, monkeypatch):
    monkeypatch.setattr(settings, "LEGACY_USER_ID", "defaultUser")

    created = await anon_client.post("/sessions", json={"taskName": "Legacy", "duration": 25})
    assert created.status_code == 201
    assert created.json()["userId"] == "defaultUser"

    listed = await anon_client.get("/sessions")
    assert [s["taskName"] for s in listed.json()] == ["Legacy"]


@pytest.mark.asyncio
async def test_health(anon_client):
    response = await anon_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
