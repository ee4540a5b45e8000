import logging
import uuid
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from pomodoro_api.config import settings
from pomodoro_api.exceptions import UserAlreadyExistsError
from pomodoro_api.models.user import User

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    display_name: str | None = None,
) -> User:
    """Register a new user with username/email/password."""
    logger.info("Registering user %s", username)
    result = await db.execute(
        select(User).where(or_(User.username == username, User.email == email))
    )
    if result.scalars().first() is not None:
        logger.warning("Registration rejected, username or email taken: %s", username)
        raise UserAlreadyExistsError("An account with this username or email already exists")

    user = User(
        id=str(uuid.uuid4()),
        username=username,
        email=email,
        display_name=display_name or username,
        password_hash=hash_password(password),
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def authenticate(db: AsyncSession, login: str, password: str) -> User | None:
    """Look the user up by username, then by email, and check the password."""
    result = await db.execute(select(User).where(User.username == login))
    user = result.scalar_one_or_none()
    if user is None:
        result = await db.execute(select(User).where(User.email == login))
        user = result.scalar_one_or_none()

    if user is None or user.password_hash is None:
        logger.warning("Login failed, unknown user: %s", login)
        return None

    if not verify_password(password, user.password_hash):
        logger.warning("Login failed, wrong password: %s", login)
        return None

    logger.info("User %s logged in", user.username)
    return user


async def get_or_create_legacy_user(db: AsyncSession, user_id: str) -> User:
    """Placeholder owner for legacy single-user mode."""
    user = await db.get(User, user_id)
    if user is None:
        logger.info("Creating legacy single-user account %s", user_id)
        user = User(
            id=user_id,
            username=user_id,
            email=f"{user_id}@localhost",
            display_name=user_id,
            password_hash=None,
            created_at=datetime.now(timezone.utc),
        )
        db.add(user)
        await db.flush()
        await db.refresh(user)
    return user


def issue_access_token(user: User) -> dict:
    """Issue a signed JWT access token for the user."""
    now = datetime.now(timezone.utc)
    expires = timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    payload = {
        "sub": str(user.id),
        "jti": str(uuid.uuid4()),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "iat": now,
        "exp": now + expires,
        "username": user.username,
        "email": user.email,
    }
    token = jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    return {
        "token": token,
        "token_type": "bearer",
        "expires_in": int(expires.total_seconds()),
        "user_id": user.id,
        "username": user.username,
        "email": user.email,
    }


def decode_access_token(token: str) -> str:
    """Verify signature, issuer, audience and expiry. Returns the user id."""
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            issuer=settings.JWT_ISSUER,
        )
    except JWTError:
        raise ValueError("Invalid or expired token")

    user_id = payload.get("sub")
    if not user_id:
        raise ValueError("Token has no subject")
    return user_id
