from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from pomodoro_api.config import settings
from pomodoro_api.database import get_db
from pomodoro_api.models.user import User
from pomodoro_api.services import auth_service

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller from the bearer token.

    Without credentials, legacy single-user mode (LEGACY_USER_ID) answers
    for the caller; otherwise the request is rejected.
    """
    if credentials is None:
        if settings.LEGACY_USER_ID:
            return await auth_service.get_or_create_legacy_user(db, settings.LEGACY_USER_ID)
        raise _unauthorized("Not authenticated")

    try:
        user_id = auth_service.decode_access_token(credentials.credentials)
    except ValueError as e:
        raise _unauthorized(str(e))

    user = await db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    return user
