from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pomodoro_api.database import get_db
from pomodoro_api.dependencies import get_current_user
from pomodoro_api.models.user import User
from pomodoro_api.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    TokenResponse,
    UserResponse,
)
from pomodoro_api.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", status_code=201)
async def register(request: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Register a new account. Duplicate username or email is a 409."""
    await auth_service.register_user(
        db=db,
        username=request.username,
        email=request.email,
        password=request.password,
        display_name=request.display_name,
    )
    return {"message": "User registered successfully"}


@router.post("/login", response_model=TokenResponse)
async def login(request: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Sign in with username (or email) and password."""
    user = await auth_service.authenticate(db, request.username, request.password)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    return TokenResponse(**auth_service.issue_access_token(user))


@router.get("/profile", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)):
    """Return the currently authenticated user."""
    return user
