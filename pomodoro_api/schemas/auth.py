from datetime import datetime

from pydantic import EmailStr, Field

from pomodoro_api.schemas.base import CamelModel


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=150)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    display_name: str | None = None


class LoginRequest(CamelModel):
    username: str  # username or email
    password: str


class TokenResponse(CamelModel):
    token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: str
    username: str
    email: str


class UserResponse(CamelModel):
    id: str
    username: str
    email: str
    display_name: str | None
    created_at: datetime
