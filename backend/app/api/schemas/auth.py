"""Login schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.api.schemas.users import UserResponse


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    password: str = Field(..., min_length=1, max_length=256)


class CurrentUserResponse(UserResponse):
    """Profile of the signed-in user."""


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., ge=1)
    user: CurrentUserResponse
