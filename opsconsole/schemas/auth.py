"""
Authentication schemas.
"""

from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    """Console login request."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Access token issued on login; used as the bearer credential."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
