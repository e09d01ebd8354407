"""
JWT access token management for console sessions.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ConfigDict, ValidationError

from opsconsole.config import get_settings


class AccessTokenPayload(BaseModel):
    """JWT access token payload.

    The role claim is informational only; authorization re-reads the role
    from the profile table on every call.
    """

    model_config = ConfigDict(from_attributes=True)

    sub: str  # Identity ID
    email: str
    role: Optional[str] = None
    exp: datetime
    iat: datetime
    jti: str


class IssuedToken(BaseModel):
    """Access token handed to a client after login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int  # Seconds until the token expires


class JWTManager:
    """JWT access token creation and verification."""

    def __init__(
        self,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None,
        access_token_expire_minutes: Optional[int] = None,
    ):
        settings = get_settings()
        self.secret_key = secret_key or settings.secret_key
        self.algorithm = algorithm or settings.algorithm
        self.access_token_expire_minutes = (
            access_token_expire_minutes or settings.access_token_expire_minutes
        )

    def create_access_token(
        self,
        user_id: uuid.UUID,
        email: str,
        role: Optional[str] = None,
        expires_delta: Optional[timedelta] = None,
    ) -> IssuedToken:
        """
        Create a new access token.

        Args:
            user_id: Identity's unique identifier
            email: Identity's email
            role: Role at issuance time (never trusted for authorization)
            expires_delta: Optional custom expiration time; negative values
                produce an already-expired token

        Returns:
            The encoded token with its lifetime in seconds
        """
        now = datetime.now(timezone.utc)
        expire = now + (expires_delta if expires_delta is not None
                        else timedelta(minutes=self.access_token_expire_minutes))

        payload = {
            "sub": str(user_id),
            "email": email,
            "role": role,
            "exp": expire,
            "iat": now,
            "jti": str(uuid.uuid4()),
            "type": "access",
        }

        token = jwt.encode(payload, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(
            access_token=token,
            expires_in=max(int((expire - now).total_seconds()), 0),
        )

    def verify_access_token(self, token: str) -> Optional[AccessTokenPayload]:
        """
        Verify and decode an access token.

        Returns:
            AccessTokenPayload if valid, None on any signature, expiry or shape error
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
            )
        except JWTError:
            return None

        if payload.get("type") != "access":
            return None

        try:
            return AccessTokenPayload(
                sub=payload["sub"],
                email=payload["email"],
                role=payload.get("role"),
                exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                iat=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                jti=payload["jti"],
            )
        except (KeyError, TypeError, ValidationError):
            return None
