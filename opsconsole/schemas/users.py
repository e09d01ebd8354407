"""
Account provisioning schemas.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class CreateUserRequest(BaseModel):
    """
    Provisioning request body.

    All fields are optional here; missing or malformed values are reported
    as InvalidInput (400) by the provisioning engine rather than as a 422.
    """

    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    company_id: Optional[str] = None


class ProfileResponse(BaseModel):
    """Provisioned profile."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: str
    full_name: str
    role: str
    status: str
    phone: Optional[str] = None
    company_id: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_profile(cls, profile) -> "ProfileResponse":
        return cls(
            id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            role=profile.role_value,
            status=profile.status_value,
            phone=profile.phone,
            company_id=profile.company_id,
            department=profile.department,
            position=profile.position,
            created_at=profile.created_at,
        )


class CreateUserResponse(BaseModel):
    """Provisioning result; password is present only if it was generated."""

    success: bool = True
    user: ProfileResponse
    password: Optional[str] = None
