"""
Account models: authentication identity plus profile.

An account is created in two steps. The identity row is what the identity
provider authenticates against; the profile row carries the role and the
organizational fields the console reads. Both share one id.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, JSON, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from opsconsole.kernel.models.base import Base, TimestampMixin, generate_uuid


class UserRole(str, Enum):
    """Privilege levels in the console."""
    ADMIN = "admin"
    ACCOUNTANT = "accountant"
    STOCK_MANAGER = "stock_manager"
    USER = "user"


class ProfileStatus(str, Enum):
    """Profile lifecycle status."""
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class AuthIdentity(Base, TimestampMixin):
    """Authentication identity managed by the identity provider."""

    __tablename__ = "auth_identities"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    email_confirmed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    user_metadata: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    def __repr__(self) -> str:
        return f"<AuthIdentity {self.email}>"


class Profile(Base, TimestampMixin):
    """Console profile; the role stored here is the only one authorization trusts."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("auth_identities.id", ondelete="CASCADE"),
        primary_key=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[UserRole] = mapped_column(
        String(50),
        default=UserRole.USER,
        nullable=False,
    )
    status: Mapped[ProfileStatus] = mapped_column(
        String(20),
        default=ProfileStatus.ACTIVE,
        nullable=False,
    )
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    company_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    department: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    position: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    @property
    def role_value(self) -> str:
        # role may be enum or str when loaded from SQLite
        return self.role.value if hasattr(self.role, "value") else str(self.role)

    @property
    def status_value(self) -> str:
        return self.status.value if hasattr(self.status, "value") else str(self.status)

    def __repr__(self) -> str:
        return f"<Profile {self.email} role={self.role_value}>"
