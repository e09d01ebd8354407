"""
Immutable audit log for privileged mutations.

Append-only: rows are inserted by the audit recorder and never updated or
deleted by the application. The column set is read by the audit log viewer
and must stay stable.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, JSON, String, Uuid, event, func
from sqlalchemy.orm import Mapped, mapped_column

from opsconsole.kernel.models.base import Base, generate_uuid


class AuditAction(str, Enum):
    """Privileged mutation kinds that produce audit records."""
    CREATE = "create"
    DELETE = "delete"


class AuditOutcome(str, Enum):
    """Outcome stored in the details payload of every record."""
    SUCCESS = "success"
    FAILURE = "failure"
    DENIED = "denied"
    PARTIAL_FAILURE = "partial_failure"


class AuditLog(Base):
    """One record per privileged mutation attempt outcome."""

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        server_default=func.now(),
        nullable=False,
        index=True,
    )
    action: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    record_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    # Actor
    actor_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        nullable=True,  # denied attempts may have no resolvable actor
        index=True,
    )
    actor_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    company_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    details: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "record_id"),
        Index("ix_audit_logs_actor_time", "actor_user_id", "created_at"),
    )

    @property
    def outcome(self) -> Optional[str]:
        return (self.details or {}).get("outcome")

    def __repr__(self) -> str:
        return f"<AuditLog {self.action} {self.entity_type}:{self.record_id}>"


@event.listens_for(AuditLog, "before_update")
def _refuse_update(mapper, connection, target):
    raise ValueError("audit records are append-only")


@event.listens_for(AuditLog, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise ValueError("audit records are append-only")
