"""
Audit recorder for privileged mutations.

Every privileged mutation attempt ends with exactly one call to record(),
whatever the outcome. The record is written in its own session after the
mutation's transaction has finished, so a rolled-back mutation still
leaves its failure record behind.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opsconsole.kernel.errors import ErrorKind, MutationError
from opsconsole.kernel.models.audit_log import AuditAction, AuditLog, AuditOutcome
from opsconsole.kernel.permissions.authorization import Principal
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


class AuditRecorder:
    """
    Append-only writer for the audit log.

    Usage:
        recorder = AuditRecorder(session_factory)
        await recorder.record(
            actor=principal,
            action=AuditAction.DELETE,
            entity_type="delivery_note",
            entity_id=note.id,
            company_id=note.company_id,
            details={"outcome": "success", "reversed_count": 3},
        )
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def record(
        self,
        actor: Optional[Principal],
        action: Union[AuditAction, str],
        entity_type: str,
        entity_id: Optional[Union[uuid.UUID, str]],
        company_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """
        Append one audit record.

        Never raises: a failed write is logged at ERROR with the full record
        attached so it can be replayed, and None is returned. The caller's
        own result stands either way.

        Returns:
            The stored AuditLog, or None if the write failed
        """
        log = AuditLog(
            action=action.value if isinstance(action, AuditAction) else action,
            entity_type=entity_type,
            record_id=str(entity_id) if entity_id is not None else None,
            actor_user_id=actor.user_id if actor else None,
            actor_email=actor.email if actor else None,
            company_id=company_id,
            details=self._serialize_payload(details or {}),
        )

        try:
            async with self.session_factory() as session:
                session.add(log)
                await session.commit()
        except Exception:
            logger.exception(
                "Audit write failed",
                extra={
                    "audit_action": log.action,
                    "audit_entity_type": log.entity_type,
                    "audit_record_id": log.record_id,
                    "audit_actor_email": log.actor_email,
                    "audit_company_id": log.company_id,
                    "audit_details": log.details,
                },
            )
            return None

        return log

    async def record_success(
        self,
        actor: Principal,
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[Union[uuid.UUID, str]],
        company_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Record a completed mutation."""
        return await self.record(
            actor, action, entity_type, entity_id, company_id,
            {"outcome": AuditOutcome.SUCCESS.value, **(details or {})},
        )

    async def record_error(
        self,
        actor: Optional[Principal],
        action: AuditAction,
        entity_type: str,
        entity_id: Optional[Union[uuid.UUID, str]],
        error: MutationError,
        company_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Record a denied, failed or partially applied mutation."""
        return await self.record(
            actor, action, entity_type, entity_id, company_id,
            {"outcome": outcome_for(error).value, **(details or {}), **error.to_dict()},
        )

    @classmethod
    def _serialize_payload(cls, payload: Any) -> Any:
        """Make a details payload JSON-serializable."""
        if isinstance(payload, dict):
            return {str(k): cls._serialize_payload(v) for k, v in payload.items()}
        if isinstance(payload, (list, tuple, set)):
            return [cls._serialize_payload(v) for v in payload]
        if isinstance(payload, Enum):
            return payload.value
        if isinstance(payload, uuid.UUID):
            return str(payload)
        if isinstance(payload, (datetime, date)):
            return payload.isoformat()
        return payload


def outcome_for(error: MutationError) -> AuditOutcome:
    """Map an error to the outcome stored in the audit record."""
    if error.kind in (ErrorKind.UNAUTHORIZED, ErrorKind.FORBIDDEN):
        return AuditOutcome.DENIED
    if error.kind == ErrorKind.PARTIAL_FAILURE:
        return AuditOutcome.PARTIAL_FAILURE
    return AuditOutcome.FAILURE
