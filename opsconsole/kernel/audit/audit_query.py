"""
Read-only query surface over the audit log.

Reads a bounded window of the most recent records, newest first, and
filters it with a case-insensitive free-text search.
"""

import json
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opsconsole.kernel.models.audit_log import AuditLog


@dataclass
class AuditPage:
    """One page of filtered audit records."""

    items: List[AuditLog]
    total: int
    page: int
    page_size: int

    @property
    def has_more(self) -> bool:
        return (self.page * self.page_size) < self.total


def matches_search(log: AuditLog, query: str) -> bool:
    """True if the lowercase query appears in any searchable field."""
    q = query.lower()
    fields = (
        log.entity_type,
        log.action,
        log.record_id,
        log.actor_email,
        json.dumps(log.details or {}, sort_keys=True, default=str),
    )
    return any(q in str(value or "").lower() for value in fields)


class AuditLogQuery:
    """Recent-window reader for the audit log viewer."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], window: int = 200):
        self.session_factory = session_factory
        self.window = window

    async def recent(self, search: Optional[str] = None) -> List[AuditLog]:
        """Most recent records (bounded by the window), optionally filtered."""
        query = select(AuditLog).order_by(desc(AuditLog.created_at)).limit(self.window)
        async with self.session_factory() as session:
            result = await session.execute(query)
            logs = list(result.scalars().all())

        if search:
            logs = [log for log in logs if matches_search(log, search)]
        return logs

    async def page(
        self,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> AuditPage:
        """Paginate the filtered recent window."""
        logs = await self.recent(search)
        start = (page - 1) * page_size
        return AuditPage(
            items=logs[start:start + page_size],
            total=len(logs),
            page=page,
            page_size=page_size,
        )

    async def for_record(self, entity_type: str, record_id: str) -> List[AuditLog]:
        """Full history of one entity, newest first; not bounded by the window."""
        query = (
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.record_id == record_id)
            .order_by(desc(AuditLog.created_at))
        )
        async with self.session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())
