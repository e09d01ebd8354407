"""
Audit log viewer endpoints.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query

from opsconsole.api.deps import AuditReader, get_audit_query
from opsconsole.kernel.audit.audit_query import AuditLogQuery
from opsconsole.schemas.audit import AuditLogResponse
from opsconsole.schemas.common import PaginatedResponse

router = APIRouter()


@router.get("", response_model=PaginatedResponse[AuditLogResponse])
async def list_audit_logs(
    _: AuditReader,
    audit_query: Annotated[AuditLogQuery, Depends(get_audit_query)],
    search: Optional[str] = Query(None, description="Case-insensitive free-text filter"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=200),
):
    """
    List the most recent audit records, newest first (admin only).
    """
    result = await audit_query.page(search=search, page=page, page_size=page_size)
    return PaginatedResponse.create(
        items=[AuditLogResponse.model_validate(log) for log in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
    )
