"""
Audit log schemas.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict


class AuditLogResponse(BaseModel):
    """One audit record in its stable external shape."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    created_at: datetime
    action: str
    entity_type: str
    record_id: Optional[str] = None
    actor_email: Optional[str] = None
    actor_user_id: Optional[uuid.UUID] = None
    company_id: Optional[str] = None
    details: Dict[str, Any]
