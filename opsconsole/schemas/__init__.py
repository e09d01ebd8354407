"""
Pydantic schemas for API request/response validation.
"""

from opsconsole.schemas.auth import LoginRequest, TokenResponse
from opsconsole.schemas.users import CreateUserRequest, CreateUserResponse, ProfileResponse
from opsconsole.schemas.delivery_notes import (
    DeliveryNoteDeletionResponse,
    DeliveryNoteItemSummary,
    DeliveryNoteSummaryResponse,
)
from opsconsole.schemas.audit import AuditLogResponse
from opsconsole.schemas.common import ErrorResponse, HealthResponse, PaginatedResponse

__all__ = [
    "LoginRequest",
    "TokenResponse",
    "CreateUserRequest",
    "CreateUserResponse",
    "ProfileResponse",
    "DeliveryNoteDeletionResponse",
    "DeliveryNoteItemSummary",
    "DeliveryNoteSummaryResponse",
    "AuditLogResponse",
    "ErrorResponse",
    "HealthResponse",
    "PaginatedResponse",
]
