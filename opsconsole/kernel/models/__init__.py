"""
Kernel Data Models

Core SQLAlchemy models: accounts, inventory, delivery notes and the
append-only audit log.
"""

from opsconsole.kernel.models.base import Base, TimestampMixin, generate_uuid
from opsconsole.kernel.models.user import AuthIdentity, Profile, ProfileStatus, UserRole
from opsconsole.kernel.models.inventory import (
    Customer,
    DeliveryNote,
    DeliveryNoteItem,
    DeliveryNoteStatus,
    InventoryItem,
    MovementType,
    StockMovement,
)
from opsconsole.kernel.models.audit_log import AuditAction, AuditLog, AuditOutcome

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    "generate_uuid",
    # Accounts
    "AuthIdentity",
    "Profile",
    "ProfileStatus",
    "UserRole",
    # Inventory
    "Customer",
    "DeliveryNote",
    "DeliveryNoteItem",
    "DeliveryNoteStatus",
    "InventoryItem",
    "MovementType",
    "StockMovement",
    # Audit
    "AuditAction",
    "AuditLog",
    "AuditOutcome",
]
