"""
Inventory and delivery note models.

A confirmed delivery note has one stock movement per line item. Movement
quantities are signed: negative takes stock out, positive puts it back.
Reversing a note applies the negation of every movement.
"""

import uuid
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from opsconsole.kernel.models.base import Base, TimestampMixin, generate_uuid


class DeliveryNoteStatus(str, Enum):
    """Delivery note lifecycle status."""
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class MovementType(str, Enum):
    """Direction of a stock movement."""
    STOCK_OUT = "stock_out"
    STOCK_IN = "stock_in"


class InventoryItem(Base, TimestampMixin):
    """Stock-keeping unit with its on-hand quantity."""

    __tablename__ = "inventory_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    company_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)

    def __repr__(self) -> str:
        return f"<InventoryItem {self.sku} qty={self.quantity}>"


class Customer(Base, TimestampMixin):
    """Delivery recipient."""

    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    company_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class DeliveryNote(Base, TimestampMixin):
    """Outbound delivery document."""

    __tablename__ = "delivery_notes"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    delivery_number: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        nullable=False,
    )
    delivery_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[DeliveryNoteStatus] = mapped_column(
        String(20),
        default=DeliveryNoteStatus.DRAFT,
        nullable=False,
    )
    customer_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid(),
        ForeignKey("customers.id"),
        nullable=True,
    )
    company_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    customer: Mapped[Optional["Customer"]] = relationship("Customer", lazy="selectin")
    items: Mapped[List["DeliveryNoteItem"]] = relationship(
        "DeliveryNoteItem",
        back_populates="delivery_note",
        lazy="selectin",
        passive_deletes=True,
    )

    @property
    def status_value(self) -> str:
        return self.status.value if hasattr(self.status, "value") else str(self.status)

    def __repr__(self) -> str:
        return f"<DeliveryNote {self.delivery_number} {self.status_value}>"


class DeliveryNoteItem(Base):
    """Line item of a delivery note.

    Inventory references carry no foreign key: items can be retired while
    old notes still point at them, and reversal has to detect that.
    """

    __tablename__ = "delivery_note_items"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    delivery_note_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("delivery_notes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    inventory_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    delivery_note: Mapped["DeliveryNote"] = relationship("DeliveryNote", back_populates="items")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_delivery_note_items_quantity_positive"),
    )


class StockMovement(Base):
    """Signed quantity change applied to an inventory item by a delivery note line."""

    __tablename__ = "stock_movements"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        primary_key=True,
        default=generate_uuid,
    )
    inventory_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        nullable=False,
        index=True,
    )
    delivery_note_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(),
        ForeignKey("delivery_note_items.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    movement_type: Mapped[MovementType] = mapped_column(String(20), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    __table_args__ = (
        CheckConstraint("quantity <> 0", name="ck_stock_movements_quantity_nonzero"),
        Index("ix_stock_movements_item_created", "inventory_item_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<StockMovement {self.quantity:+d} on {self.inventory_item_id}>"
