"""
Delivery note schemas.
"""

import uuid
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel


class DeliveryNoteDeletionResponse(BaseModel):
    """Result of a delete-with-reversal."""

    success: bool = True
    delivery_note_id: uuid.UUID
    delivery_number: str
    reversed_count: int
    deleted_item_count: int
    restored: Dict[str, int]


class DeliveryNoteItemSummary(BaseModel):
    id: uuid.UUID
    inventory_item_id: uuid.UUID
    quantity: int


class DeliveryNoteSummaryResponse(BaseModel):
    """The record the deletion confirmation dialog is built from."""

    id: uuid.UUID
    delivery_number: str
    delivery_date: Optional[date] = None
    status: str
    customer_name: Optional[str] = None
    company_id: Optional[str] = None
    item_count: int
    items: List[DeliveryNoteItemSummary]
