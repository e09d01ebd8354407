"""
Delivery note endpoints: confirmation summary and delete-with-reversal.
"""

import uuid

from fastapi import APIRouter

from opsconsole.api.deps import Checker, Credential, Pipeline, SessionFactory
from opsconsole.kernel.errors import NotFound
from opsconsole.kernel.models.inventory import DeliveryNote
from opsconsole.kernel.permissions.authorization import MutationKind
from opsconsole.schemas.delivery_notes import (
    DeliveryNoteDeletionResponse,
    DeliveryNoteItemSummary,
    DeliveryNoteSummaryResponse,
)

router = APIRouter()


@router.get("/{note_id}/summary", response_model=DeliveryNoteSummaryResponse)
async def get_delivery_note_summary(
    note_id: uuid.UUID,
    credential: Credential,
    checker: Checker,
    session_factory: SessionFactory,
):
    """
    Get what the deletion dialog shows: number, customer and line items.
    """
    await checker.require(credential, MutationKind.DELETE_DELIVERY_NOTE)

    async with session_factory() as session:
        note = await session.get(DeliveryNote, note_id)
        if note is None:
            raise NotFound("Delivery note not found", {"delivery_note_id": str(note_id)})

        items = [
            DeliveryNoteItemSummary(
                id=item.id,
                inventory_item_id=item.inventory_item_id,
                quantity=item.quantity,
            )
            for item in note.items
        ]
        return DeliveryNoteSummaryResponse(
            id=note.id,
            delivery_number=note.delivery_number,
            delivery_date=note.delivery_date,
            status=note.status_value,
            customer_name=note.customer.name if note.customer else None,
            company_id=note.company_id,
            item_count=len(items),
            items=items,
        )


@router.delete("/{note_id}", response_model=DeliveryNoteDeletionResponse)
async def delete_delivery_note(
    note_id: uuid.UUID,
    credential: Credential,
    pipeline: Pipeline,
):
    """
    Delete a delivery note and restore the inventory its movements consumed.

    Irreversible. Either every movement is reversed and the note removed,
    or nothing changes.
    """
    result = await pipeline.delete_delivery_note(credential, note_id)
    return DeliveryNoteDeletionResponse(
        delivery_note_id=result.delivery_note_id,
        delivery_number=result.delivery_number,
        reversed_count=result.reversed_count,
        deleted_item_count=result.deleted_item_count,
        restored=result.restored,
    )
