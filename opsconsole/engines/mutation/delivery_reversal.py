"""
Delete a delivery note and reverse its inventory effects.

All inverse adjustments and the deletes run in one transaction, reversal
first. Any failure rolls back every adjustment already applied, leaving the
note and its movements intact and retryable.
"""

import asyncio
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from opsconsole.kernel.errors import Conflict, MutationError, MutationTimeout, NotFound, UpstreamFailure
from opsconsole.kernel.models.inventory import (
    DeliveryNote,
    DeliveryNoteItem,
    DeliveryNoteStatus,
    InventoryItem,
    StockMovement,
)
from opsconsole.logging_config import get_logger

logger = get_logger(__name__)


class ReversalAborted(Conflict):
    """An inverse adjustment could not be applied; nothing was changed."""
    status_code = 409


@dataclass
class DeletionResult:
    """Outcome of a successful delete-with-reversal."""

    delivery_note_id: uuid.UUID
    delivery_number: str
    company_id: Optional[str]
    reversed_count: int
    deleted_item_count: int
    # inventory item id -> quantity added back (negative if stock was removed)
    restored: Dict[str, int] = field(default_factory=dict)

    def audit_details(self) -> dict:
        return {
            "delivery_number": self.delivery_number,
            "reversed_count": self.reversed_count,
            "deleted_item_count": self.deleted_item_count,
            "restored": self.restored,
        }


class DeliveryNoteReversalEngine:
    """
    Reversal-aware deletion of delivery notes.

    Usage:
        engine = DeliveryNoteReversalEngine(session_factory, timeout_seconds=30)
        result = await engine.delete_with_reversal(note_id)
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        timeout_seconds: float = 30.0,
    ):
        self.session_factory = session_factory
        self.timeout_seconds = timeout_seconds

    async def delete_with_reversal(self, note_id: uuid.UUID) -> DeletionResult:
        """
        Reverse every stock movement of a note, then delete it.

        Raises:
            NotFound: The note does not exist (or a concurrent call deleted it)
            ReversalAborted: A referenced inventory item no longer exists
            MutationTimeout: The store did not finish within the timeout
            UpstreamFailure: Any other store error
        """
        try:
            return await asyncio.wait_for(self._delete(note_id), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error(
                "Delivery note deletion timed out",
                extra={"delivery_note_id": str(note_id), "timeout_seconds": self.timeout_seconds},
            )
            raise MutationTimeout(
                "Deletion timed out; re-check the delivery note before retrying",
                {"timeout_seconds": self.timeout_seconds},
            ) from e

    async def _delete(self, note_id: uuid.UUID) -> DeletionResult:
        async with self.session_factory() as session:
            try:
                async with session.begin():
                    return await self._delete_in_transaction(session, note_id)
            except MutationError:
                raise
            except SQLAlchemyError as e:
                logger.exception("Store error while deleting delivery note")
                raise UpstreamFailure(f"Store error: {e}", {"delivery_note_id": str(note_id)}) from e

    async def _delete_in_transaction(self, session: AsyncSession, note_id: uuid.UUID) -> DeletionResult:
        # 1. Load and lock the note
        query = select(DeliveryNote).where(DeliveryNote.id == note_id).with_for_update()
        note = (await session.execute(query)).scalar_one_or_none()
        if note is None:
            raise NotFound("Delivery note not found", {"delivery_note_id": str(note_id)})

        delivery_number = note.delivery_number
        company_id = note.company_id

        # 2. Movements attributable to the note's line items
        item_rows = await session.execute(
            select(DeliveryNoteItem.id).where(DeliveryNoteItem.delivery_note_id == note_id)
        )
        line_item_ids = list(item_rows.scalars().all())

        movements: List[StockMovement] = []
        if line_item_ids:
            movement_rows = await session.execute(
                select(StockMovement)
                .where(StockMovement.delivery_note_item_id.in_(line_item_ids))
                .order_by(StockMovement.inventory_item_id)
            )
            movements = list(movement_rows.scalars().all())

        if note.status_value != DeliveryNoteStatus.DRAFT.value and len(movements) != len(line_item_ids):
            logger.warning(
                "Line items and stock movements differ",
                extra={
                    "delivery_note_id": str(note_id),
                    "line_items": len(line_item_ids),
                    "movements": len(movements),
                },
            )

        # 3. Inverse adjustments through atomic UPDATEs
        restored: Dict[str, int] = defaultdict(int)
        for movement in movements:
            result = await session.execute(
                update(InventoryItem)
                .where(InventoryItem.id == movement.inventory_item_id)
                .values(quantity=InventoryItem.quantity - movement.quantity)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                raise ReversalAborted(
                    "Inventory item no longer exists; deletion aborted and nothing was changed",
                    {
                        "delivery_note_id": str(note_id),
                        "delivery_number": delivery_number,
                        "inventory_item_id": str(movement.inventory_item_id),
                    },
                )
            restored[str(movement.inventory_item_id)] += -movement.quantity

        # 4. Delete dependents, then the note itself
        if movements:
            await session.execute(
                delete(StockMovement)
                .where(StockMovement.id.in_([m.id for m in movements]))
                .execution_options(synchronize_session=False)
            )
        await session.execute(
            delete(DeliveryNoteItem)
            .where(DeliveryNoteItem.delivery_note_id == note_id)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(
            delete(DeliveryNote)
            .where(DeliveryNote.id == note_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            # A concurrent deletion won; roll back our reversal
            raise NotFound("Delivery note not found", {"delivery_note_id": str(note_id)})

        logger.info(
            "Delivery note deleted with reversal",
            extra={
                "delivery_note_id": str(note_id),
                "delivery_number": delivery_number,
                "reversed_count": len(movements),
            },
        )

        return DeletionResult(
            delivery_note_id=note_id,
            delivery_number=delivery_number,
            company_id=company_id,
            reversed_count=len(movements),
            deleted_item_count=len(line_item_ids),
            restored=dict(restored),
        )
