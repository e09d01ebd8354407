"""Integration tests for delete-with-reversal of delivery notes."""

import asyncio

import pytest
from sqlalchemy import delete, func, select

from opsconsole.engines.mutation.delivery_reversal import (
    DeliveryNoteReversalEngine,
    ReversalAborted,
)
from opsconsole.kernel.errors import MutationError, MutationTimeout, NotFound
from opsconsole.kernel.models.inventory import (
    DeliveryNote,
    DeliveryNoteItem,
    DeliveryNoteStatus,
    InventoryItem,
    StockMovement,
)


async def count(session_factory, model, *where) -> int:
    async with session_factory() as session:
        query = select(func.count()).select_from(model)
        if where:
            query = query.where(*where)
        return (await session.execute(query)).scalar_one()


class TestDeleteWithReversal:
    """Reversal restores inventory and removes the note atomically."""

    async def test_restores_pre_note_quantities(self, read_quantities, reversal_engine, dn_1001):
        """DN-1001: A 10->15, B 0->2, C 3->13."""
        result = await reversal_engine.delete_with_reversal(dn_1001.note_id)

        assert await read_quantities(dn_1001.item_ids) == {"A": 15, "B": 2, "C": 13}
        assert result.delivery_number == "DN-1001"
        assert result.reversed_count == 3
        assert result.deleted_item_count == 3
        assert result.restored == {
            str(dn_1001.item_ids["A"]): 5,
            str(dn_1001.item_ids["B"]): 2,
            str(dn_1001.item_ids["C"]): 10,
        }

    async def test_removes_note_items_and_movements(self, session_factory, reversal_engine, dn_1001):
        await reversal_engine.delete_with_reversal(dn_1001.note_id)

        assert await count(session_factory, DeliveryNote, DeliveryNote.id == dn_1001.note_id) == 0
        assert await count(
            session_factory, DeliveryNoteItem, DeliveryNoteItem.delivery_note_id == dn_1001.note_id
        ) == 0
        assert await count(
            session_factory,
            StockMovement,
            StockMovement.delivery_note_item_id.in_(list(dn_1001.line_item_ids.values())),
        ) == 0

    async def test_other_notes_untouched(
        self, session_factory, reversal_engine, dn_1001, seed_note, read_quantities
    ):
        other = await seed_note("DN-1002", {"X": (7, 3)})

        await reversal_engine.delete_with_reversal(dn_1001.note_id)

        assert await read_quantities(other.item_ids) == {"X": 7}
        assert await count(session_factory, DeliveryNote, DeliveryNote.id == other.note_id) == 1

    async def test_second_delete_is_not_found(self, read_quantities, reversal_engine, dn_1001):
        """Double delete never reverses twice."""
        await reversal_engine.delete_with_reversal(dn_1001.note_id)

        with pytest.raises(NotFound):
            await reversal_engine.delete_with_reversal(dn_1001.note_id)

        assert await read_quantities(dn_1001.item_ids) == {"A": 15, "B": 2, "C": 13}

    async def test_draft_note_without_movements(
        self, session_factory, reversal_engine, seed_note, read_quantities
    ):
        seeded = await seed_note("DN-2000", {"A": (4, 1)}, status=DeliveryNoteStatus.DRAFT)
        async with session_factory() as session:
            await session.execute(delete(StockMovement))
            await session.commit()

        result = await reversal_engine.delete_with_reversal(seeded.note_id)

        assert result.reversed_count == 0
        assert result.deleted_item_count == 1
        assert await read_quantities(seeded.item_ids) == {"A": 4}

    async def test_missing_inventory_item_aborts_without_changes(
        self, session_factory, reversal_engine, dn_1001, read_quantities
    ):
        """If one adjustment cannot be applied, none of them are."""
        async with session_factory() as session:
            await session.execute(delete(InventoryItem).where(InventoryItem.id == dn_1001.item_ids["B"]))
            await session.commit()

        with pytest.raises(ReversalAborted) as exc_info:
            await reversal_engine.delete_with_reversal(dn_1001.note_id)

        assert exc_info.value.details["inventory_item_id"] == str(dn_1001.item_ids["B"])
        remaining = {k: v for k, v in dn_1001.item_ids.items() if k != "B"}
        assert await read_quantities(remaining) == {"A": 10, "C": 3}
        assert await count(session_factory, DeliveryNote, DeliveryNote.id == dn_1001.note_id) == 1
        assert await count(
            session_factory,
            StockMovement,
            StockMovement.delivery_note_item_id.in_(list(dn_1001.line_item_ids.values())),
        ) == 3

    async def test_concurrent_deletes_reverse_once(self, session_factory, dn_1001, read_quantities):
        engine_a = DeliveryNoteReversalEngine(session_factory, timeout_seconds=20)
        engine_b = DeliveryNoteReversalEngine(session_factory, timeout_seconds=20)

        results = await asyncio.gather(
            engine_a.delete_with_reversal(dn_1001.note_id),
            engine_b.delete_with_reversal(dn_1001.note_id),
            return_exceptions=True,
        )

        successes = [r for r in results if not isinstance(r, Exception)]
        failures = [r for r in results if isinstance(r, Exception)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], MutationError)
        assert await read_quantities(dn_1001.item_ids) == {"A": 15, "B": 2, "C": 13}

    async def test_timeout(self, session_factory, dn_1001, read_quantities, monkeypatch):
        engine = DeliveryNoteReversalEngine(session_factory, timeout_seconds=0.05)

        async def slow_delete(note_id):
            await asyncio.sleep(1)

        monkeypatch.setattr(engine, "_delete", slow_delete)

        with pytest.raises(MutationTimeout) as exc_info:
            await engine.delete_with_reversal(dn_1001.note_id)

        assert exc_info.value.status_code == 504
        assert await read_quantities(dn_1001.item_ids) == {"A": 10, "B": 0, "C": 3}
