"""Integration tests for the audit recorder and the audit log query surface."""

import logging
import uuid

import pytest
from sqlalchemy.exc import InvalidRequestError

from opsconsole.kernel.audit.audit_query import AuditLogQuery, matches_search
from opsconsole.kernel.errors import Forbidden, NotFound
from opsconsole.kernel.models.audit_log import AuditAction, AuditLog
from opsconsole.kernel.models.user import UserRole
from opsconsole.kernel.permissions.authorization import Principal


@pytest.fixture
def actor() -> Principal:
    return Principal(
        user_id=uuid.uuid4(),
        email="auditor@example.com",
        role=UserRole.ADMIN,
        company_id="acme",
    )


class TestAuditRecorder:
    """Append-only recording."""

    async def test_record_success(self, recorder, actor):
        note_id = uuid.uuid4()

        log = await recorder.record_success(
            actor, AuditAction.DELETE, "delivery_note", note_id,
            company_id="acme", details={"reversed_count": 2},
        )

        assert log is not None
        assert log.record_id == str(note_id)
        assert log.details == {"outcome": "success", "reversed_count": 2}
        assert log.outcome == "success"

    async def test_record_error_stores_kind_and_message(self, recorder, actor):
        log = await recorder.record_error(
            actor, AuditAction.DELETE, "delivery_note", "abc",
            NotFound("Delivery note not found", {"delivery_note_id": "abc"}),
        )

        assert log.details == {
            "outcome": "failure",
            "error_kind": "not_found",
            "error": "Delivery note not found",
            "delivery_note_id": "abc",
        }

    async def test_denied_without_principal(self, recorder):
        log = await recorder.record_error(None, AuditAction.CREATE, "user", None, Forbidden("nope"))

        assert log.actor_user_id is None
        assert log.record_id is None
        assert log.details["outcome"] == "denied"

    async def test_write_failure_is_logged_not_raised(self, recorder, actor, monkeypatch, caplog):
        def broken_factory():
            raise RuntimeError("store unreachable")

        monkeypatch.setattr(recorder, "session_factory", broken_factory)

        with caplog.at_level(logging.ERROR):
            log = await recorder.record_success(
                actor, AuditAction.DELETE, "delivery_note", "n-1", details={"reversed_count": 1}
            )

        assert log is None
        failure = next(r for r in caplog.records if r.getMessage() == "Audit write failed")
        assert failure.levelno == logging.ERROR
        assert failure.audit_record_id == "n-1"
        assert failure.audit_details == {"outcome": "success", "reversed_count": 1}

    async def test_records_are_append_only(self, session_factory, recorder, actor):
        log = await recorder.record_success(actor, AuditAction.CREATE, "user", "u-1")

        async with session_factory() as session:
            stored = await session.get(AuditLog, log.id)
            stored.details = {"outcome": "tampered"}
            with pytest.raises((ValueError, InvalidRequestError)):
                await session.flush()
            await session.rollback()

        async with session_factory() as session:
            stored = await session.get(AuditLog, log.id)
            await session.delete(stored)
            with pytest.raises((ValueError, InvalidRequestError)):
                await session.flush()
            await session.rollback()

        async with session_factory() as session:
            stored = await session.get(AuditLog, log.id)
            assert stored.details == {"outcome": "success"}


class TestAuditLogQuery:
    """Recent-window reads with free-text search."""

    async def seed(self, recorder, actor):
        await recorder.record_success(actor, AuditAction.DELETE, "delivery_note", "note-1",
                                      details={"delivery_number": "DN-1001"})
        await recorder.record_success(actor, AuditAction.CREATE, "user", "user-1",
                                      details={"email": "new@x.com"})
        await recorder.record_error(actor, AuditAction.DELETE, "delivery_note", "note-2",
                                    NotFound("Delivery note not found"))

    async def test_newest_first(self, session_factory, recorder, actor):
        await self.seed(recorder, actor)

        logs = await AuditLogQuery(session_factory).recent()

        assert [log.record_id for log in logs] == ["note-2", "user-1", "note-1"]

    async def test_window_bounds_results(self, session_factory, recorder, actor):
        await self.seed(recorder, actor)

        logs = await AuditLogQuery(session_factory, window=2).recent()

        assert [log.record_id for log in logs] == ["note-2", "user-1"]

    @pytest.mark.parametrize(
        "search,expected",
        [
            ("dn-1001", ["note-1"]),
            ("USER", ["user-1"]),
            ("not_found", ["note-2"]),
            ("delivery_note", ["note-2", "note-1"]),
            ("AUDITOR@", ["note-2", "user-1", "note-1"]),
            ("nothing-matches", []),
        ],
    )
    async def test_search(self, session_factory, recorder, actor, search, expected):
        await self.seed(recorder, actor)

        logs = await AuditLogQuery(session_factory).recent(search)

        assert [log.record_id for log in logs] == expected

    async def test_page(self, session_factory, recorder, actor):
        await self.seed(recorder, actor)

        page = await AuditLogQuery(session_factory).page(page=1, page_size=2)

        assert page.total == 3
        assert len(page.items) == 2
        assert page.has_more is True

    async def test_for_record(self, session_factory, recorder, actor):
        await self.seed(recorder, actor)

        logs = await AuditLogQuery(session_factory).for_record("delivery_note", "note-1")

        assert len(logs) == 1
        assert logs[0].details["delivery_number"] == "DN-1001"

    def test_matches_search_handles_empty_fields(self):
        log = AuditLog(action="create", entity_type="user", record_id=None, actor_email=None, details={})

        assert matches_search(log, "create") is True
        assert matches_search(log, "none") is False
