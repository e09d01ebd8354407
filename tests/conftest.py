"""
Pytest fixtures for the operations console tests.

Every test gets its own SQLite file under tmp_path so the reversal engine,
the audit recorder and the identity services all run against a real
transactional store through separate connections.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import AsyncGenerator, Dict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from opsconsole.config import Settings, get_settings
from opsconsole.database import build_engine, build_session_factory, init_db
from opsconsole.engines.mutation.account_provisioning import AccountProvisioningEngine
from opsconsole.engines.mutation.delivery_reversal import DeliveryNoteReversalEngine
from opsconsole.engines.mutation.pipeline import MutationPipeline
from opsconsole.kernel.audit.audit_recorder import AuditRecorder
from opsconsole.kernel.identity.identity_service import IdentityAdmin, IdentityService
from opsconsole.kernel.identity.jwt import JWTManager
from opsconsole.kernel.identity.password import hash_password
from opsconsole.kernel.models.inventory import (
    Customer,
    DeliveryNote,
    DeliveryNoteItem,
    DeliveryNoteStatus,
    InventoryItem,
    MovementType,
    StockMovement,
)
from opsconsole.kernel.models.user import AuthIdentity, Profile, ProfileStatus, UserRole
from opsconsole.kernel.permissions.authorization import AuthorizationChecker

SERVICE_KEY = "test-service-role-key"
ADMIN_PASSWORD = "AdminPass123"
COMPANY_ID = "acme"


@pytest_asyncio.fixture(scope="function")
async def db_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a throwaway SQLite database with all tables."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'opsconsole_test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """The backend client handed to services."""
    return build_session_factory(db_engine)


async def create_account(
    session_factory,
    email: str,
    role: UserRole,
    password: str = ADMIN_PASSWORD,
    status: ProfileStatus = ProfileStatus.ACTIVE,
    company_id: str = COMPANY_ID,
) -> Profile:
    """Insert an identity and its profile."""
    async with session_factory() as session:
        identity = AuthIdentity(
            id=uuid.uuid4(),
            email=email,
            password_hash=hash_password(password),
            email_confirmed_at=datetime.now(timezone.utc),
            user_metadata={"full_name": email.split("@")[0].title()},
        )
        session.add(identity)
        await session.flush()
        profile = Profile(
            id=identity.id,
            email=email,
            full_name=email.split("@")[0].title(),
            role=role.value,
            status=status.value,
            company_id=company_id,
        )
        session.add(profile)
        await session.commit()
        return profile


@pytest_asyncio.fixture
async def test_admin(session_factory) -> Profile:
    """Create an admin account."""
    return await create_account(session_factory, "admin@example.com", UserRole.ADMIN)


@pytest_asyncio.fixture
async def test_stock_manager(session_factory) -> Profile:
    """Create a stock manager account (not allowed to run privileged mutations)."""
    return await create_account(session_factory, "stock@example.com", UserRole.STOCK_MANAGER)


@pytest.fixture
def jwt_manager() -> JWTManager:
    """JWT manager using the same settings the identity service verifies with."""
    return JWTManager()


def bearer_for(jwt_manager: JWTManager, profile: Profile, role: str = None) -> str:
    token = jwt_manager.create_access_token(
        user_id=profile.id,
        email=profile.email,
        role=role or profile.role_value,
    )
    return token.access_token


@pytest.fixture
def issue_token(jwt_manager: JWTManager):
    """Factory fixture: issue_token(profile, role="admin")."""
    def _issue(profile: Profile, role: str = None) -> str:
        return bearer_for(jwt_manager, profile, role)
    return _issue


@pytest.fixture
def admin_token(test_admin: Profile, jwt_manager: JWTManager) -> str:
    return bearer_for(jwt_manager, test_admin)


@pytest.fixture
def stock_manager_token(test_stock_manager: Profile, jwt_manager: JWTManager) -> str:
    return bearer_for(jwt_manager, test_stock_manager)


@pytest.fixture
def admin_headers(admin_token: str) -> dict:
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def stock_manager_headers(stock_manager_token: str) -> dict:
    return {"Authorization": f"Bearer {stock_manager_token}"}


@dataclass
class SeededNote:
    """DN-1001 and the inventory it consumed."""

    note_id: uuid.UUID
    item_ids: Dict[str, uuid.UUID]
    line_item_ids: Dict[str, uuid.UUID]


async def seed_delivery_note(
    session_factory,
    delivery_number: str = "DN-1001",
    lines: Dict[str, tuple] = None,
    status: DeliveryNoteStatus = DeliveryNoteStatus.CONFIRMED,
) -> SeededNote:
    """
    Insert a confirmed delivery note whose movements were already applied.

    lines maps sku -> (quantity after the note was confirmed, quantity shipped).
    """
    lines = lines or {"A": (10, 5), "B": (0, 2), "C": (3, 10)}
    async with session_factory() as session:
        customer = Customer(id=uuid.uuid4(), name="Globex", company_id=COMPANY_ID)
        session.add(customer)
        note = DeliveryNote(
            id=uuid.uuid4(),
            delivery_number=delivery_number,
            delivery_date=date(2024, 5, 1),
            status=status.value,
            customer_id=customer.id,
            company_id=COMPANY_ID,
        )
        session.add(note)
        await session.flush()

        item_ids: Dict[str, uuid.UUID] = {}
        line_item_ids: Dict[str, uuid.UUID] = {}
        for sku, (on_hand, shipped) in lines.items():
            item = InventoryItem(
                id=uuid.uuid4(),
                sku=f"{delivery_number}-{sku}",
                name=f"Item {sku}",
                quantity=on_hand,
                company_id=COMPANY_ID,
            )
            session.add(item)
            line = DeliveryNoteItem(
                id=uuid.uuid4(),
                delivery_note_id=note.id,
                inventory_item_id=item.id,
                quantity=shipped,
            )
            session.add(line)
            await session.flush()
            session.add(StockMovement(
                id=uuid.uuid4(),
                inventory_item_id=item.id,
                delivery_note_item_id=line.id,
                movement_type=MovementType.STOCK_OUT.value,
                quantity=-shipped,
            ))
            item_ids[sku] = item.id
            line_item_ids[sku] = line.id
        await session.commit()
        return SeededNote(note_id=note.id, item_ids=item_ids, line_item_ids=line_item_ids)


@pytest.fixture
def seed_note(session_factory):
    """Factory fixture: await seed_note("DN-1002", {"X": (7, 3)})."""
    async def _seed(delivery_number: str = "DN-1001", lines: Dict[str, tuple] = None,
                    status: DeliveryNoteStatus = DeliveryNoteStatus.CONFIRMED) -> SeededNote:
        return await seed_delivery_note(session_factory, delivery_number, lines, status)
    return _seed


@pytest_asyncio.fixture
async def dn_1001(session_factory) -> SeededNote:
    """DN-1001: A 10 on hand (5 shipped), B 0 (2 shipped), C 3 (10 shipped)."""
    return await seed_delivery_note(session_factory)


async def quantities(session_factory, item_ids: Dict[str, uuid.UUID]) -> Dict[str, int]:
    """Current on-hand quantity per sku."""
    async with session_factory() as session:
        result = {}
        for sku, item_id in item_ids.items():
            item = await session.get(InventoryItem, item_id)
            result[sku] = item.quantity if item else None
        return result


@pytest.fixture
def read_quantities(session_factory):
    """Factory fixture: await read_quantities(seeded.item_ids)."""
    async def _read(item_ids: Dict[str, uuid.UUID]) -> Dict[str, int]:
        return await quantities(session_factory, item_ids)
    return _read


@pytest.fixture
def make_account(session_factory):
    """Factory fixture: await make_account("a@example.com", UserRole.ACCOUNTANT)."""
    async def _make(email: str, role: UserRole, **kwargs) -> Profile:
        return await create_account(session_factory, email, role, **kwargs)
    return _make


@pytest.fixture
def identity_service(session_factory) -> IdentityService:
    return IdentityService(session_factory)


@pytest.fixture
def identity_admin(session_factory) -> IdentityAdmin:
    return IdentityAdmin(session_factory, SERVICE_KEY)


@pytest.fixture
def recorder(session_factory) -> AuditRecorder:
    return AuditRecorder(session_factory)


@pytest.fixture
def reversal_engine(session_factory) -> DeliveryNoteReversalEngine:
    return DeliveryNoteReversalEngine(session_factory, timeout_seconds=10)


@pytest.fixture
def provisioning_engine(identity_service, identity_admin) -> AccountProvisioningEngine:
    return AccountProvisioningEngine(identity_service, identity_admin)


@pytest.fixture
def pipeline(identity_service, recorder, reversal_engine, provisioning_engine) -> MutationPipeline:
    return MutationPipeline(
        checker=AuthorizationChecker(identity_service),
        recorder=recorder,
        reversal_engine=reversal_engine,
        provisioning_engine=provisioning_engine,
    )


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the service credential configured."""
    return get_settings().model_copy(update={"service_role_key": SERVICE_KEY})


@pytest_asyncio.fixture
async def client(session_factory, test_settings) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app, wired to the test database."""
    from opsconsole.api.deps import get_session_factory
    from opsconsole.main import app

    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_settings] = lambda: test_settings
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
