"""
Fixtures for integration tests.

Provides:
- Test client for FastAPI app
- In-memory SQLite database behind the real SQLAlchemy unit of work
- Fake settlement, document and notification clients (from tests/conftest.py)
- Helpers that drive an invoice through the API
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from src.main import app
from src.core.dependencies import (
    get_clock,
    get_document_client,
    get_ledger_settings,
    get_notification_client,
    get_settlement_client,
    get_uow_factory,
)
from src.infrastructure.database import Base, build_sessionmaker
from src.infrastructure.unit_of_work import build_unit_of_work_factory
from src.service.ledger import LedgerSettings


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def uow_factory(test_engine):
    """Units of work backed by the SQLite engine instead of the in-memory store."""
    return build_unit_of_work_factory(build_sessionmaker(test_engine))


@pytest.fixture
def api_ledger_settings() -> LedgerSettings:
    """Production ledger policy without CAS backoff."""
    return LedgerSettings(cas_backoff_seconds=0.0)


# =============================================================================
# App Client Fixtures
# =============================================================================

@pytest_asyncio.fixture
async def client(
    uow_factory,
    settlement_client,
    document_client,
    notification_client,
    clock,
    api_ledger_settings,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test client with mocked dependencies.

    This client:
    - Uses an in-memory SQLite database
    - Uses fake settlement, document and notification collaborators
    - Reads time from the controllable test clock
    """
    app.dependency_overrides[get_uow_factory] = lambda: uow_factory
    app.dependency_overrides[get_settlement_client] = lambda: settlement_client
    app.dependency_overrides[get_document_client] = lambda: document_client
    app.dependency_overrides[get_notification_client] = lambda: notification_client
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_ledger_settings] = lambda: api_ledger_settings

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# API Helpers
# =============================================================================

async def create_invoice(client: AsyncClient, payload: dict) -> dict:
    response = await client.post("/v1/invoices", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


async def apply_event(client: AsyncClient, invoice_id: str, event: str) -> dict:
    response = await client.post(
        f"/v1/invoices/{invoice_id}/transitions", json={"event": event}
    )
    assert response.status_code == 200, response.text
    return response.json()


async def create_listed_invoice(client: AsyncClient, payload: dict) -> dict:
    """Create an invoice and walk it through review to listed."""
    invoice = await create_invoice(client, payload)
    for event in ("submit", "approve", "list"):
        invoice = await apply_event(client, invoice["invoice_id"], event)
    return invoice


async def reserve(client: AsyncClient, invoice_id: str, investor_id: str, amount_cents: int):
    return await client.post(
        f"/v1/invoices/{invoice_id}/investments",
        json={"investor_id": investor_id, "amount_cents": amount_cents},
    )


@pytest.fixture
def listed_invoice(client, invoice_payload):
    """Factory fixture: `await listed_invoice()` returns a listed invoice body."""

    async def _create(**overrides) -> dict:
        return await create_listed_invoice(client, {**invoice_payload, **overrides})

    return _create
