"""
Shared fixtures for unit and integration tests.

Provides:
- In-memory unit of work with compare-and-swap semantics
- Fake settlement, document and notification clients
- A controllable clock
- Test ledger settings with a one-cent minimum investment
"""

import asyncio
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

import pytest

from src.domain.entities import (
    DEFAULTABLE_STATUSES,
    Investment,
    InvestmentStatus,
    Invoice,
    InvoiceFilters,
    InvoiceSort,
    InvoiceStatus,
    Page,
    PageRequest,
    PartyHistory,
    PayoutRecord,
    PortfolioBucket,
    ReconciliationStatus,
    ReconciliationTask,
)
from src.domain.exceptions import (
    SettlementNetworkException,
    StaleVersionException,
)
from src.domain.interfaces import (
    DocumentClient,
    InvestmentRepository,
    InvoiceRepository,
    NotificationClient,
    PayoutRepository,
    ReconciliationRepository,
    SettlementNetworkClient,
    UnitOfWork,
)
from src.service.ledger import LedgerSettings

T0 = datetime(2025, 3, 3, 12, 0, 0)


# =============================================================================
# Clock
# =============================================================================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# =============================================================================
# In-Memory Ledger
# =============================================================================

class InMemoryLedgerStore:
    """Committed ledger state shared by every in-memory unit of work."""

    def __init__(self):
        self.invoices: Dict[str, Invoice] = {}
        self.investments: Dict[str, Investment] = {}
        self.payouts: Dict[str, PayoutRecord] = {}
        self.tasks: Dict[str, ReconciliationTask] = {}
        self.commits = 0


class _UndoLog:
    _MISSING = object()

    def __init__(self):
        self._entries: List[tuple] = []

    def write(self, table: Dict[str, Any], key: str, value: Any) -> None:
        self._entries.append((table, key, table.get(key, self._MISSING)))
        table[key] = value

    def undo(self) -> None:
        for table, key, previous in reversed(self._entries):
            if previous is self._MISSING:
                table.pop(key, None)
            else:
                table[key] = previous
        self._entries.clear()


def _history(invoices: List[Invoice]) -> PartyHistory:
    paid = [inv for inv in invoices if inv.status == InvoiceStatus.PAID]
    defaulted = [inv for inv in invoices if inv.status == InvoiceStatus.DEFAULTED]
    delays = [
        max(0.0, (inv.paid_at - inv.maturity_date).total_seconds() / 86400)
        for inv in paid
        if inv.paid_at is not None
    ]
    return PartyHistory(
        invoice_count=len(invoices),
        paid_count=len(paid),
        defaulted_count=len(defaulted),
        avg_settlement_delay_days=sum(delays) / len(delays) if delays else 0.0,
    )


class InMemoryInvoiceRepository(InvoiceRepository):
    def __init__(self, store: InMemoryLedgerStore, log: _UndoLog):
        self._store = store
        self._log = log

    async def add(self, invoice: Invoice) -> Invoice:
        self._log.write(self._store.invoices, str(invoice.id), replace(invoice))
        return invoice

    async def get_by_id(self, invoice_id: UUID) -> Optional[Invoice]:
        # Yield so concurrent tasks interleave their reads and writes.
        await asyncio.sleep(0)
        stored = self._store.invoices.get(str(invoice_id))
        return replace(stored) if stored else None

    async def update(self, invoice: Invoice) -> Invoice:
        stored = self._store.invoices.get(str(invoice.id))
        if stored is None or stored.version != invoice.version:
            raise StaleVersionException(str(invoice.id), invoice.version)
        updated = replace(invoice, version=invoice.version + 1)
        self._log.write(self._store.invoices, str(invoice.id), replace(updated))
        return updated

    async def get_seller_history(
        self,
        seller_id: str,
        exclude_invoice_id: Optional[UUID] = None,
    ) -> PartyHistory:
        return _history([
            inv for inv in self._store.invoices.values()
            if inv.seller_id == seller_id and inv.id != exclude_invoice_id
        ])

    async def get_buyer_history(
        self,
        buyer_name: str,
        exclude_invoice_id: Optional[UUID] = None,
    ) -> PartyHistory:
        name = buyer_name.strip().lower()
        return _history([
            inv for inv in self._store.invoices.values()
            if inv.buyer_name.lower() == name and inv.id != exclude_invoice_id
        ])

    async def list_default_candidates(
        self,
        matured_before: datetime,
        limit: int = 100,
    ) -> List[Invoice]:
        candidates = [
            replace(inv) for inv in self._store.invoices.values()
            if inv.status in DEFAULTABLE_STATUSES and inv.maturity_date < matured_before
        ]
        return sorted(candidates, key=lambda inv: inv.maturity_date)[:limit]

    async def list(
        self,
        filters: InvoiceFilters,
        page: PageRequest,
        sort: InvoiceSort = InvoiceSort(),
    ) -> Page[Invoice]:
        term = (filters.search or "").strip().lower()
        found = [
            replace(inv) for inv in self._store.invoices.values()
            if (not filters.statuses or inv.status in filters.statuses)
            and (not filters.seller_id or inv.seller_id == filters.seller_id)
            and (not filters.currency or inv.currency == filters.currency.strip().upper())
            and (filters.min_principal_cents is None or inv.principal_cents >= filters.min_principal_cents)
            and (filters.max_principal_cents is None or inv.principal_cents <= filters.max_principal_cents)
            and (not term or term in inv.buyer_name.lower() or term in inv.description.lower())
        ]
        found.sort(key=lambda inv: str(inv.id))
        found.sort(key=lambda inv: getattr(inv, sort.field.value), reverse=sort.descending)
        return Page(
            items=found[page.offset:page.offset + page.limit],
            total=len(found),
            request=page,
        )


class InMemoryInvestmentRepository(InvestmentRepository):
    def __init__(self, store: InMemoryLedgerStore, log: _UndoLog):
        self._store = store
        self._log = log

    async def add(self, investment: Investment) -> Investment:
        self._log.write(self._store.investments, str(investment.id), replace(investment))
        return investment

    async def get_by_id(self, investment_id: UUID) -> Optional[Investment]:
        await asyncio.sleep(0)
        stored = self._store.investments.get(str(investment_id))
        return replace(stored) if stored else None

    async def update(self, investment: Investment) -> Investment:
        self._log.write(self._store.investments, str(investment.id), replace(investment))
        return investment

    async def list_by_invoice(
        self,
        invoice_id: UUID,
        statuses: Optional[List[InvestmentStatus]] = None,
    ) -> List[Investment]:
        found = [
            replace(inv) for inv in self._store.investments.values()
            if inv.invoice_id == invoice_id and (statuses is None or inv.status in statuses)
        ]
        return sorted(found, key=lambda inv: inv.created_at)

    async def get_open_position(
        self,
        invoice_id: UUID,
        investor_id: str,
    ) -> Optional[Investment]:
        await asyncio.sleep(0)
        for inv in self._store.investments.values():
            if inv.invoice_id == invoice_id and inv.investor_id == investor_id and inv.is_open:
                return replace(inv)
        return None

    async def list_by_investor(
        self,
        investor_id: str,
        page: PageRequest,
        statuses: Optional[List[InvestmentStatus]] = None,
    ) -> Page[Investment]:
        found = [
            replace(inv) for inv in self._store.investments.values()
            if inv.investor_id == investor_id and (statuses is None or inv.status in statuses)
        ]
        found.sort(key=lambda inv: str(inv.id))
        found.sort(key=lambda inv: inv.created_at, reverse=True)
        return Page(
            items=found[page.offset:page.offset + page.limit],
            total=len(found),
            request=page,
        )

    async def summarize_by_investor(
        self,
        investor_id: str,
        since: Optional[datetime] = None,
    ) -> List[PortfolioBucket]:
        groups: Dict[tuple, List[Investment]] = {}
        for inv in self._store.investments.values():
            if inv.investor_id != investor_id:
                continue
            if since is not None and inv.created_at < since:
                continue
            invoice = self._store.invoices[str(inv.invoice_id)]
            groups.setdefault((inv.status, invoice.risk_grade), []).append(inv)

        return [
            PortfolioBucket(
                status=status,
                risk_grade=grade,
                count=len(members),
                invested_cents=sum(m.amount_cents for m in members),
                expected_return_cents=sum(m.expected_return_cents for m in members),
                actual_return_cents=sum(m.actual_return_cents or 0 for m in members),
                yield_bps_total=sum(
                    self._store.invoices[str(m.invoice_id)].yield_bps for m in members
                ),
            )
            for (status, grade), members in groups.items()
        ]

    async def mark_claimed(
        self,
        investment_id: UUID,
        actual_return_cents: int,
        status: InvestmentStatus,
        claimed_at: datetime,
    ) -> bool:
        stored = self._store.investments.get(str(investment_id))
        if stored is None or stored.payout_claimed:
            return False
        claimed = replace(
            stored,
            payout_claimed=True,
            actual_return_cents=actual_return_cents,
            status=status,
            claimed_at=claimed_at,
        )
        self._log.write(self._store.investments, str(investment_id), claimed)
        return True


class InMemoryPayoutRepository(PayoutRepository):
    def __init__(self, store: InMemoryLedgerStore, log: _UndoLog):
        self._store = store
        self._log = log

    async def add(self, record: PayoutRecord) -> PayoutRecord:
        if str(record.invoice_id) in self._store.payouts:
            raise ValueError(f"Payout already recorded for {record.invoice_id}")
        self._log.write(self._store.payouts, str(record.invoice_id), record)
        return record

    async def get_by_invoice(self, invoice_id: UUID) -> Optional[PayoutRecord]:
        await asyncio.sleep(0)
        return self._store.payouts.get(str(invoice_id))


class InMemoryReconciliationRepository(ReconciliationRepository):
    def __init__(self, store: InMemoryLedgerStore, log: _UndoLog):
        self._store = store
        self._log = log

    async def save(self, task: ReconciliationTask) -> ReconciliationTask:
        self._log.write(self._store.tasks, str(task.id), replace(task))
        return task

    async def update(self, task: ReconciliationTask) -> ReconciliationTask:
        if str(task.id) not in self._store.tasks:
            raise ValueError(f"Reconciliation task {task.id} not found")
        self._log.write(self._store.tasks, str(task.id), replace(task))
        return task

    async def get_by_id(self, task_id: UUID) -> Optional[ReconciliationTask]:
        stored = self._store.tasks.get(str(task_id))
        return replace(stored) if stored else None

    async def get_pending(self, limit: int = 100) -> List[ReconciliationTask]:
        pending = [
            replace(task) for task in self._store.tasks.values()
            if task.status != ReconciliationStatus.RESOLVED
        ]
        return sorted(pending, key=lambda task: task.created_at)[:limit]

    async def count_pending(self) -> int:
        return sum(
            1 for task in self._store.tasks.values()
            if task.status != ReconciliationStatus.RESOLVED
        )


class InMemoryUnitOfWork(UnitOfWork):
    """
    Writes apply to the shared store immediately and are undone on rollback.

    Invoice updates check the stored version like the SQL repository, so
    concurrent tasks race exactly the way they do against the database.
    """

    def __init__(self, store: InMemoryLedgerStore):
        self._store = store
        self._log = _UndoLog()

    async def begin(self) -> None:
        self.invoices = InMemoryInvoiceRepository(self._store, self._log)
        self.investments = InMemoryInvestmentRepository(self._store, self._log)
        self.payouts = InMemoryPayoutRepository(self._store, self._log)
        self.reconciliations = InMemoryReconciliationRepository(self._store, self._log)

    async def commit(self) -> None:
        self._log = _UndoLog()
        self._store.commits += 1

    async def rollback(self) -> None:
        self._log.undo()


# =============================================================================
# Fake Collaborators
# =============================================================================

class FakeSettlementNetworkClient(SettlementNetworkClient):
    """Records every call; fails the operations listed in `failing`."""

    def __init__(self, failing: Optional[set] = None):
        self.failing = failing or set()
        self.calls: List[Dict[str, Any]] = []

    def _call(self, operation: str, idempotency_key: str, **details) -> None:
        self.calls.append({"operation": operation, "idempotency_key": idempotency_key, **details})
        if operation in self.failing:
            raise SettlementNetworkException(f"{operation} unavailable", status_code=503)

    def keys_for(self, operation: str) -> List[str]:
        return [c["idempotency_key"] for c in self.calls if c["operation"] == operation]

    async def mint_ownership_token(
        self,
        invoice_id: UUID,
        funding_goal_cents: int,
        idempotency_key: str,
    ) -> str:
        self._call("mint", idempotency_key, invoice_id=str(invoice_id))
        return f"tok-{invoice_id}"

    async def record_investment(
        self,
        invoice_id: UUID,
        investor_id: str,
        amount_cents: int,
        idempotency_key: str,
    ) -> str:
        self._call("record_investment", idempotency_key, amount_cents=amount_cents)
        return f"rcpt-{idempotency_key}"

    async def record_buyer_payment(
        self,
        invoice_id: UUID,
        amount_cents: int,
        reference: str,
        idempotency_key: str,
    ) -> str:
        self._call("record_buyer_payment", idempotency_key, amount_cents=amount_cents)
        return f"rcpt-{idempotency_key}"

    async def settle(
        self,
        invoice_id: UUID,
        payout_cents: int,
        idempotency_key: str,
    ) -> str:
        self._call("settle", idempotency_key, payout_cents=payout_cents)
        return f"rcpt-{idempotency_key}"


class FakeDocumentClient(DocumentClient):
    def __init__(self, complete: bool = True):
        self.complete = complete
        self.checked: List[str] = []

    async def has_required_documents(self, invoice_id: UUID) -> bool:
        self.checked.append(str(invoice_id))
        return self.complete


class FakeNotificationClient(NotificationClient):
    def __init__(self, fail_mode: bool = False, raise_mode: bool = False):
        self.fail_mode = fail_mode
        self.raise_mode = raise_mode
        self.sent: List[Dict[str, Any]] = []

    async def notify(self, user_id: str, event: str, payload: Dict[str, Any]) -> bool:
        if self.raise_mode:
            raise RuntimeError("notification transport crashed")
        if self.fail_mode:
            return False
        self.sent.append({"user_id": user_id, "event": event, "payload": payload})
        return True

    def events_for(self, user_id: str) -> List[str]:
        return [n["event"] for n in self.sent if n["user_id"] == user_id]


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    """A clock frozen in March, outside the seasonal peak."""
    return FakeClock()


@pytest.fixture
def test_ledger_settings() -> LedgerSettings:
    """Ledger settings with a one-cent minimum and no CAS backoff."""
    return LedgerSettings(
        min_investment_floor_cents=1,
        min_investment_bps=0,
        cas_backoff_seconds=0.0,
        max_cas_retries=50,
    )


@pytest.fixture
def ledger_store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def uow_factory(ledger_store: InMemoryLedgerStore):
    """Zero-argument factory producing in-memory units of work."""
    return lambda: InMemoryUnitOfWork(ledger_store)


@pytest.fixture
def settlement_client() -> FakeSettlementNetworkClient:
    return FakeSettlementNetworkClient()


@pytest.fixture
def document_client() -> FakeDocumentClient:
    return FakeDocumentClient()


@pytest.fixture
def notification_client() -> FakeNotificationClient:
    return FakeNotificationClient()


@pytest.fixture
def invoice_payload() -> dict:
    """Request body for a 10,000.00 USD invoice with a 500.00 seller bond."""
    return {
        "seller_id": "seller_acme",
        "buyer_name": "Globex Corporation",
        "principal_cents": 1_000_000,
        "currency": "USD",
        "tenor_days": 60,
        "yield_bps": 800,
        "invoice_number": "INV-2025-0042",
        "description": "Q1 widget delivery",
        "industry": "technology",
        "bond_cents": 50_000,
    }
