"""Repository interfaces for ledger persistence."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import (
    Investment,
    InvestmentStatus,
    Invoice,
    InvoiceFilters,
    InvoiceSort,
    Page,
    PageRequest,
    PartyHistory,
    PayoutRecord,
    PortfolioBucket,
    ReconciliationTask,
)


class InvoiceRepository(ABC):
    """
    Abstract repository for Invoice persistence.

    Writes to an existing invoice are compare-and-swap on `version`.
    """

    @abstractmethod
    async def add(self, invoice: Invoice) -> Invoice:
        """
        Persist a new invoice.

        Args:
            invoice: The invoice to insert

        Returns:
            The saved invoice
        """
        ...

    @abstractmethod
    async def get_by_id(self, invoice_id: UUID) -> Optional[Invoice]:
        """
        Retrieve an invoice by ID.

        Args:
            invoice_id: The invoice's unique identifier

        Returns:
            The invoice if found, None otherwise
        """
        ...

    @abstractmethod
    async def update(self, invoice: Invoice) -> Invoice:
        """
        Write the invoice if the stored version still equals `invoice.version`.

        Args:
            invoice: The new invoice state, carrying the version it was read at

        Returns:
            The invoice with its version incremented

        Raises:
            StaleVersionException: If another writer committed first
        """
        ...

    @abstractmethod
    async def get_seller_history(
        self,
        seller_id: str,
        exclude_invoice_id: Optional[UUID] = None,
    ) -> PartyHistory:
        """
        Aggregate past settlement outcomes for a seller.

        Args:
            seller_id: The seller's identifier
            exclude_invoice_id: Invoice under assessment, left out of the aggregate

        Returns:
            Seller history (invoice_count 0 for a new seller)
        """
        ...

    @abstractmethod
    async def get_buyer_history(
        self,
        buyer_name: str,
        exclude_invoice_id: Optional[UUID] = None,
    ) -> PartyHistory:
        """
        Aggregate past settlement outcomes for a buyer, matched by name.

        Args:
            buyer_name: Buyer name, compared case-insensitively
            exclude_invoice_id: Invoice under assessment, left out of the aggregate

        Returns:
            Buyer history (invoice_count 0 for a new buyer)
        """
        ...

    @abstractmethod
    async def list_default_candidates(
        self,
        matured_before: datetime,
        limit: int = 100,
    ) -> List[Invoice]:
        """
        List unpaid investable or funded invoices whose maturity is before a cutoff.

        Args:
            matured_before: Maturity cutoff (now minus the default grace period)
            limit: Maximum number of invoices to return

        Returns:
            Invoices ordered by maturity date ascending
        """
        ...

    @abstractmethod
    async def list(
        self,
        filters: InvoiceFilters,
        page: PageRequest,
        sort: InvoiceSort = InvoiceSort(),
    ) -> Page[Invoice]:
        """
        List invoices matching the filters, one page at a time.

        Args:
            filters: Status, seller, currency, principal range and text search
            page: Page number and size
            sort: Ordering column and direction (ties broken by id)

        Returns:
            The requested page and the total number of matches
        """
        ...


class InvestmentRepository(ABC):
    """Abstract repository for Investment persistence."""

    @abstractmethod
    async def add(self, investment: Investment) -> Investment:
        """Persist a new investment."""
        ...

    @abstractmethod
    async def get_by_id(self, investment_id: UUID) -> Optional[Investment]:
        """Retrieve an investment by ID."""
        ...

    @abstractmethod
    async def update(self, investment: Investment) -> Investment:
        """Persist status and return changes of an existing investment."""
        ...

    @abstractmethod
    async def list_by_invoice(
        self,
        invoice_id: UUID,
        statuses: Optional[List[InvestmentStatus]] = None,
    ) -> List[Investment]:
        """
        Retrieve investments on an invoice.

        Args:
            invoice_id: The invoice's unique identifier
            statuses: Optional status filter

        Returns:
            Investments ordered by created_at ascending
        """
        ...

    @abstractmethod
    async def get_open_position(
        self,
        invoice_id: UUID,
        investor_id: str,
    ) -> Optional[Investment]:
        """Retrieve the investor's non-cancelled investment on an invoice, if any."""
        ...

    @abstractmethod
    async def list_by_investor(
        self,
        investor_id: str,
        page: PageRequest,
        statuses: Optional[List[InvestmentStatus]] = None,
    ) -> Page[Investment]:
        """
        Retrieve an investor's positions across invoices, newest first.

        Args:
            investor_id: The investor's identifier
            page: Page number and size
            statuses: Optional status filter

        Returns:
            The requested page and the total number of matches
        """
        ...

    @abstractmethod
    async def summarize_by_investor(
        self,
        investor_id: str,
        since: Optional[datetime] = None,
    ) -> List[PortfolioBucket]:
        """
        Aggregate an investor's positions by status and invoice risk grade.

        Args:
            investor_id: The investor's identifier
            since: Only investments created at or after this time

        Returns:
            One bucket per (status, risk grade) pair that has positions
        """
        ...

    @abstractmethod
    async def mark_claimed(
        self,
        investment_id: UUID,
        actual_return_cents: int,
        status: InvestmentStatus,
        claimed_at: datetime,
    ) -> bool:
        """
        Flip `payout_claimed` from False to True atomically.

        Args:
            investment_id: The investment being claimed
            actual_return_cents: Amount paid out
            status: Status to record with the claim
            claimed_at: Claim timestamp

        Returns:
            True if this call performed the flip, False if already claimed
        """
        ...


class PayoutRepository(ABC):
    """Abstract repository for PayoutRecord persistence (one per invoice)."""

    @abstractmethod
    async def add(self, record: PayoutRecord) -> PayoutRecord:
        """Persist a payout record."""
        ...

    @abstractmethod
    async def get_by_invoice(self, invoice_id: UUID) -> Optional[PayoutRecord]:
        """Retrieve the payout record for an invoice, if settled."""
        ...


class ReconciliationRepository(ABC):
    """
    Abstract repository for ReconciliationTask persistence.

    Tasks are persisted to enable:
    - Re-attempting settlement calls that failed after commit
    - Auditing of ledger/network divergence
    """

    @abstractmethod
    async def save(self, task: ReconciliationTask) -> ReconciliationTask:
        """Persist a new task."""
        ...

    @abstractmethod
    async def update(self, task: ReconciliationTask) -> ReconciliationTask:
        """Update an existing task."""
        ...

    @abstractmethod
    async def get_by_id(self, task_id: UUID) -> Optional[ReconciliationTask]:
        """Retrieve a task by ID."""
        ...

    @abstractmethod
    async def get_pending(self, limit: int = 100) -> List[ReconciliationTask]:
        """Retrieve pending or retrying tasks, oldest first."""
        ...

    @abstractmethod
    async def count_pending(self) -> int:
        """Count unresolved tasks."""
        ...
