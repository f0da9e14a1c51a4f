"""Invoice entity representing a trade receivable offered for financing."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from src.core.clock import utcnow


class InvoiceStatus(str, Enum):
    """Lifecycle status of an invoice."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    LISTED = "listed"
    FUNDING = "funding"
    FUNDED = "funded"
    PAID = "paid"
    DEFAULTED = "defaulted"
    CANCELLED = "cancelled"


INVESTABLE_STATUSES = frozenset({InvoiceStatus.LISTED, InvoiceStatus.FUNDING})
DEFAULTABLE_STATUSES = frozenset(
    {InvoiceStatus.LISTED, InvoiceStatus.FUNDING, InvoiceStatus.FUNDED}
)
EDITABLE_STATUSES = frozenset({InvoiceStatus.DRAFT})
ASSESSABLE_STATUSES = frozenset({InvoiceStatus.DRAFT, InvoiceStatus.PENDING_REVIEW})
# What investors browse when no status filter is given.
MARKETPLACE_STATUSES = (InvoiceStatus.LISTED, InvoiceStatus.FUNDING, InvoiceStatus.FUNDED)


class PaymentStatus(str, Enum):
    """Buyer payment progress on an invoice."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


@dataclass
class Invoice:
    """
    A trade invoice being financed by one or more investors.

    All amounts are integer minor units (cents). `total_invested_cents` is
    only authoritative inside a ledger write that also bumps `version`.

    Attributes:
        seller_id: Identifier of the seller raising finance
        buyer_name: Name of the paying buyer, used for history matching
        principal_cents: Face value of the invoice
        tenor_days: Days until the buyer is expected to pay
        yield_bps: Quoted annual yield in basis points
        funding_goal_cents: Amount to raise from investors
        bond_cents: Seller bond available for default recovery
        version: Optimistic concurrency counter, bumped on every write
    """

    seller_id: str
    buyer_name: str
    principal_cents: int
    currency: str
    tenor_days: int
    yield_bps: int
    funding_goal_cents: int
    invoice_number: str = ""
    description: str = ""
    industry: Optional[str] = None
    id: UUID = field(default_factory=uuid4)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    total_invested_cents: int = 0
    risk_score: Optional[int] = None
    risk_grade: Optional[str] = None
    risk_factors: list[dict[str, Any]] = field(default_factory=list)
    yield_adjustment_bps: Optional[int] = None
    paid_amount_cents: int = 0
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    bond_cents: int = 0
    token_ref: Optional[str] = None
    maturity_date: Optional[datetime] = None
    version: int = 0
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    listed_at: Optional[datetime] = None
    funded_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    defaulted_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.maturity_date is None:
            self.maturity_date = self.created_at + timedelta(days=self.tenor_days)

    @property
    def remaining_capacity_cents(self) -> int:
        """Amount still open for reservation."""
        return self.funding_goal_cents - self.total_invested_cents

    @property
    def is_investable(self) -> bool:
        return self.status in INVESTABLE_STATUSES

    @property
    def is_fully_funded(self) -> bool:
        return self.total_invested_cents == self.funding_goal_cents

    @property
    def outstanding_cents(self) -> int:
        """Principal not yet paid by the buyer."""
        return self.principal_cents - self.paid_amount_cents

    def is_matured(self, now: datetime) -> bool:
        return self.maturity_date is not None and now >= self.maturity_date

    def days_past_maturity(self, now: datetime) -> int:
        if self.maturity_date is None or now < self.maturity_date:
            return 0
        return (now - self.maturity_date).days
