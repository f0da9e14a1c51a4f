"""Investment entity representing one investor's position in an invoice."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from src.core.clock import utcnow


class InvestmentStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"


@dataclass
class Investment:
    """
    A fractional position in a single invoice.

    `share_percentage` is frozen when the reservation commits and never
    recomputed. `payout_claimed` flips from False to True exactly once.
    """

    invoice_id: UUID
    investor_id: str
    amount_cents: int
    share_percentage: float
    expected_return_cents: int
    id: UUID = field(default_factory=uuid4)
    status: InvestmentStatus = InvestmentStatus.ACTIVE
    actual_return_cents: Optional[int] = None
    payout_claimed: bool = False
    created_at: datetime = field(default_factory=utcnow)
    cancelled_at: Optional[datetime] = None
    claimed_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        """Whether this position still counts against the investor's single slot."""
        return self.status != InvestmentStatus.CANCELLED
