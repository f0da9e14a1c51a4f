"""PayoutRecord entity created once per settled invoice."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from src.core.clock import utcnow


class PayoutKind(str, Enum):
    """Which terminal event produced the payout."""

    PAYMENT = "payment"
    DEFAULT = "default"


@dataclass(frozen=True)
class PayoutRecord:
    """
    Immutable distribution of a buyer payment or default recovery.

    Attributes:
        invoice_id: Invoice that was settled
        kind: Buyer payment or default recovery
        gross_amount_cents: Amount paid by the buyer or recovered
        platform_fee_cents: Fee kept by the platform (zero on default)
        total_payout_cents: gross - fee
        claimable: Investment id (str) -> claimable cents
        retained_cents: Part of total_payout not attributable to any investor
    """

    invoice_id: UUID
    kind: PayoutKind
    gross_amount_cents: int
    platform_fee_cents: int
    total_payout_cents: int
    claimable: dict[str, int]
    retained_cents: int = 0
    id: UUID = field(default_factory=uuid4)
    settled_at: datetime = field(default_factory=utcnow)

    @property
    def distributed_cents(self) -> int:
        return sum(self.claimable.values())

    def claimable_for(self, investment_id: UUID) -> int | None:
        return self.claimable.get(str(investment_id))
