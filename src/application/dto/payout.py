"""Data transfer objects for payments, defaults and claims."""

from dataclasses import dataclass
from typing import Dict, Optional

from .invoice import InvoiceResponse


@dataclass(frozen=True)
class PayoutRecordResponse:
    """Response data for a payout record."""

    payout_id: str
    invoice_id: str
    kind: str
    gross_amount_cents: int
    platform_fee_cents: int
    total_payout_cents: int
    retained_cents: int
    claimable: Dict[str, int]
    settled_at: str

    @classmethod
    def from_entity(cls, record) -> "PayoutRecordResponse":
        return cls(
            payout_id=str(record.id),
            invoice_id=str(record.invoice_id),
            kind=record.kind.value,
            gross_amount_cents=record.gross_amount_cents,
            platform_fee_cents=record.platform_fee_cents,
            total_payout_cents=record.total_payout_cents,
            retained_cents=record.retained_cents,
            claimable=dict(record.claimable),
            settled_at=record.settled_at.isoformat() + "Z",
        )


@dataclass(frozen=True)
class SettlementResponse:
    """Result of recording a buyer payment or a default."""

    invoice: InvoiceResponse
    payout: Optional[PayoutRecordResponse]
    reconciliation_pending: bool = False


@dataclass(frozen=True)
class PayoutResult:
    """Result of a successful claim."""

    investment_id: str
    invoice_id: str
    kind: str
    amount_cents: int
    status: str
    claimed_at: str
