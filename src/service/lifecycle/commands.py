"""
Side-effect commands emitted by ledger transitions.

Transitions never call collaborators themselves. They return these
commands, and the application layer executes them after the unit of
work has committed.
"""

from dataclasses import dataclass, field
from typing import Any, Union
from uuid import UUID

from src.domain.entities import SettlementOperation


@dataclass(frozen=True)
class Notify:
    """Fire-and-forget notification to a user."""
    user_id: str
    event: str
    payload: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RecordInvestment:
    """Anchor a committed investment on the settlement network."""
    invoice_id: UUID
    investment_id: UUID
    investor_id: str
    amount_cents: int

    operation = SettlementOperation.RECORD_INVESTMENT

    @property
    def idempotency_key(self) -> str:
        return f"{self.invoice_id}:investment:{self.investment_id}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "invoice_id": str(self.invoice_id),
            "investment_id": str(self.investment_id),
            "investor_id": self.investor_id,
            "amount_cents": self.amount_cents,
        }


@dataclass(frozen=True)
class RecordBuyerPayment:
    """Anchor a buyer payment on the settlement network."""
    invoice_id: UUID
    amount_cents: int
    reference: str
    nonce: int

    operation = SettlementOperation.RECORD_BUYER_PAYMENT

    @property
    def idempotency_key(self) -> str:
        return f"{self.invoice_id}:payment:{self.nonce}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "invoice_id": str(self.invoice_id),
            "amount_cents": self.amount_cents,
            "reference": self.reference,
            "nonce": self.nonce,
        }


@dataclass(frozen=True)
class Settle:
    """Transfer a settled payout to investors through the network."""
    invoice_id: UUID
    payout_id: UUID
    payout_cents: int

    operation = SettlementOperation.SETTLE

    @property
    def idempotency_key(self) -> str:
        return f"{self.invoice_id}:settle:{self.payout_id}"

    def to_payload(self) -> dict[str, Any]:
        return {
            "invoice_id": str(self.invoice_id),
            "payout_id": str(self.payout_id),
            "payout_cents": self.payout_cents,
        }


SettlementCommand = Union[RecordInvestment, RecordBuyerPayment, Settle]
Command = Union[Notify, RecordInvestment, RecordBuyerPayment, Settle]
