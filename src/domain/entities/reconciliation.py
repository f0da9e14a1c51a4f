"""ReconciliationTask entity for settlement calls that failed after commit."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from src.core.clock import utcnow


class ReconciliationStatus(str, Enum):
    """Status of an out-of-band settlement re-attempt."""

    PENDING = "pending"
    RETRYING = "retrying"
    RESOLVED = "resolved"


class SettlementOperation(str, Enum):
    """Settlement-network calls that run after a ledger commit."""

    RECORD_INVESTMENT = "record_investment"
    RECORD_BUYER_PAYMENT = "record_buyer_payment"
    SETTLE = "settle"


@dataclass
class ReconciliationTask:
    """
    A committed ledger change whose settlement-network call has not succeeded.

    Tasks are persisted when the call fails and re-attempted by the
    reconciliation runner with the same idempotency key until resolved.
    """

    operation: SettlementOperation
    idempotency_key: str
    payload: dict[str, Any]
    id: UUID = field(default_factory=uuid4)
    status: ReconciliationStatus = ReconciliationStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    last_attempt_at: Optional[datetime] = None
    resolved_ref: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)

    def mark_resolved(self, receipt_ref: str) -> None:
        """Mark the task as reconciled with the network."""
        self.status = ReconciliationStatus.RESOLVED
        self.attempts += 1
        self.resolved_ref = receipt_ref
        self.last_error = None
        self.last_attempt_at = utcnow()

    def mark_retrying(self, error: str) -> None:
        """Record a failed re-attempt."""
        self.status = ReconciliationStatus.RETRYING
        self.attempts += 1
        self.last_error = error
        self.last_attempt_at = utcnow()
