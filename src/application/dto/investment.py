"""Data transfer objects for investment operations."""

from dataclasses import dataclass
from typing import List, Optional

from .invoice import Pagination


def _iso(value) -> Optional[str]:
    return value.isoformat() + "Z" if value is not None else None


@dataclass(frozen=True)
class InvestmentResponse:
    """Response data for an investment."""

    investment_id: str
    invoice_id: str
    investor_id: str
    amount_cents: int
    share_percentage: float
    expected_return_cents: int
    actual_return_cents: Optional[int]
    status: str
    payout_claimed: bool
    created_at: str
    cancelled_at: Optional[str] = None
    claimed_at: Optional[str] = None
    invoice_status: Optional[str] = None
    reconciliation_pending: bool = False

    @classmethod
    def from_entity(
        cls,
        investment,
        invoice_status: Optional[str] = None,
        reconciliation_pending: bool = False,
    ) -> "InvestmentResponse":
        return cls(
            investment_id=str(investment.id),
            invoice_id=str(investment.invoice_id),
            investor_id=investment.investor_id,
            amount_cents=investment.amount_cents,
            share_percentage=investment.share_percentage,
            expected_return_cents=investment.expected_return_cents,
            actual_return_cents=investment.actual_return_cents,
            status=investment.status.value,
            payout_claimed=investment.payout_claimed,
            created_at=_iso(investment.created_at),
            cancelled_at=_iso(investment.cancelled_at),
            claimed_at=_iso(investment.claimed_at),
            invoice_status=invoice_status,
            reconciliation_pending=reconciliation_pending,
        )


@dataclass(frozen=True)
class FundingSummary:
    """Funding progress of an invoice."""

    invoice_id: str
    status: str
    funding_goal_cents: int
    total_invested_cents: int
    remaining_capacity_cents: int
    investor_count: int
    funded_percentage: float

    @classmethod
    def from_entities(cls, invoice, active_investments: list) -> "FundingSummary":
        return cls(
            invoice_id=str(invoice.id),
            status=invoice.status.value,
            funding_goal_cents=invoice.funding_goal_cents,
            total_invested_cents=invoice.total_invested_cents,
            remaining_capacity_cents=invoice.remaining_capacity_cents,
            investor_count=len({inv.investor_id for inv in active_investments}),
            funded_percentage=round(
                invoice.total_invested_cents / invoice.funding_goal_cents * 100, 2
            ),
        )


@dataclass(frozen=True)
class InvestmentListResponse:
    """All investments on an invoice with its funding summary."""

    summary: FundingSummary
    investments: List[InvestmentResponse]


@dataclass(frozen=True)
class PortfolioTotals:
    """Totals over an investor's active positions."""

    total_invested_cents: int = 0
    total_expected_return_cents: int = 0
    active_investments: int = 0
    avg_yield_bps: float = 0.0


@dataclass(frozen=True)
class PortfolioResponse:
    """One page of an investor's positions with their active totals."""

    investor_id: str
    investments: List[InvestmentResponse]
    pagination: Pagination
    totals: PortfolioTotals


@dataclass(frozen=True)
class PortfolioBreakdown:
    """Positions sharing a status or a risk grade."""

    key: str
    count: int
    invested_cents: int
    expected_return_cents: int
    actual_return_cents: int
    avg_yield_bps: float


@dataclass(frozen=True)
class PortfolioAnalyticsResponse:
    """An investor's positions broken down by status and by risk grade."""

    investor_id: str
    timeframe: str
    since: Optional[str]
    by_status: List[PortfolioBreakdown]
    by_risk_grade: List[PortfolioBreakdown]
