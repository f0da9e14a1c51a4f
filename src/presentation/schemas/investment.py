"""Investment-related Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .invoice import PaginationSchema


class ReserveInvestmentSchema(BaseModel):
    """Schema for POST /v1/invoices/{id}/investments request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "investor_id": "investor_jane",
                    "amount_cents": 400_000,
                }
            ]
        }
    )

    investor_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Investor making the reservation",
        examples=["investor_jane"],
    )
    # Non-positive amounts are rejected by the ledger with INVALID_AMOUNT.
    amount_cents: int = Field(
        ...,
        description="Amount to invest in minor units",
        examples=[400_000],
    )

    @field_validator("investor_id")
    @classmethod
    def validate_investor_id(cls, v: str) -> str:
        """Ensure investor_id is not just whitespace."""
        if not v.strip():
            raise ValueError("investor_id cannot be empty or whitespace")
        return v.strip()


class InvestmentResponseSchema(BaseModel):
    """Schema for investment responses."""

    investment_id: str = Field(..., description="UUID of the investment")
    invoice_id: str
    investor_id: str
    amount_cents: int
    share_percentage: float = Field(..., description="Frozen fraction of the funding goal")
    expected_return_cents: int
    actual_return_cents: Optional[int] = None
    status: str = Field(..., examples=["active"])
    payout_claimed: bool
    created_at: str
    cancelled_at: Optional[str] = None
    claimed_at: Optional[str] = None
    invoice_status: Optional[str] = Field(
        None,
        description="Invoice status after the operation",
        examples=["funding"],
    )
    reconciliation_pending: bool = False


class FundingSummarySchema(BaseModel):
    """Funding progress of an invoice."""

    invoice_id: str
    status: str
    funding_goal_cents: int
    total_invested_cents: int
    remaining_capacity_cents: int
    investor_count: int
    funded_percentage: float


class InvestmentListResponseSchema(BaseModel):
    """Schema for GET /v1/invoices/{id}/investments response body."""

    summary: FundingSummarySchema
    investments: list[InvestmentResponseSchema]


class PortfolioTotalsSchema(BaseModel):
    """Totals over an investor's active positions."""

    total_invested_cents: int
    total_expected_return_cents: int
    active_investments: int
    avg_yield_bps: float = Field(..., description="Mean invoice yield of active positions")


class PortfolioResponseSchema(BaseModel):
    """Schema for GET /v1/investors/{investor_id}/investments response body."""

    investor_id: str
    investments: list[InvestmentResponseSchema]
    pagination: PaginationSchema
    totals: PortfolioTotalsSchema


class PortfolioBreakdownSchema(BaseModel):
    key: str = Field(..., description="Investment status or invoice risk grade", examples=["active"])
    count: int
    invested_cents: int
    expected_return_cents: int
    actual_return_cents: int
    avg_yield_bps: float


class PortfolioAnalyticsResponseSchema(BaseModel):
    """Schema for GET /v1/investors/{investor_id}/analytics response body."""

    investor_id: str
    timeframe: str
    since: Optional[str] = Field(None, description="Start of the status window (UTC)")
    by_status: list[PortfolioBreakdownSchema]
    by_risk_grade: list[PortfolioBreakdownSchema]
