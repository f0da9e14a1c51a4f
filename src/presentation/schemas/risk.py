"""Risk assessment Pydantic schemas."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SellerHistorySchema(BaseModel):
    """Seller aggregates supplied by the caller."""

    invoice_count: int = Field(..., ge=0, description="Prior invoices raised by the seller")
    default_rate: float = Field(0.0, ge=0.0, le=1.0, description="Fraction of invoices defaulted")
    avg_delay_days: float = Field(0.0, ge=0.0, description="Average days paid after maturity")


class BuyerHistorySchema(BaseModel):
    """Buyer aggregates supplied by the caller."""

    invoice_count: int = Field(..., ge=0, description="Invoices billed to the buyer")
    payment_rate: float = Field(0.0, ge=0.0, le=1.0, description="Fraction of invoices paid")
    default_rate: float = Field(0.0, ge=0.0, le=1.0, description="Fraction of invoices defaulted")


class RiskAssessmentRequestSchema(BaseModel):
    """Schema for POST /v1/risk/assess request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "principal_cents": 5_000_000,
                    "currency": "USD",
                    "tenor_days": 60,
                    "industry": "technology",
                    "seller_history": {"invoice_count": 12, "default_rate": 0.0, "avg_delay_days": 3},
                    "buyer_history": {"invoice_count": 8, "payment_rate": 1.0, "default_rate": 0.0},
                }
            ]
        }
    )

    principal_cents: int = Field(
        ...,
        gt=0,
        description="Invoice face value in minor units",
        examples=[5_000_000],
    )
    currency: str = Field(
        ...,
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code",
        examples=["USD"],
    )
    tenor_days: int = Field(
        ...,
        ge=1,
        le=365,
        description="Days until the buyer is expected to pay",
        examples=[60],
    )
    industry: Optional[str] = Field(
        None,
        max_length=100,
        description="Seller industry (omit to skip the industry factor)",
        examples=["technology"],
    )
    as_of: Optional[date] = Field(
        None,
        description="Assessment date; defaults to today (UTC)",
    )
    seller_history: Optional[SellerHistorySchema] = Field(
        None,
        description="Seller aggregates; omitted means unknown",
    )
    buyer_history: Optional[BuyerHistorySchema] = Field(
        None,
        description="Buyer aggregates; omitted means unknown",
    )


class RiskFactorSchema(BaseModel):
    """One scored contribution to the risk score."""

    name: str = Field(..., examples=["amount"])
    level: str = Field(..., examples=["medium"])
    score: int = Field(..., ge=0, examples=[25])
    description: str = Field(..., examples=["Invoice amount in the medium band"])


class RiskAssessmentResponseSchema(BaseModel):
    """Schema for POST /v1/risk/assess response body."""

    score: int = Field(..., ge=0, description="Total risk score", examples=[45])
    grade: str = Field(..., description="LOW, MEDIUM or HIGH", examples=["MEDIUM"])
    yield_adjustment_bps: int = Field(
        ...,
        ge=0,
        description="Suggested yield premium in basis points",
        examples=[100],
    )
    factors: list[RiskFactorSchema] = Field(..., description="Ordered factor contributions")
    priority: str = Field(..., description="Investor guidance priority", examples=["important"])
    actions: list[str] = Field(..., description="Recommended investor actions")
    explanation: str = Field(..., description="Human-readable breakdown")
