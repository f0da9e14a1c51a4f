"""Invoice-related Pydantic schemas."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.service.lifecycle import USER_EVENTS, LifecycleEvent


class CreateInvoiceSchema(BaseModel):
    """Schema for POST /v1/invoices request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "seller_id": "seller_acme",
                    "buyer_name": "Globex Corporation",
                    "principal_cents": 1_000_000,
                    "currency": "USD",
                    "tenor_days": 60,
                    "yield_bps": 800,
                    "invoice_number": "INV-2025-0042",
                    "description": "Q3 widget delivery",
                    "industry": "manufacturing",
                    "bond_cents": 50_000,
                }
            ]
        }
    )

    seller_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Identifier of the seller raising finance",
        examples=["seller_acme"],
    )
    buyer_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Name of the paying buyer",
        examples=["Globex Corporation"],
    )
    principal_cents: int = Field(..., gt=0, description="Invoice face value in minor units")
    currency: str = Field(..., min_length=3, max_length=3, description="ISO 4217 code")
    tenor_days: int = Field(..., ge=1, le=365, description="Days until maturity")
    yield_bps: int = Field(..., ge=100, le=5000, description="Annual yield in basis points")
    invoice_number: str = Field("", max_length=100)
    description: str = Field("", max_length=500)
    industry: Optional[str] = Field(None, max_length=100)
    funding_goal_cents: Optional[int] = Field(
        None,
        gt=0,
        description="Amount to raise; defaults to principal",
    )
    bond_cents: int = Field(0, ge=0, description="Seller bond available on default")

    @field_validator("seller_id", "buyer_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject whitespace-only identifiers."""
        if not v.strip():
            raise ValueError("must not be empty or whitespace")
        return v.strip()


class UpdateInvoiceSchema(BaseModel):
    """Schema for PATCH /v1/invoices/{id}. Omitted fields are left unchanged."""

    buyer_name: Optional[str] = Field(None, min_length=1, max_length=255)
    principal_cents: Optional[int] = Field(None, gt=0)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    tenor_days: Optional[int] = Field(None, ge=1, le=365)
    yield_bps: Optional[int] = Field(None, ge=100, le=5000)
    invoice_number: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    industry: Optional[str] = Field(None, max_length=100)
    funding_goal_cents: Optional[int] = Field(None, gt=0)
    bond_cents: Optional[int] = Field(None, ge=0)


class TransitionRequestSchema(BaseModel):
    """Schema for POST /v1/invoices/{id}/transitions request body."""

    event: LifecycleEvent = Field(
        ...,
        description="Lifecycle event: " + ", ".join(sorted(e.value for e in USER_EVENTS)),
        examples=["submit"],
    )


class InvoiceResponseSchema(BaseModel):
    """Schema for invoice responses."""

    invoice_id: str = Field(..., description="UUID of the invoice")
    seller_id: str
    buyer_name: str
    invoice_number: str
    description: str
    industry: Optional[str] = None
    principal_cents: int
    currency: str
    tenor_days: int
    yield_bps: int
    funding_goal_cents: int
    total_invested_cents: int
    remaining_capacity_cents: int
    status: str = Field(..., examples=["listed"])
    risk_score: Optional[int] = None
    risk_grade: Optional[str] = None
    risk_factors: list[dict[str, Any]] = Field(default_factory=list)
    yield_adjustment_bps: Optional[int] = None
    paid_amount_cents: int
    payment_status: str
    bond_cents: int
    token_ref: Optional[str] = None
    maturity_date: Optional[str] = None
    version: int = Field(..., description="Optimistic concurrency version")
    created_at: str
    updated_at: str
    listed_at: Optional[str] = None
    funded_at: Optional[str] = None
    paid_at: Optional[str] = None
    defaulted_at: Optional[str] = None
    reconciliation_pending: bool = Field(
        False,
        description="A settlement call failed after commit and was queued for reconciliation",
    )


class DefaultCandidatesResponseSchema(BaseModel):
    """Schema for GET /v1/defaults/candidates response body."""

    as_of: str = Field(..., description="Evaluation time (UTC)")
    invoices: list[InvoiceResponseSchema]


class PaginationSchema(BaseModel):
    """Position of a page within a listing."""

    page: int
    limit: int
    total_items: int
    total_pages: int
    has_next: bool
    has_prev: bool


class InvoicePageResponseSchema(BaseModel):
    """Schema for GET /v1/invoices response body."""

    invoices: list[InvoiceResponseSchema]
    pagination: PaginationSchema
