"""Payment, default and payout Pydantic schemas."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .invoice import InvoiceResponseSchema


class RecordPaymentSchema(BaseModel):
    """Schema for POST /v1/invoices/{id}/payments request body."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "amount_cents": 1_000_000,
                    "reference": "WIRE-7781",
                }
            ]
        }
    )

    amount_cents: int = Field(..., description="Payment amount in minor units", examples=[1_000_000])
    reference: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="External payment reference",
        examples=["WIRE-7781"],
    )


class RecordDefaultSchema(BaseModel):
    """Schema for POST /v1/invoices/{id}/default request body."""

    recovered_cents: Optional[int] = Field(
        None,
        description="Recovered amount; defaults to seller bond plus buyer payments",
    )


class PayoutRecordSchema(BaseModel):
    """Schema for a payout record."""

    payout_id: str
    invoice_id: str
    kind: str = Field(..., examples=["payment"])
    gross_amount_cents: int
    platform_fee_cents: int
    total_payout_cents: int
    retained_cents: int
    claimable: dict[str, int] = Field(..., description="Investment id -> claimable cents")
    settled_at: str


class SettlementResponseSchema(BaseModel):
    """Schema for payment and default responses."""

    invoice: InvoiceResponseSchema
    payout: Optional[PayoutRecordSchema] = None
    reconciliation_pending: bool = False


class ClaimResponseSchema(BaseModel):
    """Schema for POST /v1/investments/{id}/claim response body."""

    investment_id: str
    invoice_id: str
    kind: str = Field(..., examples=["payment"])
    amount_cents: int = Field(..., examples=[392_000])
    status: str = Field(..., examples=["completed"])
    claimed_at: str


class ReconciliationRunResponseSchema(BaseModel):
    """Schema for POST /v1/reconciliation/run response body."""

    attempted: int
    resolved: int
    still_pending: int
