"""Buyer payment, default and payout API endpoints."""

from dataclasses import asdict
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from src.application.services import PayoutDistributorService
from src.core.dependencies import get_payout_service
from src.presentation.schemas import (
    ErrorResponseSchema,
    PayoutRecordSchema,
    RecordDefaultSchema,
    RecordPaymentSchema,
    SettlementResponseSchema,
)

payout_router = APIRouter(
    prefix="/invoices",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid amount"},
        404: {"model": ErrorResponseSchema, "description": "Invoice not found"},
        409: {"model": ErrorResponseSchema, "description": "Conflicts with invoice state"},
    },
)

InvoiceId = Annotated[UUID, Path(description="UUID of the invoice")]


@payout_router.post(
    "/{invoice_id}/payments",
    response_model=SettlementResponseSchema,
    summary="Record Buyer Payment",
    description="""
    Record a buyer payment against a funded invoice. Once principal is
    fully paid the platform fee is taken and each active investment's
    payout becomes claimable.
    """,
)
async def record_payment(
    invoice_id: InvoiceId,
    request: RecordPaymentSchema,
    payout_service: Annotated[PayoutDistributorService, Depends(get_payout_service)],
) -> SettlementResponseSchema:
    response = await payout_service.record_payment(
        invoice_id, request.amount_cents, request.reference
    )
    return SettlementResponseSchema(**asdict(response))


@payout_router.post(
    "/{invoice_id}/default",
    response_model=SettlementResponseSchema,
    summary="Record Default",
    description="""
    Record a default once the invoice is past maturity plus the grace
    period. Recovery is distributed pro-rata with no platform fee.
    """,
)
async def record_default(
    invoice_id: InvoiceId,
    payout_service: Annotated[PayoutDistributorService, Depends(get_payout_service)],
    request: RecordDefaultSchema | None = None,
) -> SettlementResponseSchema:
    recovered = request.recovered_cents if request is not None else None
    response = await payout_service.record_default(invoice_id, recovered)
    return SettlementResponseSchema(**asdict(response))


@payout_router.get(
    "/{invoice_id}/payout",
    response_model=PayoutRecordSchema,
    summary="Get Payout Record",
)
async def get_payout(
    invoice_id: InvoiceId,
    payout_service: Annotated[PayoutDistributorService, Depends(get_payout_service)],
) -> PayoutRecordSchema:
    response = await payout_service.get_payout(invoice_id)
    return PayoutRecordSchema(**asdict(response))
