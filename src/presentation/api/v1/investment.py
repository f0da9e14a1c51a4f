"""Investment ledger API endpoints."""

from dataclasses import asdict
from typing import Annotated, List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from src.application.dto import InvestmentResponse
from src.application.services import InvestmentLedgerService, PayoutDistributorService
from src.core.dependencies import get_investment_service, get_payout_service
from src.domain.entities import InvestmentStatus, PageRequest
from src.presentation.schemas import (
    ClaimResponseSchema,
    ErrorResponseSchema,
    InvestmentListResponseSchema,
    InvestmentResponseSchema,
    PortfolioAnalyticsResponseSchema,
    PortfolioResponseSchema,
    ReserveInvestmentSchema,
)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponseSchema, "description": "Invalid amount"},
    404: {"model": ErrorResponseSchema, "description": "Invoice or investment not found"},
    409: {"model": ErrorResponseSchema, "description": "Conflicts with ledger state"},
}

reservation_router = APIRouter(prefix="/invoices", responses=_ERROR_RESPONSES)
investment_router = APIRouter(prefix="/investments", responses=_ERROR_RESPONSES)
investor_router = APIRouter(prefix="/investors", responses=_ERROR_RESPONSES)


def _to_schema(response: InvestmentResponse) -> InvestmentResponseSchema:
    return InvestmentResponseSchema(**asdict(response))


@reservation_router.post(
    "/{invoice_id}/investments",
    response_model=InvestmentResponseSchema,
    status_code=201,
    summary="Reserve Investment",
    description="""
    Reserve part of an invoice's funding goal for an investor.

    The investor's share is frozen at reservation time. Reservations are
    serialized per invoice, so concurrent requests can never overfund it.
    """,
)
async def reserve_investment(
    invoice_id: Annotated[UUID, Path(description="UUID of the invoice")],
    request: ReserveInvestmentSchema,
    investment_service: Annotated[InvestmentLedgerService, Depends(get_investment_service)],
) -> InvestmentResponseSchema:
    response = await investment_service.reserve(
        invoice_id, request.investor_id, request.amount_cents
    )
    return _to_schema(response)


@reservation_router.get(
    "/{invoice_id}/investments",
    response_model=InvestmentListResponseSchema,
    summary="List Investments",
    description="All investments on an invoice, oldest first, with its funding summary.",
)
async def list_investments(
    invoice_id: Annotated[UUID, Path(description="UUID of the invoice")],
    investment_service: Annotated[InvestmentLedgerService, Depends(get_investment_service)],
) -> InvestmentListResponseSchema:
    response = await investment_service.list_investments(invoice_id)
    return InvestmentListResponseSchema(**asdict(response))


@investment_router.get(
    "/{investment_id}",
    response_model=InvestmentResponseSchema,
    summary="Get Investment",
)
async def get_investment(
    investment_id: Annotated[UUID, Path(description="UUID of the investment")],
    investment_service: Annotated[InvestmentLedgerService, Depends(get_investment_service)],
) -> InvestmentResponseSchema:
    response = await investment_service.get_investment(investment_id)
    return _to_schema(response)


@investment_router.post(
    "/{investment_id}/cancel",
    response_model=InvestmentResponseSchema,
    summary="Cancel Investment",
    description="""
    Cancel an active investment within the cancellation window, before
    the invoice is fully funded. The amount is released back to capacity.
    """,
)
async def cancel_investment(
    investment_id: Annotated[UUID, Path(description="UUID of the investment")],
    investment_service: Annotated[InvestmentLedgerService, Depends(get_investment_service)],
) -> InvestmentResponseSchema:
    response = await investment_service.cancel(investment_id)
    return _to_schema(response)


@investment_router.post(
    "/{investment_id}/claim",
    response_model=ClaimResponseSchema,
    summary="Claim Payout",
    description="Claim the payout owed to an investment. Succeeds at most once.",
)
async def claim_payout(
    investment_id: Annotated[UUID, Path(description="UUID of the investment")],
    payout_service: Annotated[PayoutDistributorService, Depends(get_payout_service)],
) -> ClaimResponseSchema:
    response = await payout_service.claim(investment_id)
    return ClaimResponseSchema(**asdict(response))


@investor_router.get(
    "/{investor_id}/investments",
    response_model=PortfolioResponseSchema,
    summary="Investor Portfolio",
    description="""
    An investor's positions across invoices, newest first. The totals
    cover every active position, not only the returned page.
    """,
)
async def get_portfolio(
    investor_id: Annotated[str, Path(min_length=1, max_length=255)],
    investment_service: Annotated[InvestmentLedgerService, Depends(get_investment_service)],
    status: Annotated[
        Optional[List[InvestmentStatus]],
        Query(description="Statuses to include (repeatable)"),
    ] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Investments per page")] = 10,
) -> PortfolioResponseSchema:
    response = await investment_service.get_portfolio(
        investor_id, PageRequest(page=page, limit=limit), status or None
    )
    return PortfolioResponseSchema(**asdict(response))


@investor_router.get(
    "/{investor_id}/analytics",
    response_model=PortfolioAnalyticsResponseSchema,
    summary="Portfolio Analytics",
    description="""
    Positions broken down by status (investments made within the timeframe)
    and by invoice risk grade (every active or completed position).
    """,
)
async def get_portfolio_analytics(
    investor_id: Annotated[str, Path(min_length=1, max_length=255)],
    investment_service: Annotated[InvestmentLedgerService, Depends(get_investment_service)],
    timeframe: Annotated[Literal["7d", "30d", "90d", "1y", "all"], Query()] = "30d",
) -> PortfolioAnalyticsResponseSchema:
    response = await investment_service.get_portfolio_analytics(investor_id, timeframe)
    return PortfolioAnalyticsResponseSchema(**asdict(response))
