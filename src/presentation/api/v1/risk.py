"""Risk assessment API endpoint."""

from typing import Annotated

from fastapi import APIRouter, Depends

from src.application.services import RiskAssessmentService
from src.core.clock import Clock
from src.core.dependencies import get_clock, get_risk_service
from src.presentation.schemas import (
    ErrorResponseSchema,
    RiskAssessmentRequestSchema,
    RiskAssessmentResponseSchema,
)
from src.service.risk import BuyerHistory, RiskInputs, SellerHistory

risk_router = APIRouter(
    prefix="/risk",
    responses={
        422: {"model": ErrorResponseSchema, "description": "Invalid request body"},
    },
)


@risk_router.post(
    "/assess",
    response_model=RiskAssessmentResponseSchema,
    status_code=200,
    summary="Assess Invoice Risk",
    description="""
    Score invoice terms against the configured risk bands.

    History aggregates are optional; an omitted history is treated as
    unknown and scored conservatively. Nothing is persisted.
    """,
)
async def assess_risk(
    request: RiskAssessmentRequestSchema,
    risk_service: Annotated[RiskAssessmentService, Depends(get_risk_service)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> RiskAssessmentResponseSchema:
    seller = request.seller_history
    buyer = request.buyer_history

    inputs = RiskInputs(
        principal_cents=request.principal_cents,
        currency=request.currency.upper(),
        tenor_days=request.tenor_days,
        as_of=request.as_of or clock().date(),
        industry=request.industry,
        seller_history=SellerHistory(**seller.model_dump()) if seller else None,
        buyer_history=BuyerHistory(**buyer.model_dump()) if buyer else None,
    )

    response = risk_service.assess(inputs)

    return RiskAssessmentResponseSchema(
        score=response.score,
        grade=response.grade,
        yield_adjustment_bps=response.yield_adjustment_bps,
        factors=response.factors,
        priority=response.priority,
        actions=response.actions,
        explanation=response.explanation,
    )
