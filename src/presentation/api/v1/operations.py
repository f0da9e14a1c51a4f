"""Endpoints driven by external sweeps: default candidates and reconciliation."""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from src.application.services import InvoiceLifecycleService, ReconciliationService
from src.core.dependencies import get_invoice_service, get_reconciliation_service
from src.presentation.schemas import (
    DefaultCandidatesResponseSchema,
    ReconciliationRunResponseSchema,
)

defaults_router = APIRouter(prefix="/defaults")
reconciliation_router = APIRouter(prefix="/reconciliation")


@defaults_router.get(
    "/candidates",
    response_model=DefaultCandidatesResponseSchema,
    summary="List Default Candidates",
    description="""
    Invoices still open at least the grace period past maturity, oldest
    maturity first. Read-only; the caller decides which defaults to record.
    """,
)
async def list_default_candidates(
    invoice_service: Annotated[InvoiceLifecycleService, Depends(get_invoice_service)],
    limit: Annotated[
        int,
        Query(ge=1, le=500, description="Maximum number of invoices to return"),
    ] = 100,
) -> DefaultCandidatesResponseSchema:
    response = await invoice_service.find_default_candidates(limit)
    return DefaultCandidatesResponseSchema(**asdict(response))


@reconciliation_router.post(
    "/run",
    response_model=ReconciliationRunResponseSchema,
    summary="Run Reconciliation",
    description="Re-attempt settlement calls that failed after their ledger change committed.",
)
async def run_reconciliation(
    reconciliation_service: Annotated[ReconciliationService, Depends(get_reconciliation_service)],
    limit: Annotated[
        int,
        Query(ge=1, le=1000, description="Maximum number of tasks to attempt"),
    ] = 100,
) -> ReconciliationRunResponseSchema:
    result = await reconciliation_service.run_pending(limit)
    return ReconciliationRunResponseSchema(
        attempted=result.attempted,
        resolved=result.resolved,
        still_pending=result.still_pending,
    )
