"""Invoice lifecycle API endpoints."""

from dataclasses import asdict
from typing import Annotated, List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query

from src.application.dto import CreateInvoiceRequest, InvoiceResponse, UpdateInvoiceRequest
from src.application.services import InvoiceLifecycleService
from src.core.dependencies import get_invoice_service
from src.domain.entities import (
    InvoiceFilters,
    InvoiceSort,
    InvoiceSortField,
    InvoiceStatus,
    PageRequest,
)
from src.presentation.schemas import (
    CreateInvoiceSchema,
    ErrorResponseSchema,
    InvoicePageResponseSchema,
    InvoiceResponseSchema,
    TransitionRequestSchema,
    UpdateInvoiceSchema,
)

invoice_router = APIRouter(
    prefix="/invoices",
    responses={
        400: {"model": ErrorResponseSchema, "description": "Invalid request"},
        404: {"model": ErrorResponseSchema, "description": "Invoice not found"},
        409: {"model": ErrorResponseSchema, "description": "Conflicts with invoice state"},
    },
)

InvoiceId = Annotated[UUID, Path(description="UUID of the invoice")]


def to_invoice_schema(response: InvoiceResponse) -> InvoiceResponseSchema:
    """Convert an invoice DTO into its API schema."""
    return InvoiceResponseSchema(**asdict(response))


@invoice_router.post(
    "",
    response_model=InvoiceResponseSchema,
    status_code=201,
    summary="Create Invoice",
    description="""
    Raise a draft invoice. The initial risk assessment runs against the
    seller's and buyer's history before the invoice is stored.
    """,
)
async def create_invoice(
    request: CreateInvoiceSchema,
    invoice_service: Annotated[InvoiceLifecycleService, Depends(get_invoice_service)],
) -> InvoiceResponseSchema:
    dto = CreateInvoiceRequest(**request.model_dump())
    response = await invoice_service.create_invoice(dto)
    return to_invoice_schema(response)


@invoice_router.get(
    "",
    response_model=InvoicePageResponseSchema,
    summary="List Invoices",
    description="""
    Browse invoices one page at a time. Without a status or seller filter
    the listing is the marketplace: listed, funding and funded invoices.
    """,
)
async def list_invoices(
    invoice_service: Annotated[InvoiceLifecycleService, Depends(get_invoice_service)],
    status: Annotated[
        Optional[List[InvoiceStatus]],
        Query(description="Statuses to include (repeatable)"),
    ] = None,
    seller_id: Annotated[Optional[str], Query(min_length=1, max_length=255)] = None,
    currency: Annotated[Optional[str], Query(min_length=3, max_length=3)] = None,
    min_principal_cents: Annotated[Optional[int], Query(ge=0)] = None,
    max_principal_cents: Annotated[Optional[int], Query(ge=0)] = None,
    search: Annotated[
        Optional[str],
        Query(min_length=1, max_length=100, description="Buyer name or description text"),
    ] = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100, description="Invoices per page")] = 10,
    sort_by: Annotated[InvoiceSortField, Query()] = InvoiceSortField.CREATED_AT,
    sort_order: Annotated[Literal["asc", "desc"], Query()] = "desc",
) -> InvoicePageResponseSchema:
    filters = InvoiceFilters(
        statuses=tuple(status or ()),
        seller_id=seller_id,
        currency=currency,
        min_principal_cents=min_principal_cents,
        max_principal_cents=max_principal_cents,
        search=search,
    )
    response = await invoice_service.list_invoices(
        filters,
        PageRequest(page=page, limit=limit),
        InvoiceSort(field=sort_by, descending=sort_order == "desc"),
    )
    return InvoicePageResponseSchema(**asdict(response))


@invoice_router.get(
    "/{invoice_id}",
    response_model=InvoiceResponseSchema,
    summary="Get Invoice",
)
async def get_invoice(
    invoice_id: InvoiceId,
    invoice_service: Annotated[InvoiceLifecycleService, Depends(get_invoice_service)],
) -> InvoiceResponseSchema:
    response = await invoice_service.get_invoice(invoice_id)
    return to_invoice_schema(response)


@invoice_router.patch(
    "/{invoice_id}",
    response_model=InvoiceResponseSchema,
    summary="Update Draft Invoice",
    description="Change the terms of a draft invoice. Omitted fields are left unchanged.",
)
async def update_invoice(
    invoice_id: InvoiceId,
    request: UpdateInvoiceSchema,
    invoice_service: Annotated[InvoiceLifecycleService, Depends(get_invoice_service)],
) -> InvoiceResponseSchema:
    dto = UpdateInvoiceRequest(**request.model_dump(exclude_none=True))
    response = await invoice_service.update_invoice(invoice_id, dto)
    return to_invoice_schema(response)


@invoice_router.post(
    "/{invoice_id}/transitions",
    response_model=InvoiceResponseSchema,
    summary="Apply Lifecycle Event",
    description="""
    Apply a user lifecycle event (submit, approve, reject, revise, list,
    cancel). Funding, payment and default transitions are driven by the
    ledger and cannot be requested here.
    """,
    responses={
        503: {"model": ErrorResponseSchema, "description": "Collaborator unavailable"},
    },
)
async def transition_invoice(
    invoice_id: InvoiceId,
    request: TransitionRequestSchema,
    invoice_service: Annotated[InvoiceLifecycleService, Depends(get_invoice_service)],
) -> InvoiceResponseSchema:
    response = await invoice_service.transition(invoice_id, request.event)
    return to_invoice_schema(response)


@invoice_router.post(
    "/{invoice_id}/reassess",
    response_model=InvoiceResponseSchema,
    summary="Recompute Risk",
)
async def reassess_invoice(
    invoice_id: InvoiceId,
    invoice_service: Annotated[InvoiceLifecycleService, Depends(get_invoice_service)],
) -> InvoiceResponseSchema:
    response = await invoice_service.reassess(invoice_id)
    return to_invoice_schema(response)
