"""
CashHash Ledger - Main Application Entry Point

An invoice-financing ledger that scores invoices for risk, takes
fractional investments against a funding goal, and distributes buyer
payments or default recoveries back to investors.

Run with any ASGI server, e.g. `uvicorn src.main:app`.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse

from src import __version__
from src.core.config import settings
from src.core.logging import setup_logging
from src.core.metrics import get_metrics, get_metrics_content_type, set_reconciliation_pending
from src.infrastructure.database import db_manager
from src.infrastructure.unit_of_work import build_unit_of_work_factory
from src.presentation.api import api_router
from src.presentation.middleware import (
    LoggingMiddleware,
    RequestContextMiddleware,
    error_handler_middleware,
)

logger = structlog.get_logger(__name__)

OPENAPI_TAGS = [
    {"name": "Risk", "description": "Stateless invoice risk scoring and yield pricing."},
    {"name": "Invoices", "description": "Invoice creation, draft edits and lifecycle transitions."},
    {"name": "Investments", "description": "Fractional reservations against an invoice's funding goal."},
    {"name": "Portfolios", "description": "Investor positions, totals and analytics."},
    {"name": "Payouts", "description": "Buyer payments, defaults and payout records."},
    {"name": "Defaults", "description": "Overdue invoices for the external default sweep."},
    {"name": "Reconciliation", "description": "Re-attempts of failed settlement-network calls."},
    {"name": "Health", "description": "Liveness probe."},
]


async def _report_reconciliation_backlog() -> None:
    """Set the backlog gauge from the stored unresolved task count."""
    async with build_unit_of_work_factory(db_manager.sessionmaker)() as uow:
        pending = await uow.reconciliations.count_pending()

    set_reconciliation_pending(pending)
    if pending:
        logger.warning("reconciliation_backlog", pending=pending)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup configures logging, opens the connection pool and reports any
    settlement calls still waiting for reconciliation. Shutdown disposes
    of the pool.
    """
    setup_logging(settings.log_level, settings.log_format)
    db_manager.init()
    await _report_reconciliation_backlog()

    logger.info("application_started", app_name=settings.app_name, version=__version__)

    yield

    await db_manager.close()
    logger.info("application_stopped")


app = FastAPI(
    title="CashHash Ledger",
    description="Invoice financing ledger: risk pricing, fractional funding and pro-rata payouts",
    version=__version__,
    openapi_tags=OPENAPI_TAGS,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PATCH"],
    allow_headers=["*"],
    expose_headers=[RequestContextMiddleware.HEADER_NAME],
)
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestContextMiddleware)

error_handler_middleware(app)

app.include_router(api_router)


@app.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


@app.get("/", include_in_schema=False)
async def root() -> RedirectResponse:
    return RedirectResponse(url="/docs")
