from fastapi import APIRouter

from .investment import investment_router, investor_router, reservation_router
from .invoice import invoice_router
from .operations import defaults_router, reconciliation_router
from .payout import payout_router
from .risk import risk_router

router = APIRouter()

router.include_router(risk_router, tags=["Risk"])
router.include_router(invoice_router, tags=["Invoices"])
router.include_router(reservation_router, tags=["Investments"])
router.include_router(investment_router, tags=["Investments"])
router.include_router(investor_router, tags=["Portfolios"])
router.include_router(payout_router, tags=["Payouts"])
router.include_router(defaults_router, tags=["Defaults"])
router.include_router(reconciliation_router, tags=["Reconciliation"])
