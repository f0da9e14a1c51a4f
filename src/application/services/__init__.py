"""Application services (use cases)."""

from .command_dispatcher import CommandDispatcher, send_settlement
from .concurrency import run_with_cas_retry
from .investment_service import InvestmentLedgerService
from .invoice_service import InvoiceLifecycleService
from .payout_service import PayoutDistributorService
from .reconciliation_service import ReconciliationRunResult, ReconciliationService
from .risk_service import RiskAssessmentService

__all__ = [
    "CommandDispatcher",
    "send_settlement",
    "run_with_cas_retry",
    "InvestmentLedgerService",
    "InvoiceLifecycleService",
    "PayoutDistributorService",
    "ReconciliationRunResult",
    "ReconciliationService",
    "RiskAssessmentService",
]
