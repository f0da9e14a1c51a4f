"""Repository implementations."""

from .investment_repository import PostgresInvestmentRepository
from .invoice_repository import PostgresInvoiceRepository
from .payout_repository import PostgresPayoutRepository
from .reconciliation_repository import PostgresReconciliationRepository

__all__ = [
    "PostgresInvestmentRepository",
    "PostgresInvoiceRepository",
    "PostgresPayoutRepository",
    "PostgresReconciliationRepository",
]
