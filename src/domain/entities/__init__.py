"""Domain Entities - Core business objects."""

from .history import PartyHistory
from .investment import Investment, InvestmentStatus
from .invoice import (
    ASSESSABLE_STATUSES,
    DEFAULTABLE_STATUSES,
    EDITABLE_STATUSES,
    INVESTABLE_STATUSES,
    MARKETPLACE_STATUSES,
    Invoice,
    InvoiceStatus,
    PaymentStatus,
)
from .listing import (
    InvoiceFilters,
    InvoiceSort,
    InvoiceSortField,
    Page,
    PageRequest,
    PortfolioBucket,
)
from .payout import PayoutKind, PayoutRecord
from .reconciliation import (
    ReconciliationStatus,
    ReconciliationTask,
    SettlementOperation,
)

__all__ = [
    "PartyHistory",
    "Investment",
    "InvestmentStatus",
    "Invoice",
    "InvoiceStatus",
    "PaymentStatus",
    "ASSESSABLE_STATUSES",
    "DEFAULTABLE_STATUSES",
    "EDITABLE_STATUSES",
    "INVESTABLE_STATUSES",
    "MARKETPLACE_STATUSES",
    "InvoiceFilters",
    "InvoiceSort",
    "InvoiceSortField",
    "Page",
    "PageRequest",
    "PortfolioBucket",
    "PayoutKind",
    "PayoutRecord",
    "ReconciliationStatus",
    "ReconciliationTask",
    "SettlementOperation",
]
