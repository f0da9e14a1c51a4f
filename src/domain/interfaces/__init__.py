"""
Domain Interfaces (Ports)
"""

from .repositories import (
    InvestmentRepository,
    InvoiceRepository,
    PayoutRepository,
    ReconciliationRepository,
)
from .unit_of_work import UnitOfWork, UnitOfWorkFactory
from .clients import DocumentClient, NotificationClient, SettlementNetworkClient

__all__ = [
    "InvestmentRepository",
    "InvoiceRepository",
    "PayoutRepository",
    "ReconciliationRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "DocumentClient",
    "NotificationClient",
    "SettlementNetworkClient",
]
