"""Database infrastructure."""

from .connection import (
    DatabaseSessionManager,
    build_sessionmaker,
    db_manager,
    to_async_url,
)
from .models import (
    Base,
    InvestmentModel,
    InvoiceModel,
    PayoutRecordModel,
    ReconciliationTaskModel,
)

__all__ = [
    "DatabaseSessionManager",
    "build_sessionmaker",
    "db_manager",
    "to_async_url",
    "Base",
    "InvestmentModel",
    "InvoiceModel",
    "PayoutRecordModel",
    "ReconciliationTaskModel",
]
