"""Unit of work port: one transaction per ledger attempt."""

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Callable, Optional, Type

from .repositories import (
    InvestmentRepository,
    InvoiceRepository,
    PayoutRepository,
    ReconciliationRepository,
)


class UnitOfWork(ABC):
    """
    Transactional scope over all ledger repositories.

    Used as an async context manager: changes are committed when the block
    exits normally and rolled back when it raises.
    """

    invoices: InvoiceRepository
    investments: InvestmentRepository
    payouts: PayoutRepository
    reconciliations: ReconciliationRepository

    async def __aenter__(self) -> "UnitOfWork":
        await self.begin()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        finally:
            await self.close()

    @abstractmethod
    async def begin(self) -> None:
        """Open the transaction and bind repositories."""
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Commit all changes made in this unit of work."""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Discard all changes made in this unit of work."""
        ...

    async def close(self) -> None:
        """Release resources held by the unit of work."""
        return None


UnitOfWorkFactory = Callable[[], UnitOfWork]
