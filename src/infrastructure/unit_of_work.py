"""SQLAlchemy unit of work: one session and one transaction per attempt."""

from functools import partial

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.domain.interfaces import UnitOfWork, UnitOfWorkFactory
from src.infrastructure.repositories import (
    PostgresInvestmentRepository,
    PostgresInvoiceRepository,
    PostgresPayoutRepository,
    PostgresReconciliationRepository,
)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Binds all ledger repositories to a single AsyncSession.

    A fresh instance is needed for every retry attempt; the session is
    closed when the `async with` block exits.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def begin(self) -> None:
        self._session = self._session_factory()
        self.invoices = PostgresInvoiceRepository(self._session)
        self.investments = PostgresInvestmentRepository(self._session)
        self.payouts = PostgresPayoutRepository(self._session)
        self.reconciliations = PostgresReconciliationRepository(self._session)

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None


def build_unit_of_work_factory(
    session_factory: async_sessionmaker[AsyncSession],
) -> UnitOfWorkFactory:
    """Create a zero-argument factory producing SqlAlchemyUnitOfWork instances."""
    return partial(SqlAlchemyUnitOfWork, session_factory)
