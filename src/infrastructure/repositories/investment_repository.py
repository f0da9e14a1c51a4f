"""PostgreSQL implementation of InvestmentRepository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities import (
    Investment,
    InvestmentStatus,
    Page,
    PageRequest,
    PortfolioBucket,
)
from src.domain.exceptions import InvestmentNotFoundException
from src.domain.interfaces import InvestmentRepository
from src.infrastructure.database.models import InvestmentModel, InvoiceModel


class PostgresInvestmentRepository(InvestmentRepository):
    """
    PostgreSQL implementation of the Investment repository.

    Uses SQLAlchemy async session for database operations.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, investment: Investment) -> Investment:
        """Persist an investment to the database."""
        model = InvestmentModel(
            id=str(investment.id),
            invoice_id=str(investment.invoice_id),
            investor_id=investment.investor_id,
            amount_cents=investment.amount_cents,
            share_percentage=investment.share_percentage,
            expected_return_cents=investment.expected_return_cents,
            actual_return_cents=investment.actual_return_cents,
            status=investment.status.value,
            payout_claimed=investment.payout_claimed,
            created_at=investment.created_at,
            cancelled_at=investment.cancelled_at,
            claimed_at=investment.claimed_at,
        )

        self._session.add(model)
        await self._session.flush()

        return investment

    async def get_by_id(self, investment_id: UUID) -> Optional[Investment]:
        """Retrieve an investment by ID."""
        stmt = select(InvestmentModel).where(InvestmentModel.id == str(investment_id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def update(self, investment: Investment) -> Investment:
        """Update status and return fields of an existing investment."""
        stmt = select(InvestmentModel).where(InvestmentModel.id == str(investment.id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            raise InvestmentNotFoundException(str(investment.id))

        model.status = investment.status.value
        model.actual_return_cents = investment.actual_return_cents
        model.cancelled_at = investment.cancelled_at

        await self._session.flush()

        return investment

    async def list_by_invoice(
        self,
        invoice_id: UUID,
        statuses: Optional[List[InvestmentStatus]] = None,
    ) -> List[Investment]:
        """Retrieve investments on an invoice, oldest first."""
        stmt = select(InvestmentModel).where(InvestmentModel.invoice_id == str(invoice_id))
        if statuses:
            stmt = stmt.where(InvestmentModel.status.in_([s.value for s in statuses]))
        stmt = stmt.order_by(InvestmentModel.created_at.asc(), InvestmentModel.id.asc())

        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def get_open_position(
        self,
        invoice_id: UUID,
        investor_id: str,
    ) -> Optional[Investment]:
        """Retrieve the investor's non-cancelled investment on an invoice."""
        stmt = select(InvestmentModel).where(
            InvestmentModel.invoice_id == str(invoice_id),
            InvestmentModel.investor_id == investor_id,
            InvestmentModel.status != InvestmentStatus.CANCELLED.value,
        )
        result = await self._session.execute(stmt)
        model = result.scalars().first()

        if model is None:
            return None

        return self._to_entity(model)

    async def list_by_investor(
        self,
        investor_id: str,
        page: PageRequest,
        statuses: Optional[List[InvestmentStatus]] = None,
    ) -> Page[Investment]:
        """Retrieve one page of an investor's positions, newest first."""
        conditions = [InvestmentModel.investor_id == investor_id]
        if statuses:
            conditions.append(InvestmentModel.status.in_([s.value for s in statuses]))

        count_stmt = select(func.count()).select_from(InvestmentModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = (
            select(InvestmentModel)
            .where(*conditions)
            .order_by(InvestmentModel.created_at.desc(), InvestmentModel.id.asc())
            .limit(page.limit)
            .offset(page.offset)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return Page(items=[self._to_entity(model) for model in models], total=total, request=page)

    async def summarize_by_investor(
        self,
        investor_id: str,
        since: Optional[datetime] = None,
    ) -> List[PortfolioBucket]:
        """Group an investor's positions by status and invoice risk grade."""
        stmt = (
            select(
                InvestmentModel.status,
                InvoiceModel.risk_grade,
                func.count(InvestmentModel.id),
                func.coalesce(func.sum(InvestmentModel.amount_cents), 0),
                func.coalesce(func.sum(InvestmentModel.expected_return_cents), 0),
                func.coalesce(func.sum(InvestmentModel.actual_return_cents), 0),
                func.coalesce(func.sum(InvoiceModel.yield_bps), 0),
            )
            .join(InvoiceModel, InvoiceModel.id == InvestmentModel.invoice_id)
            .where(InvestmentModel.investor_id == investor_id)
            .group_by(InvestmentModel.status, InvoiceModel.risk_grade)
            .order_by(InvestmentModel.status, InvoiceModel.risk_grade)
        )
        if since is not None:
            stmt = stmt.where(InvestmentModel.created_at >= since)

        result = await self._session.execute(stmt)

        return [
            PortfolioBucket(
                status=InvestmentStatus(status),
                risk_grade=risk_grade,
                count=count,
                invested_cents=int(invested),
                expected_return_cents=int(expected),
                actual_return_cents=int(actual),
                yield_bps_total=int(yield_total),
            )
            for status, risk_grade, count, invested, expected, actual, yield_total in result.all()
        ]

    async def mark_claimed(
        self,
        investment_id: UUID,
        actual_return_cents: int,
        status: InvestmentStatus,
        claimed_at: datetime,
    ) -> bool:
        """Flip payout_claimed with a conditional UPDATE."""
        stmt = (
            update(InvestmentModel)
            .where(
                InvestmentModel.id == str(investment_id),
                InvestmentModel.payout_claimed.is_(False),
            )
            .values(
                payout_claimed=True,
                actual_return_cents=actual_return_cents,
                status=status.value,
                claimed_at=claimed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        return result.rowcount == 1

    def _to_entity(self, model: InvestmentModel) -> Investment:
        """Convert database model to domain entity."""
        return Investment(
            id=UUID(model.id),
            invoice_id=UUID(model.invoice_id),
            investor_id=model.investor_id,
            amount_cents=model.amount_cents,
            share_percentage=model.share_percentage,
            expected_return_cents=model.expected_return_cents,
            actual_return_cents=model.actual_return_cents,
            status=InvestmentStatus(model.status),
            payout_claimed=model.payout_claimed,
            created_at=model.created_at,
            cancelled_at=model.cancelled_at,
            claimed_at=model.claimed_at,
        )
