"""PostgreSQL implementation of InvoiceRepository."""

from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities import (
    DEFAULTABLE_STATUSES,
    Invoice,
    InvoiceFilters,
    InvoiceSort,
    InvoiceStatus,
    Page,
    PageRequest,
    PartyHistory,
    PaymentStatus,
)
from src.domain.exceptions import StaleVersionException
from src.domain.interfaces import InvoiceRepository
from src.infrastructure.database.models import InvoiceModel

# How many recent invoices feed a party's history.
SELLER_HISTORY_WINDOW = 50
BUYER_HISTORY_WINDOW = 20


class PostgresInvoiceRepository(InvoiceRepository):
    """
    PostgreSQL implementation of the Invoice repository.

    Updates are a single conditional UPDATE on (id, version), so two
    writers that read the same version cannot both succeed.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, invoice: Invoice) -> Invoice:
        """Persist a new invoice to the database."""
        model = InvoiceModel(id=str(invoice.id), **self._to_row(invoice))
        model.version = invoice.version

        self._session.add(model)
        await self._session.flush()

        return invoice

    async def get_by_id(self, invoice_id: UUID) -> Optional[Invoice]:
        """Retrieve an invoice by ID."""
        stmt = select(InvoiceModel).where(InvoiceModel.id == str(invoice_id))
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return self._to_entity(model)

    async def update(self, invoice: Invoice) -> Invoice:
        """Compare-and-swap write on the version the invoice was read at."""
        next_version = invoice.version + 1
        stmt = (
            update(InvoiceModel)
            .where(
                InvoiceModel.id == str(invoice.id),
                InvoiceModel.version == invoice.version,
            )
            .values(version=next_version, **self._to_row(invoice))
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(stmt)

        if result.rowcount == 0:
            raise StaleVersionException(str(invoice.id), invoice.version)

        return replace(invoice, version=next_version)

    async def get_seller_history(
        self,
        seller_id: str,
        exclude_invoice_id: Optional[UUID] = None,
    ) -> PartyHistory:
        """Aggregate the seller's most recent invoices."""
        stmt = select(InvoiceModel).where(InvoiceModel.seller_id == seller_id)
        if exclude_invoice_id is not None:
            stmt = stmt.where(InvoiceModel.id != str(exclude_invoice_id))
        stmt = stmt.order_by(InvoiceModel.created_at.desc()).limit(SELLER_HISTORY_WINDOW)

        result = await self._session.execute(stmt)
        return self._aggregate(result.scalars().all())

    async def get_buyer_history(
        self,
        buyer_name: str,
        exclude_invoice_id: Optional[UUID] = None,
    ) -> PartyHistory:
        """Aggregate the most recent invoices billed to a buyer name."""
        stmt = select(InvoiceModel).where(
            func.lower(InvoiceModel.buyer_name) == buyer_name.strip().lower()
        )
        if exclude_invoice_id is not None:
            stmt = stmt.where(InvoiceModel.id != str(exclude_invoice_id))
        stmt = stmt.order_by(InvoiceModel.created_at.desc()).limit(BUYER_HISTORY_WINDOW)

        result = await self._session.execute(stmt)
        return self._aggregate(result.scalars().all())

    async def list_default_candidates(
        self,
        matured_before: datetime,
        limit: int = 100,
    ) -> List[Invoice]:
        """List unpaid invoices whose maturity is before the cutoff."""
        stmt = (
            select(InvoiceModel)
            .where(
                InvoiceModel.status.in_([s.value for s in DEFAULTABLE_STATUSES]),
                InvoiceModel.maturity_date < matured_before,
            )
            .order_by(InvoiceModel.maturity_date.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return [self._to_entity(model) for model in models]

    async def list(
        self,
        filters: InvoiceFilters,
        page: PageRequest,
        sort: InvoiceSort = InvoiceSort(),
    ) -> Page[Invoice]:
        """List one page of matching invoices with the total match count."""
        conditions = self._filter_conditions(filters)

        count_stmt = select(func.count()).select_from(InvoiceModel).where(*conditions)
        total = (await self._session.execute(count_stmt)).scalar_one()

        column = getattr(InvoiceModel, sort.field.value)
        stmt = (
            select(InvoiceModel)
            .where(*conditions)
            .order_by(column.desc() if sort.descending else column.asc(), InvoiceModel.id.asc())
            .limit(page.limit)
            .offset(page.offset)
        )
        result = await self._session.execute(stmt)
        models = result.scalars().all()

        return Page(items=[self._to_entity(model) for model in models], total=total, request=page)

    def _filter_conditions(self, filters: InvoiceFilters) -> List[Any]:
        conditions: List[Any] = []
        if filters.statuses:
            conditions.append(InvoiceModel.status.in_([s.value for s in filters.statuses]))
        if filters.seller_id:
            conditions.append(InvoiceModel.seller_id == filters.seller_id)
        if filters.currency:
            conditions.append(InvoiceModel.currency == filters.currency.strip().upper())
        if filters.min_principal_cents is not None:
            conditions.append(InvoiceModel.principal_cents >= filters.min_principal_cents)
        if filters.max_principal_cents is not None:
            conditions.append(InvoiceModel.principal_cents <= filters.max_principal_cents)
        if filters.search and filters.search.strip():
            term = filters.search.strip().lower()
            conditions.append(
                or_(
                    func.lower(InvoiceModel.buyer_name).contains(term, autoescape=True),
                    func.lower(InvoiceModel.description).contains(term, autoescape=True),
                )
            )
        return conditions

    def _aggregate(self, models) -> PartyHistory:
        """Fold invoice rows into paid/default counts and mean settlement delay."""
        paid = [m for m in models if m.status == InvoiceStatus.PAID.value]
        defaulted = [m for m in models if m.status == InvoiceStatus.DEFAULTED.value]

        total_delay = 0.0
        for model in paid:
            if model.paid_at is not None and model.maturity_date is not None:
                delay = (model.paid_at - model.maturity_date).total_seconds() / 86400
                total_delay += max(0.0, delay)

        return PartyHistory(
            invoice_count=len(models),
            paid_count=len(paid),
            defaulted_count=len(defaulted),
            avg_settlement_delay_days=total_delay / len(paid) if paid else 0.0,
        )

    def _to_row(self, invoice: Invoice) -> Dict[str, Any]:
        """Column values for an insert or update (everything but id/version)."""
        return {
            "seller_id": invoice.seller_id,
            "buyer_name": invoice.buyer_name,
            "invoice_number": invoice.invoice_number,
            "description": invoice.description,
            "industry": invoice.industry,
            "principal_cents": invoice.principal_cents,
            "currency": invoice.currency,
            "tenor_days": invoice.tenor_days,
            "yield_bps": invoice.yield_bps,
            "funding_goal_cents": invoice.funding_goal_cents,
            "total_invested_cents": invoice.total_invested_cents,
            "status": invoice.status.value,
            "risk_score": invoice.risk_score,
            "risk_grade": invoice.risk_grade,
            "risk_factors": list(invoice.risk_factors),
            "yield_adjustment_bps": invoice.yield_adjustment_bps,
            "paid_amount_cents": invoice.paid_amount_cents,
            "payment_status": invoice.payment_status.value,
            "bond_cents": invoice.bond_cents,
            "token_ref": invoice.token_ref,
            "maturity_date": invoice.maturity_date,
            "created_at": invoice.created_at,
            "updated_at": invoice.updated_at,
            "listed_at": invoice.listed_at,
            "funded_at": invoice.funded_at,
            "paid_at": invoice.paid_at,
            "defaulted_at": invoice.defaulted_at,
        }

    def _to_entity(self, model: InvoiceModel) -> Invoice:
        """Convert database model to domain entity."""
        return Invoice(
            id=UUID(model.id),
            seller_id=model.seller_id,
            buyer_name=model.buyer_name,
            invoice_number=model.invoice_number,
            description=model.description,
            industry=model.industry,
            principal_cents=model.principal_cents,
            currency=model.currency,
            tenor_days=model.tenor_days,
            yield_bps=model.yield_bps,
            funding_goal_cents=model.funding_goal_cents,
            total_invested_cents=model.total_invested_cents,
            status=InvoiceStatus(model.status),
            risk_score=model.risk_score,
            risk_grade=model.risk_grade,
            risk_factors=list(model.risk_factors or []),
            yield_adjustment_bps=model.yield_adjustment_bps,
            paid_amount_cents=model.paid_amount_cents,
            payment_status=PaymentStatus(model.payment_status),
            bond_cents=model.bond_cents,
            token_ref=model.token_ref,
            maturity_date=model.maturity_date,
            version=model.version,
            created_at=model.created_at,
            updated_at=model.updated_at,
            listed_at=model.listed_at,
            funded_at=model.funded_at,
            paid_at=model.paid_at,
            defaulted_at=model.defaulted_at,
        )
