"""PostgreSQL implementation of PayoutRepository."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.domain.entities import PayoutKind, PayoutRecord
from src.domain.interfaces import PayoutRepository
from src.infrastructure.database.models import PayoutRecordModel


class PostgresPayoutRepository(PayoutRepository):
    """
    PostgreSQL implementation of the Payout repository.

    The unique constraint on invoice_id backs the one-payout-per-invoice rule.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def add(self, record: PayoutRecord) -> PayoutRecord:
        """Persist a payout record to the database."""
        model = PayoutRecordModel(
            id=str(record.id),
            invoice_id=str(record.invoice_id),
            kind=record.kind.value,
            gross_amount_cents=record.gross_amount_cents,
            platform_fee_cents=record.platform_fee_cents,
            total_payout_cents=record.total_payout_cents,
            retained_cents=record.retained_cents,
            claimable=dict(record.claimable),
            settled_at=record.settled_at,
        )

        self._session.add(model)
        await self._session.flush()

        return record

    async def get_by_invoice(self, invoice_id: UUID) -> Optional[PayoutRecord]:
        """Retrieve the payout record for an invoice."""
        stmt = select(PayoutRecordModel).where(
            PayoutRecordModel.invoice_id == str(invoice_id)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()

        if model is None:
            return None

        return PayoutRecord(
            id=UUID(model.id),
            invoice_id=UUID(model.invoice_id),
            kind=PayoutKind(model.kind),
            gross_amount_cents=model.gross_amount_cents,
            platform_fee_cents=model.platform_fee_cents,
            total_payout_cents=model.total_payout_cents,
            retained_cents=model.retained_cents,
            claimable={key: int(value) for key, value in model.claimable.items()},
            settled_at=model.settled_at,
        )
