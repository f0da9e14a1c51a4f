"""Payout distributor service - buyer payments, defaults and claims."""

from typing import Optional
from uuid import UUID

import structlog

from src.application.dto import (
    InvoiceResponse,
    PayoutRecordResponse,
    PayoutResult,
    SettlementResponse,
)
from src.core.clock import Clock, utcnow
from src.core.metrics import (
    record_claim,
    record_settlement,
    record_transition,
    track_ledger_operation,
)
from src.domain.entities import InvestmentStatus
from src.domain.exceptions import (
    PayoutAlreadyClaimedException,
    PayoutNotAvailableException,
    PayoutNotFoundException,
)
from src.domain.interfaces import UnitOfWork, UnitOfWorkFactory
from src.service.ledger import (
    LedgerSettings,
    SettlementResult,
    decide_claim,
    ledger_settings,
    record_default,
    record_payment,
)

from .command_dispatcher import CommandDispatcher
from .concurrency import run_with_cas_retry
from .investment_service import load_investment
from .invoice_service import load_invoice

logger = structlog.get_logger(__name__)


class PayoutDistributorService:
    """
    Application service for settlement and payout claims.

    A payment or default writes the invoice (compare-and-swap), the payout
    record and any investment status changes in one unit of work. Claims
    only contend per investment and use their own compare-and-swap on
    payout_claimed.
    """

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        dispatcher: CommandDispatcher,
        clock: Clock = utcnow,
        settings: LedgerSettings = ledger_settings,
    ):
        self._uow_factory = uow_factory
        self._dispatcher = dispatcher
        self._clock = clock
        self._settings = settings

    async def record_payment(
        self,
        invoice_id: UUID,
        amount_cents: int,
        reference: str,
    ) -> SettlementResponse:
        """
        Record a buyer payment against a funded invoice.

        Args:
            invoice_id: The invoice being paid
            amount_cents: Payment amount
            reference: External payment reference

        Returns:
            SettlementResponse; payout is set once principal is fully paid

        Raises:
            InvoiceNotFoundException: If invoice not found
            InvalidTransitionException: If the invoice is not funded
            InvalidAmountException: If amount is not positive
            PaymentExceedsOutstandingException: If amount exceeds outstanding principal
        """

        async def work(uow: UnitOfWork) -> SettlementResult:
            invoice = await load_invoice(uow, invoice_id)
            active = await uow.investments.list_by_invoice(
                invoice.id, statuses=[InvestmentStatus.ACTIVE]
            )
            result = record_payment(
                invoice, active, amount_cents, reference, self._clock(), self._settings
            )
            return await self._persist(uow, result)

        with track_ledger_operation("record_payment"):
            result = await run_with_cas_retry(
                self._uow_factory, "record_payment", work, self._settings
            )

        logger.info(
            "buyer_payment_recorded",
            invoice_id=str(invoice_id),
            amount_cents=amount_cents,
            paid_amount_cents=result.invoice.paid_amount_cents,
            payment_status=result.invoice.payment_status.value,
        )

        return await self._finish(result)

    async def record_default(
        self,
        invoice_id: UUID,
        recovered_cents: Optional[int] = None,
    ) -> SettlementResponse:
        """
        Record a default on an invoice past maturity plus the grace period.

        Args:
            invoice_id: The overdue invoice
            recovered_cents: Explicit recovered amount; defaults to bond plus paid

        Raises:
            InvoiceNotFoundException: If invoice not found
            InvalidTransitionException: If the invoice cannot default from its status
            DefaultNotDueException: If the grace period has not elapsed
        """

        async def work(uow: UnitOfWork) -> SettlementResult:
            invoice = await load_invoice(uow, invoice_id)
            active = await uow.investments.list_by_invoice(
                invoice.id, statuses=[InvestmentStatus.ACTIVE]
            )
            result = record_default(
                invoice, active, self._clock(), recovered_cents, self._settings
            )
            return await self._persist(uow, result)

        with track_ledger_operation("record_default"):
            result = await run_with_cas_retry(
                self._uow_factory, "record_default", work, self._settings
            )

        logger.warning(
            "invoice_defaulted",
            invoice_id=str(invoice_id),
            recovered_cents=result.payout.gross_amount_cents,
            investments=len(result.investments),
        )

        return await self._finish(result)

    async def claim(self, investment_id: UUID) -> PayoutResult:
        """
        Claim an investment's share of its invoice's payout.

        Raises:
            InvestmentNotFoundException: If investment not found
            PayoutNotAvailableException: If the invoice has no payout yet
            PayoutAlreadyClaimedException: If this investment was already claimed
        """
        log = logger.bind(investment_id=str(investment_id))
        now = self._clock()

        try:
            async with self._uow_factory() as uow:
                investment = await load_investment(uow, investment_id)
                payout = await uow.payouts.get_by_invoice(investment.invoice_id)
                decision = decide_claim(investment, payout)

                claimed = await uow.investments.mark_claimed(
                    investment.id, decision.amount_cents, decision.status, now
                )
                if not claimed:
                    raise PayoutAlreadyClaimedException(str(investment_id))
        except PayoutAlreadyClaimedException:
            record_claim("already_claimed")
            raise
        except PayoutNotAvailableException:
            record_claim("not_available")
            raise

        record_claim("claimed")
        log.info("payout_claimed", amount_cents=decision.amount_cents, kind=payout.kind.value)

        return PayoutResult(
            investment_id=str(investment.id),
            invoice_id=str(investment.invoice_id),
            kind=payout.kind.value,
            amount_cents=decision.amount_cents,
            status=decision.status.value,
            claimed_at=now.isoformat() + "Z",
        )

    async def get_payout(self, invoice_id: UUID) -> PayoutRecordResponse:
        """
        Get the payout record of a settled invoice.

        Raises:
            InvoiceNotFoundException: If invoice not found
            PayoutNotFoundException: If the invoice has not settled
        """
        async with self._uow_factory() as uow:
            invoice = await load_invoice(uow, invoice_id)
            payout = await uow.payouts.get_by_invoice(invoice.id)

        if payout is None:
            raise PayoutNotFoundException(str(invoice_id))
        return PayoutRecordResponse.from_entity(payout)

    async def _persist(self, uow: UnitOfWork, result: SettlementResult) -> SettlementResult:
        """Write everything a settlement produced in the current unit of work."""
        updated = await uow.invoices.update(result.invoice)
        if result.payout is not None:
            await uow.payouts.add(result.payout)
        for investment in result.investments:
            await uow.investments.update(investment)

        return SettlementResult(
            invoice=updated,
            payout=result.payout,
            investments=result.investments,
            commands=result.commands,
            events=result.events,
        )

    async def _finish(self, result: SettlementResult) -> SettlementResponse:
        """Post-commit bookkeeping shared by payments and defaults."""
        for event in result.events:
            record_transition(event.value)

        if result.payout is not None:
            record_settlement(
                result.payout.kind.value,
                result.payout.distributed_cents,
                result.payout.platform_fee_cents,
            )

        pending = await self._dispatcher.dispatch(result.commands)

        return SettlementResponse(
            invoice=InvoiceResponse.from_entity(result.invoice),
            payout=PayoutRecordResponse.from_entity(result.payout) if result.payout else None,
            reconciliation_pending=pending,
        )
