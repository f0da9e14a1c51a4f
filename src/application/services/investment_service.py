"""Investment ledger service - orchestrates reservations and cancellations."""

from datetime import timedelta
from typing import Callable, Dict, List, Optional
from uuid import UUID

import structlog

from src.application.dto import (
    FundingSummary,
    InvestmentListResponse,
    InvestmentResponse,
    Pagination,
    PortfolioAnalyticsResponse,
    PortfolioBreakdown,
    PortfolioResponse,
    PortfolioTotals,
)
from src.core.clock import Clock, utcnow
from src.core.metrics import record_reservation, record_transition, track_ledger_operation
from src.domain.entities import Investment, InvestmentStatus, PageRequest, PortfolioBucket
from src.domain.exceptions import (
    DomainException,
    InvalidListingQueryException,
    InvestmentNotFoundException,
)
from src.domain.interfaces import UnitOfWork, UnitOfWorkFactory
from src.service.ledger import (
    CancellationResult,
    LedgerSettings,
    ReservationResult,
    cancel,
    ledger_settings,
    reserve,
)

from .command_dispatcher import CommandDispatcher
from .concurrency import run_with_cas_retry
from .invoice_service import load_invoice

logger = structlog.get_logger(__name__)

ANALYTICS_TIMEFRAMES: Dict[str, Optional[timedelta]] = {
    "7d": timedelta(days=7),
    "30d": timedelta(days=30),
    "90d": timedelta(days=90),
    "1y": timedelta(days=365),
    "all": None,
}

PERFORMING_STATUSES = (InvestmentStatus.ACTIVE, InvestmentStatus.COMPLETED)


def _fold(
    buckets: List[PortfolioBucket],
    key: Callable[[PortfolioBucket], str],
) -> List[PortfolioBreakdown]:
    """Merge buckets that share a key, ordered by key."""
    merged: Dict[str, List[PortfolioBucket]] = {}
    for bucket in buckets:
        merged.setdefault(key(bucket), []).append(bucket)

    breakdown = []
    for name in sorted(merged):
        group = merged[name]
        count = sum(b.count for b in group)
        breakdown.append(
            PortfolioBreakdown(
                key=name,
                count=count,
                invested_cents=sum(b.invested_cents for b in group),
                expected_return_cents=sum(b.expected_return_cents for b in group),
                actual_return_cents=sum(b.actual_return_cents for b in group),
                avg_yield_bps=round(sum(b.yield_bps_total for b in group) / count, 2),
            )
        )
    return breakdown


async def load_investment(uow: UnitOfWork, investment_id: UUID) -> Investment:
    """
    Read an investment inside a unit of work.

    Raises:
        InvestmentNotFoundException: If the investment does not exist
    """
    investment = await uow.investments.get_by_id(investment_id)
    if investment is None:
        raise InvestmentNotFoundException(str(investment_id))
    return investment


class InvestmentLedgerService:
    """
    Application service for the investment ledger.

    Every reserve and cancel re-reads the invoice in a fresh unit of work and
    writes it back with a compare-and-swap on its version, so concurrent
    reservations can never push total_invested past the funding goal.
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

    async def reserve(
        self,
        invoice_id: UUID,
        investor_id: str,
        amount_cents: int,
    ) -> InvestmentResponse:
        """
        Reserve part of an invoice's funding goal for an investor.

        Args:
            invoice_id: Invoice to invest in
            investor_id: Investor making the reservation
            amount_cents: Amount to invest

        Returns:
            InvestmentResponse for the new active investment

        Raises:
            InvoiceNotFoundException: If invoice not found
            InvoiceNotInvestableException: If invoice is not listed or funding
            InvoiceMaturedException: If invoice is past maturity
            InvalidAmountException: If amount is not positive
            BelowMinimumInvestmentException: If amount is under the minimum
            DuplicateInvestmentException: If investor already holds a position
            CapacityExceededException: If amount exceeds remaining capacity
            ConcurrentModificationException: If retries are exhausted
        """
        log = logger.bind(
            invoice_id=str(invoice_id),
            investor_id=investor_id,
            amount_cents=amount_cents,
        )

        async def work(uow: UnitOfWork) -> ReservationResult:
            invoice = await load_invoice(uow, invoice_id)
            open_position = await uow.investments.get_open_position(invoice.id, investor_id)

            result = reserve(
                invoice,
                investor_id,
                amount_cents,
                open_position,
                self._clock(),
                self._settings,
            )

            updated = await uow.invoices.update(result.invoice)
            await uow.investments.add(result.investment)
            return ReservationResult(
                invoice=updated,
                investment=result.investment,
                commands=result.commands,
                events=result.events,
            )

        try:
            with track_ledger_operation("reserve"):
                result = await run_with_cas_retry(
                    self._uow_factory, "reserve", work, self._settings
                )
        except DomainException as e:
            record_reservation(e.code)
            log.info("reservation_rejected", error=e.code)
            raise

        record_reservation("reserved", amount_cents)
        for event in result.events:
            record_transition(event.value)

        log.info(
            "investment_reserved",
            investment_id=str(result.investment.id),
            invoice_status=result.invoice.status.value,
            total_invested_cents=result.invoice.total_invested_cents,
        )

        pending = await self._dispatcher.dispatch(result.commands)
        return InvestmentResponse.from_entity(
            result.investment,
            invoice_status=result.invoice.status.value,
            reconciliation_pending=pending,
        )

    async def cancel(self, investment_id: UUID) -> InvestmentResponse:
        """
        Cancel an active investment within the cancellation window.

        Raises:
            InvestmentNotFoundException: If investment not found
            InvestmentNotActiveException: If investment is not active
            InvoiceAlreadyFundedException: If the invoice reached its goal
            CancellationWindowExpiredException: If outside the window
            ConcurrentModificationException: If retries are exhausted
        """

        async def work(uow: UnitOfWork) -> CancellationResult:
            investment = await load_investment(uow, investment_id)
            invoice = await load_invoice(uow, investment.invoice_id)

            result = cancel(invoice, investment, self._clock(), self._settings)

            updated = await uow.invoices.update(result.invoice)
            await uow.investments.update(result.investment)
            return CancellationResult(
                invoice=updated,
                investment=result.investment,
                commands=result.commands,
                events=result.events,
            )

        with track_ledger_operation("cancel"):
            result = await run_with_cas_retry(
                self._uow_factory, "cancel", work, self._settings
            )

        for event in result.events:
            record_transition(event.value)

        logger.info(
            "investment_cancelled",
            investment_id=str(investment_id),
            invoice_id=str(result.invoice.id),
            invoice_status=result.invoice.status.value,
        )

        pending = await self._dispatcher.dispatch(result.commands)
        return InvestmentResponse.from_entity(
            result.investment,
            invoice_status=result.invoice.status.value,
            reconciliation_pending=pending,
        )

    async def get_investment(self, investment_id: UUID) -> InvestmentResponse:
        """
        Get an investment by ID.

        Raises:
            InvestmentNotFoundException: If investment not found
        """
        async with self._uow_factory() as uow:
            investment = await load_investment(uow, investment_id)
        return InvestmentResponse.from_entity(investment)

    async def list_investments(self, invoice_id: UUID) -> InvestmentListResponse:
        """
        List every investment on an invoice with its funding summary.

        Raises:
            InvoiceNotFoundException: If invoice not found
        """
        async with self._uow_factory() as uow:
            invoice = await load_invoice(uow, invoice_id)
            investments = await uow.investments.list_by_invoice(invoice.id)

        active = [inv for inv in investments if inv.status == InvestmentStatus.ACTIVE]
        return InvestmentListResponse(
            summary=FundingSummary.from_entities(invoice, active),
            investments=[InvestmentResponse.from_entity(inv) for inv in investments],
        )

    async def funding_summary(self, invoice_id: UUID) -> FundingSummary:
        """
        Summarize funding progress of an invoice.

        Raises:
            InvoiceNotFoundException: If invoice not found
        """
        return (await self.list_investments(invoice_id)).summary


    async def get_portfolio(
        self,
        investor_id: str,
        page: PageRequest,
        statuses: Optional[List[InvestmentStatus]] = None,
    ) -> PortfolioResponse:
        """
        List an investor's positions, newest first, with totals over active ones.

        The totals cover every active position, not only the returned page.
        """
        async with self._uow_factory() as uow:
            result = await uow.investments.list_by_investor(investor_id, page, statuses)
            buckets = await uow.investments.summarize_by_investor(investor_id)

        active = [b for b in buckets if b.status == InvestmentStatus.ACTIVE]
        count = sum(b.count for b in active)
        yield_total = sum(b.yield_bps_total for b in active)
        totals = PortfolioTotals(
            total_invested_cents=sum(b.invested_cents for b in active),
            total_expected_return_cents=sum(b.expected_return_cents for b in active),
            active_investments=count,
            avg_yield_bps=round(yield_total / count, 2) if count else 0.0,
        )

        return PortfolioResponse(
            investor_id=investor_id,
            investments=[InvestmentResponse.from_entity(inv) for inv in result.items],
            pagination=Pagination.from_page(result),
            totals=totals,
        )

    async def get_portfolio_analytics(
        self,
        investor_id: str,
        timeframe: str = "30d",
    ) -> PortfolioAnalyticsResponse:
        """
        Break an investor's positions down by status and by invoice risk grade.

        The status breakdown covers investments made within the timeframe.
        The risk-grade breakdown covers every active or completed position.

        Raises:
            InvalidListingQueryException: If the timeframe is unknown
        """
        if timeframe not in ANALYTICS_TIMEFRAMES:
            raise InvalidListingQueryException(
                f"timeframe must be one of {', '.join(ANALYTICS_TIMEFRAMES)}"
            )

        window = ANALYTICS_TIMEFRAMES[timeframe]
        since = self._clock() - window if window is not None else None

        async with self._uow_factory() as uow:
            recent = await uow.investments.summarize_by_investor(investor_id, since=since)
            overall = await uow.investments.summarize_by_investor(investor_id)

        performing = [b for b in overall if b.status in PERFORMING_STATUSES]
        return PortfolioAnalyticsResponse(
            investor_id=investor_id,
            timeframe=timeframe,
            since=since.isoformat() + "Z" if since is not None else None,
            by_status=_fold(recent, lambda b: b.status.value),
            by_risk_grade=_fold(performing, lambda b: b.risk_grade or "UNRATED"),
        )
