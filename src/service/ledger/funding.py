"""
Investment Funding Rules.

Pure reservation and cancellation logic for the investment ledger. The
functions take the invoice as read inside a unit of work and return the
new invoice and investment states plus post-commit commands. Capacity is
validated against the invoice passed in; the caller's compare-and-swap
write guarantees no other writer changed it in between.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from src.domain.entities import (
    Investment,
    InvestmentStatus,
    Invoice,
    InvoiceStatus,
)
from src.domain.exceptions import (
    BelowMinimumInvestmentException,
    CancellationWindowExpiredException,
    CapacityExceededException,
    DuplicateInvestmentException,
    InvalidAmountException,
    InvestmentNotActiveException,
    InvoiceAlreadyFundedException,
    InvoiceMaturedException,
    InvoiceNotInvestableException,
)
from src.service.lifecycle import (
    Command,
    LifecycleEvent,
    Notify,
    RecordInvestment,
    transition,
)

from .settings import LedgerSettings, ledger_settings

BPS_DENOMINATOR = 10_000
DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class ReservationResult:
    """Outcome of a successful reservation."""

    invoice: Invoice
    investment: Investment
    commands: Tuple[Command, ...]
    events: Tuple[LifecycleEvent, ...] = ()


@dataclass(frozen=True)
class CancellationResult:
    """Outcome of a successful cancellation."""

    invoice: Invoice
    investment: Investment
    commands: Tuple[Command, ...]
    events: Tuple[LifecycleEvent, ...] = ()


def minimum_investment_cents(
    principal_cents: int,
    settings: LedgerSettings = ledger_settings,
) -> int:
    """
    Per-investment minimum: the greater of the fixed floor and a share of principal.

    The percentage part is rounded up so it never undercuts the configured rate.
    """
    proportional = -(-principal_cents * settings.min_investment_bps // BPS_DENOMINATOR)
    return max(settings.min_investment_floor_cents, proportional)


def calculate_share_percentage(amount_cents: int, funding_goal_cents: int) -> float:
    """Fraction of the funding goal represented by an investment (display only)."""
    return amount_cents / funding_goal_cents


def calculate_expected_return_cents(
    amount_cents: int,
    yield_bps: int,
    tenor_days: int,
) -> int:
    """
    Principal plus simple interest over the tenor, floored to whole cents.

    expected = amount + amount * yield_bps * tenor_days / (10000 * 365)
    """
    interest = amount_cents * yield_bps * tenor_days // (BPS_DENOMINATOR * DAYS_PER_YEAR)
    return amount_cents + interest


def reserve(
    invoice: Invoice,
    investor_id: str,
    amount_cents: int,
    open_position: Optional[Investment],
    now: datetime,
    settings: LedgerSettings = ledger_settings,
) -> ReservationResult:
    """
    Reserve part of an invoice's funding capacity for an investor.

    Preconditions are checked in a fixed order, each with its own error:
    status, maturity, amount, minimum, duplicate position, capacity.

    Args:
        invoice: Invoice as read in the current unit of work
        investor_id: Investor making the reservation
        amount_cents: Amount to invest
        open_position: The investor's existing non-cancelled investment, if any
        now: Request time
        settings: Ledger settings (uses defaults if not provided)

    Returns:
        ReservationResult with updated invoice, new investment and commands

    Raises:
        InvoiceNotInvestableException: Invoice not listed or funding
        InvoiceMaturedException: Invoice past maturity
        InvalidAmountException: Non-positive amount
        BelowMinimumInvestmentException: Amount under the minimum
        DuplicateInvestmentException: Investor already holds a position
        CapacityExceededException: Amount over remaining capacity
    """
    invoice_id = str(invoice.id)

    if not invoice.is_investable:
        if invoice.status == InvoiceStatus.FUNDED:
            # Fully funded: nothing left to reserve.
            raise CapacityExceededException(invoice_id, amount_cents, 0)
        raise InvoiceNotInvestableException(invoice_id, invoice.status.value)

    if invoice.is_matured(now):
        raise InvoiceMaturedException(invoice_id)

    if amount_cents <= 0:
        raise InvalidAmountException("amount_cents", amount_cents)

    minimum = minimum_investment_cents(invoice.principal_cents, settings)
    if amount_cents < minimum:
        raise BelowMinimumInvestmentException(amount_cents, minimum)

    if open_position is not None:
        raise DuplicateInvestmentException(invoice_id, investor_id)

    remaining = invoice.remaining_capacity_cents
    if amount_cents > remaining:
        raise CapacityExceededException(invoice_id, amount_cents, remaining)

    investment = Investment(
        invoice_id=invoice.id,
        investor_id=investor_id,
        amount_cents=amount_cents,
        share_percentage=calculate_share_percentage(amount_cents, invoice.funding_goal_cents),
        expected_return_cents=calculate_expected_return_cents(
            amount_cents, invoice.yield_bps, invoice.tenor_days
        ),
        status=InvestmentStatus.ACTIVE,
        created_at=now,
    )

    updated = replace(
        invoice,
        total_invested_cents=invoice.total_invested_cents + amount_cents,
        updated_at=now,
    )

    commands: List[Command] = [
        RecordInvestment(
            invoice_id=invoice.id,
            investment_id=investment.id,
            investor_id=investor_id,
            amount_cents=amount_cents,
        ),
        Notify(
            user_id=investor_id,
            event="investment_confirmed",
            payload={
                "invoice_id": invoice_id,
                "investment_id": str(investment.id),
                "amount_cents": amount_cents,
            },
        ),
    ]

    event = None
    if updated.is_fully_funded:
        event = LifecycleEvent.COMPLETE_FUNDING
    elif updated.status == InvoiceStatus.LISTED:
        event = LifecycleEvent.START_FUNDING

    events: Tuple[LifecycleEvent, ...] = ()
    if event is not None:
        result = transition(updated, event, now)
        updated = result.invoice
        commands.extend(result.commands)
        events = (event,)

    return ReservationResult(
        invoice=updated,
        investment=investment,
        commands=tuple(commands),
        events=events,
    )


def cancel(
    invoice: Invoice,
    investment: Investment,
    now: datetime,
    settings: LedgerSettings = ledger_settings,
) -> CancellationResult:
    """
    Cancel an active investment and release its capacity.

    Args:
        invoice: The investment's invoice as read in the current unit of work
        investment: The investment to cancel
        now: Request time
        settings: Ledger settings (uses defaults if not provided)

    Returns:
        CancellationResult with updated invoice, cancelled investment and commands

    Raises:
        InvestmentNotActiveException: Investment already cancelled or settled
        InvoiceAlreadyFundedException: Invoice reached its funding goal
        InvoiceNotInvestableException: Invoice otherwise closed for changes
        CancellationWindowExpiredException: Outside the cancellation window
    """
    if investment.status != InvestmentStatus.ACTIVE:
        raise InvestmentNotActiveException(str(investment.id), investment.status.value)

    if invoice.status in (InvoiceStatus.FUNDED, InvoiceStatus.PAID):
        raise InvoiceAlreadyFundedException(str(invoice.id))
    if not invoice.is_investable:
        raise InvoiceNotInvestableException(str(invoice.id), invoice.status.value)

    window = timedelta(hours=settings.cancellation_window_hours)
    if now - investment.created_at > window:
        raise CancellationWindowExpiredException(
            str(investment.id), settings.cancellation_window_hours
        )

    updated = replace(
        invoice,
        total_invested_cents=invoice.total_invested_cents - investment.amount_cents,
        updated_at=now,
    )
    cancelled = replace(investment, status=InvestmentStatus.CANCELLED, cancelled_at=now)

    commands: List[Command] = [
        Notify(
            user_id=investment.investor_id,
            event="investment_cancelled",
            payload={
                "invoice_id": str(invoice.id),
                "investment_id": str(investment.id),
                "amount_cents": investment.amount_cents,
            },
        )
    ]

    events: Tuple[LifecycleEvent, ...] = ()
    if updated.total_invested_cents == 0 and updated.status == InvoiceStatus.FUNDING:
        result = transition(updated, LifecycleEvent.REVERT_TO_LISTED, now)
        updated = result.invoice
        commands.extend(result.commands)
        events = (LifecycleEvent.REVERT_TO_LISTED,)

    return CancellationResult(
        invoice=updated,
        investment=cancelled,
        commands=tuple(commands),
        events=events,
    )
