"""
Payout Distribution Rules.

Turns a buyer payment or a default determination into exactly one
PayoutRecord and splits it across the invoice's active investments.
All arithmetic is in integer cents: the investors' pool is split with
floor division and leftover cents go to the largest remainders, so the
claimable amounts always sum to the pool exactly.
"""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from src.domain.entities import (
    DEFAULTABLE_STATUSES,
    Investment,
    InvestmentStatus,
    Invoice,
    InvoiceStatus,
    PaymentStatus,
    PayoutKind,
    PayoutRecord,
)
from src.domain.exceptions import (
    DefaultNotDueException,
    InvalidAmountException,
    InvalidTransitionException,
    PaymentExceedsOutstandingException,
    PayoutAlreadyClaimedException,
    PayoutNotAvailableException,
)
from src.service.lifecycle import (
    Command,
    LifecycleEvent,
    Notify,
    RecordBuyerPayment,
    Settle,
    transition,
)

from .funding import BPS_DENOMINATOR
from .settings import LedgerSettings, ledger_settings


@dataclass(frozen=True)
class SettlementResult:
    """Outcome of a buyer payment or default determination."""

    invoice: Invoice
    payout: Optional[PayoutRecord]
    investments: Tuple[Investment, ...]
    commands: Tuple[Command, ...]
    events: Tuple[LifecycleEvent, ...] = ()


@dataclass(frozen=True)
class ClaimDecision:
    """What a successful claim pays and the status it leaves behind."""

    amount_cents: int
    status: InvestmentStatus


def allocate_pro_rata(
    total_payout_cents: int,
    investments: Sequence[Investment],
    funding_goal_cents: int,
) -> Tuple[Dict[str, int], int]:
    """
    Split a payout across investments by their frozen share of the goal.

    The investors' pool is total_payout * invested / goal, so a partially
    funded invoice only pays out the share its investors actually hold.
    Remainder cents from flooring go one each to the largest fractional
    remainders, ties broken by position in `investments`.

    Args:
        total_payout_cents: Amount available after fees
        investments: Active investments, in a stable order
        funding_goal_cents: Invoice funding goal

    Returns:
        (claimable by investment id, retained cents outside the pool)
    """
    invested = sum(inv.amount_cents for inv in investments)
    if invested == 0 or total_payout_cents == 0:
        return {str(inv.id): 0 for inv in investments}, total_payout_cents

    pool = total_payout_cents * invested // funding_goal_cents

    claimable: Dict[str, int] = {}
    remainders: List[Tuple[int, int, str]] = []
    for position, inv in enumerate(investments):
        base, remainder = divmod(pool * inv.amount_cents, invested)
        claimable[str(inv.id)] = base
        remainders.append((-remainder, position, str(inv.id)))

    leftover = pool - sum(claimable.values())
    for _, _, investment_id in sorted(remainders)[:leftover]:
        claimable[investment_id] += 1

    return claimable, total_payout_cents - pool


def calculate_platform_fee_cents(
    paid_cents: int,
    settings: LedgerSettings = ledger_settings,
) -> int:
    """Platform fee on a buyer payment, floored to whole cents."""
    return paid_cents * settings.platform_fee_bps // BPS_DENOMINATOR


def _payout_notifications(
    investments: Sequence[Investment],
    claimable: Dict[str, int],
    invoice: Invoice,
    kind: PayoutKind,
) -> List[Command]:
    return [
        Notify(
            user_id=inv.investor_id,
            event="payout_available",
            payload={
                "invoice_id": str(invoice.id),
                "investment_id": str(inv.id),
                "kind": kind.value,
                "claimable_cents": claimable[str(inv.id)],
            },
        )
        for inv in investments
    ]


def record_payment(
    invoice: Invoice,
    active_investments: Sequence[Investment],
    amount_cents: int,
    reference: str,
    now: datetime,
    settings: LedgerSettings = ledger_settings,
) -> SettlementResult:
    """
    Record a buyer payment, settling the invoice once principal is covered.

    Args:
        invoice: Funded invoice as read in the current unit of work
        active_investments: Active investments on the invoice
        amount_cents: Payment amount
        reference: External payment reference
        now: Request time
        settings: Ledger settings (uses defaults if not provided)

    Returns:
        SettlementResult; payout is None while the invoice is only part paid

    Raises:
        InvalidTransitionException: Invoice is not funded
        InvalidAmountException: Non-positive amount
        PaymentExceedsOutstandingException: Payment larger than outstanding principal
    """
    if invoice.status != InvoiceStatus.FUNDED:
        raise InvalidTransitionException(str(invoice.id), invoice.status.value, "record_payment")

    if amount_cents <= 0:
        raise InvalidAmountException("amount_cents", amount_cents)

    if amount_cents > invoice.outstanding_cents:
        raise PaymentExceedsOutstandingException(amount_cents, invoice.outstanding_cents)

    paid = invoice.paid_amount_cents + amount_cents
    fully_paid = paid >= invoice.principal_cents

    updated = replace(
        invoice,
        paid_amount_cents=paid,
        payment_status=PaymentStatus.PAID if fully_paid else PaymentStatus.PARTIAL,
        updated_at=now,
    )

    commands: List[Command] = [
        RecordBuyerPayment(
            invoice_id=invoice.id,
            amount_cents=amount_cents,
            reference=reference,
            nonce=invoice.version + 1,
        )
    ]

    if not fully_paid:
        return SettlementResult(
            invoice=updated,
            payout=None,
            investments=(),
            commands=tuple(commands),
        )

    fee = calculate_platform_fee_cents(paid, settings)
    total_payout = paid - fee
    claimable, retained = allocate_pro_rata(
        total_payout, active_investments, invoice.funding_goal_cents
    )

    payout = PayoutRecord(
        invoice_id=invoice.id,
        kind=PayoutKind.PAYMENT,
        gross_amount_cents=paid,
        platform_fee_cents=fee,
        total_payout_cents=total_payout,
        claimable=claimable,
        retained_cents=retained,
        settled_at=now,
    )

    result = transition(updated, LifecycleEvent.MARK_PAID, now)
    commands.extend(result.commands)
    commands.append(Settle(invoice_id=invoice.id, payout_id=payout.id, payout_cents=total_payout))
    commands.extend(_payout_notifications(active_investments, claimable, invoice, PayoutKind.PAYMENT))

    return SettlementResult(
        invoice=result.invoice,
        payout=payout,
        investments=(),
        commands=tuple(commands),
        events=(LifecycleEvent.MARK_PAID,),
    )


def record_default(
    invoice: Invoice,
    active_investments: Sequence[Investment],
    now: datetime,
    recovered_cents: Optional[int] = None,
    settings: LedgerSettings = ledger_settings,
) -> SettlementResult:
    """
    Determine a default and distribute the recovered amount pro-rata.

    The recovered amount defaults to the seller bond plus anything the
    buyer already paid, capped at principal. No platform fee is taken.

    Args:
        invoice: Listed, funding or funded invoice
        active_investments: Active investments on the invoice
        now: Request time
        recovered_cents: Explicit recovery amount, overriding the bond rule
        settings: Ledger settings (uses defaults if not provided)

    Returns:
        SettlementResult with the payout and the defaulted investments

    Raises:
        InvalidTransitionException: Invoice not in a defaultable status
        DefaultNotDueException: Grace period after maturity not yet elapsed
        InvalidAmountException: Negative recovered amount
        PaymentExceedsOutstandingException: Recovered amount larger than principal
    """
    if invoice.status not in DEFAULTABLE_STATUSES:
        raise InvalidTransitionException(
            str(invoice.id), invoice.status.value, LifecycleEvent.MARK_DEFAULTED.value
        )

    due_at = invoice.maturity_date + timedelta(days=settings.default_grace_days)
    if now < due_at:
        raise DefaultNotDueException(
            str(invoice.id),
            f"only {invoice.days_past_maturity(now)} days past maturity, "
            f"{settings.default_grace_days} required",
        )

    if recovered_cents is None:
        recovered = min(invoice.bond_cents + invoice.paid_amount_cents, invoice.principal_cents)
    else:
        if recovered_cents < 0:
            raise InvalidAmountException("recovered_cents", recovered_cents)
        if recovered_cents > invoice.principal_cents:
            raise PaymentExceedsOutstandingException(recovered_cents, invoice.principal_cents)
        recovered = recovered_cents

    claimable, retained = allocate_pro_rata(
        recovered, active_investments, invoice.funding_goal_cents
    )

    payout = PayoutRecord(
        invoice_id=invoice.id,
        kind=PayoutKind.DEFAULT,
        gross_amount_cents=recovered,
        platform_fee_cents=0,
        total_payout_cents=recovered,
        claimable=claimable,
        retained_cents=retained,
        settled_at=now,
    )

    result = transition(invoice, LifecycleEvent.MARK_DEFAULTED, now)
    defaulted = tuple(
        replace(inv, status=InvestmentStatus.DEFAULTED) for inv in active_investments
    )

    commands: List[Command] = list(result.commands)
    if recovered > 0:
        commands.append(Settle(invoice_id=invoice.id, payout_id=payout.id, payout_cents=recovered))
    commands.extend(_payout_notifications(active_investments, claimable, invoice, PayoutKind.DEFAULT))

    return SettlementResult(
        invoice=result.invoice,
        payout=payout,
        investments=defaulted,
        commands=tuple(commands),
        events=(LifecycleEvent.MARK_DEFAULTED,),
    )


def decide_claim(investment: Investment, payout: Optional[PayoutRecord]) -> ClaimDecision:
    """
    Check a claim against the payout record.

    The caller must still flip `payout_claimed` with a compare-and-swap;
    this only decides what a winning claim pays.

    Raises:
        PayoutNotAvailableException: No payout for the invoice, or the
            investment was not part of it
        PayoutAlreadyClaimedException: The investment was already claimed
    """
    if payout is None:
        raise PayoutNotAvailableException(str(investment.id))

    if investment.payout_claimed:
        raise PayoutAlreadyClaimedException(str(investment.id))

    amount = payout.claimable_for(investment.id)
    if amount is None:
        raise PayoutNotAvailableException(str(investment.id))

    status = (
        InvestmentStatus.COMPLETED if payout.kind == PayoutKind.PAYMENT
        else InvestmentStatus.DEFAULTED
    )
    return ClaimDecision(amount_cents=amount, status=status)
