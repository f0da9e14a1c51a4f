"""
Invoice Lifecycle State Machine.

Every status change of an invoice goes through `transition()`, which
returns the new invoice state together with the commands to run once the
change is committed. The function never mutates its input.

    draft -> pending_review -> approved -> listed <-> funding -> funded -> paid
                            -> rejected -> draft
    listed | funding | funded -> defaulted
    draft | rejected -> cancelled
"""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Tuple

from src.domain.entities import Invoice, InvoiceStatus
from src.domain.exceptions import InvalidTransitionException, MissingDocumentsException

from .commands import Command, Notify


class LifecycleEvent(str, Enum):
    """Events that move an invoice between statuses."""

    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    REVISE = "revise"
    LIST = "list"
    CANCEL = "cancel"
    START_FUNDING = "start_funding"
    REVERT_TO_LISTED = "revert_to_listed"
    COMPLETE_FUNDING = "complete_funding"
    MARK_PAID = "mark_paid"
    MARK_DEFAULTED = "mark_defaulted"


# Events a user may request directly. The rest are driven by the ledger
# and the payout distributor.
USER_EVENTS: FrozenSet[LifecycleEvent] = frozenset(
    {
        LifecycleEvent.SUBMIT,
        LifecycleEvent.APPROVE,
        LifecycleEvent.REJECT,
        LifecycleEvent.REVISE,
        LifecycleEvent.LIST,
        LifecycleEvent.CANCEL,
    }
)

TRANSITIONS: Dict[LifecycleEvent, Tuple[FrozenSet[InvoiceStatus], InvoiceStatus]] = {
    LifecycleEvent.SUBMIT: (frozenset({InvoiceStatus.DRAFT}), InvoiceStatus.PENDING_REVIEW),
    LifecycleEvent.APPROVE: (frozenset({InvoiceStatus.PENDING_REVIEW}), InvoiceStatus.APPROVED),
    LifecycleEvent.REJECT: (frozenset({InvoiceStatus.PENDING_REVIEW}), InvoiceStatus.REJECTED),
    LifecycleEvent.REVISE: (frozenset({InvoiceStatus.REJECTED}), InvoiceStatus.DRAFT),
    LifecycleEvent.LIST: (frozenset({InvoiceStatus.APPROVED}), InvoiceStatus.LISTED),
    LifecycleEvent.CANCEL: (
        frozenset({InvoiceStatus.DRAFT, InvoiceStatus.REJECTED}),
        InvoiceStatus.CANCELLED,
    ),
    LifecycleEvent.START_FUNDING: (frozenset({InvoiceStatus.LISTED}), InvoiceStatus.FUNDING),
    LifecycleEvent.REVERT_TO_LISTED: (frozenset({InvoiceStatus.FUNDING}), InvoiceStatus.LISTED),
    LifecycleEvent.COMPLETE_FUNDING: (
        frozenset({InvoiceStatus.LISTED, InvoiceStatus.FUNDING}),
        InvoiceStatus.FUNDED,
    ),
    LifecycleEvent.MARK_PAID: (frozenset({InvoiceStatus.FUNDED}), InvoiceStatus.PAID),
    LifecycleEvent.MARK_DEFAULTED: (
        frozenset({InvoiceStatus.LISTED, InvoiceStatus.FUNDING, InvoiceStatus.FUNDED}),
        InvoiceStatus.DEFAULTED,
    ),
}

# Statuses at or past `listed`, where listing again has no effect.
_LISTED_OR_PAST = frozenset(
    {
        InvoiceStatus.LISTED,
        InvoiceStatus.FUNDING,
        InvoiceStatus.FUNDED,
        InvoiceStatus.PAID,
        InvoiceStatus.DEFAULTED,
    }
)

_SELLER_NOTIFICATIONS: Dict[LifecycleEvent, str] = {
    LifecycleEvent.APPROVE: "invoice_approved",
    LifecycleEvent.REJECT: "invoice_rejected",
    LifecycleEvent.LIST: "invoice_listed",
    LifecycleEvent.COMPLETE_FUNDING: "invoice_funded",
    LifecycleEvent.MARK_PAID: "invoice_paid",
    LifecycleEvent.MARK_DEFAULTED: "invoice_defaulted",
}


@dataclass(frozen=True)
class TransitionResult:
    """New invoice state plus the commands to execute after commit."""

    invoice: Invoice
    commands: Tuple[Command, ...] = ()
    changed: bool = True


def ensure_user_event(invoice: Invoice, event: LifecycleEvent) -> None:
    """
    Reject automatic events requested through the public API.

    Raises:
        InvalidTransitionException: If the event is ledger-driven
    """
    if event not in USER_EVENTS:
        raise InvalidTransitionException(
            str(invoice.id), invoice.status.value, event.value
        )


def can_transition(invoice: Invoice, event: LifecycleEvent) -> bool:
    """Whether `event` is legal from the invoice's current status."""
    if event == LifecycleEvent.LIST and invoice.status in _LISTED_OR_PAST:
        return True
    sources, _ = TRANSITIONS[event]
    return invoice.status in sources


def transition(invoice: Invoice, event: LifecycleEvent, now: datetime) -> TransitionResult:
    """
    Apply a lifecycle event.

    Args:
        invoice: Current invoice state (not modified)
        event: Event to apply
        now: Transition timestamp

    Returns:
        TransitionResult with the new invoice and post-commit commands

    Raises:
        InvalidTransitionException: If the event is illegal from the current status
        MissingDocumentsException: If submitting without a description
    """
    if event == LifecycleEvent.LIST and invoice.status in _LISTED_OR_PAST:
        return TransitionResult(invoice=invoice, commands=(), changed=False)

    sources, target = TRANSITIONS[event]
    if invoice.status not in sources:
        raise InvalidTransitionException(str(invoice.id), invoice.status.value, event.value)

    if event == LifecycleEvent.SUBMIT and not invoice.description.strip():
        raise MissingDocumentsException(str(invoice.id), "description is required")

    changes = {"status": target, "updated_at": now}
    if event == LifecycleEvent.LIST:
        changes["listed_at"] = now
    elif event == LifecycleEvent.COMPLETE_FUNDING:
        changes["funded_at"] = now
    elif event == LifecycleEvent.MARK_PAID:
        changes["paid_at"] = now
    elif event == LifecycleEvent.MARK_DEFAULTED:
        changes["defaulted_at"] = now

    updated = replace(invoice, **changes)

    commands: List[Command] = []
    notification = _SELLER_NOTIFICATIONS.get(event)
    if notification is not None:
        commands.append(
            Notify(
                user_id=invoice.seller_id,
                event=notification,
                payload={
                    "invoice_id": str(invoice.id),
                    "invoice_number": invoice.invoice_number,
                    "status": target.value,
                },
            )
        )

    return TransitionResult(invoice=updated, commands=tuple(commands))
