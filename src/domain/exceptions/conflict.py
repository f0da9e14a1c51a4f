"""State conflict exceptions raised by the lifecycle, ledger and payouts."""

from .base import StateConflictException


class InvalidTransitionException(StateConflictException):
    """Raised when a lifecycle event is not allowed from the current status."""

    def __init__(self, invoice_id: str, current_status: str, event: str):
        super().__init__(
            message=f"Cannot apply '{event}' to invoice {invoice_id} in status '{current_status}'",
            code="INVALID_TRANSITION",
        )
        self.invoice_id = invoice_id
        self.current_status = current_status
        self.event = event


class InvoiceNotEditableException(StateConflictException):
    """Raised when invoice fields are changed outside the editable statuses."""

    def __init__(self, invoice_id: str, current_status: str):
        super().__init__(
            message=f"Invoice {invoice_id} cannot be modified in status '{current_status}'",
            code="INVOICE_NOT_EDITABLE",
        )
        self.invoice_id = invoice_id
        self.current_status = current_status


class InvoiceNotInvestableException(StateConflictException):
    """Raised when reserving against an invoice that is not listed or funding."""

    def __init__(self, invoice_id: str, current_status: str):
        super().__init__(
            message=f"Invoice {invoice_id} is not open for investment (status '{current_status}')",
            code="INVOICE_NOT_INVESTABLE",
        )
        self.invoice_id = invoice_id
        self.current_status = current_status


class InvoiceMaturedException(StateConflictException):
    """Raised when reserving against an invoice past its maturity date."""

    def __init__(self, invoice_id: str):
        super().__init__(
            message=f"Invoice {invoice_id} is past maturity",
            code="INVOICE_MATURED",
        )
        self.invoice_id = invoice_id


class DuplicateInvestmentException(StateConflictException):
    """Raised when an investor already holds an open position on the invoice."""

    def __init__(self, invoice_id: str, investor_id: str):
        super().__init__(
            message=f"Investor {investor_id} already holds a position in invoice {invoice_id}",
            code="DUPLICATE_INVESTMENT",
        )
        self.invoice_id = invoice_id
        self.investor_id = investor_id


class CapacityExceededException(StateConflictException):
    """Raised when a reservation exceeds the remaining funding capacity."""

    def __init__(self, invoice_id: str, amount_cents: int, remaining_cents: int):
        super().__init__(
            message=(
                f"Investment of {amount_cents} cents exceeds remaining capacity "
                f"of {remaining_cents} cents on invoice {invoice_id}"
            ),
            code="CAPACITY_EXCEEDED",
        )
        self.invoice_id = invoice_id
        self.amount_cents = amount_cents
        self.remaining_cents = remaining_cents


class InvestmentNotActiveException(StateConflictException):
    """Raised when cancelling an investment that is no longer active."""

    def __init__(self, investment_id: str, current_status: str):
        super().__init__(
            message=f"Investment {investment_id} is not active (status '{current_status}')",
            code="INVESTMENT_NOT_ACTIVE",
        )
        self.investment_id = investment_id
        self.current_status = current_status


class InvoiceAlreadyFundedException(StateConflictException):
    """Raised when cancelling after the invoice reached its funding goal."""

    def __init__(self, invoice_id: str):
        super().__init__(
            message=f"Invoice {invoice_id} is already funded",
            code="INVOICE_ALREADY_FUNDED",
        )
        self.invoice_id = invoice_id


class CancellationWindowExpiredException(StateConflictException):
    """Raised when cancelling outside the cancellation window."""

    def __init__(self, investment_id: str, window_hours: int):
        super().__init__(
            message=f"Investment {investment_id} can only be cancelled within {window_hours} hours",
            code="CANCELLATION_WINDOW_EXPIRED",
        )
        self.investment_id = investment_id
        self.window_hours = window_hours


class DefaultNotDueException(StateConflictException):
    """Raised when a default is determined before the grace period elapses."""

    def __init__(self, invoice_id: str, reason: str):
        super().__init__(
            message=f"Invoice {invoice_id} cannot be defaulted: {reason}",
            code="DEFAULT_NOT_DUE",
        )
        self.invoice_id = invoice_id


class PayoutNotAvailableException(StateConflictException):
    """Raised when claiming before the invoice has been settled."""

    def __init__(self, investment_id: str):
        super().__init__(
            message=f"No payout is available yet for investment {investment_id}",
            code="PAYOUT_NOT_AVAILABLE",
        )
        self.investment_id = investment_id


class PayoutAlreadyClaimedException(StateConflictException):
    """Raised on the second claim for the same investment."""

    def __init__(self, investment_id: str):
        super().__init__(
            message=f"Payout for investment {investment_id} has already been claimed",
            code="PAYOUT_ALREADY_CLAIMED",
        )
        self.investment_id = investment_id


class StaleVersionException(StateConflictException):
    """Raised when a compare-and-swap write finds a newer invoice version."""

    def __init__(self, invoice_id: str, expected_version: int):
        super().__init__(
            message=f"Invoice {invoice_id} changed since version {expected_version}",
            code="STALE_VERSION",
        )
        self.invoice_id = invoice_id
        self.expected_version = expected_version


class ConcurrentModificationException(StateConflictException):
    """Raised when compare-and-swap retries are exhausted."""

    def __init__(self, invoice_id: str, attempts: int):
        super().__init__(
            message=f"Invoice {invoice_id} is under heavy contention; gave up after {attempts} attempts",
            code="CONCURRENT_MODIFICATION",
        )
        self.invoice_id = invoice_id
        self.attempts = attempts
