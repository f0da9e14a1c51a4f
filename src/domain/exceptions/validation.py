"""Input validation exceptions."""

from .base import ValidationException


class InvalidAmountException(ValidationException):
    """Raised when a monetary amount is zero or negative."""

    def __init__(self, field_name: str, amount_cents: int):
        super().__init__(
            message=f"{field_name} must be positive, got {amount_cents}",
            code="INVALID_AMOUNT",
        )
        self.amount_cents = amount_cents


class BelowMinimumInvestmentException(ValidationException):
    """Raised when a reservation is below the per-investment minimum."""

    def __init__(self, amount_cents: int, minimum_cents: int):
        super().__init__(
            message=(
                f"Investment of {amount_cents} cents is below the minimum "
                f"of {minimum_cents} cents"
            ),
            code="BELOW_MINIMUM_INVESTMENT",
        )
        self.amount_cents = amount_cents
        self.minimum_cents = minimum_cents


class MissingDocumentsException(ValidationException):
    """Raised when an invoice is submitted without description or documents."""

    def __init__(self, invoice_id: str, reason: str):
        super().__init__(
            message=f"Invoice {invoice_id} cannot be submitted: {reason}",
            code="MISSING_DOCUMENTS",
        )
        self.invoice_id = invoice_id


class PaymentExceedsOutstandingException(ValidationException):
    """Raised when a buyer payment would take paid amount past principal."""

    def __init__(self, amount_cents: int, outstanding_cents: int):
        super().__init__(
            message=(
                f"Payment of {amount_cents} cents exceeds outstanding "
                f"{outstanding_cents} cents"
            ),
            code="PAYMENT_EXCEEDS_OUTSTANDING",
        )
        self.amount_cents = amount_cents
        self.outstanding_cents = outstanding_cents


class InvalidInvoiceRequestException(ValidationException):
    """Raised when invoice fields fail business validation."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_INVOICE_REQUEST",
        )


class InvalidListingQueryException(ValidationException):
    """Raised when listing filters contradict each other."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            code="INVALID_LISTING_QUERY",
        )
