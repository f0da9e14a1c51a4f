"""Lookup failures for ledger records."""

from .base import NotFoundException


class InvoiceNotFoundException(NotFoundException):
    """Raised when an invoice cannot be found."""

    def __init__(self, invoice_id: str):
        super().__init__(
            message=f"Invoice not found: {invoice_id}",
            code="INVOICE_NOT_FOUND",
        )
        self.invoice_id = invoice_id


class InvestmentNotFoundException(NotFoundException):
    """Raised when an investment cannot be found."""

    def __init__(self, investment_id: str):
        super().__init__(
            message=f"Investment not found: {investment_id}",
            code="INVESTMENT_NOT_FOUND",
        )
        self.investment_id = investment_id


class PayoutNotFoundException(NotFoundException):
    """Raised when an invoice has no payout record yet."""

    def __init__(self, invoice_id: str):
        super().__init__(
            message=f"No payout recorded for invoice {invoice_id}",
            code="PAYOUT_NOT_FOUND",
        )
        self.invoice_id = invoice_id
