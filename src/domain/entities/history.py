"""Historical performance aggregates for sellers and buyers."""

from dataclasses import dataclass


@dataclass(frozen=True)
class PartyHistory:
    """
    Aggregated settlement history of a seller or buyer across past invoices.

    Attributes:
        invoice_count: Invoices raised by (or billed to) the party
        paid_count: Invoices that settled as paid
        defaulted_count: Invoices that ended in default
        avg_settlement_delay_days: Mean days paid after maturity (0 if none)
    """

    invoice_count: int
    paid_count: int
    defaulted_count: int
    avg_settlement_delay_days: float = 0.0

    @property
    def default_rate(self) -> float:
        if self.invoice_count == 0:
            return 0.0
        return self.defaulted_count / self.invoice_count

    @property
    def payment_rate(self) -> float:
        if self.invoice_count == 0:
            return 0.0
        return self.paid_count / self.invoice_count
