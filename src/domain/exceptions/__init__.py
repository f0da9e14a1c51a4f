"""Domain Exceptions - Business rule violations and domain errors."""

from .base import (
    DomainException,
    NotFoundException,
    StateConflictException,
    ValidationException,
)
from .validation import (
    BelowMinimumInvestmentException,
    InvalidAmountException,
    InvalidInvoiceRequestException,
    InvalidListingQueryException,
    MissingDocumentsException,
    PaymentExceedsOutstandingException,
)
from .not_found import (
    InvestmentNotFoundException,
    InvoiceNotFoundException,
    PayoutNotFoundException,
)
from .conflict import (
    CancellationWindowExpiredException,
    CapacityExceededException,
    ConcurrentModificationException,
    DefaultNotDueException,
    DuplicateInvestmentException,
    InvalidTransitionException,
    InvestmentNotActiveException,
    InvoiceAlreadyFundedException,
    InvoiceMaturedException,
    InvoiceNotEditableException,
    InvoiceNotInvestableException,
    PayoutAlreadyClaimedException,
    PayoutNotAvailableException,
    StaleVersionException,
)
from .external import (
    DocumentServiceException,
    ExternalReconciliationPendingException,
    SettlementNetworkException,
    SettlementNetworkTimeoutException,
)

__all__ = [
    "DomainException",
    "NotFoundException",
    "StateConflictException",
    "ValidationException",
    "BelowMinimumInvestmentException",
    "InvalidAmountException",
    "InvalidInvoiceRequestException",
    "InvalidListingQueryException",
    "MissingDocumentsException",
    "PaymentExceedsOutstandingException",
    "InvestmentNotFoundException",
    "InvoiceNotFoundException",
    "PayoutNotFoundException",
    "CancellationWindowExpiredException",
    "CapacityExceededException",
    "ConcurrentModificationException",
    "DefaultNotDueException",
    "DuplicateInvestmentException",
    "InvalidTransitionException",
    "InvestmentNotActiveException",
    "InvoiceAlreadyFundedException",
    "InvoiceMaturedException",
    "InvoiceNotEditableException",
    "InvoiceNotInvestableException",
    "PayoutAlreadyClaimedException",
    "PayoutNotAvailableException",
    "StaleVersionException",
    "DocumentServiceException",
    "ExternalReconciliationPendingException",
    "SettlementNetworkException",
    "SettlementNetworkTimeoutException",
]
