"""Data Transfer Objects for application layer."""

from .invoice import (
    CreateInvoiceRequest,
    DefaultCandidatesResponse,
    InvoicePageResponse,
    InvoiceResponse,
    Pagination,
    UpdateInvoiceRequest,
    validate_invoice_terms,
)
from .investment import (
    FundingSummary,
    InvestmentListResponse,
    InvestmentResponse,
    PortfolioAnalyticsResponse,
    PortfolioBreakdown,
    PortfolioResponse,
    PortfolioTotals,
)
from .payout import PayoutRecordResponse, PayoutResult, SettlementResponse
from .risk import RiskAssessmentResponse

__all__ = [
    "CreateInvoiceRequest",
    "DefaultCandidatesResponse",
    "InvoicePageResponse",
    "InvoiceResponse",
    "Pagination",
    "UpdateInvoiceRequest",
    "validate_invoice_terms",
    "FundingSummary",
    "InvestmentListResponse",
    "InvestmentResponse",
    "PortfolioAnalyticsResponse",
    "PortfolioBreakdown",
    "PortfolioResponse",
    "PortfolioTotals",
    "PayoutRecordResponse",
    "PayoutResult",
    "SettlementResponse",
    "RiskAssessmentResponse",
]
