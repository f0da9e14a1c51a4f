"""Pydantic schemas for API request/response validation."""

from .error import ErrorResponseSchema
from .investment import (
    FundingSummarySchema,
    InvestmentListResponseSchema,
    InvestmentResponseSchema,
    PortfolioAnalyticsResponseSchema,
    PortfolioBreakdownSchema,
    PortfolioResponseSchema,
    PortfolioTotalsSchema,
    ReserveInvestmentSchema,
)
from .invoice import (
    CreateInvoiceSchema,
    DefaultCandidatesResponseSchema,
    InvoicePageResponseSchema,
    InvoiceResponseSchema,
    PaginationSchema,
    TransitionRequestSchema,
    UpdateInvoiceSchema,
)
from .payout import (
    ClaimResponseSchema,
    PayoutRecordSchema,
    ReconciliationRunResponseSchema,
    RecordDefaultSchema,
    RecordPaymentSchema,
    SettlementResponseSchema,
)
from .risk import (
    BuyerHistorySchema,
    RiskAssessmentRequestSchema,
    RiskAssessmentResponseSchema,
    RiskFactorSchema,
    SellerHistorySchema,
)

__all__ = [
    "ErrorResponseSchema",
    "FundingSummarySchema",
    "InvestmentListResponseSchema",
    "InvestmentResponseSchema",
    "PortfolioAnalyticsResponseSchema",
    "PortfolioBreakdownSchema",
    "PortfolioResponseSchema",
    "PortfolioTotalsSchema",
    "ReserveInvestmentSchema",
    "CreateInvoiceSchema",
    "DefaultCandidatesResponseSchema",
    "InvoicePageResponseSchema",
    "InvoiceResponseSchema",
    "PaginationSchema",
    "TransitionRequestSchema",
    "UpdateInvoiceSchema",
    "ClaimResponseSchema",
    "PayoutRecordSchema",
    "ReconciliationRunResponseSchema",
    "RecordDefaultSchema",
    "RecordPaymentSchema",
    "SettlementResponseSchema",
    "BuyerHistorySchema",
    "RiskAssessmentRequestSchema",
    "RiskAssessmentResponseSchema",
    "RiskFactorSchema",
    "SellerHistorySchema",
]
