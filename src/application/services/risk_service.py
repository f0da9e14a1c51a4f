"""Risk service - risk assessment use cases shared by the API and the lifecycle."""

from dataclasses import replace
from datetime import datetime
from typing import Optional

import structlog

from src.application.dto import RiskAssessmentResponse
from src.core.metrics import record_risk_assessment
from src.domain.entities import Invoice, PartyHistory
from src.domain.interfaces import UnitOfWork
from src.service.risk import (
    BuyerHistory,
    RiskAssessment,
    RiskEngine,
    RiskInputs,
    SellerHistory,
    explain_assessment,
)

logger = structlog.get_logger(__name__)


class RiskAssessmentService:
    """
    Application service wrapping the pure RiskEngine.

    Fetches history aggregates from the ledger and converts them into the
    engine's input types.
    """

    def __init__(self, risk_engine: RiskEngine):
        self._risk_engine = risk_engine

    def assess(self, inputs: RiskInputs) -> RiskAssessmentResponse:
        """
        Assess ad-hoc invoice terms without touching the ledger.

        Args:
            inputs: Invoice attributes and optional history aggregates

        Returns:
            RiskAssessmentResponse with grade, factors and explanation
        """
        assessment = self._risk_engine.assess(inputs)
        record_risk_assessment(assessment.grade.value)

        logger.info(
            "risk_assessed",
            score=assessment.score,
            grade=assessment.grade.value,
            yield_adjustment_bps=assessment.yield_adjustment_bps,
        )

        return RiskAssessmentResponse.from_assessment(assessment, explain_assessment(assessment))

    async def assess_invoice(self, uow: UnitOfWork, invoice: Invoice, now: datetime) -> Invoice:
        """
        Assess an invoice against its seller's and buyer's history.

        Args:
            uow: Open unit of work used to read history aggregates
            invoice: Invoice to assess (not modified)
            now: Assessment time

        Returns:
            A copy of the invoice with the risk fields filled in
        """
        seller = await uow.invoices.get_seller_history(
            invoice.seller_id, exclude_invoice_id=invoice.id
        )
        buyer = await uow.invoices.get_buyer_history(
            invoice.buyer_name, exclude_invoice_id=invoice.id
        )

        assessment = self._risk_engine.assess(
            RiskInputs(
                principal_cents=invoice.principal_cents,
                currency=invoice.currency,
                tenor_days=invoice.tenor_days,
                as_of=now.date(),
                industry=invoice.industry,
                seller_history=self._to_seller_history(seller),
                buyer_history=self._to_buyer_history(buyer),
            )
        )
        record_risk_assessment(assessment.grade.value)

        logger.info(
            "invoice_risk_assessed",
            invoice_id=str(invoice.id),
            score=assessment.score,
            grade=assessment.grade.value,
        )

        return self._apply(invoice, assessment)

    def _apply(self, invoice: Invoice, assessment: RiskAssessment) -> Invoice:
        return replace(
            invoice,
            risk_score=assessment.score,
            risk_grade=assessment.grade.value,
            risk_factors=assessment.factors_as_dicts(),
            yield_adjustment_bps=assessment.yield_adjustment_bps,
        )

    def _to_seller_history(self, history: Optional[PartyHistory]) -> Optional[SellerHistory]:
        """Convert ledger aggregates to the engine's seller history."""
        if history is None:
            return None
        return SellerHistory(
            invoice_count=history.invoice_count,
            default_rate=history.default_rate,
            avg_delay_days=history.avg_settlement_delay_days,
        )

    def _to_buyer_history(self, history: Optional[PartyHistory]) -> Optional[BuyerHistory]:
        """Convert ledger aggregates to the engine's buyer history."""
        if history is None:
            return None
        return BuyerHistory(
            invoice_count=history.invoice_count,
            payment_rate=history.payment_rate,
            default_rate=history.default_rate,
        )
