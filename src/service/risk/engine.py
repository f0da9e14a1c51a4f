"""
Risk Engine for invoice financing.

This module orchestrates a complete invoice assessment:
1. Score each invoice attribute (amount, tenor, currency, industry)
2. Score seller and buyer history from pre-fetched aggregates
3. Add the bounded market-conditions adjustment
4. Sum into a total score and map it to a grade
5. Interpolate the yield premium and attach investor guidance

Assessment is pure: the same inputs always produce the same RiskAssessment.
"""

from typing import List

from .factors import (
    score_amount,
    score_buyer_history,
    score_currency,
    score_industry,
    score_market_conditions,
    score_seller_history,
    score_tenor,
)
from .grading import calculate_yield_adjustment_bps, recommendation_for, score_to_grade
from .models import RiskAssessment, RiskFactor, RiskInputs
from .settings import RiskSettings, risk_settings


class RiskEngine:
    """
    Stateless invoice risk scorer.

    Holds only its settings; safe to share across requests.
    """

    def __init__(self, settings: RiskSettings = risk_settings):
        self._settings = settings

    @property
    def settings(self) -> RiskSettings:
        return self._settings

    def assess(self, inputs: RiskInputs) -> RiskAssessment:
        """
        Assess an invoice.

        Never raises for missing history; absent aggregates degrade to
        their conservative defaults so invoice creation is never blocked.

        Args:
            inputs: Invoice attributes, history aggregates and assessment date

        Returns:
            A fresh RiskAssessment
        """
        settings = self._settings

        factors: List[RiskFactor] = [
            score_amount(inputs.principal_cents, settings),
            score_tenor(inputs.tenor_days, settings),
            score_currency(inputs.currency, settings),
        ]
        if inputs.industry:
            factors.append(score_industry(inputs.industry, settings))
        factors.append(score_seller_history(inputs.seller_history, settings))
        factors.append(score_buyer_history(inputs.buyer_history, settings))
        factors.append(score_market_conditions(inputs.as_of, settings))

        total = sum(factor.score for factor in factors)
        grade = score_to_grade(total, settings)

        return RiskAssessment(
            score=total,
            grade=grade,
            factors=tuple(factors),
            yield_adjustment_bps=calculate_yield_adjustment_bps(total, grade, settings),
            recommendation=recommendation_for(grade),
        )


def explain_assessment(assessment: RiskAssessment) -> str:
    """
    Generate a human-readable explanation of an assessment.

    Used for logging, support reference and investor-facing summaries.

    Args:
        assessment: The assessment to explain

    Returns:
        Multi-line explanation string
    """
    lines = [
        f"Risk Grade: {assessment.grade.value} (score {assessment.score})",
        f"Suggested yield premium: {assessment.yield_adjustment_bps} bps "
        f"({assessment.yield_adjustment_bps / 100:.2f}%)",
        "",
        "Contributing Factors:",
    ]

    for factor in assessment.factors:
        lines.append(f"  - {factor.name} [{factor.level}] +{factor.score}: {factor.description}")

    lines.append("")
    lines.append(f"Priority: {assessment.recommendation.priority}")
    for action in assessment.recommendation.actions:
        lines.append(f"  * {action}")

    return "\n".join(lines)
