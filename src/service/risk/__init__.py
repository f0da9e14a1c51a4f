"""
Invoice Risk Engine
"""

from .models import (
    BuyerHistory,
    Recommendation,
    RiskAssessment,
    RiskFactor,
    RiskGrade,
    RiskInputs,
    SellerHistory,
)
from .settings import RiskSettings, risk_settings
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
from .engine import RiskEngine, explain_assessment

__all__ = [
    # Settings
    "RiskSettings",
    "risk_settings",
    # Models
    "BuyerHistory",
    "Recommendation",
    "RiskAssessment",
    "RiskFactor",
    "RiskGrade",
    "RiskInputs",
    "SellerHistory",
    # Factors
    "score_amount",
    "score_buyer_history",
    "score_currency",
    "score_industry",
    "score_market_conditions",
    "score_seller_history",
    "score_tenor",
    # Grading
    "calculate_yield_adjustment_bps",
    "recommendation_for",
    "score_to_grade",
    # Engine
    "RiskEngine",
    "explain_assessment",
]
