"""
Grade Mapping and Yield Adjustment for the invoice risk engine.

This module maps a total risk score onto its grade band and interpolates
a yield premium inside the grade's basis-point range, so the suggested
premium rises smoothly with the score instead of stepping at grade edges.
"""

from typing import Tuple

from .models import Recommendation, RiskGrade
from .settings import RiskSettings, risk_settings

_RECOMMENDATIONS = {
    RiskGrade.LOW: Recommendation(
        priority="normal",
        actions=(
            "This invoice presents low risk for investors",
            "Consider standard yield rates",
            "Suitable for conservative investors",
            "Monitor for any changes in buyer circumstances",
        ),
    ),
    RiskGrade.MEDIUM: Recommendation(
        priority="important",
        actions=(
            "This invoice presents moderate risk",
            "Consider a yield premium to compensate for risk",
            "Suitable for balanced risk investors",
            "Enhanced due diligence recommended",
            "Monitor payment closely",
        ),
    ),
    RiskGrade.HIGH: Recommendation(
        priority="urgent",
        actions=(
            "This invoice presents high risk",
            "Significant yield premium recommended",
            "Only suitable for risk-tolerant investors",
            "Comprehensive due diligence required",
            "Consider additional security measures",
            "Close monitoring essential",
        ),
    ),
}


def score_to_grade(
    score: int,
    settings: RiskSettings = risk_settings,
) -> RiskGrade:
    """
    Map a total score to its grade.

    Ranges are half-open: LOW [0, low_upper), MEDIUM [low_upper, medium_upper),
    HIGH [medium_upper, inf). There is no upper clamp.

    Args:
        score: Total risk score (non-negative)
        settings: Risk settings (uses defaults if not provided)

    Returns:
        The matching RiskGrade
    """
    if score < settings.low_grade_upper:
        return RiskGrade.LOW
    if score < settings.medium_grade_upper:
        return RiskGrade.MEDIUM
    return RiskGrade.HIGH


def grade_score_range(
    grade: RiskGrade,
    settings: RiskSettings = risk_settings,
) -> Tuple[int, int]:
    """Score range used for interpolation inside a grade."""
    if grade == RiskGrade.LOW:
        return 0, settings.low_grade_upper
    if grade == RiskGrade.MEDIUM:
        return settings.low_grade_upper, settings.medium_grade_upper
    return settings.medium_grade_upper, settings.high_interpolation_upper


def grade_yield_range(
    grade: RiskGrade,
    settings: RiskSettings = risk_settings,
) -> Tuple[int, int]:
    """Basis-point range of the yield adjustment for a grade."""
    if grade == RiskGrade.LOW:
        return settings.low_yield_min_bps, settings.low_yield_max_bps
    if grade == RiskGrade.MEDIUM:
        return settings.medium_yield_min_bps, settings.medium_yield_max_bps
    return settings.high_yield_min_bps, settings.high_yield_max_bps


def calculate_yield_adjustment_bps(
    score: int,
    grade: RiskGrade,
    settings: RiskSettings = risk_settings,
) -> int:
    """
    Interpolate the yield premium linearly inside the grade's bps range.

    Scores beyond the HIGH interpolation bound saturate at the top of the
    HIGH range. Rounding is half-up on integers so identical inputs always
    give identical output.

    Args:
        score: Total risk score
        grade: Grade the score maps to
        settings: Risk settings (uses defaults if not provided)

    Returns:
        Yield adjustment in whole basis points
    """
    score_min, score_max = grade_score_range(grade, settings)
    bps_min, bps_max = grade_yield_range(grade, settings)

    position = min(max(score, score_min), score_max) - score_min
    span = score_max - score_min

    numerator = position * (bps_max - bps_min)
    return bps_min + (2 * numerator + span) // (2 * span)


def recommendation_for(grade: RiskGrade) -> Recommendation:
    """Investor guidance for a grade."""
    return _RECOMMENDATIONS[grade]
