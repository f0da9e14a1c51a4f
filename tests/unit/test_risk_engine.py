"""
Unit Tests for the Invoice Risk Engine.

These tests verify:
1. Attribute band scoring (amount, tenor, currency, industry)
2. Seller and buyer history scoring, including unknown history
3. Market conditions adjustment
4. Grade mapping and yield interpolation
5. Complete assessments and their explanation
"""

from datetime import date

import pytest
from pydantic import ValidationError

from src.service.risk import (
    BuyerHistory,
    RiskEngine,
    RiskGrade,
    RiskInputs,
    RiskSettings,
    SellerHistory,
    calculate_yield_adjustment_bps,
    explain_assessment,
    recommendation_for,
    score_amount,
    score_buyer_history,
    score_currency,
    score_industry,
    score_market_conditions,
    score_seller_history,
    score_tenor,
    score_to_grade,
)

MARCH = date(2025, 3, 3)
DECEMBER = date(2025, 12, 15)


def make_inputs(**overrides) -> RiskInputs:
    """Inputs for a 10,000.00 USD, 60 day technology invoice with unknown history."""
    values = {
        "principal_cents": 1_000_000,
        "currency": "USD",
        "tenor_days": 60,
        "as_of": MARCH,
        "industry": "technology",
    }
    values.update(overrides)
    return RiskInputs(**values)


# =============================================================================
# Attribute Bands
# =============================================================================

class TestAttributeBands:
    """Tests for amount, tenor, currency and industry scoring."""

    @pytest.mark.parametrize(
        "principal_cents,expected_score,expected_level",
        [
            (1, 10, "low"),
            (999_999, 10, "low"),
            (1_000_000, 25, "medium"),
            (9_999_999, 25, "medium"),
            (10_000_000, 40, "high"),
            (100_000_000, 60, "very_high"),
        ],
    )
    def test_amount_bands(self, principal_cents, expected_score, expected_level):
        factor = score_amount(principal_cents)

        assert factor.name == "amount"
        assert factor.score == expected_score
        assert factor.level == expected_level

    @pytest.mark.parametrize(
        "tenor_days,expected_score",
        [(1, 5), (29, 5), (30, 15), (89, 15), (90, 30), (179, 30), (180, 45), (365, 45)],
    )
    def test_tenor_bands(self, tenor_days, expected_score):
        assert score_tenor(tenor_days).score == expected_score

    def test_known_currency_is_case_insensitive(self):
        factor = score_currency("usd")

        assert factor.score == 5
        assert factor.level == "USD"

    def test_unknown_currency_gets_conservative_default(self):
        factor = score_currency("JPY")

        assert factor.score == 25
        assert factor.level == "unknown"

    def test_industry_lookup_normalizes_case_and_whitespace(self):
        assert score_industry(" Construction ").score == 35

    def test_unknown_industry_gets_conservative_default(self):
        factor = score_industry("aerospace")

        assert factor.score == 25
        assert factor.level == "unknown"

    def test_custom_amount_bands_from_settings(self):
        settings = RiskSettings(amount_bands_json="[[0,1],[500,99]]")

        assert score_amount(499, settings).score == 1
        assert score_amount(500, settings).score == 99


# =============================================================================
# History
# =============================================================================

class TestSellerHistory:
    """Tests for seller track-record scoring."""

    def test_unknown_seller_scores_default(self):
        factor = score_seller_history(None)

        assert factor.score == 15
        assert factor.level == "unknown"

    def test_new_seller_scores_zero_but_is_flagged(self):
        factor = score_seller_history(SellerHistory(invoice_count=0))

        assert factor.score == 0
        assert factor.level == "new_seller"

    def test_clean_seller_scores_zero(self):
        factor = score_seller_history(SellerHistory(invoice_count=12))

        assert factor.score == 0
        assert factor.level == "good"

    def test_high_default_rate_and_severe_delay_add_up(self):
        factor = score_seller_history(
            SellerHistory(invoice_count=20, default_rate=0.12, avg_delay_days=35)
        )

        assert factor.score == 30 + 20
        assert factor.level == "high_default"

    def test_elevated_default_rate_and_moderate_delay(self):
        factor = score_seller_history(
            SellerHistory(invoice_count=20, default_rate=0.07, avg_delay_days=15)
        )

        assert factor.score == 15 + 10
        assert factor.level == "elevated_default"

    def test_delay_only(self):
        factor = score_seller_history(
            SellerHistory(invoice_count=5, default_rate=0.0, avg_delay_days=12)
        )

        assert factor.score == 10
        assert factor.level == "moderate_delay"

    def test_thresholds_are_exclusive(self):
        factor = score_seller_history(
            SellerHistory(invoice_count=20, default_rate=0.05, avg_delay_days=10)
        )

        assert factor.score == 0


class TestBuyerHistory:
    """Tests for buyer payment-record scoring."""

    def test_unknown_buyer_scores_default(self):
        factor = score_buyer_history(None)

        assert factor.score == 20
        assert factor.level == "unknown"

    def test_new_buyer(self):
        factor = score_buyer_history(BuyerHistory(invoice_count=0))

        assert factor.score == 15
        assert factor.level == "new_buyer"

    @pytest.mark.parametrize(
        "payment_rate,default_rate,expected_score,expected_level",
        [
            (0.70, 0.20, 25, "poor"),
            (0.90, 0.07, 15, "fair"),
            (0.95, 0.00, 5, "excellent"),
            (0.80, 0.00, 10, "good"),
        ],
    )
    def test_buyer_record_levels(self, payment_rate, default_rate, expected_score, expected_level):
        factor = score_buyer_history(
            BuyerHistory(invoice_count=10, payment_rate=payment_rate, default_rate=default_rate)
        )

        assert factor.score == expected_score
        assert factor.level == expected_level


class TestMarketConditions:
    """Tests for the seasonal and economic adjustment."""

    def test_normal_month(self):
        factor = score_market_conditions(MARCH)

        assert factor.score == 10
        assert factor.level == "normal"

    def test_peak_month_is_elevated(self):
        factor = score_market_conditions(DECEMBER)

        assert factor.score == 15
        assert factor.level == "elevated"


# =============================================================================
# Grades and Yield
# =============================================================================

class TestGrading:
    """Tests for grade bands and yield interpolation."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0, RiskGrade.LOW),
            (29, RiskGrade.LOW),
            (30, RiskGrade.MEDIUM),
            (59, RiskGrade.MEDIUM),
            (60, RiskGrade.HIGH),
            (250, RiskGrade.HIGH),
        ],
    )
    def test_grade_boundaries_are_half_open(self, score, expected):
        assert score_to_grade(score) == expected

    @pytest.mark.parametrize(
        "score,expected_bps",
        [
            (0, 0),
            (25, 42),
            (30, 50),
            (35, 67),
            (60, 150),
            (85, 244),
            (100, 300),
        ],
    )
    def test_yield_interpolates_inside_grade(self, score, expected_bps):
        grade = score_to_grade(score)

        assert calculate_yield_adjustment_bps(score, grade) == expected_bps

    def test_high_yield_saturates(self):
        assert calculate_yield_adjustment_bps(180, RiskGrade.HIGH) == 300

    def test_recommendations_escalate_with_grade(self):
        assert recommendation_for(RiskGrade.LOW).priority == "normal"
        assert recommendation_for(RiskGrade.MEDIUM).priority == "important"
        assert recommendation_for(RiskGrade.HIGH).priority == "urgent"

    def test_bands_must_start_at_zero(self):
        with pytest.raises(ValidationError):
            RiskSettings(tenor_bands_json="[[10,5],[30,15]]")

    def test_overlapping_yield_ranges_are_rejected(self):
        with pytest.raises(ValidationError):
            RiskSettings(low_yield_max_bps=80, medium_yield_min_bps=50)


# =============================================================================
# Complete Assessment
# =============================================================================

class TestRiskEngine:
    """Tests for the complete assessment flow."""

    def test_unknown_history_is_scored_conservatively(self):
        """amount 25 + tenor 15 + USD 5 + technology 15 + seller 15 + buyer 20 + market 10."""
        assessment = RiskEngine().assess(make_inputs())

        assert assessment.score == 105
        assert assessment.grade == RiskGrade.HIGH
        assert assessment.yield_adjustment_bps == 300

    def test_factor_order(self):
        assessment = RiskEngine().assess(make_inputs())

        assert [f.name for f in assessment.factors] == [
            "amount",
            "tenor",
            "currency",
            "industry",
            "seller_history",
            "buyer_history",
            "market_conditions",
        ]

    def test_industry_factor_is_skipped_when_absent(self):
        assessment = RiskEngine().assess(make_inputs(industry=None))

        assert "industry" not in [f.name for f in assessment.factors]
        assert assessment.score == 90

    def test_new_seller_and_new_buyer(self):
        assessment = RiskEngine().assess(
            make_inputs(
                seller_history=SellerHistory(invoice_count=0),
                buyer_history=BuyerHistory(invoice_count=0),
            )
        )

        assert assessment.score == 85
        assert assessment.yield_adjustment_bps == 244

    def test_medium_grade_invoice(self):
        """amount 10 + tenor 5 + USD 5 + seller 0 + buyer 5 + market 10."""
        assessment = RiskEngine().assess(
            make_inputs(
                principal_cents=500_000,
                tenor_days=20,
                industry=None,
                seller_history=SellerHistory(invoice_count=10),
                buyer_history=BuyerHistory(invoice_count=10, payment_rate=0.95),
            )
        )

        assert assessment.score == 35
        assert assessment.grade == RiskGrade.MEDIUM
        assert assessment.yield_adjustment_bps == 67
        assert assessment.recommendation.priority == "important"

    def test_low_grade_with_custom_market_settings(self):
        settings = RiskSettings(seasonal_base_score=0, economic_score=0)
        assessment = RiskEngine(settings).assess(
            make_inputs(
                principal_cents=500_000,
                tenor_days=20,
                industry=None,
                seller_history=SellerHistory(invoice_count=10),
                buyer_history=BuyerHistory(invoice_count=10, payment_rate=0.95),
            )
        )

        assert assessment.score == 25
        assert assessment.grade == RiskGrade.LOW
        assert assessment.yield_adjustment_bps == 42

    def test_score_is_sum_of_factors(self):
        assessment = RiskEngine().assess(
            make_inputs(
                currency="CHF",
                seller_history=SellerHistory(invoice_count=3, default_rate=0.2, avg_delay_days=40),
            )
        )

        assert assessment.score == sum(f.score for f in assessment.factors)

    def test_assessment_is_idempotent(self):
        engine = RiskEngine()
        inputs = make_inputs(
            seller_history=SellerHistory(invoice_count=4, default_rate=0.25),
            buyer_history=BuyerHistory(invoice_count=2, payment_rate=0.5),
        )

        assert engine.assess(inputs) == engine.assess(inputs)

    def test_explanation_lists_every_factor(self):
        assessment = RiskEngine().assess(make_inputs())
        explanation = explain_assessment(assessment)

        assert "Risk Grade: HIGH (score 105)" in explanation
        assert "300 bps" in explanation
        for factor in assessment.factors:
            assert factor.name in explanation
