"""
Risk Factor Scoring for the invoice risk engine.

Each function scores one independent attribute of an invoice and returns
a RiskFactor carrying its contribution, a level label and a short
rationale. None of them raise for missing history: an absent aggregate
falls back to the configured conservative default.
"""

from datetime import date
from typing import List, Optional, Tuple

from .models import BuyerHistory, RiskFactor, SellerHistory
from .settings import RiskSettings, risk_settings

_AMOUNT_LEVELS = ("low", "medium", "high", "very_high")
_TENOR_LEVELS = ("short", "medium", "long", "very_long")


def _band_lookup(value: int, bands: List[Tuple[int, int]]) -> Tuple[int, int]:
    """Return (band_index, score) of the last band whose lower bound <= value."""
    index, score = 0, bands[0][1]
    for i, (lower, band_score) in enumerate(bands):
        if value >= lower:
            index, score = i, band_score
        else:
            break
    return index, score


def _level_name(index: int, names: Tuple[str, ...]) -> str:
    if index < len(names):
        return names[index]
    return f"band_{index}"


def score_amount(
    principal_cents: int,
    settings: RiskSettings = risk_settings,
) -> RiskFactor:
    """
    Score the invoice principal. Larger invoices score higher.

    Args:
        principal_cents: Invoice principal in minor units
        settings: Risk settings (uses defaults if not provided)

    Returns:
        RiskFactor named "amount"
    """
    index, score = _band_lookup(principal_cents, settings.amount_bands)
    level = _level_name(index, _AMOUNT_LEVELS)
    return RiskFactor(
        name="amount",
        level=level,
        score=score,
        description=f"Principal of {principal_cents / 100:,.2f} falls in the {level} band",
    )


def score_tenor(
    tenor_days: int,
    settings: RiskSettings = risk_settings,
) -> RiskFactor:
    """
    Score the invoice tenor. Longer tenors score higher.

    Args:
        tenor_days: Days until the buyer is expected to pay
        settings: Risk settings (uses defaults if not provided)

    Returns:
        RiskFactor named "tenor"
    """
    index, score = _band_lookup(tenor_days, settings.tenor_bands)
    level = _level_name(index, _TENOR_LEVELS)
    return RiskFactor(
        name="tenor",
        level=level,
        score=score,
        description=f"{tenor_days} day tenor is {level.replace('_', ' ')} term",
    )


def score_currency(
    currency: str,
    settings: RiskSettings = risk_settings,
) -> RiskFactor:
    """Score the invoice currency; unknown currencies get the conservative default."""
    code = currency.upper()
    table = settings.currency_scores
    if code in table:
        return RiskFactor(
            name="currency",
            level=code,
            score=table[code],
            description=f"{code} currency risk",
        )
    return RiskFactor(
        name="currency",
        level="unknown",
        score=settings.unknown_currency_score,
        description=f"{code} is not a rated currency",
    )


def score_industry(
    industry: str,
    settings: RiskSettings = risk_settings,
) -> RiskFactor:
    """Score the seller's industry; unknown industries get the conservative default."""
    key = industry.strip().lower()
    table = settings.industry_scores
    if key in table:
        return RiskFactor(
            name="industry",
            level=key,
            score=table[key],
            description=f"{key} industry risk",
        )
    return RiskFactor(
        name="industry",
        level="unknown",
        score=settings.unknown_industry_score,
        description=f"{industry} is not a rated industry",
    )


def score_seller_history(
    history: Optional[SellerHistory],
    settings: RiskSettings = risk_settings,
) -> RiskFactor:
    """
    Score the seller's track record.

    A seller with no prior invoices scores 0 but is flagged "new_seller"
    rather than treated as proven. Otherwise the default rate and the
    average settlement delay each add points past their thresholds.

    Args:
        history: Seller aggregate, or None if it could not be obtained
        settings: Risk settings (uses defaults if not provided)

    Returns:
        RiskFactor named "seller_history"
    """
    if history is None:
        return RiskFactor(
            name="seller_history",
            level="unknown",
            score=settings.unknown_seller_score,
            description="Seller history unavailable",
        )

    if history.invoice_count == 0:
        return RiskFactor(
            name="seller_history",
            level="new_seller",
            score=0,
            description="New seller with no invoice history",
        )

    score = 0
    level = "good"

    if history.default_rate > settings.seller_high_default_rate:
        score += settings.seller_high_default_score
        level = "high_default"
    elif history.default_rate > settings.seller_elevated_default_rate:
        score += settings.seller_elevated_default_score
        level = "elevated_default"

    if history.avg_delay_days > settings.seller_severe_delay_days:
        score += settings.seller_severe_delay_score
        level = "high_delay" if level == "good" else level
    elif history.avg_delay_days > settings.seller_moderate_delay_days:
        score += settings.seller_moderate_delay_score
        level = "moderate_delay" if level == "good" else level

    return RiskFactor(
        name="seller_history",
        level=level,
        score=score,
        description=(
            f"Seller has {history.default_rate * 100:.1f}% default rate and "
            f"{history.avg_delay_days:.1f} days average delay over "
            f"{history.invoice_count} invoices"
        ),
    )


def score_buyer_history(
    history: Optional[BuyerHistory],
    settings: RiskSettings = risk_settings,
) -> RiskFactor:
    """
    Score the buyer's payment record across invoices in the system.

    Args:
        history: Buyer aggregate, or None if it could not be obtained
        settings: Risk settings (uses defaults if not provided)

    Returns:
        RiskFactor named "buyer_history"
    """
    if history is None:
        return RiskFactor(
            name="buyer_history",
            level="unknown",
            score=settings.unknown_buyer_score,
            description="Buyer history unavailable",
        )

    if history.invoice_count == 0:
        return RiskFactor(
            name="buyer_history",
            level="new_buyer",
            score=settings.new_buyer_score,
            description="New buyer with no payment history",
        )

    if history.default_rate > settings.buyer_poor_default_rate:
        score, level = settings.buyer_poor_score, "poor"
    elif history.default_rate > settings.buyer_fair_default_rate:
        score, level = settings.buyer_fair_score, "fair"
    elif history.payment_rate > settings.buyer_excellent_payment_rate:
        score, level = settings.buyer_excellent_score, "excellent"
    else:
        score, level = settings.buyer_good_score, "good"

    return RiskFactor(
        name="buyer_history",
        level=level,
        score=score,
        description=(
            f"Buyer has {history.payment_rate * 100:.1f}% payment rate from "
            f"{history.invoice_count} invoices"
        ),
    )


def score_market_conditions(
    as_of: date,
    settings: RiskSettings = risk_settings,
) -> RiskFactor:
    """
    Small seasonal plus economic adjustment, bounded by configuration.

    Args:
        as_of: Assessment date (drives the seasonal component)
        settings: Risk settings (uses defaults if not provided)

    Returns:
        RiskFactor named "market_conditions"
    """
    if as_of.month in settings.seasonal_peak_months:
        seasonal = settings.seasonal_peak_score
    else:
        seasonal = settings.seasonal_base_score

    total = seasonal + settings.economic_score
    level = "elevated" if total > settings.market_elevated_threshold else "normal"

    return RiskFactor(
        name="market_conditions",
        level=level,
        score=total,
        description=f"Seasonal {seasonal} + economic {settings.economic_score}: {level} market risk",
    )
