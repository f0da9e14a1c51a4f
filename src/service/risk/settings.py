"""
Risk Settings for the invoice risk engine.

All band tables, history thresholds, grade boundaries and yield ranges
used by the risk engine live here so they can be tuned per deployment
without code changes.

Environment variables use the RISK_ prefix:
    RISK_UNKNOWN_CURRENCY_SCORE=25
    RISK_LOW_GRADE_UPPER=30
    RISK_AMOUNT_BANDS_JSON='[[0,10],[1000000,25],[10000000,40],[100000000,60]]'

Usage:
    from src.service.risk.settings import risk_settings

    # Use default settings (loaded from env)
    upper = risk_settings.medium_grade_upper

    # Or create custom settings for testing
    custom = RiskSettings(unknown_currency_score=40)
"""

import json
from functools import lru_cache
from typing import Dict, List, Tuple

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _validate_bands(v: str) -> str:
    try:
        bands = json.loads(v)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")
    if not isinstance(bands, list) or not bands:
        raise ValueError("Bands must be a non-empty list")
    previous = None
    for band in bands:
        if not isinstance(band, list) or len(band) != 2:
            raise ValueError("Each band must be [lower_bound, score]")
        if not all(isinstance(x, int) for x in band):
            raise ValueError("All band values must be integers")
        lower, score = band
        if score < 0:
            raise ValueError(f"score cannot be negative: {score}")
        if previous is not None and lower <= previous:
            raise ValueError("Band lower bounds must be strictly increasing")
        previous = lower
    if bands[0][0] != 0:
        raise ValueError("The first band must start at 0")
    return v


def _validate_score_table(v: str) -> str:
    try:
        table = json.loads(v)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON: {e}")
    if not isinstance(table, dict):
        raise ValueError("Score table must be a JSON object")
    for key, score in table.items():
        if not isinstance(score, int) or score < 0:
            raise ValueError(f"Score for {key!r} must be a non-negative integer")
    return v


class RiskSettings(BaseSettings):
    """
    Configurable parameters for the invoice risk engine.

    All settings can be overridden via environment variables with RISK_ prefix.
    Monetary bounds are in minor units (cents) of the invoice currency.
    """

    model_config = SettingsConfigDict(
        env_prefix="RISK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Attribute Bands ===
    amount_bands_json: str = Field(
        default="[[0,10],[1000000,25],[10000000,40],[100000000,60]]",
        description="Principal bands as JSON: [[lower_bound_cents, score], ...]",
    )
    tenor_bands_json: str = Field(
        default="[[0,5],[30,15],[90,30],[180,45]]",
        description="Tenor bands as JSON: [[lower_bound_days, score], ...]",
    )
    currency_scores_json: str = Field(
        default='{"USD":5,"EUR":10,"GBP":15}',
        description="Per-currency scores as a JSON object",
    )
    unknown_currency_score: int = Field(
        default=25,
        ge=0,
        description="Score for currencies missing from the table",
    )
    industry_scores_json: str = Field(
        default=(
            '{"technology":15,"healthcare":10,"finance":20,"retail":25,'
            '"manufacturing":20,"construction":35,"energy":30}'
        ),
        description="Per-industry scores as a JSON object (lowercase keys)",
    )
    unknown_industry_score: int = Field(
        default=25,
        ge=0,
        description="Score for industries missing from the table",
    )

    # === Seller History ===
    seller_high_default_rate: float = Field(default=0.10, ge=0.0, le=1.0)
    seller_high_default_score: int = Field(default=30, ge=0)
    seller_elevated_default_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    seller_elevated_default_score: int = Field(default=15, ge=0)
    seller_severe_delay_days: float = Field(default=30.0, ge=0.0)
    seller_severe_delay_score: int = Field(default=20, ge=0)
    seller_moderate_delay_days: float = Field(default=10.0, ge=0.0)
    seller_moderate_delay_score: int = Field(default=10, ge=0)
    unknown_seller_score: int = Field(
        default=15,
        ge=0,
        description="Score when no seller aggregate is available",
    )

    # === Buyer History ===
    new_buyer_score: int = Field(
        default=15,
        ge=0,
        description="Score for a buyer with no invoices in the system",
    )
    unknown_buyer_score: int = Field(
        default=20,
        ge=0,
        description="Score when no buyer aggregate is available",
    )
    buyer_poor_default_rate: float = Field(default=0.10, ge=0.0, le=1.0)
    buyer_poor_score: int = Field(default=25, ge=0)
    buyer_fair_default_rate: float = Field(default=0.05, ge=0.0, le=1.0)
    buyer_fair_score: int = Field(default=15, ge=0)
    buyer_excellent_payment_rate: float = Field(default=0.90, ge=0.0, le=1.0)
    buyer_excellent_score: int = Field(default=5, ge=0)
    buyer_good_score: int = Field(default=10, ge=0)

    # === Market Conditions ===
    seasonal_base_score: int = Field(default=5, ge=0)
    seasonal_peak_score: int = Field(default=10, ge=0)
    seasonal_peak_months: List[int] = Field(
        default=[12, 1, 2],
        description="Calendar months with elevated seasonal risk",
    )
    economic_score: int = Field(default=5, ge=0)
    market_elevated_threshold: int = Field(
        default=10,
        ge=0,
        description="Market scores above this are reported as elevated",
    )

    # === Grades ===
    low_grade_upper: int = Field(
        default=30,
        gt=0,
        description="Exclusive upper bound of LOW; lower bound of MEDIUM",
    )
    medium_grade_upper: int = Field(
        default=60,
        gt=0,
        description="Exclusive upper bound of MEDIUM; lower bound of HIGH",
    )
    high_interpolation_upper: int = Field(
        default=100,
        gt=0,
        description="Score at which the HIGH yield adjustment saturates",
    )

    # === Yield Adjustment (basis points) ===
    low_yield_min_bps: int = Field(default=0, ge=0)
    low_yield_max_bps: int = Field(default=50, ge=0)
    medium_yield_min_bps: int = Field(default=50, ge=0)
    medium_yield_max_bps: int = Field(default=150, ge=0)
    high_yield_min_bps: int = Field(default=150, ge=0)
    high_yield_max_bps: int = Field(default=300, ge=0)

    @field_validator("amount_bands_json", "tenor_bands_json")
    @classmethod
    def validate_bands_json(cls, v: str) -> str:
        """Validate that band JSON is parseable and well-formed."""
        return _validate_bands(v)

    @field_validator("currency_scores_json", "industry_scores_json")
    @classmethod
    def validate_score_table_json(cls, v: str) -> str:
        """Validate that score tables map names to non-negative integers."""
        return _validate_score_table(v)

    @model_validator(mode="after")
    def validate_ranges(self) -> "RiskSettings":
        """Grade bounds must be ordered and yield ranges must join up."""
        if not self.low_grade_upper < self.medium_grade_upper < self.high_interpolation_upper:
            raise ValueError(
                "Grade bounds must satisfy low_grade_upper < medium_grade_upper "
                "< high_interpolation_upper"
            )
        ranges = [
            (self.low_yield_min_bps, self.low_yield_max_bps),
            (self.medium_yield_min_bps, self.medium_yield_max_bps),
            (self.high_yield_min_bps, self.high_yield_max_bps),
        ]
        for lower, upper in ranges:
            if lower > upper:
                raise ValueError(f"Yield range min ({lower}) > max ({upper})")
        for (_, upper), (next_lower, _) in zip(ranges, ranges[1:]):
            if upper > next_lower:
                raise ValueError("Yield ranges must not overlap between grades")
        return self

    @property
    def amount_bands(self) -> List[Tuple[int, int]]:
        """Principal bands as (lower_bound_cents, score), ascending."""
        return [tuple(band) for band in json.loads(self.amount_bands_json)]

    @property
    def tenor_bands(self) -> List[Tuple[int, int]]:
        """Tenor bands as (lower_bound_days, score), ascending."""
        return [tuple(band) for band in json.loads(self.tenor_bands_json)]

    @property
    def currency_scores(self) -> Dict[str, int]:
        return {k.upper(): v for k, v in json.loads(self.currency_scores_json).items()}

    @property
    def industry_scores(self) -> Dict[str, int]:
        return {k.lower(): v for k, v in json.loads(self.industry_scores_json).items()}


@lru_cache
def get_risk_settings() -> RiskSettings:
    """Get cached risk settings instance."""
    return RiskSettings()


risk_settings = get_risk_settings()
