"""
Data models for invoice risk assessment.

These models are the inputs and outputs of the risk engine. Historical
aggregates are passed in already fetched so that assessment stays pure.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


class RiskGrade(str, Enum):
    """Risk grade bands, ordered from safest to riskiest."""
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


@dataclass(frozen=True)
class SellerHistory:
    """
    Seller performance across prior invoices.

    Attributes:
        invoice_count: Prior invoices raised by the seller
        default_rate: Fraction of prior invoices that defaulted (0.0-1.0)
        avg_delay_days: Average days paid after maturity on settled invoices
    """
    invoice_count: int
    default_rate: float = 0.0
    avg_delay_days: float = 0.0


@dataclass(frozen=True)
class BuyerHistory:
    """
    Buyer payment performance across invoices in the system.

    Attributes:
        invoice_count: Invoices billed to the buyer (name-matched)
        payment_rate: Fraction paid (0.0-1.0)
        default_rate: Fraction defaulted (0.0-1.0)
    """
    invoice_count: int
    payment_rate: float = 0.0
    default_rate: float = 0.0


@dataclass(frozen=True)
class RiskInputs:
    """
    Invoice attributes and history aggregates fed to the engine.

    A history of None means the aggregate could not be obtained; the
    engine then applies its conservative default instead of failing.
    """
    principal_cents: int
    currency: str
    tenor_days: int
    as_of: date
    industry: Optional[str] = None
    seller_history: Optional[SellerHistory] = None
    buyer_history: Optional[BuyerHistory] = None


@dataclass(frozen=True)
class RiskFactor:
    """One scored contribution to the total risk score."""
    name: str
    level: str
    score: int
    description: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "level": self.level,
            "score": self.score,
            "description": self.description,
        }


@dataclass(frozen=True)
class Recommendation:
    """Suggested investor guidance for a grade."""
    priority: str
    actions: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RiskAssessment:
    """
    Result of a risk assessment. Recomputed on every call, never mutated.

    Attributes:
        score: Sum of factor scores (non-negative, no upper clamp)
        grade: Grade band the score falls into
        factors: Ordered factor contributions
        yield_adjustment_bps: Suggested yield premium in basis points
        recommendation: Investor guidance for the grade
    """
    score: int
    grade: RiskGrade
    factors: tuple[RiskFactor, ...]
    yield_adjustment_bps: int
    recommendation: Recommendation

    def factors_as_dicts(self) -> list[dict]:
        return [factor.to_dict() for factor in self.factors]
