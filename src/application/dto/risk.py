"""Data transfer objects for stand-alone risk assessment."""

from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class RiskAssessmentResponse:
    """Response data for a risk assessment."""

    score: int
    grade: str
    yield_adjustment_bps: int
    factors: List[Dict[str, Any]]
    priority: str
    actions: List[str]
    explanation: str

    @classmethod
    def from_assessment(cls, assessment, explanation: str) -> "RiskAssessmentResponse":
        return cls(
            score=assessment.score,
            grade=assessment.grade.value,
            yield_adjustment_bps=assessment.yield_adjustment_bps,
            factors=assessment.factors_as_dicts(),
            priority=assessment.recommendation.priority,
            actions=list(assessment.recommendation.actions),
            explanation=explanation,
        )
