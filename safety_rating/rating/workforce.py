"""Workforce Safety Score: mean PSR of a company's linked technicians.

WSS is informational. It is computed from PSRs only and has no field or
code path that feeds the Company Safety Rating.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import numpy as np

from safety_rating.rating.scorer import PersonalSafetyRating, RatingTier
from safety_rating.utils.config import SCORE_PRECISION


@dataclass(frozen=True)
class WorkforceSafetyScore:
    """Read-only company-level aggregate of PSRs."""

    company_id: str
    score: float  # 0-100, mean PSR
    technician_count: int
    tier_distribution: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "tier_distribution", MappingProxyType(dict(self.tier_distribution))
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the consumer-facing dictionary."""
        return {
            "companyId": self.company_id,
            "score": self.score,
            "technicianCount": self.technician_count,
            "tierDistribution": dict(self.tier_distribution),
        }


def calculate_workforce_safety_score(
    company_id: str,
    ratings: list[PersonalSafetyRating],
) -> WorkforceSafetyScore:
    """Average the PSRs of the technicians currently linked to a company.

    Args:
        company_id: Company identifier
        ratings: PSRs of exactly the technicians linked at query time

    Returns:
        WorkforceSafetyScore (0.0 with a count of 0 for an empty workforce)
    """
    if not ratings:
        return WorkforceSafetyScore(
            company_id=company_id,
            score=0.0,
            technician_count=0,
        )

    scores = np.array([r.score for r in ratings], dtype=float)

    tier_counts: dict[str, int] = {}
    for r in ratings:
        tier_counts[r.tier.value] = tier_counts.get(r.tier.value, 0) + 1
    # Stable ordering, best tier first
    distribution = {
        t.value: tier_counts[t.value] for t in RatingTier if t.value in tier_counts
    }

    return WorkforceSafetyScore(
        company_id=company_id,
        score=round(float(np.mean(scores)), SCORE_PRECISION),
        technician_count=len(ratings),
        tier_distribution=distribution,
    )
