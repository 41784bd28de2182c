"""Immutable PSR snapshot, the published form of a technician's rating."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from safety_rating.rating.scorer import PersonalSafetyRating, RatingComponents, RatingTier


@dataclass(frozen=True)
class PSRSnapshot:
    """A PSR computed from a technician's history at a given revision."""

    technician_id: str
    rating: PersonalSafetyRating
    computed_at: datetime
    revision: int  # store revision the rating was computed from
    company_id: str | None = None  # linked company at compute time

    @property
    def score(self) -> float:
        return self.rating.score

    @property
    def tier(self) -> RatingTier:
        return self.rating.tier

    @property
    def components(self) -> RatingComponents:
        return self.rating.components

    def to_dict(self) -> dict[str, Any]:
        """Convert to the consumer-facing dictionary."""
        data = {"technicianId": self.technician_id}
        data.update(self.rating.to_dict())
        data["computedAt"] = self.computed_at.isoformat()
        return data
