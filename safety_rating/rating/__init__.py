"""PSR aggregation, tiers, workforce score and reports."""

from safety_rating.rating.report import (
    format_rating_summary,
    generate_workforce_summary,
    ratings_to_dataframe,
)
from safety_rating.rating.scorer import (
    PersonalSafetyRating,
    RatingComponents,
    RatingTier,
    calculate_personal_safety_rating,
    classify_tier,
    rate_technician,
)
from safety_rating.rating.snapshot import PSRSnapshot
from safety_rating.rating.weights import (
    RatingMode,
    WeightScheme,
    WEIGHT_SCHEMES,
    select_mode,
    select_weight_scheme,
)
from safety_rating.rating.workforce import (
    WorkforceSafetyScore,
    calculate_workforce_safety_score,
)

__all__ = [
    "RatingMode",
    "WeightScheme",
    "WEIGHT_SCHEMES",
    "select_mode",
    "select_weight_scheme",
    "RatingComponents",
    "RatingTier",
    "PersonalSafetyRating",
    "calculate_personal_safety_rating",
    "classify_tier",
    "rate_technician",
    "PSRSnapshot",
    "WorkforceSafetyScore",
    "calculate_workforce_safety_score",
    "ratings_to_dataframe",
    "format_rating_summary",
    "generate_workforce_summary",
]
