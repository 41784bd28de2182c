"""Safety Rating Engine: Personal Safety Rating and Workforce Safety Score."""

from safety_rating.engine.service import RatingService
from safety_rating.errors import LinkageError, RatingUnavailableError, SafetyRatingError

__version__ = "1.0.0"

__all__ = [
    "RatingService",
    "SafetyRatingError",
    "LinkageError",
    "RatingUnavailableError",
]
